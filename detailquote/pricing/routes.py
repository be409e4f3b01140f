# detailquote/pricing/routes.py

from flask import Blueprint, g, jsonify, request

from detailquote.auth import load_caller
from detailquote.business.service import ensure_business, get_catalog, save_catalog, save_category
from detailquote.pricing.catalog import get_default_catalog
from detailquote.pricing.engine import price_quote
from detailquote.utils import id_list, json_object

bp = Blueprint('pricing', __name__)

PUBLIC_ENDPOINTS = {'pricing.demo_price'}


@bp.before_request
def before():
    if request.endpoint not in PUBLIC_ENDPOINTS:
        load_caller()


@bp.route('', methods=['GET'])
def get_pricing():
    ensure_business(g.user_id, g.user_email)
    return jsonify(get_catalog(g.user_id).to_dict())


@bp.route('', methods=['PUT'])
def replace_pricing():
    """Save the whole catalog.  Existing quotes keep their snapshots."""
    ensure_business(g.user_id, g.user_email)
    catalog = save_catalog(g.user_id, json_object())
    return jsonify(catalog.to_dict())


@bp.route('/<category>', methods=['PUT'])
def replace_pricing_category(category):
    """
    Replace one category (vehicleSizes, conditions, services, addons).
    Body: { items: [ ... ] } or a bare list.
    """
    ensure_business(g.user_id, g.user_email)
    data = request.get_json(silent=True)
    items = data.get('items') if isinstance(data, dict) else data
    catalog = save_category(g.user_id, category, items)
    return jsonify(catalog.to_dict())


def _price_selection(catalog, data):
    return price_quote(
        catalog,
        data.get('vehicleSize'),
        data.get('condition'),
        id_list(data, 'services', required=True),
        id_list(data, 'addons', required=False),
    )


@bp.route('/preview', methods=['POST'])
def preview_price():
    """Live quote-builder total against the caller's current catalog."""
    ensure_business(g.user_id, g.user_email)
    breakdown = _price_selection(get_catalog(g.user_id), json_object())
    return jsonify(breakdown.to_dict())


@bp.route('/demo', methods=['POST'])
def demo_price():
    """Public calculator on the landing page; uses the built-in catalog."""
    breakdown = _price_selection(get_default_catalog(), json_object())
    return jsonify(breakdown.to_dict())
