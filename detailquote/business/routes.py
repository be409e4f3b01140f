# detailquote/business/routes.py

from flask import Blueprint, g, jsonify

from detailquote.auth import load_caller
from detailquote.business.service import ensure_business, update_business
from detailquote.utils import json_object

bp = Blueprint('business', __name__)
bp.before_request(load_caller)


@bp.route('', methods=['GET'])
def get_business_profile():
    """Business profile including the live catalog; provisioned on first call."""
    business = ensure_business(g.user_id, g.user_email)
    return jsonify(business.to_dict(include_pricing=True))


@bp.route('', methods=['PUT'])
def update_business_profile():
    ensure_business(g.user_id, g.user_email)
    data = json_object()
    business = update_business(g.user_id, data)
    return jsonify(business.to_dict())
