# detailquote/quotes/routes.py

from flask import Blueprint, current_app, g, jsonify

from detailquote.auth import load_caller
from detailquote.quotes.service import (
    create_quote,
    delete_quote,
    get_owned_quote,
    list_quotes,
    quote_to_dict,
    send_quote,
    update_quote,
)
from detailquote.utils import json_object

bp = Blueprint('quotes', __name__)
bp.before_request(load_caller)


@bp.route('', methods=['GET'])
def list_owner_quotes():
    quotes = list_quotes(g.user_id)
    return jsonify(quotes=[quote_to_dict(q) for q in quotes])


@bp.route('', methods=['POST'])
def create_owner_quote():
    """
    Create a DRAFT quote priced against the caller's current catalog.
    Any client-supplied ``total``/``pricingSnapshot`` is ignored.
    """
    data = json_object()
    quote = create_quote(g.user_id, data, email=g.user_email)
    return jsonify(quote_to_dict(quote, include_breakdown=True)), 201


@bp.route('/<quote_id>', methods=['GET'])
def view_owner_quote(quote_id):
    quote = get_owned_quote(g.user_id, quote_id)
    return jsonify(quote_to_dict(quote, include_breakdown=True))


@bp.route('/<quote_id>', methods=['PUT'])
def update_owner_quote(quote_id):
    data = json_object()
    quote = update_quote(g.user_id, quote_id, data)
    return jsonify(quote_to_dict(quote))


@bp.route('/<quote_id>', methods=['DELETE'])
def delete_owner_quote(quote_id):
    delete_quote(g.user_id, quote_id)
    return jsonify(success=True)


@bp.route('/<quote_id>/send', methods=['POST'])
def send_owner_quote(quote_id):
    data = json_object()
    quote = send_quote(
        g.user_id,
        quote_id,
        data.get('email'),
        mailer=current_app.extensions['quote_mailer'],
        base_url=current_app.config['PUBLIC_BASE_URL'],
    )
    return jsonify(success=True, status=quote.status)
