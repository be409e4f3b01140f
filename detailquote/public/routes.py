# detailquote/public/routes.py
"""Customer-facing quote link.  No sign-in; the share id is the credential."""

from flask import Blueprint, jsonify

from detailquote.quotes.service import open_public_quote, quote_to_dict, respond_to_quote
from detailquote.utils import json_object

bp = Blueprint('public', __name__)


@bp.route('/<share_id>', methods=['GET'])
def view_public_quote(share_id):
    quote = open_public_quote(share_id)
    business = quote.user.business
    return jsonify(
        quote=quote_to_dict(quote, include_breakdown=True, public=True),
        business={
            'name': business.name,
            'email': business.email,
            'phone': business.phone,
        } if business else None,
    )


@bp.route('/<share_id>/respond', methods=['POST'])
def respond_public_quote(share_id):
    data = json_object()
    quote = respond_to_quote(share_id, data.get('action'))
    return jsonify(success=True, status=quote.status)
