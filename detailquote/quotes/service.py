# detailquote/quotes/service.py
"""Quote persistence and lifecycle operations.

Status changes are check-then-write: the new status is decided by
``lifecycle`` from the status we read, and written with an UPDATE keyed on
that same status.  If another request changed the row in between the UPDATE
matches nothing and the caller gets a conflict instead of a lost write.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from email_validator import EmailNotValidError, validate_email

from detailquote import db
from detailquote.business.service import ensure_business, get_catalog
from detailquote.errors import Conflict, NotFound, QuoteExpired, ValidationError
from detailquote.models import Quote, utcnow
from detailquote.notifications.mailer import QuoteEmail, QuoteMailer
from detailquote.pricing.catalog import ADDONS, SERVICES, VEHICLE_SIZES, find
from detailquote.pricing.engine import PriceBreakdown, price_quote
from detailquote.quotes import lifecycle
from detailquote.quotes.lifecycle import QuoteStatus
from detailquote.utils import ensure_object, id_list

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ('customer_name', 'customer_email', 'customer_phone')
VEHICLE_FIELDS = ('vehicle_year', 'vehicle_make', 'vehicle_model')
FREE_TEXT_FIELDS = CUSTOMER_FIELDS + VEHICLE_FIELDS + ('notes',)
PRICING_FIELDS = ('vehicle_size', 'condition', 'services', 'addons')

# request JSON key -> column
JSON_KEYS = {
    'customerName': 'customer_name',
    'customerEmail': 'customer_email',
    'customerPhone': 'customer_phone',
    'vehicleYear': 'vehicle_year',
    'vehicleMake': 'vehicle_make',
    'vehicleModel': 'vehicle_model',
    'vehicleSize': 'vehicle_size',
    'condition': 'condition',
    'services': 'services',
    'addons': 'addons',
    'notes': 'notes',
    'status': 'status',
    'validUntil': 'valid_until',
}


def normalize_payload(data: dict) -> dict:
    """Map camelCase request keys onto column names; unknown keys are dropped."""
    out = {}
    for key, value in ensure_object(data).items():
        column = JSON_KEYS.get(key) or (key if key in JSON_KEYS.values() else None)
        if column:
            out[column] = value
    return out


def _clean_text(value, field=None):
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError('Expected text', field=field)
    return value.strip() or None


def parse_valid_until(value) -> datetime | None:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError('validUntil must be an ISO date', field='valid_until')
    else:
        raise ValidationError('validUntil must be an ISO date', field='valid_until')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_email(value) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError('Email is required', field='email')
    try:
        result = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f'Invalid email address: {e}', field='email')
    return result.normalized


# -- owner operations ------------------------------------------------------

def create_quote(user_id: str, data: dict, email: str | None = None) -> Quote:
    """Price a selection against the caller's live catalog and store it,
    together with a frozen copy of that catalog, as a DRAFT."""
    data = normalize_payload(data)
    services = id_list(data, 'services', required=True)
    addons = id_list(data, 'addons', required=False)

    ensure_business(user_id, email)
    catalog = get_catalog(user_id)

    vehicle_size = data.get('vehicle_size')
    if not vehicle_size or find(catalog, VEHICLE_SIZES, vehicle_size) is None:
        raise ValidationError('Unknown vehicle size', field='vehicle_size')
    condition = data.get('condition')
    if not condition or not isinstance(condition, str):
        raise ValidationError('Condition is required', field='condition')
    for service_id in services:
        if find(catalog, SERVICES, service_id) is None:
            raise ValidationError(f'Unknown service: {service_id}', field='services')
    for addon_id in addons:
        if find(catalog, ADDONS, addon_id) is None:
            raise ValidationError(f'Unknown add-on: {addon_id}', field='addons')

    breakdown = price_quote(catalog, vehicle_size, condition, services, addons)

    quote = Quote(
        user_id=user_id,
        vehicle_size=vehicle_size,
        condition=condition,
        services=services,
        addons=addons,
        pricing_snapshot=catalog.to_dict(),
        total=breakdown.total,
        status=QuoteStatus.DRAFT.value,
        view_count=0,
        valid_until=parse_valid_until(data.get('valid_until')),
    )
    for key in FREE_TEXT_FIELDS:
        setattr(quote, key, _clean_text(data.get(key), key))
    db.session.add(quote)
    db.session.commit()
    logger.info('quote %s created for user %s total=%s', quote.id, user_id, quote.total)
    return quote


def list_quotes(user_id: str) -> list[Quote]:
    return (
        Quote.query.filter_by(user_id=user_id)
        .order_by(Quote.created_at.desc())
        .all()
    )


def get_owned_quote(user_id: str, quote_id: str) -> Quote:
    """Quote by id if it belongs to ``user_id``; otherwise ``NotFound``."""
    quote = Quote.query.filter_by(id=quote_id, user_id=user_id).first()
    if quote is None:
        raise NotFound('Quote not found')
    return quote


def update_quote(user_id: str, quote_id: str, data: dict) -> Quote:
    quote = get_owned_quote(user_id, quote_id)
    data = normalize_payload(data)

    for key in PRICING_FIELDS:
        if key in data and data[key] != getattr(quote, key):
            raise ValidationError('Pricing selections cannot change after a quote is created', field=key)

    # validate everything before touching the row
    changes = {key: _clean_text(data[key], key) for key in FREE_TEXT_FIELDS if key in data}
    if 'valid_until' in data:
        changes['valid_until'] = parse_valid_until(data['valid_until'])
    current = quote.quote_status
    new_status = current
    if 'status' in data:
        new_status = lifecycle.status_after_manual_mark(current, data['status'])

    for key, value in changes.items():
        setattr(quote, key, value)
    if new_status is not current:
        _write_status(quote, current, new_status)
        logger.info('quote %s marked %s -> %s', quote.id, current.value, new_status.value)
    else:
        db.session.commit()
    return quote


def delete_quote(user_id: str, quote_id: str) -> None:
    quote = get_owned_quote(user_id, quote_id)
    db.session.delete(quote)
    db.session.commit()
    logger.info('quote %s deleted by user %s', quote_id, user_id)


def send_quote(
    user_id: str,
    quote_id: str,
    recipient,
    mailer: QuoteMailer,
    base_url: str,
) -> Quote:
    """E-mail the quote and move a draft to SENT.

    Nothing is written when the e-mail cannot be delivered.
    """
    recipient = normalize_email(recipient)
    quote = get_owned_quote(user_id, quote_id)
    current = quote.quote_status
    new_status = lifecycle.status_after_send(current)

    business = quote.user.business
    mailer.send_quote_email(build_quote_email(quote, recipient, business, base_url))

    _write_status(quote, current, new_status, customer_email=recipient)
    logger.info('quote %s sent to %s status=%s', quote.id, recipient, new_status.value)
    return quote


def build_quote_email(quote: Quote, recipient: str, business, base_url: str) -> QuoteEmail:
    valid_until = None
    if quote.valid_until is not None:
        valid_until = f'{quote.valid_until:%B} {quote.valid_until.day}, {quote.valid_until.year}'
    return QuoteEmail(
        recipient=recipient,
        business_name=(business.name if business else None) or 'Your Detailer',
        customer_name=quote.customer_name or '',
        vehicle_info=quote.vehicle_info,
        total=format_total(quote.total),
        public_quote_url=public_quote_url(quote, base_url),
        valid_until_display=valid_until,
        reply_to=business.email if business else None,
    )


def format_total(total) -> str:
    return f'${Decimal(total):.0f}'


def public_quote_url(quote: Quote, base_url: str) -> str:
    return f'{base_url.rstrip("/")}/q/{quote.share_id}'


# -- public (customer) operations -----------------------------------------

def get_public_quote(share_id: str) -> Quote:
    quote = Quote.query.filter_by(share_id=share_id).first()
    if quote is None:
        raise NotFound('Quote not found')
    return quote


def open_public_quote(share_id: str, now: datetime | None = None) -> Quote:
    """Customer opened the link: count the view, then expire or mark VIEWED."""
    now = now or utcnow()
    quote = get_public_quote(share_id)

    Quote.query.filter_by(id=quote.id).update(
        {Quote.view_count: Quote.view_count + 1},
        synchronize_session=False,
    )
    db.session.commit()
    db.session.refresh(quote)

    current = quote.quote_status
    new_status = lifecycle.status_after_view(current, quote.valid_until, now)
    if new_status is not current:
        try:
            _write_status(quote, current, new_status)
        except Conflict:
            # another request moved it first; the view is already counted
            logger.info('quote %s changed concurrently while opening', quote.id)
        else:
            logger.info('quote %s %s -> %s on view', quote.id, current.value, new_status.value)
    return quote


def respond_to_quote(share_id: str, action: str, now: datetime | None = None) -> Quote:
    """Customer accepts or declines.  Overdue quotes are expired first."""
    now = now or utcnow()
    if not isinstance(action, str) or action not in lifecycle.RESPONSES:
        raise ValidationError("Invalid action. Must be 'accept' or 'decline'", field='action')
    quote = get_public_quote(share_id)
    current = quote.quote_status

    if not lifecycle.is_terminal(current) and lifecycle.is_expired(quote.valid_until, now):
        _write_status(quote, current, QuoteStatus.EXPIRED)
        logger.info('quote %s expired before %s', quote.id, action)
        raise QuoteExpired()

    new_status = lifecycle.status_after_response(current, action)
    _write_status(quote, current, new_status)
    logger.info('quote %s %s -> %s', quote.id, current.value, new_status.value)
    return quote


# -- helpers ---------------------------------------------------------------

def _write_status(quote: Quote, expected: QuoteStatus, new_status: QuoteStatus, **extra) -> None:
    """UPDATE quote SET status=... WHERE id=... AND status=expected."""
    values = {Quote.status: new_status.value, Quote.updated_at: utcnow()}
    for key, value in extra.items():
        values[getattr(Quote, key)] = value
    # flush pending edits so they land in the same transaction
    db.session.flush()
    rows = (
        Quote.query
        .filter_by(id=quote.id, status=expected.value)
        .update(values, synchronize_session=False)
    )
    if rows != 1:
        db.session.rollback()
        db.session.refresh(quote)
        logger.warning(
            'quote %s status write lost: expected %s, found %s',
            quote.id,
            expected.value,
            quote.status,
        )
        lifecycle.ensure_not_terminal(quote.quote_status)
        raise Conflict('This quote was changed by another request', field='status')
    db.session.commit()
    db.session.refresh(quote)


def quote_breakdown(quote: Quote) -> PriceBreakdown:
    """Line items recomputed from the frozen snapshot, never the live catalog."""
    return price_quote(
        quote.snapshot,
        quote.vehicle_size,
        quote.condition,
        quote.services or [],
        quote.addons or [],
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() + 'Z' if value is not None else None


def quote_to_dict(quote: Quote, include_breakdown: bool = False, public: bool = False) -> dict:
    out = {
        'id': quote.id,
        'shareId': quote.share_id,
        'customerName': quote.customer_name,
        'customerEmail': quote.customer_email,
        'customerPhone': quote.customer_phone,
        'vehicleYear': quote.vehicle_year,
        'vehicleMake': quote.vehicle_make,
        'vehicleModel': quote.vehicle_model,
        'vehicleSize': quote.vehicle_size,
        'condition': quote.condition,
        'services': list(quote.services or []),
        'addons': list(quote.addons or []),
        'total': float(quote.total),
        'status': quote.status,
        'viewCount': quote.view_count,
        'validUntil': _iso(quote.valid_until),
        'notes': quote.notes,
        'createdAt': _iso(quote.created_at),
        'updatedAt': _iso(quote.updated_at),
    }
    if public:
        for key in ('id', 'customerEmail', 'customerPhone', 'viewCount'):
            out.pop(key)
    else:
        out['pricingSnapshot'] = quote.pricing_snapshot
    if include_breakdown:
        out['breakdown'] = quote_breakdown(quote).to_dict()
    return out
