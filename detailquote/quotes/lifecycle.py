# detailquote/quotes/lifecycle.py
"""Quote status rules.

DRAFT -> SENT -> VIEWED -> ACCEPTED | DECLINED, with EXPIRED reachable from
any non-terminal state once ``valid_until`` has passed.  Expiry is applied
lazily when the public link is used; nothing here touches storage, the
functions only say which status a trigger leads to or raise when the trigger
is not allowed.
"""

from __future__ import annotations

import enum
from datetime import datetime

from detailquote.errors import AlreadyFinalized, Conflict, QuoteExpired, ValidationError


class QuoteStatus(str, enum.Enum):
    DRAFT = 'DRAFT'
    SENT = 'SENT'
    VIEWED = 'VIEWED'
    ACCEPTED = 'ACCEPTED'
    DECLINED = 'DECLINED'
    EXPIRED = 'EXPIRED'


TERMINAL_STATUSES = frozenset({
    QuoteStatus.ACCEPTED,
    QuoteStatus.DECLINED,
    QuoteStatus.EXPIRED,
})

# statuses an owner may set by hand on a draft
MANUAL_STATUSES = frozenset({
    QuoteStatus.SENT,
    QuoteStatus.VIEWED,
    QuoteStatus.ACCEPTED,
    QuoteStatus.DECLINED,
})

RESPONSES = {
    'accept': QuoteStatus.ACCEPTED,
    'decline': QuoteStatus.DECLINED,
}


def is_terminal(status: QuoteStatus) -> bool:
    return QuoteStatus(status) in TERMINAL_STATUSES


def is_expired(valid_until: datetime | None, now: datetime) -> bool:
    return valid_until is not None and valid_until < now


def ensure_not_terminal(status: QuoteStatus) -> None:
    status = QuoteStatus(status)
    if status is QuoteStatus.EXPIRED:
        raise QuoteExpired()
    if status in TERMINAL_STATUSES:
        raise AlreadyFinalized('This quote has already been responded to')


def status_after_view(status: QuoteStatus, valid_until: datetime | None, now: datetime) -> QuoteStatus:
    """Status after the customer opens the public link."""
    status = QuoteStatus(status)
    if status in TERMINAL_STATUSES:
        return status
    if is_expired(valid_until, now):
        return QuoteStatus.EXPIRED
    if status is QuoteStatus.SENT:
        return QuoteStatus.VIEWED
    return status


def status_after_send(status: QuoteStatus) -> QuoteStatus:
    """Sending a draft marks it SENT; re-sending later never moves it back."""
    status = QuoteStatus(status)
    ensure_not_terminal(status)
    if status is QuoteStatus.DRAFT:
        return QuoteStatus.SENT
    return status


def status_after_response(status: QuoteStatus, action: str) -> QuoteStatus:
    """Status after the customer accepts or declines.

    Callers apply lazy expiry first, so an overdue quote arrives here already
    EXPIRED.
    """
    if not isinstance(action, str) or action not in RESPONSES:
        raise ValidationError("Invalid action. Must be 'accept' or 'decline'", field='action')
    status = QuoteStatus(status)
    ensure_not_terminal(status)
    if status is QuoteStatus.DRAFT:
        raise Conflict('This quote has not been sent yet', field='status')
    return RESPONSES[action]


def status_after_manual_mark(status: QuoteStatus, requested: str) -> QuoteStatus:
    """Owner sets the status by hand, e.g. after a phone call."""
    try:
        requested = QuoteStatus(requested)
    except ValueError:
        raise ValidationError(f'Unknown status: {requested}', field='status')
    status = QuoteStatus(status)
    if requested is status:
        return status
    ensure_not_terminal(status)
    if requested not in MANUAL_STATUSES:
        raise ValidationError(f'Status cannot be set to {requested.value}', field='status')
    if status is not QuoteStatus.DRAFT:
        raise Conflict(
            f'Cannot change status from {status.value} to {requested.value}',
            field='status',
        )
    return requested
