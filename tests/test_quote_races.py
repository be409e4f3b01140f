import os
import sys
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from detailquote import create_app, db
from detailquote.errors import AlreadyFinalized, Conflict, QuoteExpired
from detailquote.models import Quote
from detailquote.quotes import service
from detailquote.quotes.lifecycle import QuoteStatus


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def new_sent_quote(valid_until=None):
    quote = service.create_quote('user-1', {
        'vehicleSize': 'sedan',
        'condition': 'moderate',
        'services': ['interior'],
        'addons': [],
        'validUntil': valid_until,
    })
    service.update_quote('user-1', quote.id, {'status': 'SENT'})
    return quote


def sneak_status(quote_id, status):
    """Simulate another request writing the row behind our back."""
    Quote.query.filter_by(id=quote_id).update({Quote.status: status}, synchronize_session=False)
    db.session.commit()


def test_lost_race_to_terminal_reports_already_finalized():
    app = setup_app()
    with app.app_context():
        quote = new_sent_quote()
        assert quote.total == 125
        sneak_status(quote.id, 'ACCEPTED')
        # we still believe the row is SENT
        with pytest.raises(AlreadyFinalized):
            service._write_status(quote, QuoteStatus.SENT, QuoteStatus.DECLINED)
        assert Quote.query.get(quote.id).status == 'ACCEPTED'


def test_lost_race_to_non_terminal_reports_conflict():
    app = setup_app()
    with app.app_context():
        quote = new_sent_quote()
        sneak_status(quote.id, 'VIEWED')
        with pytest.raises(Conflict) as exc:
            service._write_status(quote, QuoteStatus.SENT, QuoteStatus.ACCEPTED)
        assert not isinstance(exc.value, AlreadyFinalized)
        assert quote.status == 'VIEWED'


def test_second_accept_fails():
    app = setup_app()
    with app.app_context():
        quote = new_sent_quote()
        service.respond_to_quote(quote.share_id, 'accept')
        with pytest.raises(AlreadyFinalized):
            service.respond_to_quote(quote.share_id, 'accept')
        assert Quote.query.get(quote.id).status == 'ACCEPTED'


def test_expiry_is_lazy():
    app = setup_app()
    with app.app_context():
        quote = new_sent_quote(valid_until='2026-01-01T00:00:00')
        # nobody opened it yet: storage still says SENT
        assert Quote.query.get(quote.id).status == 'SENT'
        service.open_public_quote(quote.share_id, now=datetime(2026, 1, 1) + timedelta(seconds=1))
        assert Quote.query.get(quote.id).status == 'EXPIRED'
        with pytest.raises(QuoteExpired):
            service.respond_to_quote(quote.share_id, 'decline')


def test_open_before_valid_until_marks_viewed():
    app = setup_app()
    with app.app_context():
        quote = new_sent_quote(valid_until='2026-01-01T00:00:00')
        service.open_public_quote(quote.share_id, now=datetime(2025, 12, 31))
        refreshed = Quote.query.get(quote.id)
        assert refreshed.status == 'VIEWED'
        assert refreshed.view_count == 1
        accepted = service.respond_to_quote(quote.share_id, 'accept', now=datetime(2025, 12, 31))
        assert accepted.status == 'ACCEPTED'


def test_share_ids_are_unique_and_unguessable():
    app = setup_app()
    with app.app_context():
        ids = {new_sent_quote().share_id for _ in range(25)}
        assert len(ids) == 25
        assert all(len(i) >= 20 for i in ids)
