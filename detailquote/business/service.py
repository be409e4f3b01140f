# detailquote/business/service.py
"""Business profile and its pricing catalog."""

import logging

from sqlalchemy.exc import IntegrityError

from detailquote import db
from detailquote.errors import NotFound, ValidationError
from detailquote.models import Business, Pricing, User
from detailquote.pricing.catalog import (
    PricingCatalog,
    get_default_catalog,
    replace_all,
    replace_category,
)
from detailquote.utils import ensure_object

DEFAULT_BUSINESS_NAME = 'My Detailing Business'
PROFILE_FIELDS = ('email', 'phone', 'website', 'address')

logger = logging.getLogger(__name__)


def ensure_business(user_id: str, email: str | None = None, name: str | None = None) -> Business:
    """Return the caller's business, creating user, business and default
    catalog on first access.

    Two first requests for the same user can race on the insert; the loser
    rolls back and reads what the winner wrote.
    """
    user = _load_user(user_id)
    if user is None:
        user = User(id=user_id, email=email)
        db.session.add(user)
        existing = None
    else:
        if email and not user.email:
            user.email = email
        existing = user.business

    if existing is None:
        business = Business(user=user, name=(name or DEFAULT_BUSINESS_NAME), email=email)
        pricing = Pricing(business=business)
        pricing.catalog = get_default_catalog()
        db.session.add_all([business, pricing])
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info('business for user %s was created concurrently', user_id)
            return get_business(user_id)
        logger.info('created business %s for user %s', business.id, user_id)
    elif db.session.new or db.session.dirty:
        db.session.commit()
    return user.business


def _load_user(user_id: str) -> User | None:
    return db.session.get(User, user_id)


def get_business(user_id: str) -> Business:
    business = Business.query.filter_by(user_id=user_id).first()
    if business is None:
        raise NotFound('Business not found')
    return business


def update_business(user_id: str, data: dict) -> Business:
    data = ensure_object(data)
    business = get_business(user_id)
    name = data.get('name')
    if not name or not isinstance(name, str) or not name.strip():
        raise ValidationError('Business name is required', field='name')
    business.name = name.strip()
    for key in PROFILE_FIELDS:
        value = data.get(key)
        setattr(business, key, (value.strip() or None) if isinstance(value, str) else None)
    db.session.commit()
    return business


def get_catalog(user_id: str) -> PricingCatalog:
    business = get_business(user_id)
    if business.pricing is None:
        raise NotFound('Pricing not found')
    return business.pricing.catalog


def _save_catalog(business: Business, catalog: PricingCatalog) -> PricingCatalog:
    if business.pricing is None:
        business.pricing = Pricing(business=business)
    business.pricing.catalog = catalog
    db.session.commit()
    return catalog


def save_category(user_id: str, category: str, items) -> PricingCatalog:
    """Replace one category of the caller's live catalog."""
    business = get_business(user_id)
    current = business.pricing.catalog if business.pricing else PricingCatalog()
    catalog = replace_category(current, category, items)
    logger.info('business %s replaced %s (%d items)', business.id, category, len(catalog.items(category)))
    return _save_catalog(business, catalog)


def save_catalog(user_id: str, data: dict) -> PricingCatalog:
    """Replace all four categories in one go."""
    business = get_business(user_id)
    current = business.pricing.catalog if business.pricing else PricingCatalog()
    catalog = replace_all(current, data or {})
    logger.info('business %s replaced full catalog', business.id)
    return _save_catalog(business, catalog)
