import secrets
import uuid
from datetime import datetime, timezone

from detailquote import db
from detailquote.pricing.catalog import PricingCatalog
from detailquote.quotes.lifecycle import QuoteStatus


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo so we never store it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_share_id() -> str:
    return secrets.token_urlsafe(16)


class User(db.Model):
    __tablename__ = 'user'
    id         = db.Column(db.String(64), primary_key=True)
    email      = db.Column(db.String(255), nullable=True)
    name       = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    business = db.relationship('Business', back_populates='user', uselist=False,
                               cascade='all, delete-orphan')
    quotes   = db.relationship('Quote', back_populates='user', lazy=True,
                               cascade='all, delete-orphan')


class Business(db.Model):
    __tablename__ = 'business'
    id         = db.Column(db.Integer, primary_key=True)
    user_id    = db.Column(db.String(64), db.ForeignKey('user.id'), unique=True, nullable=False)
    name       = db.Column(db.String(200), nullable=False)
    email      = db.Column(db.String(255))
    phone      = db.Column(db.String(64))
    website    = db.Column(db.String(255))
    address    = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user    = db.relationship('User', back_populates='business')
    pricing = db.relationship('Pricing', back_populates='business', uselist=False,
                              cascade='all, delete-orphan')

    def to_dict(self, include_pricing: bool = False) -> dict:
        out = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'website': self.website,
            'address': self.address,
        }
        if include_pricing and self.pricing is not None:
            out['pricing'] = self.pricing.catalog.to_dict()
        return out


class Pricing(db.Model):
    """A business's live catalog, one JSON column per category."""
    __tablename__ = 'pricing'
    id            = db.Column(db.Integer, primary_key=True)
    business_id   = db.Column(db.Integer, db.ForeignKey('business.id', ondelete='CASCADE'),
                              unique=True, nullable=False)
    vehicle_sizes = db.Column(db.JSON, nullable=False, default=list)
    conditions    = db.Column(db.JSON, nullable=False, default=list)
    services      = db.Column(db.JSON, nullable=False, default=list)
    addons        = db.Column(db.JSON, nullable=False, default=list)
    updated_at    = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    business = db.relationship('Business', back_populates='pricing')

    @property
    def catalog(self) -> PricingCatalog:
        return PricingCatalog.from_dict({
            'vehicleSizes': self.vehicle_sizes,
            'conditions': self.conditions,
            'services': self.services,
            'addons': self.addons,
        })

    @catalog.setter
    def catalog(self, value: PricingCatalog) -> None:
        data = value.to_dict()
        # assign fresh lists so the JSON columns register as changed
        self.vehicle_sizes = list(data['vehicleSizes'])
        self.conditions    = list(data['conditions'])
        self.services      = list(data['services'])
        self.addons        = list(data['addons'])


class Quote(db.Model):
    __tablename__ = 'quote'
    id       = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    share_id = db.Column(db.String(64), unique=True, nullable=False, index=True,
                         default=new_share_id)
    user_id  = db.Column(db.String(64), db.ForeignKey('user.id'), nullable=False, index=True)

    customer_name  = db.Column(db.String(200))
    customer_email = db.Column(db.String(255))
    customer_phone = db.Column(db.String(64))

    vehicle_year  = db.Column(db.String(16))
    vehicle_make  = db.Column(db.String(100))
    vehicle_model = db.Column(db.String(100))
    vehicle_size  = db.Column(db.String(64), nullable=False)
    condition     = db.Column(db.String(64), nullable=False)
    services      = db.Column(db.JSON, nullable=False)   # ordered service ids
    addons        = db.Column(db.JSON, nullable=False, default=list)

    pricing_snapshot = db.Column(db.JSON, nullable=False)
    total            = db.Column(db.Numeric(10, 2), nullable=False)

    status      = db.Column(db.String(16), nullable=False, default=QuoteStatus.DRAFT.value)
    view_count  = db.Column(db.Integer, nullable=False, default=0)
    valid_until = db.Column(db.DateTime, nullable=True)
    notes       = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='quotes')

    @property
    def snapshot(self) -> PricingCatalog:
        return PricingCatalog.from_dict(self.pricing_snapshot)

    @property
    def quote_status(self) -> QuoteStatus:
        return QuoteStatus(self.status)

    @property
    def vehicle_info(self) -> str:
        """``year make model`` when given, otherwise the size label."""
        parts = [p for p in (self.vehicle_year, self.vehicle_make, self.vehicle_model) if p]
        if parts:
            return ' '.join(parts)
        for size in self.snapshot.vehicle_sizes:
            if size.id == self.vehicle_size:
                return size.label
        return self.vehicle_size
