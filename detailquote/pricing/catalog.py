# detailquote/pricing/catalog.py
"""Per-business rate table: vehicle sizes, conditions, services and add-ons.

The catalog is a plain immutable value.  It is stored as one JSON column per
category (see ``models.Pricing``) and frozen verbatim into every quote's
``pricing_snapshot``, so the dict codec here is also the snapshot format.
JSON keys keep the camelCase names used by the web client.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from detailquote.errors import NotFound, ValidationError

VEHICLE_SIZES = 'vehicleSizes'
CONDITIONS = 'conditions'
SERVICES = 'services'
ADDONS = 'addons'

CATEGORIES = (VEHICLE_SIZES, CONDITIONS, SERVICES, ADDONS)


@dataclass(frozen=True)
class VehicleSize:
    id: str
    label: str
    multiplier: float

    def to_dict(self) -> dict:
        return {'id': self.id, 'label': self.label, 'multiplier': self.multiplier}


@dataclass(frozen=True)
class Condition:
    id: str
    label: str
    description: str
    multiplier: float

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'label': self.label,
            'description': self.description,
            'multiplier': self.multiplier,
        }


@dataclass(frozen=True)
class Service:
    id: str
    label: str
    base_price: float

    def to_dict(self) -> dict:
        return {'id': self.id, 'label': self.label, 'basePrice': self.base_price}


@dataclass(frozen=True)
class Addon:
    id: str
    label: str
    price: float

    def to_dict(self) -> dict:
        return {'id': self.id, 'label': self.label, 'price': self.price}


@dataclass(frozen=True)
class PricingCatalog:
    vehicle_sizes: tuple[VehicleSize, ...] = field(default_factory=tuple)
    conditions: tuple[Condition, ...] = field(default_factory=tuple)
    services: tuple[Service, ...] = field(default_factory=tuple)
    addons: tuple[Addon, ...] = field(default_factory=tuple)

    def items(self, category: str) -> tuple:
        return getattr(self, _ATTRS[_check_category(category)])

    def to_dict(self) -> dict:
        return {
            VEHICLE_SIZES: [v.to_dict() for v in self.vehicle_sizes],
            CONDITIONS: [c.to_dict() for c in self.conditions],
            SERVICES: [s.to_dict() for s in self.services],
            ADDONS: [a.to_dict() for a in self.addons],
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> 'PricingCatalog':
        """Parse a stored catalog or snapshot.

        Categories missing from ``data`` come back empty; a malformed entry
        raises ``ValidationError``.
        """
        data = data or {}
        return cls(**{
            _ATTRS[cat]: _parse_items(cat, data.get(cat) or [])
            for cat in CATEGORIES
        })


_ATTRS = {
    VEHICLE_SIZES: 'vehicle_sizes',
    CONDITIONS: 'conditions',
    SERVICES: 'services',
    ADDONS: 'addons',
}


def get_default_catalog() -> PricingCatalog:
    """Catalog given to new businesses and used by the public demo."""
    return PricingCatalog(
        vehicle_sizes=(
            VehicleSize('sedan', 'Sedan / Coupe', 1.0),
            VehicleSize('suv', 'SUV / Crossover', 1.25),
            VehicleSize('truck', 'Truck / Van', 1.4),
        ),
        conditions=(
            Condition('light', 'Light', 'Regular maintenance', 1.0),
            Condition('moderate', 'Moderate', 'Some buildup', 1.25),
            Condition('heavy', 'Heavy', 'Deep cleaning needed', 1.5),
        ),
        services=(
            Service('exterior', 'Exterior Wash & Wax', 80),
            Service('interior', 'Interior Deep Clean', 100),
            Service('polish', 'Paint Correction / Polish', 150),
        ),
        addons=(
            Addon('engine', 'Engine Bay', 45),
            Addon('wheels', 'Wheel Detail', 35),
            Addon('headlights', 'Headlight Restoration', 60),
            Addon('odor', 'Odor Removal', 50),
            Addon('pet', 'Pet Hair Removal', 40),
            Addon('ceramic', 'Ceramic Spray Coating', 75),
        ),
    )


def replace_category(catalog: PricingCatalog, category: str, items: Iterable[Any]) -> PricingCatalog:
    """Return a copy of ``catalog`` with ``category`` replaced by ``items``.

    ``items`` may be dicts in the JSON shape or already-typed entries.  The
    whole list is validated before anything is replaced.
    """
    category = _check_category(category)
    parsed = _parse_items(category, items)
    return replace(catalog, **{_ATTRS[category]: parsed})


def replace_all(catalog: PricingCatalog, data: dict) -> PricingCatalog:
    """Replace every category at once; all four must be present."""
    if not isinstance(data, dict):
        raise ValidationError('Expected a JSON object')
    missing = [cat for cat in CATEGORIES if data.get(cat) is None]
    if missing:
        raise ValidationError('Missing required pricing fields', field=missing[0])
    for cat in CATEGORIES:
        catalog = replace_category(catalog, cat, data[cat])
    return catalog


def find(catalog: PricingCatalog, category: str, item_id: str | None):
    """Return the entry with ``item_id`` or ``None``."""
    if item_id is None:
        return None
    for item in catalog.items(category):
        if item.id == item_id:
            return item
    return None


def lookup(catalog: PricingCatalog, category: str, item_id: str):
    item = find(catalog, category, item_id)
    if item is None:
        raise NotFound(f'Unknown {category} id: {item_id}', field=category)
    return item


# -- parsing ---------------------------------------------------------------

def _check_category(category: str) -> str:
    if category not in _ATTRS:
        raise ValidationError(f'Unknown pricing category: {category}', field='category')
    return category


def _amount(category: str, raw: Any, key: str) -> float:
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f'{key} must be a number', field=category)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f'{key} must be a number', field=category)
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f'{key} must be zero or more', field=category)
    # keep whole numbers whole so the stored JSON stays tidy
    return int(value) if value.is_integer() and not isinstance(raw, float) else value


def _text(category: str, raw: Any, key: str, required: bool = True) -> str:
    if raw is None:
        raw = ''
    if not isinstance(raw, str):
        raise ValidationError(f'{key} must be text', field=category)
    raw = raw.strip()
    if required and not raw:
        raise ValidationError(f'{key} is required', field=category)
    return raw


def _parse_one(category: str, raw: Any):
    if isinstance(raw, (VehicleSize, Condition, Service, Addon)):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        raise ValidationError('Each pricing entry must be an object', field=category)
    item_id = _text(category, raw.get('id'), 'id')
    label = _text(category, raw.get('label'), 'label')
    if category == VEHICLE_SIZES:
        return VehicleSize(item_id, label, _amount(category, raw.get('multiplier'), 'multiplier'))
    if category == CONDITIONS:
        return Condition(
            item_id,
            label,
            _text(category, raw.get('description'), 'description', required=False),
            _amount(category, raw.get('multiplier'), 'multiplier'),
        )
    if category == SERVICES:
        return Service(item_id, label, _amount(category, raw.get('basePrice'), 'basePrice'))
    return Addon(item_id, label, _amount(category, raw.get('price'), 'price'))


def _parse_items(category: str, items: Iterable[Any]) -> tuple:
    if isinstance(items, (str, bytes, dict)) or items is None:
        raise ValidationError(f'{category} must be a list', field=category)
    parsed = tuple(_parse_one(category, raw) for raw in items)
    seen = set()
    for item in parsed:
        if item.id in seen:
            raise ValidationError(f'Duplicate id in {category}: {item.id}', field=category)
        seen.add(item.id)
    return parsed
