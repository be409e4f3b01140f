# detailquote/pricing/engine.py
"""Turn a catalog plus a vehicle/condition/service/add-on selection into a price.

This is the only place prices are computed.  Quote creation calls it against
the live catalog; every later render calls it against the quote's frozen
snapshot.  Rounding is to whole currency units, half-up:

* services are summed first, then multiplied by both the vehicle and the
  condition multiplier and rounded once;
* each add-on is multiplied by the vehicle multiplier only and rounded on
  its own line.

Ids that no longer resolve (a snapshot referencing something since renamed)
price as a neutral multiplier of 1 or a price of 0 instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from detailquote.errors import ValidationError
from detailquote.pricing.catalog import (
    ADDONS,
    CONDITIONS,
    SERVICES,
    VEHICLE_SIZES,
    PricingCatalog,
    find,
)

ONE = Decimal('1')
ZERO = Decimal('0')


@dataclass(frozen=True)
class LineItem:
    id: str
    label: str
    price: Decimal

    def to_dict(self) -> dict:
        return {'id': self.id, 'label': self.label, 'price': float(self.price)}


@dataclass(frozen=True)
class PriceBreakdown:
    vehicle_multiplier: Decimal
    condition_multiplier: Decimal
    services_subtotal: Decimal
    services_total: Decimal
    addons_total: Decimal
    total: Decimal
    service_lines: tuple[LineItem, ...]
    addon_lines: tuple[LineItem, ...]

    def to_dict(self) -> dict:
        return {
            'vehicleMultiplier': float(self.vehicle_multiplier),
            'conditionMultiplier': float(self.condition_multiplier),
            'servicesSubtotal': float(self.services_subtotal),
            'servicesTotal': float(self.services_total),
            'addonsTotal': float(self.addons_total),
            'total': float(self.total),
            'services': [line.to_dict() for line in self.service_lines],
            'addons': [line.to_dict() for line in self.addon_lines],
        }


def to_decimal(value) -> Decimal:
    # via str so 1.4 stays 1.4 rather than its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_half_up(value: Decimal) -> Decimal:
    return value.quantize(ONE, rounding=ROUND_HALF_UP)


def price_quote(
    catalog: PricingCatalog,
    vehicle_size: str | None,
    condition: str | None,
    services: Sequence[str],
    addons: Sequence[str] = (),
) -> PriceBreakdown:
    if not services:
        raise ValidationError('at least one service required', field='services')

    size = find(catalog, VEHICLE_SIZES, vehicle_size)
    cond = find(catalog, CONDITIONS, condition)
    vehicle_mult = to_decimal(size.multiplier) if size else ONE
    condition_mult = to_decimal(cond.multiplier) if cond else ONE

    subtotal = ZERO
    service_lines = []
    for service_id in services:
        service = find(catalog, SERVICES, service_id)
        base = to_decimal(service.base_price) if service else ZERO
        subtotal += base
        service_lines.append(LineItem(
            service_id,
            service.label if service else service_id,
            round_half_up(base * vehicle_mult * condition_mult),
        ))
    services_total = round_half_up(subtotal * vehicle_mult * condition_mult)

    addon_lines = []
    for addon_id in addons or ():
        addon = find(catalog, ADDONS, addon_id)
        price = to_decimal(addon.price) if addon else ZERO
        addon_lines.append(LineItem(
            addon_id,
            addon.label if addon else addon_id,
            round_half_up(price * vehicle_mult),
        ))
    addons_total = sum((line.price for line in addon_lines), ZERO)

    return PriceBreakdown(
        vehicle_multiplier=vehicle_mult,
        condition_multiplier=condition_mult,
        services_subtotal=subtotal,
        services_total=services_total,
        addons_total=addons_total,
        total=services_total + addons_total,
        service_lines=tuple(service_lines),
        addon_lines=tuple(addon_lines),
    )


def compute_total(
    catalog: PricingCatalog,
    vehicle_size: str | None,
    condition: str | None,
    services: Sequence[str],
    addons: Sequence[str] = (),
) -> Decimal:
    return price_quote(catalog, vehicle_size, condition, services, addons).total
