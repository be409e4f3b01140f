import os
import sys
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from detailquote.errors import ValidationError
from detailquote.pricing.catalog import (
    Addon,
    Condition,
    PricingCatalog,
    Service,
    VehicleSize,
    get_default_catalog,
)
from detailquote.pricing.engine import compute_total, price_quote, round_half_up


def small_catalog():
    return PricingCatalog(
        vehicle_sizes=(VehicleSize('sedan', 'Sedan', 1.0), VehicleSize('suv', 'SUV', 1.25)),
        conditions=(Condition('light', 'Light', '', 1.0),),
        services=(Service('exterior', 'Exterior', 80),),
        addons=(Addon('engine', 'Engine Bay', 45),),
    )


def test_suv_exterior_with_engine_addon():
    b = price_quote(small_catalog(), 'suv', 'light', ['exterior'], ['engine'])
    assert b.services_total == 100
    assert [line.price for line in b.addon_lines] == [56]
    assert b.total == 156


def test_unknown_condition_defaults_to_neutral_multiplier():
    b = price_quote(small_catalog(), 'sedan', 'filthy', ['exterior'], [])
    assert b.condition_multiplier == 1
    assert b.total == 80


def test_unknown_ids_price_as_zero_and_keep_their_id_as_label():
    b = price_quote(small_catalog(), 'gone', None, ['exterior', 'retired'], ['retired-addon'])
    assert b.vehicle_multiplier == 1
    assert b.total == 80
    assert b.service_lines[1].label == 'retired'
    assert b.service_lines[1].price == 0
    assert b.addon_lines[0].price == 0


def test_same_inputs_same_total():
    catalog = get_default_catalog()
    args = ('truck', 'heavy', ['exterior', 'interior', 'polish'], ['engine', 'pet', 'odor'])
    totals = {compute_total(catalog, *args) for _ in range(20)}
    assert len(totals) == 1


@pytest.mark.parametrize('size', ['sedan', 'suv', 'truck', 'unknown'])
@pytest.mark.parametrize('condition', ['light', 'moderate', 'heavy', None])
def test_empty_services_always_rejected(size, condition):
    with pytest.raises(ValidationError) as exc:
        price_quote(get_default_catalog(), size, condition, [], ['engine'])
    assert 'at least one service' in exc.value.message


def test_addons_ignore_condition():
    catalog = get_default_catalog()
    light = price_quote(catalog, 'suv', 'light', ['exterior'], ['engine', 'wheels'])
    heavy = price_quote(catalog, 'suv', 'heavy', ['exterior'], ['engine', 'wheels'])
    assert light.addons_total == heavy.addons_total
    assert heavy.services_total == round_half_up(Decimal('80') * Decimal('1.25') * Decimal('1.5'))


def test_services_rounded_once_addons_rounded_per_line():
    catalog = PricingCatalog(
        vehicle_sizes=(VehicleSize('v', 'V', 1.5),),
        conditions=(Condition('c', 'C', '', 1.0),),
        services=(Service('a', 'A', 1), Service('b', 'B', 1)),
        addons=(Addon('x', 'X', 1), Addon('y', 'Y', 1)),
    )
    b = price_quote(catalog, 'v', 'c', ['a', 'b'], ['x', 'y'])
    # services: round(2 * 1.5) = 3, while each line alone would show round(1.5) = 2
    assert b.services_total == 3
    assert [line.price for line in b.service_lines] == [2, 2]
    # add-ons: round(1.5) + round(1.5) = 4, not round(3.0) = 3
    assert b.addons_total == 4
    assert b.total == 7


def test_half_up_rounding_on_exact_halves():
    catalog = PricingCatalog(
        vehicle_sizes=(VehicleSize('truck', 'Truck', 1.4),),
        conditions=(Condition('light', 'Light', '', 1.0),),
        services=(Service('s', 'S', 2.5),),
        addons=(Addon('a', 'A', 17.5),),
    )
    b = price_quote(catalog, 'truck', 'light', ['s'], ['a'])
    assert b.services_total == 4      # 3.5 -> 4
    assert b.addons_total == 25       # 24.5 -> 25


def test_breakdown_serialises_to_plain_numbers():
    data = price_quote(small_catalog(), 'suv', 'light', ['exterior'], ['engine']).to_dict()
    assert data['total'] == 156
    assert data['services'][0] == {'id': 'exterior', 'label': 'Exterior', 'price': 100}
    assert data['addons'][0]['price'] == 56
