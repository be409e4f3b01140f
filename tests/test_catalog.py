import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from detailquote.errors import NotFound, ValidationError
from detailquote.pricing.catalog import (
    ADDONS,
    SERVICES,
    VEHICLE_SIZES,
    PricingCatalog,
    Service,
    get_default_catalog,
    lookup,
    replace_all,
    replace_category,
)


def test_default_catalog_contents():
    catalog = get_default_catalog()
    assert [v.id for v in catalog.vehicle_sizes] == ['sedan', 'suv', 'truck']
    assert [c.multiplier for c in catalog.conditions] == [1.0, 1.25, 1.5]
    assert lookup(catalog, SERVICES, 'polish').base_price == 150
    assert len(catalog.addons) == 6
    assert get_default_catalog() == catalog


def test_replace_category_returns_new_catalog():
    catalog = get_default_catalog()
    updated = replace_category(catalog, SERVICES, [
        {'id': 'exterior', 'label': 'Exterior Wash', 'basePrice': 95},
        {'id': 'ceramic', 'label': 'Ceramic Coating', 'basePrice': 600},
    ])
    assert [s.id for s in updated.services] == ['exterior', 'ceramic']
    assert lookup(updated, SERVICES, 'exterior').base_price == 95
    # untouched categories and the original value are unchanged
    assert updated.addons == catalog.addons
    assert lookup(catalog, SERVICES, 'exterior').base_price == 80


def test_replace_category_accepts_typed_items():
    updated = replace_category(PricingCatalog(), SERVICES, [Service('a', 'A', 10)])
    assert updated.services == (Service('a', 'A', 10),)


@pytest.mark.parametrize('items', [
    [{'id': 'a', 'label': 'A', 'basePrice': 10}, {'id': 'a', 'label': 'Again', 'basePrice': 5}],
    [{'id': 'a', 'label': 'A', 'basePrice': -1}],
    [{'id': 'a', 'label': 'A', 'basePrice': 'ten'}],
    [{'id': 'a', 'label': 'A', 'basePrice': True}],
    [{'id': '', 'label': 'A', 'basePrice': 10}],
    [{'id': 'a', 'basePrice': 10}],
    ['not-an-object'],
    {'id': 'a'},
])
def test_replace_category_rejects_bad_items(items):
    catalog = get_default_catalog()
    with pytest.raises(ValidationError):
        replace_category(catalog, SERVICES, items)


def test_negative_multiplier_rejected():
    with pytest.raises(ValidationError) as exc:
        replace_category(PricingCatalog(), VEHICLE_SIZES, [{'id': 'x', 'label': 'X', 'multiplier': -0.5}])
    assert exc.value.field == VEHICLE_SIZES


def test_zero_prices_allowed():
    updated = replace_category(PricingCatalog(), ADDONS, [{'id': 'free', 'label': 'Free', 'price': 0}])
    assert lookup(updated, ADDONS, 'free').price == 0


def test_unknown_category():
    with pytest.raises(ValidationError):
        replace_category(get_default_catalog(), 'discounts', [])


def test_lookup_missing_id():
    with pytest.raises(NotFound):
        lookup(get_default_catalog(), ADDONS, 'nope')


def test_replace_all_requires_every_category():
    data = get_default_catalog().to_dict()
    del data['conditions']
    with pytest.raises(ValidationError):
        replace_all(get_default_catalog(), data)


def test_dict_codec_uses_camel_case_keys():
    data = get_default_catalog().to_dict()
    assert set(data) == {'vehicleSizes', 'conditions', 'services', 'addons'}
    assert data['services'][0] == {'id': 'exterior', 'label': 'Exterior Wash & Wax', 'basePrice': 80}
    assert PricingCatalog.from_dict(data) == get_default_catalog()


def test_from_dict_tolerates_missing_categories():
    catalog = PricingCatalog.from_dict({'services': [{'id': 's', 'label': 'S', 'basePrice': 1}]})
    assert catalog.vehicle_sizes == ()
    assert len(catalog.services) == 1
