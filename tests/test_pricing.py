from decimal import Decimal

import pytest

from bartab.models.state import Product
from bartab.services.pricing import effective_price, happy_hour_in_effect, happy_hour_window


def _product(**overrides):
    fields = dict(id="p1", name="Cerveza", price=10000, stock=10, low_stock=2)
    fields.update(overrides)
    return Product(**fields)


def test_no_discounts_returns_list_price():
    assert effective_price(_product(), 0, 12) == Decimal(10000)


def test_manual_discount_only():
    assert effective_price(_product(), 10, 12) == Decimal(9000)


def test_discounts_stack_multiplicatively():
    """10% manual then 20% happy hour: 10000 * 0.9 * 0.8"""
    product = _product(happy_hour_discount=20, happy_hour_start=17, happy_hour_end=19)
    assert effective_price(product, 10, 18) == Decimal(7200)


def test_happy_hour_window_end_is_exclusive():
    product = _product(happy_hour_discount=50, happy_hour_start=17, happy_hour_end=19)
    assert happy_hour_in_effect(product, 17)
    assert happy_hour_in_effect(product, 18)
    assert not happy_hour_in_effect(product, 19)
    assert not happy_hour_in_effect(product, 16)
    assert effective_price(product, 0, 19) == Decimal(10000)


def test_unset_window_uses_defaults():
    product = _product(happy_hour_discount=20)
    assert happy_hour_window(product) == (17, 19)
    assert effective_price(product, 0, 18) == Decimal(8000)


def test_zero_happy_hour_discount_never_applies():
    product = _product(happy_hour_discount=0, happy_hour_start=0, happy_hour_end=23)
    assert not happy_hour_in_effect(product, 12)


def test_no_rounding_is_applied():
    price = effective_price(_product(price=999), 33, 12)
    assert price == Decimal(999) * (1 - Decimal(33) / Decimal(100))


@pytest.mark.parametrize("discount", [100])
def test_full_manual_discount_is_free(discount):
    assert effective_price(_product(), discount, 12) == Decimal(0)
