from decimal import Decimal

from bartab.core.config import DEFAULT_HAPPY_HOUR_START, DEFAULT_HAPPY_HOUR_END
from bartab.models.state import Product

_HUNDRED = Decimal(100)


def happy_hour_window(product: Product) -> tuple[int, int]:
    """Start (inclusive) and end (exclusive) hour of the product's happy hour."""
    start = DEFAULT_HAPPY_HOUR_START if product.happy_hour_start is None else product.happy_hour_start
    end = DEFAULT_HAPPY_HOUR_END if product.happy_hour_end is None else product.happy_hour_end
    return start, end


def happy_hour_in_effect(product: Product, hour: int) -> bool:
    if product.happy_hour_discount <= 0:
        return False
    start, end = happy_hour_window(product)
    return start <= hour < end


def effective_price(product: Product, manual_discount: int, hour: int) -> Decimal:
    """
    Unit price for a new order line.

    The manual discount applies first, then the happy hour discount on the already
    discounted price; the two stack multiplicatively. No rounding is done here.
    Discounts are expected to be bounds-checked (0-100) by the caller.
    """
    price = Decimal(product.price)
    if manual_discount > 0:
        price = price * (1 - Decimal(manual_discount) / _HUNDRED)
    if happy_hour_in_effect(product, hour):
        price = price * (1 - Decimal(product.happy_hour_discount) / _HUNDRED)
    return price
