"""
Input sanitizing and bounds checks that run before an action reaches the engine.

Every function returns a ValidationResult. Numeric input is never rejected for being
malformed: garbage becomes the lower bound and out-of-range values are clamped, with a
warning when a ceiling was hit.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Mapping, Optional

from bartab.models.state import Product

# Safety ceilings for numeric input
LIMITS = {
    "PRICE_MAX": 999_999,
    "STOCK_MAX": 99_999,
    "QUANTITY_MAX": 999,
    "LOW_STOCK_MAX": 999,
    "DISCOUNT_MAX": 100,
    "HOUR_MAX": 23,
}

PRODUCT_NAME_MAX = 100
TABLE_NAME_MAX = 50


@dataclass
class ValidationResult:
    value: Any
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ValidationFailed(Exception):
    """Raised by callers that refuse to dispatch an action whose input failed validation."""

    def __init__(self, result: ValidationResult, message: str = "Invalid input data"):
        super().__init__(message)
        self.result = result
        self.message = message


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Finite number or None. Booleans are not numbers here."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def sanitize_number(value: Any, min_value: int = 0, max_value: int = 2**53 - 1, decimal_places: int = 0) -> ValidationResult:
    """
    Coerce to a finite number, clamp into [min_value, max_value] and round half-up to
    decimal_places. Non-numeric input silently becomes min_value.
    """
    number = _to_decimal(value)
    if number is None:
        number = Decimal(min_value)
    number = max(Decimal(min_value), min(Decimal(max_value), number))
    number = number.quantize(Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_UP)
    sanitized = int(number) if decimal_places <= 0 else float(number)
    return ValidationResult(value=sanitized)


def _exceeds(raw: Any, ceiling: int) -> bool:
    number = _to_decimal(raw)
    return number is not None and number > ceiling


def validate_product(candidate: Mapping[str, Any], existing_products: Iterable[Product] = ()) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []

    product = dict(candidate)
    product["name"] = str(candidate.get("name") or "").strip()
    product["price"] = sanitize_number(candidate.get("price"), 0, LIMITS["PRICE_MAX"]).value
    product["stock"] = sanitize_number(candidate.get("stock"), 0, LIMITS["STOCK_MAX"]).value
    product["low_stock"] = sanitize_number(candidate.get("low_stock"), 0, LIMITS["LOW_STOCK_MAX"]).value
    if "happy_hour_discount" in candidate:
        product["happy_hour_discount"] = sanitize_number(candidate["happy_hour_discount"], 0, LIMITS["DISCOUNT_MAX"]).value
    for key in ("happy_hour_start", "happy_hour_end"):
        if candidate.get(key) is not None:
            product[key] = sanitize_number(candidate[key], 0, LIMITS["HOUR_MAX"]).value

    name = product["name"]
    if not name:
        errors.append("Product name is required")
    if len(name) > PRODUCT_NAME_MAX:
        errors.append(f"Product name cannot exceed {PRODUCT_NAME_MAX} characters")

    if product["low_stock"] > product["stock"]:
        errors.append(
            f"Low stock threshold ({product['low_stock']}) cannot be greater than current stock ({product['stock']})"
        )
        product["low_stock"] = product["stock"]
        warnings.append("Low stock threshold was automatically set to the current stock")

    if product["price"] <= 0:
        errors.append("Price must be greater than zero")

    if _exceeds(candidate.get("price"), LIMITS["PRICE_MAX"]):
        warnings.append(f"Price was limited to the maximum allowed: {LIMITS['PRICE_MAX']:,}")
    if _exceeds(candidate.get("stock"), LIMITS["STOCK_MAX"]):
        warnings.append(f"Stock was limited to the maximum allowed: {LIMITS['STOCK_MAX']:,}")

    folded = name.lower()
    duplicate = next(
        (p for p in existing_products if p.id != candidate.get("id") and p.name.strip().lower() == folded),
        None,
    )
    if duplicate and name:
        warnings.append(f'A product named "{name}" already exists')

    return ValidationResult(value=product, errors=errors, warnings=warnings)


def validate_order_item(candidate: Mapping[str, Any]) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []

    item = dict(candidate)
    item["qty"] = sanitize_number(candidate.get("qty"), 1, LIMITS["QUANTITY_MAX"]).value
    item["price"] = sanitize_number(candidate.get("price"), 0, LIMITS["PRICE_MAX"]).value

    if _exceeds(candidate.get("qty"), LIMITS["QUANTITY_MAX"]):
        warnings.append(f"Quantity was limited to the maximum allowed: {LIMITS['QUANTITY_MAX']}")
    if item["qty"] <= 0:
        errors.append("Quantity must be greater than zero")

    return ValidationResult(value=item, errors=errors, warnings=warnings)


def validate_table_name(name: str, existing_names: Iterable[str] = (), allow_duplicates: bool = False) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []

    table_name = (name or "").strip()
    if not table_name:
        errors.append("Table name is required")
    if len(table_name) > TABLE_NAME_MAX:
        errors.append(f"Table name cannot exceed {TABLE_NAME_MAX} characters")

    folded = table_name.lower()
    if table_name and any(existing.strip().lower() == folded for existing in existing_names):
        message = f'A table named "{table_name}" already exists'
        if allow_duplicates:
            warnings.append(message)
        else:
            errors.append(message)

    return ValidationResult(value=table_name, errors=errors, warnings=warnings)
