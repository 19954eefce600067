import math

import pytest

from bartab.models.state import Product
from bartab.services.validation import (
    LIMITS, ValidationFailed, sanitize_number, validate_order_item, validate_product, validate_table_name,
)


class TestSanitizeNumber:
    @pytest.mark.parametrize("raw", [None, "abc", "", float("nan"), math.inf, -math.inf, True, [1]])
    def test_garbage_becomes_lower_bound(self, raw):
        assert sanitize_number(raw, 5, 100).value == 5

    def test_clamps_into_range(self):
        assert sanitize_number(150, 0, 100).value == 100
        assert sanitize_number(-3, 0, 100).value == 0

    def test_rounds_half_up(self):
        assert sanitize_number("2.5", 0, 10).value == 3
        assert sanitize_number(1.234, 0, 10, decimal_places=2).value == 1.23
        assert sanitize_number(1.235, 0, 10, decimal_places=2).value == 1.24

    def test_never_reports_problems(self):
        result = sanitize_number("not a number", 0, 10)
        assert result.is_valid
        assert result.warnings == []


class TestValidateProduct:
    def test_valid_draft(self):
        result = validate_product({"name": " Mojito ", "price": 15000, "stock": 20, "low_stock": 5})
        assert result.is_valid
        assert result.value["name"] == "Mojito"
        assert result.warnings == []

    def test_low_stock_above_stock_is_flagged_and_corrected(self):
        result = validate_product({"name": "Mojito", "price": 15000, "stock": 5, "low_stock": 10})
        assert not result.is_valid
        assert any("Low stock threshold" in e for e in result.errors)
        assert result.value["low_stock"] == 5
        assert len(result.warnings) == 1

    def test_missing_name_and_price(self):
        result = validate_product({"name": "   ", "price": 0, "stock": 1})
        assert "Product name is required" in result.errors
        assert "Price must be greater than zero" in result.errors

    def test_name_too_long(self):
        result = validate_product({"name": "x" * 101, "price": 100, "stock": 1})
        assert any("100 characters" in e for e in result.errors)

    def test_price_and_stock_ceilings_are_warnings(self):
        result = validate_product({"name": "Whisky", "price": 5_000_000, "stock": 200_000, "low_stock": 1})
        assert result.is_valid
        assert result.value["price"] == LIMITS["PRICE_MAX"]
        assert result.value["stock"] == LIMITS["STOCK_MAX"]
        assert len(result.warnings) == 2

    def test_duplicate_name_is_a_warning(self):
        existing = [Product(id="p1", name="Club Colombia", price=8000, stock=10)]
        result = validate_product({"name": "club colombia", "price": 8000, "stock": 3}, existing)
        assert result.is_valid
        assert any("already exists" in w for w in result.warnings)

    def test_duplicate_check_ignores_the_product_itself(self):
        existing = [Product(id="p1", name="Club Colombia", price=8000, stock=10)]
        result = validate_product({"id": "p1", "name": "Club Colombia", "price": 8500, "stock": 10}, existing)
        assert result.warnings == []


class TestValidateOrderItem:
    def test_quantity_clamped_with_warning(self):
        result = validate_order_item({"qty": 5000, "price": 100})
        assert result.is_valid
        assert result.value["qty"] == LIMITS["QUANTITY_MAX"]
        assert len(result.warnings) == 1

    def test_non_positive_quantity_becomes_one(self):
        assert validate_order_item({"qty": 0, "price": 100}).value["qty"] == 1
        assert validate_order_item({"qty": "two", "price": 100}).value["qty"] == 1


class TestValidateTableName:
    def test_trims(self):
        assert validate_table_name("  Mesa 4 ").value == "Mesa 4"

    def test_empty_and_too_long(self):
        assert not validate_table_name("   ").is_valid
        assert not validate_table_name("m" * 51).is_valid

    def test_duplicate_error_when_disallowed(self):
        result = validate_table_name("mesa 4", ["Mesa 4"], allow_duplicates=False)
        assert not result.is_valid

    def test_duplicate_warning_when_allowed(self):
        result = validate_table_name("mesa 4", ["Mesa 4"], allow_duplicates=True)
        assert result.is_valid
        assert len(result.warnings) == 1


def test_validation_failed_carries_result():
    result = validate_table_name("")
    exc = ValidationFailed(result, message=result.errors[0])
    assert exc.result is result
    assert exc.message == "Table name is required"
