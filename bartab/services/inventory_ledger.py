"""
Inventory Ledger.

reserve/release are the only stock movements driven by orders and are called exclusively
by the order lifecycle. Everything else in this module is catalog administration
(restocks, bulk edits, happy hour toggles, categories) and moves stock outside that pairing.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from bartab.models.state import BarState, Category, NotificationType, OrderStatus, Product
from bartab.services.outcome import Context, Outcome, RejectionReason, new_id, notify
from bartab.services.validation import LIMITS, sanitize_number

log = logging.getLogger("bartab.inventory")

Products = Tuple[Product, ...]

# Fields an administrator may set on a product, with the bounds applied to numeric ones
_NUMERIC_BOUNDS = {
    "price": (0, LIMITS["PRICE_MAX"]),
    "stock": (0, LIMITS["STOCK_MAX"]),
    "low_stock": (0, LIMITS["LOW_STOCK_MAX"]),
    "happy_hour_discount": (0, LIMITS["DISCOUNT_MAX"]),
    "happy_hour_start": (0, LIMITS["HOUR_MAX"]),
    "happy_hour_end": (0, LIMITS["HOUR_MAX"]),
}
_OPTIONAL_TEXT_FIELDS = ("category_id", "image")
_FLAG_FIELDS = ("happy_hour_active",)


def _map_product(products: Products, product_id: str, change: Callable[[Product], Product]) -> Products:
    return tuple(change(p) if p.id == product_id else p for p in products)


def reserve(products: Products, product_id: str, qty: int) -> Products:
    """Take qty units of stock for an order line. Stock never goes below zero."""
    return _map_product(products, product_id, lambda p: p.model_copy(update={"stock": max(0, p.stock - qty)}))


def release(products: Products, product_id: str, qty: int) -> Products:
    """Give back qty previously reserved units."""
    return _map_product(products, product_id, lambda p: p.model_copy(update={"stock": p.stock + qty}))


def low_stock_products(products: Iterable[Product]) -> List[Product]:
    return [p for p in products if p.is_low_stock]


def _clean_product_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only settable fields; numeric ones are sanitized, unset hours stay None."""
    clean: Dict[str, Any] = {}
    for key, (low, high) in _NUMERIC_BOUNDS.items():
        if key not in raw:
            continue
        if key in ("happy_hour_start", "happy_hour_end") and raw[key] is None:
            clean[key] = None
        else:
            clean[key] = sanitize_number(raw[key], low, high).value
    if "name" in raw:
        clean["name"] = str(raw["name"] or "").strip()
    for key in _OPTIONAL_TEXT_FIELDS:
        if key in raw:
            clean[key] = str(raw[key]) if raw[key] else None
    for key in _FLAG_FIELDS:
        if key in raw:
            clean[key] = bool(raw[key])
    return clean


def _held_by_open_orders(state: BarState, product_id: str) -> bool:
    return any(
        item.product_id == product_id
        for order in state.orders if order.status == OrderStatus.OPEN
        for item in order.items
    )


# --- Catalog administration -------------------------------------------------

def add_product(state: BarState, ctx: Context, product: Mapping[str, Any]) -> Outcome:
    fields = _clean_product_fields(product)
    fields.setdefault("name", "")
    created = Product(id=new_id("p"), **fields)
    log.info(f"Product {created.id} '{created.name}' added with stock {created.stock}.")
    return Outcome.accept(
        state.model_copy(update={"products": (created,) + state.products}),
        notify(NotificationType.OK, f"Product added: {created.name}", ctx),
    )


def update_product(state: BarState, ctx: Context, product_id: str, patch: Mapping[str, Any]) -> Outcome:
    if state.find_product(product_id) is None:
        return Outcome.reject(state, RejectionReason.PRODUCT_NOT_FOUND)
    changes = _clean_product_fields(patch)
    products = _map_product(state.products, product_id, lambda p: p.model_copy(update=changes))
    return Outcome.accept(state.model_copy(update={"products": products}))


def delete_product(state: BarState, ctx: Context, product_id: str) -> Outcome:
    product = state.find_product(product_id)
    if product is None:
        return Outcome.reject(state, RejectionReason.PRODUCT_NOT_FOUND)
    # Deleting a product with reserved units would strand that stock
    if _held_by_open_orders(state, product_id):
        return Outcome.reject(
            state,
            RejectionReason.PRODUCT_IN_USE,
            notify(NotificationType.WARN, f"{product.name} is on an open order and cannot be deleted", ctx),
        )
    products = tuple(p for p in state.products if p.id != product_id)
    return Outcome.accept(
        state.model_copy(update={"products": products}),
        notify(NotificationType.OK, f"Product deleted: {product.name}", ctx),
    )


def restock_low(state: BarState, ctx: Context) -> Outcome:
    """Every product at or below its threshold receives twice its threshold in new units."""
    low = low_stock_products(state.products)
    if not low:
        return Outcome.reject(state, RejectionReason.NOTHING_TO_RESTOCK)
    products = tuple(
        p.model_copy(update={"stock": p.stock + p.low_stock * 2}) if p.is_low_stock else p
        for p in state.products
    )
    log.info(f"Restocked {len(low)} low-stock product(s).")
    return Outcome.accept(
        state.model_copy(update={"products": products}),
        notify(NotificationType.OK, f"Restocked {len(low)} product(s)", ctx),
    )


def restock_product(state: BarState, ctx: Context, product_id: str, quantity: Any) -> Outcome:
    product = state.find_product(product_id)
    if product is None:
        return Outcome.reject(state, RejectionReason.PRODUCT_NOT_FOUND)
    units = sanitize_number(quantity, 0, LIMITS["STOCK_MAX"]).value
    products = _map_product(state.products, product_id, lambda p: p.model_copy(update={"stock": p.stock + units}))
    return Outcome.accept(
        state.model_copy(update={"products": products}),
        notify(NotificationType.OK, f"{product.name}: +{units} units", ctx),
    )


def bulk_update_products(state: BarState, ctx: Context, product_ids: Iterable[str], updates: Mapping[str, Any]) -> Outcome:
    targets = set(product_ids)
    matched = [p for p in state.products if p.id in targets]
    if not matched:
        return Outcome.reject(state, RejectionReason.PRODUCT_NOT_FOUND)
    changes = _clean_product_fields(updates)
    products = tuple(p.model_copy(update=changes) if p.id in targets else p for p in state.products)
    return Outcome.accept(
        state.model_copy(update={"products": products}),
        notify(NotificationType.OK, f"{len(matched)} product(s) updated in bulk", ctx),
    )


def apply_happy_hour(state: BarState, ctx: Context, category_id: str, discount: Any) -> Outcome:
    if state.find_category(category_id) is None:
        return Outcome.reject(state, RejectionReason.CATEGORY_NOT_FOUND)
    percent = sanitize_number(discount, 0, LIMITS["DISCOUNT_MAX"]).value
    products = tuple(
        p.model_copy(update={"happy_hour_discount": percent, "happy_hour_active": True})
        if p.category_id == category_id else p
        for p in state.products
    )
    return Outcome.accept(
        state.model_copy(update={"products": products}),
        notify(NotificationType.OK, f"Happy hour applied: {percent}% off", ctx),
    )


def remove_happy_hour(state: BarState, ctx: Context, category_id: str) -> Outcome:
    if state.find_category(category_id) is None:
        return Outcome.reject(state, RejectionReason.CATEGORY_NOT_FOUND)
    products = tuple(
        p.model_copy(update={"happy_hour_discount": 0, "happy_hour_active": False})
        if p.category_id == category_id else p
        for p in state.products
    )
    return Outcome.accept(
        state.model_copy(update={"products": products}),
        notify(NotificationType.OK, "Happy hour removed", ctx),
    )


# --- Categories ---------------------------------------------------------------

def add_category(state: BarState, ctx: Context, name: str, description: str = "") -> Outcome:
    category = Category(id=new_id("c"), name=name.strip(), description=description or "")
    return Outcome.accept(state.model_copy(update={"categories": state.categories + (category,)}))


def update_category(state: BarState, ctx: Context, category_id: str,
                    name: Optional[str] = None, description: Optional[str] = None) -> Outcome:
    if state.find_category(category_id) is None:
        return Outcome.reject(state, RejectionReason.CATEGORY_NOT_FOUND)
    changes: Dict[str, Any] = {}
    if name is not None:
        changes["name"] = name.strip()
    if description is not None:
        changes["description"] = description
    categories = tuple(c.model_copy(update=changes) if c.id == category_id else c for c in state.categories)
    return Outcome.accept(state.model_copy(update={"categories": categories}))


def delete_category(state: BarState, ctx: Context, category_id: str) -> Outcome:
    """Products of the deleted category stay in the catalog, uncategorized."""
    if state.find_category(category_id) is None:
        return Outcome.reject(state, RejectionReason.CATEGORY_NOT_FOUND)
    categories = tuple(c for c in state.categories if c.id != category_id)
    products = tuple(
        p.model_copy(update={"category_id": None}) if p.category_id == category_id else p
        for p in state.products
    )
    return Outcome.accept(state.model_copy(update={"categories": categories, "products": products}))
