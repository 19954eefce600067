"""Read-only projections over a BarState. Totals are always recomputed from live lines."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from bartab.models.state import BarState, Order, OrderStatus, Product
from bartab.services.pricing import effective_price, happy_hour_in_effect


def order_total(order: Order) -> Decimal:
    return sum((item.qty * item.price for item in order.items), Decimal("0"))


def order_summary(state: BarState, order_id: str, hour: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """
    Order lines joined with their product's name and image. When `hour` is given, each
    line also reports what the product would cost if added now.
    """
    order = state.find_order(order_id)
    if order is None:
        return None

    lines = []
    for item in order.items:
        product = state.find_product(item.product_id)
        line = {
            "id": item.id,
            "product_id": item.product_id,
            "name": product.name if product else item.product_id,
            "image": product.image if product else None,
            "qty": item.qty,
            "price": item.price,
            "original_price": item.original_price,
            "discount": item.discount,
            "notes": item.notes,
            "line_total": item.qty * item.price,
        }
        if product is not None and hour is not None:
            line["current_price"] = effective_price(product, item.discount, hour)
        lines.append(line)

    return {
        "id": order.id,
        "name": order.name,
        "status": order.status,
        "notes": order.notes,
        "created_at": order.created_at,
        "closed_at": order.closed_at,
        "canceled_at": order.canceled_at,
        "created_by": order.created_by,
        "items": lines,
        "total": order_total(order),
    }


def orders_by_status(orders: Iterable[Order], status: OrderStatus) -> List[Order]:
    return [o for o in orders if o.status == status]


def orders_by_user(orders: Iterable[Order], user_id: str) -> List[Order]:
    return [o for o in orders if o.created_by == user_id]


def open_orders(orders: Iterable[Order]) -> List[Order]:
    return orders_by_status(orders, OrderStatus.OPEN)


def available_products(products: Iterable[Product]) -> List[Product]:
    return [p for p in products if p.stock > 0]


def products_by_category(products: Iterable[Product], category_id: str) -> List[Product]:
    return [p for p in products if p.category_id == category_id]


def happy_hour_products(products: Iterable[Product], hour: Optional[int] = None) -> List[Product]:
    """Products with a happy hour discount; restricted to those in effect when `hour` is given."""
    if hour is None:
        return [p for p in products if p.happy_hour_discount > 0]
    return [p for p in products if happy_hour_in_effect(p, hour)]


def committed_stock(state: BarState, product_id: str) -> int:
    """Units of a product held by open orders. Already deducted from product.stock."""
    return sum(
        item.qty
        for order in open_orders(state.orders)
        for item in order.items if item.product_id == product_id
    )


# --- Sales reports ----------------------------------------------------------------

def sales_by_date_range(orders: Iterable[Order], start: datetime, end: datetime) -> List[Order]:
    """Closed orders whose closing time falls within [start, end]."""
    return [
        o for o in orders
        if o.status == OrderStatus.CLOSED and o.closed_at is not None and start <= o.closed_at <= end
    ]


def top_products(state: BarState, start: datetime, end: datetime, limit: int = 10) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, Any]] = {}
    for order in sales_by_date_range(state.orders, start, end):
        for item in order.items:
            if item.product_id not in stats:
                product = state.find_product(item.product_id)
                stats[item.product_id] = {
                    "id": item.product_id,
                    "name": product.name if product else item.product_id,
                    "category_id": product.category_id if product else None,
                    "total_qty": 0,
                    "total_revenue": Decimal("0"),
                    "orders": 0,
                }
            row = stats[item.product_id]
            row["total_qty"] += item.qty
            row["total_revenue"] += item.qty * item.price
            row["orders"] += 1

    ranked = sorted(stats.values(), key=lambda row: row["total_revenue"], reverse=True)
    return ranked[:limit]


def consumption_by_category(state: BarState, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    stats = {
        c.id: {"id": c.id, "name": c.name, "total_qty": 0, "total_revenue": Decimal("0"), "products": set()}
        for c in state.categories
    }
    for order in sales_by_date_range(state.orders, start, end):
        for item in order.items:
            product = state.find_product(item.product_id)
            if product is None or product.category_id not in stats:
                continue
            row = stats[product.category_id]
            row["total_qty"] += item.qty
            row["total_revenue"] += item.qty * item.price
            row["products"].add(item.product_id)

    rows = [
        {**{k: v for k, v in row.items() if k != "products"}, "unique_products": len(row["products"])}
        for row in stats.values()
    ]
    return sorted(rows, key=lambda row: row["total_revenue"], reverse=True)
