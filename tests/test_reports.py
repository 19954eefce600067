from datetime import timedelta
from decimal import Decimal

from bartab.models.state import OrderStatus
from bartab.services import reports
from bartab.services.order_service import add_item, create_order, finalize_order


def _closed_tab(state, ctx, name, product_ids):
    state = create_order(state, ctx, name).state
    order_id = state.orders[0].id
    for product_id in product_ids:
        state = add_item(state, ctx, order_id, product_id).state
    return finalize_order(state, ctx, order_id).state, order_id


def test_order_summary_joins_catalog(state, ctx):
    state, order_id = _closed_tab(state, ctx, "Mesa 1", ["p_club", "p_club", "p_empanada"])
    summary = reports.order_summary(state, order_id, hour=18)

    assert summary["name"] == "Mesa 1"
    assert summary["status"] == OrderStatus.CLOSED
    assert summary["total"] == Decimal(18500)
    club = summary["items"][0]
    assert club["name"] == "Club Colombia"
    assert club["image"] == "/images/products/club.jpg"
    assert club["line_total"] == Decimal(16000)
    # What the same line would cost during happy hour
    assert club["current_price"] == Decimal(6400)


def test_order_summary_missing_order(state):
    assert reports.order_summary(state, "missing") is None


def test_order_filters(state, ctx):
    state, closed_id = _closed_tab(state, ctx, "Mesa 1", ["p_water"])
    state = create_order(state, ctx, "Mesa 2").state

    assert [o.name for o in reports.open_orders(state.orders)] == ["Mesa 2"]
    assert [o.id for o in reports.orders_by_status(state.orders, OrderStatus.CLOSED)] == [closed_id]
    assert len(reports.orders_by_user(state.orders, "alice")) == 2
    assert reports.orders_by_user(state.orders, "bob") == []


def test_product_filters(state):
    assert len(reports.products_by_category(state.products, "c_food")) == 3
    assert len(reports.available_products(state.products)) == 8
    assert {p.id for p in reports.happy_hour_products(state.products, hour=16)} == {
        "p_empanada", "p_salchipapa", "p_hotdog",
    }
    assert len(reports.happy_hour_products(state.products)) == 6


def test_committed_stock_counts_open_orders_only(state, ctx):
    state, _ = _closed_tab(state, ctx, "Mesa 1", ["p_ice"])
    state = create_order(state, ctx, "Mesa 2").state
    state = add_item(state, ctx, state.orders[0].id, "p_ice").state
    assert reports.committed_stock(state, "p_ice") == 1


def test_sales_reports(state, ctx):
    state, _ = _closed_tab(state, ctx, "Mesa 1", ["p_club", "p_club", "p_empanada"])
    state, _ = _closed_tab(state, ctx, "Mesa 2", ["p_empanada"])
    start, end = ctx.now - timedelta(hours=1), ctx.now + timedelta(hours=1)

    assert len(reports.sales_by_date_range(state.orders, start, end)) == 2
    assert reports.sales_by_date_range(state.orders, end, end + timedelta(hours=1)) == []

    top = reports.top_products(state, start, end, limit=1)
    assert top == [{
        "id": "p_club", "name": "Club Colombia", "category_id": "c_drinks",
        "total_qty": 2, "total_revenue": Decimal(16000), "orders": 1,
    }]

    by_category = reports.consumption_by_category(state, start, end)
    assert [row["id"] for row in by_category] == ["c_drinks", "c_food", "c_other"]
    assert by_category[1]["total_qty"] == 2
    assert by_category[1]["unique_products"] == 1
