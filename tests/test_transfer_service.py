from collections import Counter

import pytest

from bartab.models.state import OrderStatus
from bartab.services.order_service import add_item, create_order, finalize_order
from bartab.services.outcome import RejectionReason
from bartab.services.transfer_service import merge_items, split_order, transfer_items, transfer_order


@pytest.fixture
def two_tabs(state, ctx):
    """Mesa 1: 2x Aguila, 1x Empanada. Mesa 2: 1x Aguila. Returns (state, mesa1_id, mesa2_id)."""
    state = create_order(state, ctx, "Mesa 1").state
    mesa1 = state.orders[0].id
    state = create_order(state, ctx, "Mesa 2").state
    mesa2 = state.orders[0].id
    for order_id, product_id in ((mesa1, "p_aguila"), (mesa1, "p_aguila"), (mesa1, "p_empanada"), (mesa2, "p_aguila")):
        state = add_item(state, ctx, order_id, product_id).state
    return state, mesa1, mesa2


def _held(state):
    held = Counter()
    for order in state.orders:
        if order.status == OrderStatus.OPEN:
            for item in order.items:
                held[item.product_id] += item.qty
    return held


def _stocks(state):
    return {p.id: p.stock for p in state.products}


def test_transfer_order_merges_and_closes_source(two_tabs, ctx):
    state, mesa1, mesa2 = two_tabs
    outcome = transfer_order(state, ctx, mesa1, mesa2)
    assert outcome.accepted

    source = outcome.state.find_order(mesa1)
    target = outcome.state.find_order(mesa2)
    assert source.status == OrderStatus.CLOSED
    assert source.items == ()
    assert source.closed_at == ctx.now
    assert {i.product_id: i.qty for i in target.items} == {"p_aguila": 3, "p_empanada": 1}
    assert "Mesa 1" in outcome.notifications[0].message and "Mesa 2" in outcome.notifications[0].message


def test_transfer_order_conserves_held_units_and_stock(two_tabs, ctx):
    state, mesa1, mesa2 = two_tabs
    outcome = transfer_order(state, ctx, mesa1, mesa2)
    assert _held(outcome.state) == _held(state)
    assert _stocks(outcome.state) == _stocks(state)


@pytest.mark.parametrize("pick,reason", [
    (lambda m1, m2: (m1, m1), RejectionReason.SAME_ORDER),
    (lambda m1, m2: (m1, "missing"), RejectionReason.ORDER_NOT_FOUND),
])
def test_transfer_order_rejections(two_tabs, ctx, pick, reason):
    state, mesa1, mesa2 = two_tabs
    outcome = transfer_order(state, ctx, *pick(mesa1, mesa2))
    assert outcome.state is state
    assert outcome.rejection == reason


def test_transfer_into_closed_order_is_rejected(two_tabs, ctx):
    state, mesa1, mesa2 = two_tabs
    state = finalize_order(state, ctx, mesa2).state
    outcome = transfer_order(state, ctx, mesa1, mesa2)
    assert outcome.state is state
    assert outcome.rejection == RejectionReason.ORDER_NOT_OPEN


def test_merge_keeps_lines_with_different_prices_apart(two_tabs, ctx):
    state, mesa1, mesa2 = two_tabs
    target = state.find_order(mesa2).items
    incoming = [i.model_copy(update={"price": i.price / 2}) for i in state.find_order(mesa1).items]
    merged = merge_items(target, incoming)
    assert len(merged) == 3
    assert len({i.id for i in merged}) == 3


def test_transfer_items_moves_only_selection(two_tabs, ctx):
    state, mesa1, mesa2 = two_tabs
    empanada = next(i for i in state.find_order(mesa1).items if i.product_id == "p_empanada")

    outcome = transfer_items(state, ctx, mesa1, mesa2, [empanada.id])
    source = outcome.state.find_order(mesa1)
    target = outcome.state.find_order(mesa2)
    assert source.status == OrderStatus.OPEN
    assert [i.product_id for i in source.items] == ["p_aguila"]
    assert [i.product_id for i in target.items] == ["p_aguila", "p_empanada"]
    # Moved lines get a fresh id
    assert target.items[-1].id != empanada.id
    assert _held(outcome.state) == _held(state)
    assert _stocks(outcome.state) == _stocks(state)


def test_transfer_items_empty_selection_is_rejected(two_tabs, ctx):
    state, mesa1, mesa2 = two_tabs
    outcome = transfer_items(state, ctx, mesa1, mesa2, ["not-on-this-order"])
    assert outcome.state is state
    assert outcome.rejection == RejectionReason.EMPTY_SELECTION


def test_split_order_creates_new_tab(two_tabs, ctx):
    state, mesa1, _ = two_tabs
    aguila = next(i for i in state.find_order(mesa1).items if i.product_id == "p_aguila")

    outcome = split_order(state, ctx, mesa1, [aguila.id], "Mesa 1B")
    split = outcome.state.orders[0]
    assert split.name == "Mesa 1B"
    assert split.notes == "Split from: Mesa 1"
    assert split.status == OrderStatus.OPEN
    assert split.created_by == "alice"
    assert [(i.product_id, i.qty) for i in split.items] == [("p_aguila", 2)]
    assert [i.product_id for i in outcome.state.find_order(mesa1).items] == ["p_empanada"]
    assert _held(outcome.state) == _held(state)
    assert _stocks(outcome.state) == _stocks(state)


def test_split_requires_open_source_and_selection(two_tabs, ctx):
    state, mesa1, _ = two_tabs
    assert split_order(state, ctx, mesa1, [], "X").rejection == RejectionReason.EMPTY_SELECTION
    closed = finalize_order(state, ctx, mesa1).state
    outcome = split_order(closed, ctx, mesa1, [i.id for i in closed.find_order(mesa1).items], "X")
    assert outcome.state is closed
    assert outcome.rejection == RejectionReason.ORDER_NOT_OPEN
