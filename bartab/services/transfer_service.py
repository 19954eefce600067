"""
Cross-order operations: moving lines between open tabs.

None of these touch product stock. Reserved units follow their lines to the receiving
order, so the multiset of (product_id, qty) held by open orders is the same before and after.

  transfer_order  whole tab into another; the source is closed with no items
  transfer_items  selected lines into another tab; the source stays open
  split_order     selected lines into a brand new tab
"""
import logging
from typing import Iterable, List, Tuple

from bartab.models.state import BarState, NotificationType, Order, OrderItem, OrderStatus
from bartab.services.order_service import replace_order
from bartab.services.outcome import Context, Outcome, RejectionReason, new_id, notify

log = logging.getLogger("bartab.transfers")


def _reidentify(item: OrderItem) -> OrderItem:
    return item.model_copy(update={"id": new_id("item")})


def _open_pair(state: BarState, from_order_id: str, to_order_id: str):
    """Returns (source, destination, rejection)."""
    if from_order_id == to_order_id:
        return None, None, RejectionReason.SAME_ORDER
    source = state.find_order(from_order_id)
    destination = state.find_order(to_order_id)
    if source is None or destination is None:
        return None, None, RejectionReason.ORDER_NOT_FOUND
    if source.status != OrderStatus.OPEN or destination.status != OrderStatus.OPEN:
        return None, None, RejectionReason.ORDER_NOT_OPEN
    return source, destination, None


def _partition(order: Order, item_ids: Iterable[str]) -> Tuple[List[OrderItem], List[OrderItem]]:
    """(selected, remaining), each in the order's display order."""
    wanted = set(item_ids)
    selected = [i for i in order.items if i.id in wanted]
    remaining = [i for i in order.items if i.id not in wanted]
    return selected, remaining


def merge_items(target: Tuple[OrderItem, ...], incoming: Iterable[OrderItem]) -> Tuple[OrderItem, ...]:
    """
    Lines with the same product and the same frozen price are summed; any other incoming
    line is appended under a fresh id so no line is shared between orders.
    """
    merged = list(target)
    for item in incoming:
        idx = next(
            (n for n, line in enumerate(merged) if line.product_id == item.product_id and line.price == item.price),
            None,
        )
        if idx is not None:
            merged[idx] = merged[idx].model_copy(update={"qty": merged[idx].qty + item.qty})
        else:
            merged.append(_reidentify(item))
    return tuple(merged)


def transfer_order(state: BarState, ctx: Context, from_order_id: str, to_order_id: str) -> Outcome:
    source, destination, rejection = _open_pair(state, from_order_id, to_order_id)
    if rejection:
        return Outcome.reject(state, rejection)

    receiving = destination.model_copy(update={"items": merge_items(destination.items, source.items)})
    # The emptied source is closed without releasing stock: the reservations now belong to the destination
    emptied = source.model_copy(update={"items": (), "status": OrderStatus.CLOSED, "closed_at": ctx.now})

    next_state = replace_order(replace_order(state, receiving), emptied)
    log.info(f"Order {from_order_id} transferred into {to_order_id} ({len(source.items)} line(s)).")
    return Outcome.accept(
        next_state,
        notify(NotificationType.OK, f"Order transferred from {source.name} to {destination.name}", ctx),
    )


def transfer_items(state: BarState, ctx: Context, from_order_id: str, to_order_id: str,
                   item_ids: Iterable[str]) -> Outcome:
    source, destination, rejection = _open_pair(state, from_order_id, to_order_id)
    if rejection:
        return Outcome.reject(state, rejection)

    selected, remaining = _partition(source, item_ids)
    if not selected:
        return Outcome.reject(state, RejectionReason.EMPTY_SELECTION)

    moved = tuple(_reidentify(i) for i in selected)
    next_state = replace_order(state, source.model_copy(update={"items": tuple(remaining)}))
    next_state = replace_order(next_state, destination.model_copy(update={"items": destination.items + moved}))
    return Outcome.accept(
        next_state,
        notify(NotificationType.OK, f"{len(moved)} item(s) transferred to {destination.name}", ctx),
    )


def split_order(state: BarState, ctx: Context, order_id: str, item_ids: Iterable[str], new_order_name: str) -> Outcome:
    source = state.find_order(order_id)
    if source is None:
        return Outcome.reject(state, RejectionReason.ORDER_NOT_FOUND)
    if source.status != OrderStatus.OPEN:
        return Outcome.reject(state, RejectionReason.ORDER_NOT_OPEN)

    selected, remaining = _partition(source, item_ids)
    if not selected:
        return Outcome.reject(state, RejectionReason.EMPTY_SELECTION)

    split = Order(
        id=new_id("ord"),
        name=new_order_name,
        items=tuple(_reidentify(i) for i in selected),
        notes=f"Split from: {source.name}",
        created_at=ctx.now,
        created_by=ctx.created_by,
    )
    next_state = replace_order(state, source.model_copy(update={"items": tuple(remaining)}))
    next_state = next_state.model_copy(update={"orders": (split,) + next_state.orders})
    log.info(f"Order {order_id} split; {len(selected)} line(s) moved to new order {split.id}.")
    return Outcome.accept(next_state, notify(NotificationType.OK, f"Bill split: {new_order_name}", ctx))
