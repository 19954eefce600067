import logging
from typing import Dict, FrozenSet, Optional

from bartab.models.state import BarState, NotificationType, Order, OrderItem, OrderStatus
from bartab.services.inventory_ledger import low_stock_products, release, reserve
from bartab.services.outcome import Context, Outcome, RejectionReason, new_id, notify
from bartab.services.pricing import effective_price

log = logging.getLogger("bartab.orders")

# Allowed lifecycle transitions. CANCELED is terminal.
ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.OPEN: frozenset({OrderStatus.CLOSED, OrderStatus.CANCELED}),
    OrderStatus.CLOSED: frozenset({OrderStatus.OPEN, OrderStatus.CANCELED}),
    OrderStatus.CANCELED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def replace_order(state: BarState, order: Order) -> BarState:
    """New state with the order of the same id swapped for the given one."""
    orders = tuple(order if o.id == order.id else o for o in state.orders)
    return state.model_copy(update={"orders": orders})


def _open_order(state: BarState, order_id: str):
    """Returns (order, rejection). Only one of the two is set."""
    order = state.find_order(order_id)
    if order is None:
        return None, RejectionReason.ORDER_NOT_FOUND
    if order.status != OrderStatus.OPEN:
        return None, RejectionReason.ORDER_NOT_OPEN
    return order, None


def create_order(state: BarState, ctx: Context, name: str) -> Outcome:
    """Opens a new empty tab. The name is expected to be validated by the caller."""
    order = Order(
        id=new_id("ord"),
        name=name,
        created_at=ctx.now,
        created_by=ctx.created_by,
    )
    log.info(f"Order {order.id} '{name}' opened by {ctx.actor_id}.")
    return Outcome.accept(state.model_copy(update={"orders": (order,) + state.orders}))


def add_item(state: BarState, ctx: Context, order_id: str, product_id: str,
             notes: Optional[str] = None, discount: int = 0) -> Outcome:
    """
    Adds exactly one unit of a product to an open order and reserves one unit of stock.

    A line for the same product is incremented (its frozen price is kept); otherwise a
    new line is appended at the price in effect right now. An exhausted product is a
    business rejection and the only rejection that carries a notification.
    """
    order, rejection = _open_order(state, order_id)
    if rejection:
        return Outcome.reject(state, rejection)

    product = state.find_product(product_id)
    if product is None:
        return Outcome.reject(state, RejectionReason.PRODUCT_NOT_FOUND)

    if product.stock <= 0:
        log.info(f"Add to order {order_id} rejected: {product.name} is out of stock.")
        return Outcome.reject(
            state,
            RejectionReason.OUT_OF_STOCK,
            notify(NotificationType.WARN, f"No stock left for {product.name}", ctx),
        )

    existing = next((i for i in order.items if i.product_id == product_id), None)
    if existing is not None:
        bumped = existing.model_copy(update={"qty": existing.qty + 1, "notes": notes or existing.notes})
        items = tuple(bumped if i.id == existing.id else i for i in order.items)
    else:
        line = OrderItem(
            id=new_id("item"),
            product_id=product_id,
            qty=1,
            price=effective_price(product, discount, ctx.hour),
            original_price=product.price,
            notes=notes or "",
            discount=discount,
        )
        items = order.items + (line,)

    next_state = replace_order(state, order.model_copy(update={"items": items}))
    next_state = next_state.model_copy(update={"products": reserve(next_state.products, product_id, 1)})
    return Outcome.accept(next_state)


def remove_item(state: BarState, ctx: Context, order_id: str, item_id: str) -> Outcome:
    """Takes one unit off a line, returning it to stock. The line disappears at zero."""
    order, rejection = _open_order(state, order_id)
    if rejection:
        return Outcome.reject(state, rejection)

    existing = order.find_item(item_id)
    if existing is None:
        return Outcome.reject(state, RejectionReason.ITEM_NOT_FOUND)

    if existing.qty > 1:
        decremented = existing.model_copy(update={"qty": existing.qty - 1})
        items = tuple(decremented if i.id == item_id else i for i in order.items)
    else:
        items = tuple(i for i in order.items if i.id != item_id)

    next_state = replace_order(state, order.model_copy(update={"items": items}))
    next_state = next_state.model_copy(update={"products": release(next_state.products, existing.product_id, 1)})
    return Outcome.accept(next_state)


def finalize_order(state: BarState, ctx: Context, order_id: str) -> Outcome:
    """Closes the tab. Stock stays reserved; the low-stock warning covers the whole catalog."""
    order, rejection = _open_order(state, order_id)
    if rejection:
        return Outcome.reject(state, rejection)

    closed = order.model_copy(update={"status": OrderStatus.CLOSED, "closed_at": ctx.now})
    notifications = [notify(NotificationType.OK, f"Order closed: {order.name}", ctx)]

    low = low_stock_products(state.products)
    if low:
        log.warning(f"ALERT: {len(low)} product(s) at or below their low stock threshold.")
        notifications.append(notify(NotificationType.WARN, f"{len(low)} product(s) with low stock", ctx))

    log.info(f"Order {order_id} closed. Total: {closed.total}")
    return Outcome.accept(replace_order(state, closed), *notifications)


def cancel_order(state: BarState, ctx: Context, order_id: str) -> Outcome:
    """
    Cancels an open or closed order and returns every reserved unit to stock.
    Finalize never releases stock, so a closed order still holds its reservations.
    """
    order = state.find_order(order_id)
    if order is None:
        return Outcome.reject(state, RejectionReason.ORDER_NOT_FOUND)
    if not can_transition(order.status, OrderStatus.CANCELED):
        return Outcome.reject(state, RejectionReason.INVALID_TRANSITION)

    products = state.products
    for item in order.items:
        products = release(products, item.product_id, item.qty)

    canceled = order.model_copy(update={"status": OrderStatus.CANCELED, "canceled_at": ctx.now})
    next_state = replace_order(state, canceled).model_copy(update={"products": products})
    log.info(f"Order {order_id} canceled; {sum(i.qty for i in order.items)} unit(s) returned to stock.")
    return Outcome.accept(next_state, notify(NotificationType.WARN, f"Order canceled: {order.name}", ctx))


def reopen_order(state: BarState, ctx: Context, order_id: str) -> Outcome:
    """Closed -> open. Nothing is re-reserved because finalize released nothing."""
    order = state.find_order(order_id)
    if order is None:
        return Outcome.reject(state, RejectionReason.ORDER_NOT_FOUND)
    if order.status != OrderStatus.CLOSED:
        return Outcome.reject(state, RejectionReason.INVALID_TRANSITION)

    reopened = order.model_copy(update={"status": OrderStatus.OPEN, "closed_at": None})
    return Outcome.accept(
        replace_order(state, reopened),
        notify(NotificationType.OK, f"Order reopened for editing: {order.name}", ctx),
    )


def update_order_notes(state: BarState, ctx: Context, order_id: str, notes: str) -> Outcome:
    order = state.find_order(order_id)
    if order is None:
        return Outcome.reject(state, RejectionReason.ORDER_NOT_FOUND)
    return Outcome.accept(replace_order(state, order.model_copy(update={"notes": notes})))


def update_item_notes(state: BarState, ctx: Context, order_id: str, item_id: str, notes: str) -> Outcome:
    order = state.find_order(order_id)
    if order is None:
        return Outcome.reject(state, RejectionReason.ORDER_NOT_FOUND)
    if order.find_item(item_id) is None:
        return Outcome.reject(state, RejectionReason.ITEM_NOT_FOUND)
    items = tuple(i.model_copy(update={"notes": notes}) if i.id == item_id else i for i in order.items)
    return Outcome.accept(replace_order(state, order.model_copy(update={"items": items})))
