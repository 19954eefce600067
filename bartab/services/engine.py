"""
Single entry point of the state-transition engine.

dispatch(state, action) routes the action to exactly one handler. Accepted outcomes carry
a new state with the audit entry appended; rejected outcomes carry the original state
object untouched, so `outcome.state is state` also signals that nothing happened.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from bartab.core.clock import venue_now
from bartab.core.config import SYSTEM_ACTOR
from bartab.models.state import BarState
from bartab.schemas.actions import ActionKind, BaseAction
from bartab.services import inventory_ledger, order_service, transfer_service
from bartab.services.audit import record_action
from bartab.services.outcome import Context, Outcome

log = logging.getLogger("bartab.engine")

Handler = Callable[[BarState, Context, Any], Outcome]

HANDLERS: Dict[str, Handler] = {
    # Orders
    ActionKind.CREATE_ORDER.value: lambda s, c, a: order_service.create_order(s, c, a.name),
    ActionKind.ADD_ITEM.value: lambda s, c, a: order_service.add_item(
        s, c, a.order_id, a.product_id, notes=a.notes, discount=a.discount),
    ActionKind.REMOVE_ITEM.value: lambda s, c, a: order_service.remove_item(s, c, a.order_id, a.item_id),
    ActionKind.FINALIZE_ORDER.value: lambda s, c, a: order_service.finalize_order(s, c, a.order_id),
    ActionKind.CANCEL_ORDER.value: lambda s, c, a: order_service.cancel_order(s, c, a.order_id),
    ActionKind.REOPEN_ORDER.value: lambda s, c, a: order_service.reopen_order(s, c, a.order_id),
    ActionKind.UPDATE_ORDER_NOTES.value: lambda s, c, a: order_service.update_order_notes(s, c, a.order_id, a.notes),
    ActionKind.UPDATE_ITEM_NOTES.value: lambda s, c, a: order_service.update_item_notes(
        s, c, a.order_id, a.item_id, a.notes),
    # Cross-order
    ActionKind.TRANSFER_ORDER.value: lambda s, c, a: transfer_service.transfer_order(
        s, c, a.from_order_id, a.to_order_id),
    ActionKind.TRANSFER_ITEMS.value: lambda s, c, a: transfer_service.transfer_items(
        s, c, a.from_order_id, a.to_order_id, a.item_ids),
    ActionKind.SPLIT_ORDER.value: lambda s, c, a: transfer_service.split_order(
        s, c, a.order_id, a.item_ids, a.new_order_name),
    # Catalog
    ActionKind.ADD_PRODUCT.value: lambda s, c, a: inventory_ledger.add_product(s, c, a.product),
    ActionKind.UPDATE_PRODUCT.value: lambda s, c, a: inventory_ledger.update_product(s, c, a.product_id, a.patch),
    ActionKind.DELETE_PRODUCT.value: lambda s, c, a: inventory_ledger.delete_product(s, c, a.product_id),
    ActionKind.RESTOCK_LOW.value: lambda s, c, a: inventory_ledger.restock_low(s, c),
    ActionKind.RESTOCK_PRODUCT.value: lambda s, c, a: inventory_ledger.restock_product(
        s, c, a.product_id, a.quantity),
    ActionKind.BULK_UPDATE_PRODUCTS.value: lambda s, c, a: inventory_ledger.bulk_update_products(
        s, c, a.product_ids, a.updates),
    ActionKind.APPLY_HAPPY_HOUR.value: lambda s, c, a: inventory_ledger.apply_happy_hour(
        s, c, a.category_id, a.discount),
    ActionKind.REMOVE_HAPPY_HOUR.value: lambda s, c, a: inventory_ledger.remove_happy_hour(s, c, a.category_id),
    ActionKind.ADD_CATEGORY.value: lambda s, c, a: inventory_ledger.add_category(s, c, a.name, a.description),
    ActionKind.UPDATE_CATEGORY.value: lambda s, c, a: inventory_ledger.update_category(
        s, c, a.category_id, name=a.name, description=a.description),
    ActionKind.DELETE_CATEGORY.value: lambda s, c, a: inventory_ledger.delete_category(s, c, a.category_id),
    # Internal
    ActionKind.HYDRATE.value: lambda s, c, a: Outcome.accept(a.state),
}

_unrouted = {kind.value for kind in ActionKind} - set(HANDLERS)
if _unrouted:
    raise RuntimeError(f"Action kinds without a handler: {sorted(_unrouted)}")


def dispatch(state: BarState, action: BaseAction, actor_id: str = SYSTEM_ACTOR,
             now: Optional[datetime] = None) -> Outcome:
    ctx = Context(now=now or venue_now(), actor_id=actor_id)
    outcome = HANDLERS[action.kind](state, ctx, action)

    if not outcome.accepted:
        log.info(f"Action {action.kind} by {actor_id} rejected: {outcome.rejection.value}")
        return outcome

    audited = record_action(state, outcome.state, action, actor_id, ctx.now)
    return Outcome(state=audited, notifications=outcome.notifications)
