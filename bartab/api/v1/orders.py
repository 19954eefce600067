import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from bartab.api.deps import ensure_accepted, ensure_valid, get_actor_id, get_session
from bartab.core.config import ALLOW_DUPLICATE_TABLE_NAMES
from bartab.core.exception_handlers import ActionRejected
from bartab.models.state import BarState, OrderStatus
from bartab.schemas.actions import (
    AddItem, CancelOrder, CreateOrder, FinalizeOrder, RemoveItem, ReopenOrder, SplitOrder,
    TransferItems, TransferOrder, UpdateItemNotes, UpdateOrderNotes,
)
from bartab.schemas.order import (
    AddItemRequest, NotesUpdate, OrderCreateRequest, OrderDetailResponse, SplitRequest,
    TransferItemsRequest, TransferRequest,
)
from bartab.schemas.response import SuccessResponse
from bartab.services import reports
from bartab.services.session import BarSession
from bartab.services.validation import ValidationFailed, validate_order_item, validate_table_name

router = APIRouter()
log = logging.getLogger("bartab.api.orders")


def _detail(session: BarSession, order_id: str) -> dict:
    summary = reports.order_summary(session.state, order_id, hour=session.now().hour)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return OrderDetailResponse(**summary).model_dump()


def _table_name_check(name: str):
    """Validator for a new tab name, run against the state the action will apply to."""
    def check(state: BarState):
        names = [o.name for o in state.orders if o.status != OrderStatus.CANCELED]
        return validate_table_name(name, names, ALLOW_DUPLICATE_TABLE_NAMES)
    return check


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(
    request_data: OrderCreateRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Opens a new tab. Duplicate table names are a warning or an error depending on configuration."""
    try:
        result, outcome = await session.dispatch_validated(
            _table_name_check(request_data.name), lambda name: CreateOrder(name=name), actor_id
        )
        ensure_valid(result)
        ensure_accepted(outcome)
        # New tabs are prepended
        order = outcome.state.orders[0]
        log.info(f"Order {order.id} '{order.name}' created by {actor_id}.")
        return SuccessResponse(
            data=_detail(session, order.id), notifications=outcome.notifications, warnings=result.warnings
        )
    except (ValidationFailed, ActionRejected, HTTPException):
        raise
    except Exception as e:
        log.error(f"Error creating order: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create order.")


@router.get("/", response_model=SuccessResponse)
async def list_orders_endpoint(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    created_by: Optional[str] = None,
    session: BarSession = Depends(get_session),
):
    orders = session.state.orders
    if status_filter is not None:
        orders = reports.orders_by_status(orders, status_filter)
    if created_by is not None:
        orders = reports.orders_by_user(orders, created_by)
    return SuccessResponse(data=[_detail(session, o.id) for o in orders])


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: str, session: BarSession = Depends(get_session)):
    """Fetches the order with its lines joined to the catalog and a recomputed total."""
    return SuccessResponse(data=_detail(session, order_id))


@router.post("/{order_id}/items", response_model=SuccessResponse)
async def add_item_endpoint(
    order_id: str,
    payload: AddItemRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """
    Adds qty units as qty single-unit actions applied back to back. Adding stops at the
    first rejection, so running out of stock midway keeps the units already added.
    """
    product = session.state.find_product(payload.product_id)
    result = ensure_valid(validate_order_item({"qty": payload.qty, "price": product.price if product else 0}))
    qty = result.value["qty"]

    actions = [
        AddItem(order_id=order_id, product_id=payload.product_id, notes=payload.notes, discount=payload.discount)
        for _ in range(qty)
    ]
    outcomes = await session.dispatch_many(actions, actor_id)
    added = sum(1 for o in outcomes if o.accepted)
    notifications = [n for o in outcomes for n in o.notifications]
    if added == 0:
        ensure_accepted(outcomes[-1])
    if added < qty:
        log.info(f"Only {added} of {qty} unit(s) of {payload.product_id} added to order {order_id}.")

    return SuccessResponse(
        data={"added": added, "requested": qty, "order": _detail(session, order_id)},
        notifications=notifications,
        warnings=result.warnings,
    )


@router.delete("/{order_id}/items/{item_id}", response_model=SuccessResponse)
async def remove_item_endpoint(
    order_id: str,
    item_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Removes one unit of the line and returns it to stock."""
    outcome = ensure_accepted(await session.dispatch(RemoveItem(order_id=order_id, item_id=item_id), actor_id))
    return SuccessResponse(data=_detail(session, order_id), notifications=outcome.notifications)


@router.patch("/{order_id}/items/{item_id}/notes", response_model=SuccessResponse)
async def update_item_notes_endpoint(
    order_id: str,
    item_id: str,
    payload: NotesUpdate,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    action = UpdateItemNotes(order_id=order_id, item_id=item_id, notes=payload.notes)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    return SuccessResponse(data=_detail(session, order_id), notifications=outcome.notifications)


@router.patch("/{order_id}/notes", response_model=SuccessResponse)
async def update_order_notes_endpoint(
    order_id: str,
    payload: NotesUpdate,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    outcome = ensure_accepted(
        await session.dispatch(UpdateOrderNotes(order_id=order_id, notes=payload.notes), actor_id)
    )
    return SuccessResponse(data=_detail(session, order_id), notifications=outcome.notifications)


@router.post("/{order_id}/finalize", response_model=SuccessResponse)
async def finalize_order_endpoint(
    order_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Closes the tab. Reserved stock stays consumed."""
    outcome = ensure_accepted(await session.dispatch(FinalizeOrder(order_id=order_id), actor_id))
    return SuccessResponse(data=_detail(session, order_id), notifications=outcome.notifications)


@router.post("/{order_id}/cancel", response_model=SuccessResponse)
async def cancel_order_endpoint(
    order_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Cancels the tab and returns every reserved unit to stock."""
    outcome = ensure_accepted(await session.dispatch(CancelOrder(order_id=order_id), actor_id))
    return SuccessResponse(data=_detail(session, order_id), notifications=outcome.notifications)


@router.post("/{order_id}/reopen", response_model=SuccessResponse)
async def reopen_order_endpoint(
    order_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    outcome = ensure_accepted(await session.dispatch(ReopenOrder(order_id=order_id), actor_id))
    return SuccessResponse(data=_detail(session, order_id), notifications=outcome.notifications)


@router.post("/{order_id}/transfer", response_model=SuccessResponse)
async def transfer_order_endpoint(
    order_id: str,
    payload: TransferRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Moves every line into the target tab and closes this one."""
    action = TransferOrder(from_order_id=order_id, to_order_id=payload.to_order_id)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    return SuccessResponse(data=_detail(session, payload.to_order_id), notifications=outcome.notifications)


@router.post("/{order_id}/transfer-items", response_model=SuccessResponse)
async def transfer_items_endpoint(
    order_id: str,
    payload: TransferItemsRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    action = TransferItems(from_order_id=order_id, to_order_id=payload.to_order_id, item_ids=payload.item_ids)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    return SuccessResponse(
        data={"source": _detail(session, order_id), "target": _detail(session, payload.to_order_id)},
        notifications=outcome.notifications,
    )


@router.post("/{order_id}/split", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def split_order_endpoint(
    order_id: str,
    payload: SplitRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Moves the selected lines into a new tab named new_order_name."""
    result, outcome = await session.dispatch_validated(
        _table_name_check(payload.new_order_name),
        lambda name: SplitOrder(order_id=order_id, item_ids=payload.item_ids, new_order_name=name),
        actor_id,
    )
    ensure_valid(result)
    ensure_accepted(outcome)
    new_order = outcome.state.orders[0]
    return SuccessResponse(
        data={"source": _detail(session, order_id), "split": _detail(session, new_order.id)},
        notifications=outcome.notifications,
        warnings=result.warnings,
    )
