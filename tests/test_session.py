import asyncio
from unittest.mock import AsyncMock

import pytest

from bartab.models.state import BarState
from bartab.schemas.actions import AddItem, CreateOrder, FinalizeOrder
from bartab.scripts.seed_data import build_seed_state
from bartab.services.outcome import RejectionReason
from bartab.services.session import BarSession
from bartab.services.validation import validate_table_name
from conftest import EVENING, InMemoryStore


@pytest.mark.asyncio
async def test_load_falls_back_to_seed_when_store_is_empty(store):
    session = BarSession(store=store, clock=lambda: EVENING)
    state = await session.load(fallback=build_seed_state)
    assert len(state.products) == 8
    # Hydrating is not an audited action
    assert state.audit_logs == ()


@pytest.mark.asyncio
async def test_load_prefers_saved_state():
    saved = BarState(products=build_seed_state().products[:2])
    session = BarSession(store=InMemoryStore(saved), clock=lambda: EVENING)
    state = await session.load(fallback=build_seed_state)
    assert len(state.products) == 2


@pytest.mark.asyncio
async def test_accepted_actions_are_persisted(session, store):
    outcome = await session.dispatch(CreateOrder(name="Mesa 1"), actor_id="alice")
    assert outcome.accepted
    assert session.state is outcome.state
    assert store.saves == 1
    assert (await store.load_state()).orders[0].name == "Mesa 1"


@pytest.mark.asyncio
async def test_rejected_actions_are_not_persisted(session, store):
    before = session.state
    outcome = await session.dispatch(FinalizeOrder(order_id="missing"))
    assert outcome.rejection == RejectionReason.ORDER_NOT_FOUND
    assert session.state is before
    assert store.saves == 0


@pytest.mark.asyncio
async def test_dispatch_many_stops_at_first_rejection(session):
    order_id = (await session.dispatch(CreateOrder(name="Mesa 1"))).state.orders[0].id
    # Only 10 Salchipapas in the seed catalog
    outcomes = await session.dispatch_many(
        [AddItem(order_id=order_id, product_id="p_salchipapa") for _ in range(12)], actor_id="alice"
    )
    assert len(outcomes) == 11
    assert outcomes[-1].rejection == RejectionReason.OUT_OF_STOCK
    assert session.state.find_order(order_id).items[0].qty == 10
    assert session.state.find_product("p_salchipapa").stock == 0


@pytest.mark.asyncio
async def test_concurrent_adds_never_oversell(session):
    order_id = (await session.dispatch(CreateOrder(name="Mesa 1"))).state.orders[0].id
    results = await asyncio.gather(*[
        session.dispatch(AddItem(order_id=order_id, product_id="p_hotdog")) for _ in range(20)
    ])
    assert sum(1 for o in results if o.accepted) == 12
    assert session.state.find_product("p_hotdog").stock == 0


@pytest.mark.asyncio
async def test_failed_save_keeps_the_new_state(session, store):
    store.save_state = AsyncMock(side_effect=RuntimeError("database is locked"))
    outcome = await session.dispatch(CreateOrder(name="Mesa 1"))
    assert outcome.accepted
    assert session.state.orders[0].name == "Mesa 1"


@pytest.mark.asyncio
async def test_snapshot_restore(session):
    await session.create_snapshot("clean")
    await session.dispatch(CreateOrder(name="Mesa 1"))
    assert len(session.state.orders) == 1

    outcome = await session.restore_snapshot("clean")
    assert outcome.accepted
    assert session.state.orders == ()
    assert await session.restore_snapshot("missing") is None
    assert [s["name"] for s in await session.list_snapshots()] == ["clean"]
    assert await session.delete_snapshot("clean") is True


@pytest.mark.asyncio
async def test_snapshots_need_a_store():
    session = BarSession(state=build_seed_state(), clock=lambda: EVENING)
    with pytest.raises(ValueError):
        await session.list_snapshots()


@pytest.mark.asyncio
async def test_concurrent_validated_creates_see_each_other(session):
    def unique_name(state):
        return validate_table_name("Mesa 1", [o.name for o in state.orders], allow_duplicates=False)

    results = await asyncio.gather(*[
        session.dispatch_validated(unique_name, lambda name: CreateOrder(name=name)) for _ in range(2)
    ])
    accepted = [outcome for _, outcome in results if outcome is not None and outcome.accepted]
    refused = [result for result, outcome in results if outcome is None]
    assert len(accepted) == 1
    assert len(refused) == 1
    assert refused[0].errors == ['A table named "Mesa 1" already exists']
    assert [o.name for o in session.state.orders] == ["Mesa 1"]
