import pytest
import pytest_asyncio

from bartab.core.db import close_db, init_db
from bartab.models.state import BarState
from bartab.schemas.actions import AddItem, CreateOrder, FinalizeOrder
from bartab.services.engine import dispatch
from bartab.services.snapshot_store import SnapshotStore
from conftest import HAPPY_HOUR


@pytest_asyncio.fixture
async def store():
    await init_db("sqlite://:memory:")
    yield SnapshotStore()
    await close_db()


def _busy_state(state):
    """A closed tab with a happy hour priced line, so Decimals and datetimes are exercised."""
    state = dispatch(state, CreateOrder(name="Mesa 3"), actor_id="alice", now=HAPPY_HOUR).state
    order_id = state.orders[0].id
    state = dispatch(state, AddItem(order_id=order_id, product_id="p_club", discount=10),
                     actor_id="alice", now=HAPPY_HOUR).state
    return dispatch(state, FinalizeOrder(order_id=order_id), actor_id="alice", now=HAPPY_HOUR).state


@pytest.mark.asyncio
async def test_empty_store_has_no_state(store):
    assert await store.load_state() is None


@pytest.mark.asyncio
async def test_state_round_trip(store, state):
    busy = _busy_state(state)
    await store.save_state(busy)
    loaded = await store.load_state()

    assert loaded == busy
    assert loaded.orders[0].items[0].price == busy.orders[0].items[0].price
    assert len(loaded.audit_logs) == 3


@pytest.mark.asyncio
async def test_save_overwrites_live_state(store, state):
    await store.save_state(state)
    await store.save_state(BarState())
    assert await store.load_state() == BarState()
    assert await store.list_snapshots() == []


@pytest.mark.asyncio
async def test_named_snapshots(store, state):
    await store.save_state(BarState())
    await store.create_snapshot("before-count", state)

    listed = await store.list_snapshots()
    assert [s["name"] for s in listed] == ["before-count"]
    assert await store.restore_snapshot("before-count") == state
    assert await store.restore_snapshot("nope") is None

    assert await store.delete_snapshot("before-count") is True
    assert await store.delete_snapshot("before-count") is False


@pytest.mark.asyncio
async def test_live_state_name_is_reserved(store, state):
    with pytest.raises(ValueError):
        await store.create_snapshot("current", state)
    with pytest.raises(ValueError):
        await store.delete_snapshot("current")
