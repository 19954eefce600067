import pytest
from unittest.mock import patch

from bartab.scripts import seed_data
from bartab.services.validation import validate_product
from conftest import InMemoryStore


def test_seed_catalog_is_valid():
    state = seed_data.build_seed_state()
    assert state.orders == ()
    assert len({p.id for p in state.products}) == len(state.products)
    category_ids = {c.id for c in state.categories}
    for product in state.products:
        assert product.category_id in category_ids
        assert validate_product(product.model_dump(), state.products).is_valid


@pytest.mark.asyncio
async def test_seed_writes_live_state():
    store = InMemoryStore()
    with patch("bartab.scripts.seed_data.SnapshotStore", return_value=store):
        await seed_data.seed()
    loaded = await store.load_state()
    assert len(loaded.products) == 8
