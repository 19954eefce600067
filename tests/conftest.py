from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from bartab.models.state import BarState
from bartab.scripts.seed_data import build_seed_state
from bartab.services.outcome import Context
from bartab.services.session import BarSession

# 20:00, outside every happy hour window of the seed catalog
EVENING = datetime(2026, 3, 14, 20, 0, tzinfo=timezone.utc)
# 18:00, inside the drinks happy hour (17-19)
HAPPY_HOUR = datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc)


class InMemoryStore:
    """Stands in for SnapshotStore without a database. Keeps the same JSON payloads."""

    def __init__(self, state: Optional[BarState] = None):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.saves = 0
        if state is not None:
            self.rows["current"] = {"payload": state.model_dump(mode="json"), "created_at": EVENING}

    async def save_state(self, state: BarState) -> None:
        self.saves += 1
        self.rows["current"] = {"payload": state.model_dump(mode="json"), "created_at": EVENING}

    async def load_state(self) -> Optional[BarState]:
        return await self.restore_snapshot("current")

    async def create_snapshot(self, name: str, state: BarState):
        if name == "current":
            raise ValueError("'current' is reserved for the live state.")
        self.rows[name] = {"payload": state.model_dump(mode="json"), "created_at": EVENING}
        return type("Row", (), {"name": name, "created_at": EVENING})()

    async def restore_snapshot(self, name: str) -> Optional[BarState]:
        row = self.rows.get(name)
        return BarState.model_validate(row["payload"]) if row else None

    async def list_snapshots(self) -> List[Dict[str, Any]]:
        return [
            {"name": name, "created_at": row["created_at"], "updated_at": row["created_at"]}
            for name, row in self.rows.items() if name != "current"
        ]

    async def delete_snapshot(self, name: str) -> bool:
        if name == "current":
            raise ValueError("'current' is reserved for the live state.")
        return self.rows.pop(name, None) is not None


@pytest.fixture
def state():
    """Seed catalog, no orders."""
    return build_seed_state()


@pytest.fixture
def ctx():
    return Context(now=EVENING, actor_id="alice")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def session(store):
    return BarSession(store=store, state=build_seed_state(), clock=lambda: EVENING)
