from typing import Any, Dict, List, Optional

from bartab.models.snapshot import StateSnapshot
from bartab.models.state import BarState

# Row holding the live state; every other row is a named snapshot
CURRENT_STATE = "current"


class SnapshotStore:
    """
    Tortoise-backed persistence for BarState. Payloads are the JSON form of the state, so
    reloading reproduces the saved products and orders field for field.
    """

    async def save_state(self, state: BarState) -> None:
        await StateSnapshot.update_or_create(name=CURRENT_STATE, defaults={"payload": state.model_dump(mode="json")})

    async def load_state(self) -> Optional[BarState]:
        return await self._load(CURRENT_STATE)

    async def create_snapshot(self, name: str, state: BarState) -> StateSnapshot:
        if name == CURRENT_STATE:
            raise ValueError(f"'{CURRENT_STATE}' is reserved for the live state.")
        snapshot, _ = await StateSnapshot.update_or_create(name=name, defaults={"payload": state.model_dump(mode="json")})
        return snapshot

    async def restore_snapshot(self, name: str) -> Optional[BarState]:
        return await self._load(name)

    async def list_snapshots(self) -> List[Dict[str, Any]]:
        rows = await StateSnapshot.exclude(name=CURRENT_STATE).order_by("-created_at")
        return [{"name": r.name, "created_at": r.created_at, "updated_at": r.updated_at} for r in rows]

    async def delete_snapshot(self, name: str) -> bool:
        if name == CURRENT_STATE:
            raise ValueError(f"'{CURRENT_STATE}' is reserved for the live state.")
        deleted = await StateSnapshot.filter(name=name).delete()
        return deleted > 0

    async def _load(self, name: str) -> Optional[BarState]:
        row = await StateSnapshot.get_or_none(name=name)
        if row is None:
            return None
        return BarState.model_validate(row.payload)
