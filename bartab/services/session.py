import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from bartab.core.clock import venue_now
from bartab.core.config import SYSTEM_ACTOR
from bartab.models.state import BarState
from bartab.schemas.actions import BaseAction, Hydrate
from bartab.services.engine import dispatch
from bartab.services.outcome import Outcome
from bartab.services.snapshot_store import SnapshotStore
from bartab.services.validation import ValidationResult

log = logging.getLogger("bartab.session")


class BarSession:
    """
    Owns the current BarState of one venue and is the only writer to it.

    Engine calls are serialized through a single lock, so callers only ever observe the
    state before or after a whole action. After every accepted action the new state is
    handed to the store; a failed save is logged and does not undo the action.
    """

    def __init__(self, store: Optional[SnapshotStore] = None, state: Optional[BarState] = None,
                 clock: Callable[[], datetime] = venue_now):
        self._store = store
        self._state = state if state is not None else BarState()
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def state(self) -> BarState:
        return self._state

    def now(self) -> datetime:
        return self._clock()

    async def load(self, fallback: Optional[Callable[[], BarState]] = None) -> BarState:
        """Hydrates from the store, or from `fallback` (e.g. the seed catalog) when nothing is saved."""
        loaded = await self._store.load_state() if self._store else None
        if loaded is None:
            log.info("No saved state found, starting from fallback state.")
            loaded = fallback() if fallback else BarState()
        await self.dispatch(Hydrate(state=loaded))
        return self._state

    async def dispatch(self, action: BaseAction, actor_id: str = SYSTEM_ACTOR) -> Outcome:
        async with self._lock:
            return await self._apply(action, actor_id)

    async def dispatch_many(self, actions: Iterable[BaseAction], actor_id: str = SYSTEM_ACTOR) -> List[Outcome]:
        """Applies actions in order under one lock acquisition, stopping at the first rejection."""
        outcomes: List[Outcome] = []
        async with self._lock:
            for action in actions:
                outcome = await self._apply(action, actor_id)
                outcomes.append(outcome)
                if not outcome.accepted:
                    break
        return outcomes

    async def dispatch_validated(self, validate: Callable[[BarState], ValidationResult],
                                 build: Callable[[Any], BaseAction],
                                 actor_id: str = SYSTEM_ACTOR) -> Tuple[ValidationResult, Optional[Outcome]]:
        """
        Runs `validate` against the current state and, if it passes, dispatches
        `build(result.value)` under the same lock acquisition. The outcome is None when
        validation failed.
        """
        async with self._lock:
            result = validate(self._state)
            if not result.is_valid:
                return result, None
            return result, await self._apply(build(result.value), actor_id)

    async def create_snapshot(self, name: str) -> Dict[str, Any]:
        store = self._require_store()
        async with self._lock:
            snapshot = await store.create_snapshot(name, self._state)
        log.info(f"Snapshot '{name}' created.")
        return {"name": snapshot.name, "created_at": snapshot.created_at}

    async def restore_snapshot(self, name: str) -> Optional[Outcome]:
        """None when no snapshot has that name."""
        restored = await self._require_store().restore_snapshot(name)
        if restored is None:
            return None
        log.info(f"Restoring snapshot '{name}'.")
        return await self.dispatch(Hydrate(state=restored))

    async def list_snapshots(self) -> List[Dict[str, Any]]:
        return await self._require_store().list_snapshots()

    async def delete_snapshot(self, name: str) -> bool:
        return await self._require_store().delete_snapshot(name)

    async def _apply(self, action: BaseAction, actor_id: str) -> Outcome:
        outcome = dispatch(self._state, action, actor_id=actor_id, now=self._clock())
        if outcome.accepted:
            self._state = outcome.state
            await self._persist()
        return outcome

    async def _persist(self) -> None:
        if self._store is None:
            return
        try:
            await self._store.save_state(self._state)
        except Exception as e:
            log.error(f"Failed to persist state: {e}")

    def _require_store(self) -> SnapshotStore:
        if self._store is None:
            raise ValueError("Snapshots are not available without a store.")
        return self._store
