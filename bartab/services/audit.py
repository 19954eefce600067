import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bartab.core.config import AUDIT_LOG_CAPACITY
from bartab.models.state import AuditLogEntry, BarState
from bartab.schemas.actions import INTERNAL_ACTION_KINDS, BaseAction
from bartab.services.outcome import new_id

log = logging.getLogger("bartab.audit")


def record_action(prior_state: BarState, state: BarState, action: BaseAction, actor_id: Optional[str],
                  now: datetime, capacity: int = AUDIT_LOG_CAPACITY) -> BarState:
    """
    Appends one entry for an accepted action to the state's audit trail, keeping only the
    most recent `capacity` entries. Best effort: if anything goes wrong the state is
    returned unaudited, never altered otherwise.
    """
    if action.kind in INTERNAL_ACTION_KINDS:
        return state
    try:
        entry = AuditLogEntry(
            id=new_id("log"),
            timestamp=now,
            user_id=actor_id,
            action=action.kind,
            payload=action.payload(),
            details={
                "previous_state": {
                    "products": len(prior_state.products),
                    "orders": len(prior_state.orders),
                    "categories": len(prior_state.categories),
                }
            },
        )
        logs = (state.audit_logs + (entry,))[-capacity:]
        return state.model_copy(update={"audit_logs": logs})
    except Exception as e:
        log.error(f"Could not record audit entry for action {action.kind}: {e}")
        return state


# --- Queries --------------------------------------------------------------------

def filter_by_user(logs: Iterable[AuditLogEntry], user_id: str) -> List[AuditLogEntry]:
    return [entry for entry in logs if entry.user_id == user_id]


def filter_by_action(logs: Iterable[AuditLogEntry], action: str) -> List[AuditLogEntry]:
    return [entry for entry in logs if entry.action == action]


def filter_by_date_range(logs: Iterable[AuditLogEntry], start: datetime, end: datetime) -> List[AuditLogEntry]:
    """Entries with start <= timestamp <= end."""
    return [entry for entry in logs if start <= entry.timestamp <= end]


def user_activity_summary(logs: Iterable[AuditLogEntry], user_id: str) -> Dict[str, Any]:
    entries = filter_by_user(logs, user_id)
    return {
        "user_id": user_id,
        "total_actions": len(entries),
        "action_breakdown": dict(Counter(entry.action for entry in entries)),
        "first_activity": entries[0].timestamp if entries else None,
        "last_activity": entries[-1].timestamp if entries else None,
    }


def most_frequent_actions(logs: Iterable[AuditLogEntry], limit: int = 10) -> List[Dict[str, Any]]:
    counts = Counter(entry.action for entry in logs)
    return [{"action": action, "count": count} for action, count in counts.most_common(limit)]
