"""
Result types shared by every engine operation.

An operation either accepts the action and returns a strictly new BarState, or rejects it
and returns the very same BarState instance together with a RejectionReason.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from bartab.core.config import SYSTEM_ACTOR
from bartab.models.state import BarState, Notification, NotificationType


class RejectionReason(str, Enum):
    ORDER_NOT_FOUND = "order_not_found"
    ORDER_NOT_OPEN = "order_not_open"
    INVALID_TRANSITION = "invalid_transition"
    PRODUCT_NOT_FOUND = "product_not_found"
    ITEM_NOT_FOUND = "item_not_found"
    OUT_OF_STOCK = "out_of_stock"
    SAME_ORDER = "same_order"
    EMPTY_SELECTION = "empty_selection"
    CATEGORY_NOT_FOUND = "category_not_found"
    PRODUCT_IN_USE = "product_in_use"
    NOTHING_TO_RESTOCK = "nothing_to_restock"


@dataclass(frozen=True)
class Context:
    """Who is acting and when. 'now' is in venue-local time; its hour drives happy hour pricing."""
    now: datetime
    actor_id: str = SYSTEM_ACTOR

    @property
    def hour(self) -> int:
        return self.now.hour

    @property
    def created_by(self) -> Optional[str]:
        return None if self.actor_id == SYSTEM_ACTOR else self.actor_id


@dataclass(frozen=True)
class Outcome:
    state: BarState
    notifications: List[Notification] = field(default_factory=list)
    rejection: Optional[RejectionReason] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    @classmethod
    def accept(cls, state: BarState, *notifications: Notification) -> "Outcome":
        return cls(state=state, notifications=list(notifications))

    @classmethod
    def reject(cls, state: BarState, reason: RejectionReason, *notifications: Notification) -> "Outcome":
        return cls(state=state, notifications=list(notifications), rejection=reason)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def notify(kind: NotificationType, message: str, ctx: Context) -> Notification:
    return Notification(id=new_id("ntf"), type=kind, message=message, ts=ctx.now)
