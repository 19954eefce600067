from typing import Optional
from fastapi import Header, Request

from bartab.core.config import SYSTEM_ACTOR
from bartab.core.exception_handlers import ActionRejected
from bartab.services.outcome import Outcome
from bartab.services.session import BarSession
from bartab.services.validation import ValidationFailed, ValidationResult


def get_session(request: Request) -> BarSession:
    """The session created in the application lifespan."""
    return request.app.state.session


def get_actor_id(x_actor_id: Optional[str] = Header(None)) -> str:
    """Acting employee; requests without the header act as the system."""
    return (x_actor_id or "").strip() or SYSTEM_ACTOR


def ensure_accepted(outcome: Outcome) -> Outcome:
    if not outcome.accepted:
        raise ActionRejected(outcome.rejection, outcome.notifications)
    return outcome


def ensure_valid(result: ValidationResult) -> ValidationResult:
    if not result.is_valid:
        raise ValidationFailed(result, message=result.errors[0])
    return result
