import uuid
import logging
from typing import List, Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from bartab.models.state import Notification
from bartab.services.outcome import RejectionReason
from bartab.services.validation import ValidationFailed

log = logging.getLogger("bartab.api")


# Generate a clean request id for every response
def _rid():
    """Generates a unique request ID for tracing."""
    return uuid.uuid4().hex


class ActionRejected(Exception):
    """Raised by routes when the engine refused an action. Rendered as 409 Conflict."""

    def __init__(self, reason: RejectionReason, notifications: Optional[List[Notification]] = None):
        super().__init__(reason.value)
        self.reason = reason
        self.notifications = notifications or []

    @property
    def message(self) -> str:
        # The engine's own wording is more useful than the bare reason when it gave one
        if self.notifications:
            return self.notifications[0].message
        return f"Action rejected: {self.reason.value}"


# ----------- Exception Handlers (called by FastAPI) -----------

def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    body = {
        "success": False,
        "error": {
            "code": "http_error",
            "message": exc.detail,
        },
        "request_id": _rid(),
    }
    return JSONResponse(status_code=exc.status_code, content=body)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors (422 Unprocessable Entity)."""
    body = {
        "success": False,
        "error": {
            "code": "validation_error",
            "message": "Invalid input data",
            "details": jsonable_encoder(exc.errors()),
        },
        "request_id": _rid(),
    }
    return JSONResponse(status_code=422, content=body)


def validation_failed_handler(request: Request, exc: ValidationFailed):
    """Business validation (names, prices, thresholds) failed before dispatch."""
    body = {
        "success": False,
        "error": {
            "code": "validation_failed",
            "message": exc.message,
            "details": {
                "errors": exc.result.errors,
                "warnings": exc.result.warnings,
            },
        },
        "request_id": _rid(),
    }
    return JSONResponse(status_code=422, content=body)


def action_rejected_handler(request: Request, exc: ActionRejected):
    body = {
        "success": False,
        "error": {
            "code": "action_rejected",
            "message": exc.message,
            "details": {
                "reason": exc.reason.value,
                "notifications": jsonable_encoder(exc.notifications),
            },
        },
        "request_id": _rid(),
    }
    return JSONResponse(status_code=409, content=body)


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.error(f"Unhandled exception on path: {request.url.path}", exc_info=exc)

    body = {
        "success": False,
        "error": {
            "code": "server_error",
            "message": "Internal Server Error",
        },
        "request_id": _rid(),
    }
    return JSONResponse(status_code=500, content=body)


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationFailed, validation_failed_handler)
    app.add_exception_handler(ActionRejected, action_rejected_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
