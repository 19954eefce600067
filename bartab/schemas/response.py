from pydantic import BaseModel, Field
from typing import Any, List, Optional
import uuid

from bartab.models.state import Notification

def _rid():
    return uuid.uuid4().hex

class SuccessResponse(BaseModel):
    """Success wrapper: data plus whatever the engine had to say about the action"""
    success: Optional[bool] = Field(default=True)
    request_id: str = Field(default_factory=_rid)
    data: Optional[Any] = None
    notifications: List[Notification] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
