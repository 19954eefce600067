from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Any, List, Optional

from bartab.models.state import OrderStatus


class OrderCreateRequest(BaseModel):
    """Schema for opening a new tab."""
    name: str = Field(..., description="Table or tab name, e.g. 'Mesa 4'.")


class AddItemRequest(BaseModel):
    """Schema for adding units of a product to an open order."""
    product_id: str
    # Raw on purpose: sanitized and clamped by the validation layer, never rejected for shape
    qty: Any = Field(1, description="Units to add; each unit is one engine action.")
    notes: Optional[str] = None
    discount: int = Field(0, ge=0, le=100, description="Manual discount in percent.")


class NotesUpdate(BaseModel):
    notes: str = ""


class TransferRequest(BaseModel):
    """Schema for moving a whole tab into another open tab."""
    to_order_id: str


class TransferItemsRequest(BaseModel):
    to_order_id: str
    item_ids: List[str]


class SplitRequest(BaseModel):
    """Schema for splitting selected lines into a new tab."""
    item_ids: List[str]
    new_order_name: str


class OrderLineResponse(BaseModel):
    """Schema for a line inside the detailed order response."""
    id: str
    product_id: str
    name: str
    image: Optional[str] = None
    qty: int
    price: Decimal
    original_price: int
    discount: int
    notes: str
    line_total: Decimal
    current_price: Optional[Decimal] = None


class OrderDetailResponse(BaseModel):
    """Schema for fetching detailed order information."""
    id: str
    name: str
    status: OrderStatus
    notes: str
    created_at: datetime
    closed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_by: Optional[str] = None
    items: List[OrderLineResponse]
    total: Decimal
