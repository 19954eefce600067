from enum import Enum
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    OPEN = "open"          # Tab accepting items; holds stock reservations
    CLOSED = "closed"      # Finalized; reservations kept, can be reopened
    CANCELED = "canceled"  # Terminal; reservations released


class NotificationType(str, Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"


class FrozenModel(BaseModel):
    """Base for state entities. Instances are never mutated; use model_copy(update=...)."""
    model_config = ConfigDict(frozen=True)


class Category(FrozenModel):
    id: str
    name: str
    description: str = ""


class Product(FrozenModel):
    id: str
    name: str
    category_id: Optional[str] = None
    price: int = Field(0, ge=0)
    stock: int = Field(0, ge=0)
    low_stock: int = Field(0, ge=0) # May exceed stock; that is the low-stock signal
    happy_hour_discount: int = Field(0, ge=0, le=100)
    happy_hour_start: Optional[int] = Field(None, ge=0, le=23)
    happy_hour_end: Optional[int] = Field(None, ge=0, le=23)
    happy_hour_active: bool = False
    image: Optional[str] = None

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock


class OrderItem(FrozenModel):
    id: str
    product_id: str
    qty: int = Field(..., gt=0)
    price: Decimal       # Effective unit price frozen at add time
    original_price: int  # Undiscounted product price at add time
    notes: str = ""
    discount: int = Field(0, ge=0, le=100)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.qty


class Order(FrozenModel):
    id: str
    name: str
    status: OrderStatus = OrderStatus.OPEN
    items: Tuple[OrderItem, ...] = ()
    notes: str = ""
    created_at: datetime
    closed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    def find_item(self, item_id: str) -> Optional[OrderItem]:
        return next((i for i in self.items if i.id == item_id), None)


class Notification(FrozenModel):
    """Side-channel message produced by an engine call. Never stored in BarState."""
    id: str
    type: NotificationType
    message: str
    ts: datetime


class AuditLogEntry(FrozenModel):
    id: str
    timestamp: datetime
    user_id: Optional[str] = None
    action: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    details: Dict[str, Any] = Field(default_factory=dict)


class BarState(FrozenModel):
    """
    Full snapshot of one venue: catalog, tabs and the bounded audit trail.
    Every accepted engine call produces a new BarState; rejected calls return the same instance.
    """
    products: Tuple[Product, ...] = ()
    categories: Tuple[Category, ...] = ()
    orders: Tuple[Order, ...] = ()
    audit_logs: Tuple[AuditLogEntry, ...] = ()

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)
