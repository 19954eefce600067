# bartab/models/__init__.py
from .state import (
    AuditLogEntry,
    BarState,
    Category,
    Notification,
    NotificationType,
    Order,
    OrderItem,
    OrderStatus,
    Product,
)
from .snapshot import StateSnapshot

# Export all models
__all__ = [
    "AuditLogEntry",
    "BarState",
    "Category",
    "Notification",
    "NotificationType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "StateSnapshot",
]
