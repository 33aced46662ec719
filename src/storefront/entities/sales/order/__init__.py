"""Entity package: Order and OrderItem."""

from .entity import (
    PAYABLE_STATUSES,
    SETTLED_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
)
from .repository import OrderRepository
from .table import OrderItemTable, OrderTable

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "PAYABLE_STATUSES",
    "SETTLED_STATUSES",
    "OrderRepository",
    "OrderTable",
    "OrderItemTable",
]
