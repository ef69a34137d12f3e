"""Data models for the floor-operations core."""

from .table import Table, TableStatus, ServicePriorityClass, naive_utc
from .order import Order, OrderItem
from .event import StatusUpdateEvent, StatusOrigin, SyncFilter

__all__ = [
    "Table",
    "TableStatus",
    "ServicePriorityClass",
    "naive_utc",
    "Order",
    "OrderItem",
    "StatusUpdateEvent",
    "StatusOrigin",
    "SyncFilter",
]
