"""Table snapshot model supplied by the floor-management subsystem."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any


class TableStatus(str, Enum):
    """Table lifecycle states."""

    AVAILABLE = "available"
    SEATED = "seated"
    RESERVED = "reserved"
    ORDERED = "ordered"
    WAITING_FOOD = "waiting_food"
    DINING = "dining"
    NEEDS_SERVICE = "needs_service"
    CLEANING = "cleaning"


class ServicePriorityClass(str, Enum):
    """Service priority class assigned to a table."""

    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Table:
    """
    Read-only table snapshot.

    The core never mutates a table in place; a changed table is a new
    object built with ``with_changes``.
    """

    id: str
    capacity: int
    status: TableStatus = TableStatus.AVAILABLE
    zone: str = "main"
    service_priority: ServicePriorityClass = ServicePriorityClass.NORMAL
    reserved_at: Optional[datetime] = None
    dining_start_time: Optional[datetime] = None
    current_party_size: Optional[int] = None
    notes: Optional[str] = None
    table_number: Optional[str] = None
    current_order_id: Optional[str] = None

    def __post_init__(self):
        if self.capacity < 1:
            raise ValueError(f"Table {self.id} capacity must be at least 1")
        # Accept plain strings from callers and normalize to the enums
        object.__setattr__(self, "status", TableStatus(self.status))
        object.__setattr__(
            self, "service_priority", ServicePriorityClass(self.service_priority)
        )
        object.__setattr__(self, "reserved_at", naive_utc(self.reserved_at))
        object.__setattr__(self, "dining_start_time", naive_utc(self.dining_start_time))

    @property
    def is_high_priority(self) -> bool:
        return self.service_priority in (
            ServicePriorityClass.HIGH,
            ServicePriorityClass.URGENT,
        )

    @property
    def is_vip_zone(self) -> bool:
        return "vip" in self.zone.lower()

    def with_changes(self, **changes) -> "Table":
        """Return a copy of this table with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "table_number": self.table_number or self.id,
            "capacity": self.capacity,
            "status": self.status.value,
            "zone": self.zone,
            "service_priority": self.service_priority.value,
            "reserved_at": self.reserved_at.isoformat() if self.reserved_at else None,
            "dining_start_time": self.dining_start_time.isoformat()
            if self.dining_start_time
            else None,
            "current_party_size": self.current_party_size,
            "notes": self.notes,
            "current_order_id": self.current_order_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Table":
        """Build a table from an API payload or collaborator record."""
        return cls(
            id=str(data["id"]),
            capacity=int(data["capacity"]),
            status=TableStatus(data.get("status", TableStatus.AVAILABLE)),
            zone=data.get("zone") or "main",
            service_priority=ServicePriorityClass(
                data.get("service_priority") or ServicePriorityClass.NORMAL
            ),
            reserved_at=_parse_datetime(data.get("reserved_at")),
            dining_start_time=_parse_datetime(data.get("dining_start_time")),
            current_party_size=data.get("current_party_size"),
            notes=data.get("notes"),
            table_number=data.get("table_number"),
            current_order_id=data.get("current_order_id"),
        )
