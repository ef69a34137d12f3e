"""Status-change event model published on the sync bus."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Optional, Mapping, Any, Iterable, FrozenSet

from .table import naive_utc


class StatusOrigin(str, Enum):
    """Subsystem that triggered a table-status change."""

    ORDER_ENTRY = "pos"
    KITCHEN_DISPLAY = "kds"
    FLOOR_MANAGEMENT = "table_management"
    AUTOMATIC = "auto"


@dataclass(frozen=True)
class StatusUpdateEvent:
    """Immutable record of a single table-status change."""

    order_id: str
    table_id: str
    previous_status: Optional[str]
    new_status: str
    origin: StatusOrigin
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "origin", StatusOrigin(self.origin))
        object.__setattr__(self, "timestamp", naive_utc(self.timestamp))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "order_id": self.order_id,
            "table_id": self.table_id,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "origin": self.origin.value,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


def _as_frozenset(values: Optional[Iterable]) -> Optional[FrozenSet]:
    if values is None:
        return None
    return frozenset(values)


@dataclass(frozen=True)
class SyncFilter:
    """
    Optional allow-lists narrowing which events a listener receives.

    A ``None`` list means "no restriction" on that attribute. An empty list
    matches nothing.
    """

    table_ids: Optional[FrozenSet[str]] = None
    order_ids: Optional[FrozenSet[str]] = None
    sources: Optional[FrozenSet[StatusOrigin]] = None

    def __post_init__(self):
        object.__setattr__(self, "table_ids", _as_frozenset(self.table_ids))
        object.__setattr__(self, "order_ids", _as_frozenset(self.order_ids))
        if self.sources is not None:
            object.__setattr__(
                self, "sources", frozenset(StatusOrigin(s) for s in self.sources)
            )

    def matches(self, event: StatusUpdateEvent) -> bool:
        if self.table_ids is not None and event.table_id not in self.table_ids:
            return False
        if self.order_ids is not None and event.order_id not in self.order_ids:
            return False
        if self.sources is not None and event.origin not in self.sources:
            return False
        return True
