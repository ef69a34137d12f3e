"""Order snapshot model supplied by the order-entry subsystem."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from .table import naive_utc


@dataclass(frozen=True)
class OrderItem:
    """Single line item on an order."""

    name: str
    quantity: int = 1
    notes: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "quantity": self.quantity, "notes": self.notes}


@dataclass(frozen=True)
class Order:
    """Read-only order snapshot."""

    id: str
    created_at: datetime
    table_id: Optional[str] = None
    items: List[OrderItem] = field(default_factory=list)
    notes: str = ""
    party_size: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "created_at", naive_utc(self.created_at))

    def all_notes(self) -> str:
        """Order notes and every line-item note, case-folded into one string."""
        parts = [self.notes or ""]
        parts.extend(item.notes or "" for item in self.items)
        return " ".join(parts).casefold()

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "table_id": self.table_id,
            "items": [item.to_dict() for item in self.items],
            "notes": self.notes,
            "party_size": self.party_size,
        }
