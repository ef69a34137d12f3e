"""Table availability prediction and reservation conflict checks."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Iterable

from ..models import Table, TableStatus, naive_utc


@dataclass
class TableAvailability:
    """Result of a real-time availability check."""

    is_available: bool
    reason: Optional[str] = None
    estimated_wait_time: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "is_available": self.is_available,
            "reason": self.reason,
            "estimated_wait_time": self.estimated_wait_time,
        }


class AvailabilityPredictor:
    """
    Estimates minutes until a table frees up.

    Reads an injected table snapshot that callers refresh with
    ``update_tables``. All estimates are advisory.
    """

    # Minutes until free, by status. DINING and RESERVED are computed.
    STATUS_WAIT_MINUTES = {
        TableStatus.AVAILABLE: 0,
        TableStatus.CLEANING: 10,
        TableStatus.SEATED: 20,
        TableStatus.ORDERED: 45,
        TableStatus.WAITING_FOOD: 60,
        TableStatus.NEEDS_SERVICE: 15,
    }
    DEFAULT_WAIT_MINUTES = 30
    MIN_DINING_REMAINING_MINUTES = 15
    RESERVATION_BUFFER_MINUTES = 15
    RESERVATION_CONFLICT_WINDOW = timedelta(hours=2)
    NO_SUITABLE_TABLE_WAIT_MINUTES = 60

    STATUS_REASONS = {
        TableStatus.SEATED: "Guests have been seated",
        TableStatus.RESERVED: "Table is reserved",
        TableStatus.ORDERED: "Guests have ordered",
        TableStatus.WAITING_FOOD: "Waiting for food",
        TableStatus.DINING: "Guests are dining",
        TableStatus.NEEDS_SERVICE: "Table needs service",
        TableStatus.CLEANING: "Table is being cleaned",
        TableStatus.AVAILABLE: "Table is available",
    }

    def __init__(self, tables: Optional[Iterable[Table]] = None):
        self._tables: List[Table] = list(tables or [])
        self._by_id: Dict[str, Table] = {t.id: t for t in self._tables}

    def update_tables(self, tables: Iterable[Table]):
        """Replace the table snapshot."""
        self._tables = list(tables)
        self._by_id = {t.id: t for t in self._tables}

    @property
    def tables(self) -> List[Table]:
        return list(self._tables)

    def get_table(self, table_id: str) -> Optional[Table]:
        return self._by_id.get(table_id)

    @staticmethod
    def get_average_dining_time(capacity: int) -> int:
        """Average dining duration in minutes for a table of ``capacity``."""
        if capacity <= 2:
            return 45
        if capacity <= 4:
            return 60
        if capacity <= 6:
            return 75
        return 90

    @staticmethod
    def _minutes_between(start: datetime, end: datetime) -> float:
        return (end - start).total_seconds() / 60

    def predict_availability_time(
        self, table: Table, now: Optional[datetime] = None
    ) -> float:
        """Predict minutes until ``table`` becomes free. 0 only when available."""
        now = naive_utc(now) or datetime.utcnow()
        status = table.status

        if status in self.STATUS_WAIT_MINUTES:
            return self.STATUS_WAIT_MINUTES[status]

        if status == TableStatus.DINING:
            if table.dining_start_time is None:
                return self.DEFAULT_WAIT_MINUTES
            dining_minutes = self._minutes_between(table.dining_start_time, now)
            average = self.get_average_dining_time(table.capacity)
            return max(self.MIN_DINING_REMAINING_MINUTES, average - dining_minutes)

        if status == TableStatus.RESERVED:
            if table.reserved_at is None:
                return self.DEFAULT_WAIT_MINUTES
            until_reservation = self._minutes_between(now, table.reserved_at)
            return max(0.0, until_reservation + self.RESERVATION_BUFFER_MINUTES)

        return self.DEFAULT_WAIT_MINUTES

    def check_real_time_availability(
        self, table: Table, now: Optional[datetime] = None
    ) -> TableAvailability:
        """Check whether ``table`` can be seated right now."""
        now = naive_utc(now) or datetime.utcnow()

        if table.status == TableStatus.AVAILABLE:
            return TableAvailability(is_available=True)

        if table.status == TableStatus.CLEANING:
            return TableAvailability(
                is_available=False,
                reason=self.STATUS_REASONS[TableStatus.CLEANING],
                estimated_wait_time=self.STATUS_WAIT_MINUTES[TableStatus.CLEANING],
            )

        if table.status == TableStatus.DINING and table.dining_start_time is not None:
            dining_minutes = self._minutes_between(table.dining_start_time, now)
            if dining_minutes > self.get_average_dining_time(table.capacity):
                return TableAvailability(
                    is_available=False,
                    reason="Table in use but may free up soon",
                    estimated_wait_time=self.predict_availability_time(table, now),
                )

        return TableAvailability(
            is_available=False,
            reason=self.STATUS_REASONS.get(table.status, "Table unavailable"),
            estimated_wait_time=self.predict_availability_time(table, now),
        )

    def check_table_availability(
        self, table_id: str, now: Optional[datetime] = None
    ) -> TableAvailability:
        """Availability by id; unknown tables are reported as not available."""
        table = self.get_table(table_id)
        if table is None:
            return TableAvailability(is_available=False, reason="Table not found")
        return self.check_real_time_availability(table, now)

    def validate_reservation_conflict(self, table: Table, requested_time: datetime) -> bool:
        """True if ``requested_time`` is within two hours of an existing reservation."""
        if table.status != TableStatus.RESERVED or table.reserved_at is None:
            return False
        delta = naive_utc(requested_time) - table.reserved_at
        return abs(delta) < self.RESERVATION_CONFLICT_WINDOW

    def validate_reservation_conflict_by_id(
        self, table_id: str, requested_time: datetime
    ) -> bool:
        table = self.get_table(table_id)
        if table is None:
            # Unknown tables cannot be booked
            return True
        return self.validate_reservation_conflict(table, requested_time)

    def calculate_wait_time(
        self,
        party_size: int,
        tables: Optional[Iterable[Table]] = None,
        now: Optional[datetime] = None,
    ) -> float:
        """Shortest predicted wait for any table that fits ``party_size``."""
        candidates = self._tables if tables is None else list(tables)
        suitable = [t for t in candidates if t.capacity >= party_size]

        if not suitable:
            return self.NO_SUITABLE_TABLE_WAIT_MINUTES

        if any(t.status == TableStatus.AVAILABLE for t in suitable):
            return 0

        now = naive_utc(now) or datetime.utcnow()
        return min(self.predict_availability_time(t, now) for t in suitable)

    def get_available_tables(self) -> List[Table]:
        return [t for t in self._tables if t.status == TableStatus.AVAILABLE]

    def get_soon_available_tables(
        self, max_wait_time: float = 15, now: Optional[datetime] = None
    ) -> List[Table]:
        """Tables not yet free whose predicted wait is within ``max_wait_time``."""
        now = naive_utc(now) or datetime.utcnow()
        return [
            t
            for t in self._tables
            if t.status != TableStatus.AVAILABLE
            and self.predict_availability_time(t, now) <= max_wait_time
        ]
