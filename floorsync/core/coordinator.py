"""Floor coordinator that composes the sync bus and the scoring engines."""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable

from ..models import Table, TableStatus, Order, StatusUpdateEvent, naive_utc
from .availability import AvailabilityPredictor, TableAvailability
from .priority import PriorityScorer, PriorityScore
from .recommendation import RecommendationRanker, RecommendationResult, SeatingPreferences
from .service_queue import ServiceActionQueue
from .status import get_suggested_actions, parse_status
from .sync_bus import StatusSyncBus

logger = logging.getLogger(__name__)


class FloorCoordinator:
    """
    Owns the floor snapshot and wires the core components together:
    - Status sync bus (origin updates in, view notifications out)
    - Service priority scoring for active orders
    - Table availability and seating recommendations
    - Follow-up service actions

    Tables are replaced whole on every change; engines only ever see a
    consistent snapshot.
    """

    LISTENER_ID = "floor-management"

    def __init__(
        self,
        bus: Optional[StatusSyncBus] = None,
        scorer: Optional[PriorityScorer] = None,
        ranker: Optional[RecommendationRanker] = None,
        action_queue: Optional[ServiceActionQueue] = None,
    ):
        self.bus = bus or StatusSyncBus()
        self.scorer = scorer or PriorityScorer()
        self.ranker = ranker or RecommendationRanker()
        self.action_queue = action_queue or ServiceActionQueue()

        self.tables: Dict[str, Table] = {}
        self.orders: Dict[str, Order] = {}

        self._unsubscribe = self.bus.subscribe(self.LISTENER_ID, self._on_status_update)

    @property
    def predictor(self) -> AvailabilityPredictor:
        return self.ranker.predictor

    def close(self):
        """Detach from the bus."""
        self._unsubscribe()

    # ==================== Snapshot ====================

    def load_tables(self, tables: Iterable[Table]):
        """Replace the whole table snapshot."""
        self.tables = {t.id: t for t in tables}
        self.bus.seed_statuses(self.tables.values())
        self._refresh_engines()

    def upsert_table(self, table: Table) -> Table:
        self.tables[table.id] = table
        self.bus.seed_statuses([table])
        self._refresh_engines()
        return table

    def remove_table(self, table_id: str) -> Optional[Table]:
        table = self.tables.pop(table_id, None)
        if table is not None:
            self.action_queue.cancel_for_table(table_id)
            self._refresh_engines()
        return table

    def get_table(self, table_id: str) -> Optional[Table]:
        return self.tables.get(table_id)

    def upsert_order(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    def remove_order(self, order_id: str) -> Optional[Order]:
        return self.orders.pop(order_id, None)

    def _refresh_engines(self):
        self.ranker.update_tables(self.tables.values())

    # ==================== Status events ====================

    def _on_status_update(self, event: StatusUpdateEvent):
        """Apply a bus event to the snapshot and queue any follow-up action."""
        table = self.tables.get(event.table_id)
        if table is None:
            logger.debug("Status update for unknown table %s ignored", event.table_id)
            return

        new_status = parse_status(event.new_status)
        if new_status is None:
            logger.warning(
                "Table %s reported unknown status %r; snapshot unchanged",
                event.table_id,
                event.new_status,
            )
            return

        changes: Dict[str, Any] = {
            "status": new_status,
            "current_order_id": event.order_id or table.current_order_id,
        }
        if new_status == TableStatus.DINING and table.status != TableStatus.DINING:
            changes["dining_start_time"] = event.timestamp
        elif new_status == TableStatus.AVAILABLE:
            changes.update(
                dining_start_time=None,
                current_party_size=None,
                current_order_id=None,
            )

        updated = table.with_changes(**changes)
        self.tables[updated.id] = updated
        self._refresh_engines()

        self.action_queue.handle_status_update(event, updated)

    # ==================== Views ====================

    def get_order_priorities(
        self, now: Optional[datetime] = None
    ) -> List[tuple]:
        """Active orders with their scores, most urgent first."""
        scored = self.scorer.calculate_batch_priority(
            self.orders.values(), self.tables.values(), now
        )
        return PriorityScorer.sort_by_priority(scored)

    def get_order_priority(
        self, order_id: str, now: Optional[datetime] = None
    ) -> Optional[PriorityScore]:
        order = self.orders.get(order_id)
        if order is None:
            return None
        return self.scorer.calculate_service_priority(
            order, self.tables.get(order.table_id), now
        )

    def recommend(
        self,
        party_size: int,
        preferences: Optional[SeatingPreferences] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        return self.ranker.get_smart_recommendations(party_size, preferences, now)

    def get_table_availability(
        self, table_id: str, now: Optional[datetime] = None
    ) -> TableAvailability:
        return self.predictor.check_table_availability(table_id, now)

    def get_summary(self) -> Dict[str, Any]:
        status_counts = {status.value: 0 for status in TableStatus}
        for table in self.tables.values():
            status_counts[table.status.value] += 1

        return {
            "total_tables": len(self.tables),
            "status_counts": status_counts,
            "active_orders": len(self.orders),
            "total_guests": sum(t.current_party_size or 0 for t in self.tables.values()),
        }

    def get_dashboard_data(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Data for the floor dashboard."""
        now = naive_utc(now) or datetime.utcnow()
        return {
            "tables": [
                {
                    **table.to_dict(),
                    "availability": self.predictor.check_real_time_availability(
                        table, now
                    ).to_dict(),
                    "suggested_actions": get_suggested_actions(table.status),
                    "pending_actions": [
                        a.to_dict() for a in self.action_queue.get_pending(table.id)
                    ],
                }
                for table in self.tables.values()
            ],
            "orders": [
                {"order": order.to_dict(), "priority": score.to_dict()}
                for order, score in self.get_order_priorities(now)
            ],
            "action_stats": self.action_queue.get_stats(now),
            "summary": self.get_summary(),
        }
