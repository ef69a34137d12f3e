"""Queue of floor-staff follow-up actions raised by table status changes."""

import heapq
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Callable

from ..models import StatusUpdateEvent, Table, TableStatus, naive_utc
from .priority import PriorityLevel

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Kinds of floor actions."""

    TAKE_ORDER = "take_order"
    SERVE_FOOD = "serve_food"
    CHECK_NEEDS = "check_needs"
    CLEAN_TABLE = "clean_table"


@dataclass
class ActionTemplate:
    action_type: ActionType
    priority: PriorityLevel
    description: str
    estimated_minutes: int


# Status → follow-up action. SEATED is bumped to HIGH in VIP zones.
STATUS_ACTIONS: Dict[TableStatus, ActionTemplate] = {
    TableStatus.SEATED: ActionTemplate(
        ActionType.TAKE_ORDER, PriorityLevel.NORMAL, "Take the order", 5
    ),
    TableStatus.WAITING_FOOD: ActionTemplate(
        ActionType.SERVE_FOOD, PriorityLevel.HIGH, "Serve food", 3
    ),
    TableStatus.NEEDS_SERVICE: ActionTemplate(
        ActionType.CHECK_NEEDS, PriorityLevel.URGENT, "Check on guest needs", 2
    ),
    TableStatus.CLEANING: ActionTemplate(
        ActionType.CLEAN_TABLE, PriorityLevel.NORMAL, "Clear and reset the table", 5
    ),
}

PRIORITY_RANK = {
    PriorityLevel.URGENT: 4,
    PriorityLevel.HIGH: 3,
    PriorityLevel.NORMAL: 2,
    PriorityLevel.LOW: 1,
}


@dataclass(order=True)
class ServiceAction:
    """Pending floor action."""

    # Sort key: (-rank, created_at, sequence)
    sort_key: tuple = field(compare=True, repr=False)

    action_id: str = field(compare=False)
    action_type: ActionType = field(compare=False)
    table_id: str = field(compare=False)
    priority: PriorityLevel = field(compare=False)
    description: str = field(compare=False, default="")
    estimated_minutes: int = field(compare=False, default=0)
    order_id: Optional[str] = field(compare=False, default=None)
    created_at: datetime = field(compare=False, default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(compare=False, default_factory=dict)

    completed: bool = field(compare=False, default=False)
    completed_at: Optional[datetime] = field(compare=False, default=None)

    def to_dict(self) -> dict:
        return {
            "action_id": self.action_id,
            "action_type": self.action_type.value,
            "table_id": self.table_id,
            "order_id": self.order_id,
            "priority": self.priority.value,
            "description": self.description,
            "estimated_minutes": self.estimated_minutes,
            "created_at": self.created_at.isoformat(),
            "completed": self.completed,
        }


class ServiceActionQueue:
    """
    Priority queue of follow-up actions for floor staff.

    Pending actions are ordered urgent → low, then oldest first.
    """

    def __init__(self):
        self._heap: List[ServiceAction] = []
        self._items: Dict[str, ServiceAction] = {}
        self._counter = 0

        self._on_add_callbacks: List[Callable] = []
        self._on_complete_callbacks: List[Callable] = []

    def _generate_id(self) -> str:
        self._counter += 1
        return f"action_{datetime.utcnow().strftime('%Y%m%d%H%M%S')}_{self._counter}"

    def add(
        self,
        action_type: ActionType,
        table_id: str,
        priority: PriorityLevel = PriorityLevel.NORMAL,
        description: str = "",
        estimated_minutes: int = 0,
        order_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ServiceAction:
        """Add a new pending action."""
        created_at = naive_utc(created_at) or datetime.utcnow()
        action_id = self._generate_id()

        action = ServiceAction(
            sort_key=(-PRIORITY_RANK[priority], created_at, self._counter),
            action_id=action_id,
            action_type=action_type,
            table_id=table_id,
            priority=priority,
            description=description,
            estimated_minutes=estimated_minutes,
            order_id=order_id,
            created_at=created_at,
            metadata=metadata or {},
        )

        heapq.heappush(self._heap, action)
        self._items[action_id] = action

        for callback in self._on_add_callbacks:
            try:
                callback(action)
            except Exception:
                logger.exception("Action add callback failed for %s", action_id)

        return action

    def handle_status_update(
        self, event: StatusUpdateEvent, table: Optional[Table] = None
    ) -> Optional[ServiceAction]:
        """Raise the follow-up action for a status change, if it has one."""
        try:
            status = TableStatus(event.new_status)
        except ValueError:
            return None

        template = STATUS_ACTIONS.get(status)
        if template is None:
            return None

        priority = template.priority
        if status == TableStatus.SEATED and table is not None and table.is_vip_zone:
            priority = PriorityLevel.HIGH

        return self.add(
            action_type=template.action_type,
            table_id=event.table_id,
            priority=priority,
            description=template.description,
            estimated_minutes=template.estimated_minutes,
            order_id=event.order_id,
            created_at=event.timestamp,
            metadata={"origin": event.origin.value},
        )

    def peek(self) -> Optional[ServiceAction]:
        """Return the most urgent pending action without removing it."""
        while self._heap:
            action = self._heap[0]
            if not action.completed and action.action_id in self._items:
                return action
            heapq.heappop(self._heap)
        return None

    def get(self, action_id: str) -> Optional[ServiceAction]:
        return self._items.get(action_id)

    def complete(self, action_id: str) -> bool:
        """Mark an action as done."""
        action = self._items.pop(action_id, None)
        if action is None:
            return False

        action.completed = True
        action.completed_at = datetime.utcnow()
        self._prune_heap()

        for callback in self._on_complete_callbacks:
            try:
                callback(action)
            except Exception:
                logger.exception("Action complete callback failed for %s", action_id)

        return True

    def get_pending(self, table_id: Optional[str] = None, limit: int = 50) -> List[ServiceAction]:
        """Pending actions sorted by priority, optionally for one table."""
        pending = [
            a
            for a in self._items.values()
            if not a.completed and (table_id is None or a.table_id == table_id)
        ]
        pending.sort()
        return pending[:limit]

    def cancel_for_table(self, table_id: str) -> int:
        """Drop all pending actions for a table."""
        to_remove = [aid for aid, a in self._items.items() if a.table_id == table_id]
        for aid in to_remove:
            del self._items[aid]
        if to_remove:
            self._prune_heap()
        return len(to_remove)

    def _prune_heap(self):
        """Drop heap entries whose action is no longer pending."""
        self._heap = [a for a in self._heap if a.action_id in self._items]
        heapq.heapify(self._heap)

    def on_add(self, callback: Callable):
        self._on_add_callbacks.append(callback)

    def on_complete(self, callback: Callable):
        self._on_complete_callbacks.append(callback)

    def get_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Queue statistics."""
        pending = [a for a in self._items.values() if not a.completed]
        if not pending:
            return {
                "total_pending": 0,
                "oldest_wait_seconds": 0,
                "by_type": {},
                "by_priority": {},
            }

        now = naive_utc(now) or datetime.utcnow()
        by_type: Dict[str, int] = {}
        by_priority: Dict[str, int] = {}
        for action in pending:
            by_type[action.action_type.value] = by_type.get(action.action_type.value, 0) + 1
            by_priority[action.priority.value] = by_priority.get(action.priority.value, 0) + 1

        return {
            "total_pending": len(pending),
            "oldest_wait_seconds": max((now - a.created_at).total_seconds() for a in pending),
            "by_type": by_type,
            "by_priority": by_priority,
        }

    def __len__(self) -> int:
        return len(self._items)
