"""Publish/subscribe hub for table-status changes from POS, KDS and floor management."""

import asyncio
import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any, Callable, Deque, Iterable, Union

from ..models import (
    StatusUpdateEvent,
    StatusOrigin,
    SyncFilter,
    Table,
    TableStatus,
    naive_utc,
)
from .status import is_expected_transition

logger = logging.getLogger(__name__)

StatusListenerCallback = Callable[[StatusUpdateEvent], Any]


@dataclass(eq=False)
class StatusListener:
    """A single subscription. Compared by identity so duplicates stay distinct."""

    listener_id: str
    callback: StatusListenerCallback
    filter: Optional[SyncFilter] = None

    def wants(self, event: StatusUpdateEvent) -> bool:
        return self.filter is None or self.filter.matches(event)


class StatusSyncBus:
    """
    Status synchronization bus.

    Origin subsystems publish through the ``update_from_*`` entry points;
    views subscribe with an optional filter. For each table, events are
    appended to the pending log and delivered to listeners in publish order.

    Single writer: ``publish``, ``subscribe`` and ``cleanup`` are serialized
    by one reentrant lock, so a listener may publish a follow-up event. The
    follow-up is queued and only delivered once the current event has
    reached every listener.
    """

    DEFAULT_MAX_AGE_SECONDS = 24 * 60 * 60
    DEFAULT_CLEANUP_INTERVAL_SECONDS = 60 * 60

    def __init__(self):
        self._listeners: List[StatusListener] = []
        self._pending_updates: Dict[str, List[StatusUpdateEvent]] = {}
        self._last_sync_time: Dict[str, datetime] = {}
        self._known_status: Dict[str, str] = {}

        self._lock = threading.RLock()
        self._dispatch_queue: Deque[StatusUpdateEvent] = deque()
        self._dispatching = False
        self._cleaning = False
        self._running = False

    # ==================== Subscriptions ====================

    def subscribe(
        self,
        listener_id: str,
        callback: StatusListenerCallback,
        filter: Optional[SyncFilter] = None,
    ) -> Callable[[], None]:
        """
        Register ``callback`` for events matching ``filter``.

        Re-subscribing with the same id adds another registration. The
        returned function removes exactly this one.
        """
        listener = StatusListener(listener_id=listener_id, callback=callback, filter=filter)
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                self._listeners = [l for l in self._listeners if l is not listener]

        return unsubscribe

    def unsubscribe_all(self, listener_id: str) -> int:
        """Remove every registration sharing ``listener_id``. Returns the count removed."""
        with self._lock:
            before = len(self._listeners)
            self._listeners = [l for l in self._listeners if l.listener_id != listener_id]
            return before - len(self._listeners)

    def get_active_listeners(self) -> List[StatusListener]:
        with self._lock:
            return list(self._listeners)

    # ==================== Publishing ====================

    def publish(self, event: StatusUpdateEvent):
        """Record ``event`` and deliver it to every matching listener."""
        with self._lock:
            self._pending_updates.setdefault(event.table_id, []).append(event)
            self._last_sync_time[event.table_id] = event.timestamp
            self._known_status[event.table_id] = event.new_status

            logger.info(
                "Status update: %s %s → %s (%s)",
                event.table_id,
                event.previous_status,
                event.new_status,
                event.origin.value,
            )
            if not is_expected_transition(event.previous_status, event.new_status):
                logger.warning(
                    "Unexpected transition for table %s: %s → %s from %s",
                    event.table_id,
                    event.previous_status,
                    event.new_status,
                    event.origin.value,
                )

            self._dispatch_queue.append(event)
            if self._dispatching:
                # Nested publish from a listener; the outer call delivers it in turn
                return

            self._dispatching = True
            try:
                while self._dispatch_queue:
                    self._notify(self._dispatch_queue.popleft())
            finally:
                self._dispatching = False

    def _notify(self, event: StatusUpdateEvent):
        # Snapshot so listeners may (un)subscribe while being notified
        listeners = list(self._listeners)
        for listener in listeners:
            if not listener.wants(event):
                continue
            try:
                listener.callback(event)
            except Exception:
                logger.exception(
                    "Listener %s failed handling update for table %s",
                    listener.listener_id,
                    event.table_id,
                )

    def batch_publish(self, events: Iterable[StatusUpdateEvent]):
        """Publish several events in order."""
        for event in events:
            self.publish(event)

    def _update_from(
        self,
        origin: StatusOrigin,
        order_id: str,
        table_id: str,
        new_status: Union[str, TableStatus],
        metadata: Optional[Dict[str, Any]] = None,
        previous_status: Optional[Union[str, TableStatus]] = None,
    ) -> StatusUpdateEvent:
        if previous_status is None:
            previous_status = self.get_known_status(table_id)

        event = StatusUpdateEvent(
            order_id=order_id,
            table_id=table_id,
            previous_status=_status_value(previous_status),
            new_status=_status_value(new_status),
            origin=origin,
            timestamp=datetime.utcnow(),
            metadata=metadata or {},
        )
        self.publish(event)
        return event

    def update_from_order_entry(
        self,
        order_id: str,
        table_id: str,
        new_status: Union[str, TableStatus],
        metadata: Optional[Dict[str, Any]] = None,
        previous_status: Optional[Union[str, TableStatus]] = None,
    ) -> StatusUpdateEvent:
        """Status change triggered by the POS / order-entry subsystem."""
        return self._update_from(
            StatusOrigin.ORDER_ENTRY, order_id, table_id, new_status, metadata, previous_status
        )

    def update_from_kitchen_display(
        self,
        order_id: str,
        table_id: str,
        new_status: Union[str, TableStatus],
        metadata: Optional[Dict[str, Any]] = None,
        previous_status: Optional[Union[str, TableStatus]] = None,
    ) -> StatusUpdateEvent:
        """Status change triggered by the kitchen display."""
        return self._update_from(
            StatusOrigin.KITCHEN_DISPLAY, order_id, table_id, new_status, metadata, previous_status
        )

    def update_from_floor_management(
        self,
        order_id: str,
        table_id: str,
        new_status: Union[str, TableStatus],
        metadata: Optional[Dict[str, Any]] = None,
        previous_status: Optional[Union[str, TableStatus]] = None,
    ) -> StatusUpdateEvent:
        """Status change triggered by floor management."""
        return self._update_from(
            StatusOrigin.FLOOR_MANAGEMENT, order_id, table_id, new_status, metadata, previous_status
        )

    def update_from_automatic(
        self,
        order_id: str,
        table_id: str,
        new_status: Union[str, TableStatus],
        metadata: Optional[Dict[str, Any]] = None,
        previous_status: Optional[Union[str, TableStatus]] = None,
    ) -> StatusUpdateEvent:
        """Status change raised by the system itself (timers, rules)."""
        return self._update_from(
            StatusOrigin.AUTOMATIC, order_id, table_id, new_status, metadata, previous_status
        )

    # ==================== Known status ====================

    def seed_statuses(self, tables: Iterable[Table]):
        """Load last known statuses from an authoritative table snapshot."""
        with self._lock:
            for table in tables:
                self._known_status[table.id] = table.status.value

    def get_known_status(self, table_id: str) -> Optional[str]:
        with self._lock:
            return self._known_status.get(table_id)

    # ==================== Pending log ====================

    def get_pending_updates(self, table_id: str) -> List[StatusUpdateEvent]:
        with self._lock:
            return list(self._pending_updates.get(table_id, []))

    def clear_pending_updates(self, table_id: str):
        with self._lock:
            self._pending_updates.pop(table_id, None)

    def get_last_sync_time(self, table_id: str) -> Optional[datetime]:
        with self._lock:
            return self._last_sync_time.get(table_id)

    def needs_sync(
        self,
        table_id: str,
        threshold_seconds: float = 5.0,
        now: Optional[datetime] = None,
    ) -> bool:
        """True if the table has never synced or its last sync is older than the threshold."""
        last_sync = self.get_last_sync_time(table_id)
        if last_sync is None:
            return True
        now = naive_utc(now) or datetime.utcnow()
        return (now - last_sync).total_seconds() > threshold_seconds

    # ==================== Cleanup ====================

    def cleanup(
        self,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Drop sync times and pending events older than ``max_age_seconds``.

        Returns False when skipped because a cleanup is already running.
        """
        with self._lock:
            if self._cleaning:
                logger.warning("Cleanup already in progress; skipping")
                return False
            self._cleaning = True
            try:
                now = naive_utc(now) or datetime.utcnow()
                max_age = timedelta(seconds=max_age_seconds)

                for table_id, last_sync in list(self._last_sync_time.items()):
                    if now - last_sync > max_age:
                        del self._last_sync_time[table_id]

                removed = 0
                for table_id, updates in list(self._pending_updates.items()):
                    recent = [u for u in updates if now - u.timestamp < max_age]
                    removed += len(updates) - len(recent)
                    if recent:
                        self._pending_updates[table_id] = recent
                    else:
                        del self._pending_updates[table_id]

                logger.debug("Cleanup removed %d stale pending updates", removed)
                return True
            finally:
                self._cleaning = False

    async def run_cleanup_loop(
        self,
        interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
    ):
        """Run ``cleanup`` every ``interval_seconds`` until ``stop`` is called."""
        self._running = True
        logger.info("Status sync cleanup loop started")

        while self._running:
            try:
                await asyncio.sleep(interval_seconds)
                self.cleanup(max_age_seconds)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Status sync cleanup failed")

        logger.info("Status sync cleanup loop stopped")

    def stop(self):
        self._running = False


def _status_value(status: Union[str, TableStatus, None]) -> Optional[str]:
    if isinstance(status, TableStatus):
        return status.value
    return status
