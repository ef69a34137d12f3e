"""Tests for the service action queue."""

from datetime import datetime, timedelta

from floorsync.core import ServiceActionQueue, ActionType, PriorityLevel
from floorsync.models import StatusUpdateEvent, StatusOrigin, Table


NOW = datetime(2024, 1, 1, 19, 0)


def event(status, table_id="t1", at=NOW, order_id="o1"):
    return StatusUpdateEvent(order_id, table_id, None, status, StatusOrigin.ORDER_ENTRY, at)


class TestStatusActions:
    """Follow-up actions raised by status changes."""

    def setup_method(self):
        self.queue = ServiceActionQueue()

    def test_seated_raises_take_order(self):
        action = self.queue.handle_status_update(event("seated"))

        assert action.action_type == ActionType.TAKE_ORDER
        assert action.priority == PriorityLevel.NORMAL
        assert action.estimated_minutes == 5
        assert action.order_id == "o1"
        assert action.metadata == {"origin": "pos"}

    def test_seated_in_vip_zone_is_high(self):
        table = Table(id="t1", capacity=4, zone="VIP Lounge")
        action = self.queue.handle_status_update(event("seated"), table)

        assert action.priority == PriorityLevel.HIGH

    def test_other_mapped_statuses(self):
        serve = self.queue.handle_status_update(event("waiting_food"))
        check = self.queue.handle_status_update(event("needs_service"))
        clean = self.queue.handle_status_update(event("cleaning"))

        assert (serve.action_type, serve.priority) == (ActionType.SERVE_FOOD, PriorityLevel.HIGH)
        assert (check.action_type, check.priority) == (ActionType.CHECK_NEEDS, PriorityLevel.URGENT)
        assert (clean.action_type, clean.priority) == (ActionType.CLEAN_TABLE, PriorityLevel.NORMAL)

    def test_unmapped_and_unknown_statuses(self):
        assert self.queue.handle_status_update(event("dining")) is None
        assert self.queue.handle_status_update(event("available")) is None
        assert self.queue.handle_status_update(event("teleported")) is None
        assert len(self.queue) == 0


class TestQueueOrdering:
    """Priority and age ordering of pending actions."""

    def setup_method(self):
        self.queue = ServiceActionQueue()

    def test_urgent_first_then_oldest(self):
        self.queue.handle_status_update(event("seated", "t1", NOW))
        self.queue.handle_status_update(event("cleaning", "t2", NOW - timedelta(minutes=5)))
        self.queue.handle_status_update(event("needs_service", "t3", NOW + timedelta(minutes=1)))

        pending = self.queue.get_pending()

        assert [a.table_id for a in pending] == ["t3", "t2", "t1"]
        assert self.queue.peek().table_id == "t3"

    def test_pending_for_one_table(self):
        self.queue.handle_status_update(event("seated", "t1"))
        self.queue.handle_status_update(event("seated", "t2"))

        assert [a.table_id for a in self.queue.get_pending("t2")] == ["t2"]

    def test_complete(self):
        completed = []
        self.queue.on_complete(completed.append)
        action = self.queue.handle_status_update(event("needs_service"))

        assert self.queue.complete(action.action_id) is True
        assert self.queue.complete(action.action_id) is False
        assert completed == [action]
        assert action.completed is True
        assert self.queue.get_pending() == []
        assert self.queue.peek() is None

    def test_cancel_for_table(self):
        self.queue.handle_status_update(event("seated", "t1"))
        self.queue.handle_status_update(event("waiting_food", "t1"))
        self.queue.handle_status_update(event("seated", "t2"))

        assert self.queue.cancel_for_table("t1") == 2
        assert [a.table_id for a in self.queue.get_pending()] == ["t2"]

    def test_finished_actions_do_not_accumulate(self):
        for _ in range(1000):
            action = self.queue.add(ActionType.SERVE_FOOD, "t1", PriorityLevel.HIGH)
            self.queue.complete(action.action_id)
        self.queue.add(ActionType.CLEAN_TABLE, "t2")
        self.queue.add(ActionType.TAKE_ORDER, "t2")
        self.queue.cancel_for_table("t2")

        assert len(self.queue) == 0
        assert self.queue._heap == []

    def test_peek_after_partial_completion(self):
        urgent = self.queue.add(ActionType.CHECK_NEEDS, "t1", PriorityLevel.URGENT, created_at=NOW)
        normal = self.queue.add(ActionType.TAKE_ORDER, "t2", created_at=NOW)

        self.queue.complete(urgent.action_id)

        assert self.queue.peek() is normal
        assert len(self.queue._heap) == 1

    def test_failing_callback_does_not_block_add(self):
        def broken(action):
            raise RuntimeError("boom")

        added = []
        self.queue.on_add(broken)
        self.queue.on_add(added.append)

        action = self.queue.add(ActionType.CHECK_NEEDS, "t1", PriorityLevel.URGENT)

        assert added == [action]
        assert self.queue.get(action.action_id) is action

    def test_stats(self):
        self.queue.handle_status_update(event("seated", "t1", NOW - timedelta(minutes=2)))
        self.queue.handle_status_update(event("needs_service", "t2", NOW))

        stats = self.queue.get_stats(NOW)

        assert stats["total_pending"] == 2
        assert stats["oldest_wait_seconds"] == 120
        assert stats["by_type"] == {"take_order": 1, "check_needs": 1}
        assert stats["by_priority"] == {"normal": 1, "urgent": 1}

    def test_empty_stats(self):
        assert self.queue.get_stats(NOW)["total_pending"] == 0
