"""Tests for the floor coordinator and status catalogue."""

from datetime import datetime, timedelta

from floorsync.core import FloorCoordinator, ActionType, StatusSyncBus
from floorsync.core.status import (
    is_expected_transition,
    get_suggested_actions,
    parse_status,
)
from floorsync.models import Order, Table, TableStatus


NOW = datetime(2024, 1, 1, 19, 0)


class TestStatusCatalogue:
    """Expected transitions and suggested actions."""

    def test_expected_flow(self):
        assert is_expected_transition("available", "seated")
        assert is_expected_transition(TableStatus.SEATED, TableStatus.ORDERED)
        assert is_expected_transition("cleaning", "available")

    def test_unexpected_flow(self):
        assert not is_expected_transition("available", "dining")
        assert not is_expected_transition("cleaning", "seated")

    def test_edge_cases(self):
        assert is_expected_transition(None, "dining")
        assert is_expected_transition("dining", "dining")
        assert is_expected_transition("seated", "cleaning")
        assert not is_expected_transition("seated", "teleported")
        assert not is_expected_transition("teleported", "seated")

    def test_parse_status(self):
        assert parse_status("waiting_food") == TableStatus.WAITING_FOOD
        assert parse_status("bogus") is None
        assert parse_status(None) is None

    def test_suggested_actions(self):
        assert "take_order" in get_suggested_actions("seated")
        assert get_suggested_actions(TableStatus.AVAILABLE) == []
        assert get_suggested_actions("bogus") == []


class TestFloorCoordinator:
    """Snapshot maintenance driven by bus events."""

    def setup_method(self):
        self.coordinator = FloorCoordinator()
        self.coordinator.load_tables(
            [
                Table(id="t1", capacity=4),
                Table(id="t2", capacity=2, zone="vip"),
                Table(id="t3", capacity=6, status=TableStatus.DINING),
            ]
        )
        self.bus = self.coordinator.bus

    def test_bus_event_replaces_table(self):
        before = self.coordinator.get_table("t1")
        self.bus.update_from_order_entry("o1", "t1", "seated")
        after = self.coordinator.get_table("t1")

        assert after is not before
        assert before.status == TableStatus.AVAILABLE
        assert after.status == TableStatus.SEATED
        assert after.current_order_id == "o1"

    def test_loaded_tables_seed_previous_status(self):
        event = self.bus.update_from_floor_management("o3", "t3", "cleaning")
        assert event.previous_status == "dining"

    def test_entering_dining_sets_start_time(self):
        event = self.bus.update_from_floor_management("o1", "t1", "dining")
        assert self.coordinator.get_table("t1").dining_start_time == event.timestamp

    def test_becoming_available_clears_dining(self):
        self.coordinator.upsert_table(
            Table(
                id="t1",
                capacity=4,
                status=TableStatus.CLEANING,
                dining_start_time=NOW,
                current_party_size=3,
                current_order_id="o1",
            )
        )
        self.bus.update_from_floor_management("o1", "t1", "available")
        table = self.coordinator.get_table("t1")

        assert table.status == TableStatus.AVAILABLE
        assert table.dining_start_time is None
        assert table.current_party_size is None
        assert table.current_order_id is None

    def test_unknown_table_is_ignored(self):
        self.bus.update_from_order_entry("o9", "ghost", "seated")

        assert self.coordinator.get_table("ghost") is None
        assert len(self.bus.get_pending_updates("ghost")) == 1

    def test_unknown_status_leaves_snapshot(self):
        self.bus.update_from_automatic("o1", "t1", "teleported")
        assert self.coordinator.get_table("t1").status == TableStatus.AVAILABLE

    def test_events_feed_action_queue(self):
        self.bus.update_from_order_entry("o2", "t2", "seated")

        pending = self.coordinator.action_queue.get_pending("t2")
        assert len(pending) == 1
        assert pending[0].action_type == ActionType.TAKE_ORDER
        assert pending[0].priority.value == "high"

    def test_ranker_sees_updated_snapshot(self):
        self.bus.update_from_order_entry("o1", "t1", "seated")
        result = self.coordinator.recommend(2, now=NOW)

        assert [t.id for t in result.available_tables] == ["t2"]

    def test_remove_table_cancels_actions(self):
        self.bus.update_from_order_entry("o1", "t1", "seated")

        assert self.coordinator.remove_table("t1").id == "t1"
        assert self.coordinator.action_queue.get_pending("t1") == []
        assert self.coordinator.remove_table("t1") is None

    def test_order_priorities(self):
        self.coordinator.upsert_order(Order(id="new", created_at=NOW, table_id="t1"))
        self.coordinator.upsert_order(
            Order(id="old", created_at=NOW - timedelta(minutes=25), table_id="t1")
        )

        ranked = [order.id for order, _ in self.coordinator.get_order_priorities(NOW)]

        assert ranked == ["old", "new"]
        assert self.coordinator.get_order_priority("old", NOW).level.value == "urgent"
        assert self.coordinator.get_order_priority("missing", NOW) is None

    def test_table_availability(self):
        assert self.coordinator.get_table_availability("t1", NOW).is_available is True
        assert self.coordinator.get_table_availability("nope", NOW).reason == "Table not found"

    def test_dashboard_data(self):
        self.coordinator.upsert_order(Order(id="o1", created_at=NOW, table_id="t1"))
        self.bus.update_from_order_entry("o1", "t1", "seated")

        data = self.coordinator.get_dashboard_data(NOW)

        assert data["summary"]["total_tables"] == 3
        assert data["summary"]["status_counts"]["seated"] == 1
        assert data["summary"]["active_orders"] == 1
        t1 = next(t for t in data["tables"] if t["id"] == "t1")
        assert t1["pending_actions"][0]["action_type"] == "take_order"
        assert "take_order" in t1["suggested_actions"]
        assert data["orders"][0]["order"]["id"] == "o1"

    def test_close_detaches_from_bus(self):
        self.coordinator.close()
        self.bus.update_from_order_entry("o1", "t1", "seated")

        assert self.coordinator.get_table("t1").status == TableStatus.AVAILABLE

    def test_follow_up_events_apply_in_publish_order(self):
        bus = StatusSyncBus()

        def auto_reset(event):
            if event.new_status == "cleaning":
                bus.update_from_automatic(event.order_id, event.table_id, "available")

        bus.subscribe("auto-reset", auto_reset)
        coordinator = FloorCoordinator(bus=bus)
        coordinator.load_tables([Table(id="t1", capacity=4, status=TableStatus.DINING)])

        bus.update_from_floor_management("o1", "t1", "cleaning")

        assert coordinator.get_table("t1").status == TableStatus.AVAILABLE
        assert bus.get_known_status("t1") == "available"
