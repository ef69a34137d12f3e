"""Tests for table availability prediction."""

import pytest
from datetime import datetime, timedelta, timezone

from floorsync.core import AvailabilityPredictor
from floorsync.models import Table, TableStatus


NOW = datetime(2024, 1, 1, 19, 0)


class TestPrediction:
    """Minutes-until-free estimates."""

    def setup_method(self):
        self.predictor = AvailabilityPredictor()

    def test_long_dining_floors_at_minimum(self):
        """A 4-top dining for 80 minutes is past its average; 15 minutes remain."""
        table = Table(
            id="t1",
            capacity=4,
            status=TableStatus.DINING,
            dining_start_time=NOW - timedelta(minutes=80),
        )
        assert self.predictor.predict_availability_time(table, NOW) == 15

    def test_dining_remaining_time(self):
        table = Table(
            id="t1",
            capacity=2,
            status=TableStatus.DINING,
            dining_start_time=NOW - timedelta(minutes=20),
        )
        assert self.predictor.predict_availability_time(table, NOW) == pytest.approx(25)

    def test_aware_now_is_read_as_utc(self):
        table = Table(
            id="t1",
            capacity=2,
            status=TableStatus.DINING,
            dining_start_time=NOW - timedelta(minutes=20),
        )
        aware_now = (NOW + timedelta(hours=1)).replace(tzinfo=timezone(timedelta(hours=1)))

        assert self.predictor.predict_availability_time(table, aware_now) == pytest.approx(25)
        assert self.predictor.check_real_time_availability(table, aware_now).is_available is False

    def test_dining_without_start_time(self):
        table = Table(id="t1", capacity=4, status=TableStatus.DINING)
        assert self.predictor.predict_availability_time(table, NOW) == 30

    @pytest.mark.parametrize(
        "status, minutes",
        [
            (TableStatus.AVAILABLE, 0),
            (TableStatus.CLEANING, 10),
            (TableStatus.SEATED, 20),
            (TableStatus.ORDERED, 45),
            (TableStatus.WAITING_FOOD, 60),
            (TableStatus.NEEDS_SERVICE, 15),
        ],
    )
    def test_fixed_status_estimates(self, status, minutes):
        table = Table(id="t1", capacity=4, status=status)
        assert self.predictor.predict_availability_time(table, NOW) == minutes

    def test_only_available_tables_predict_zero(self):
        for status in TableStatus:
            table = Table(
                id="t1",
                capacity=4,
                status=status,
                dining_start_time=NOW - timedelta(hours=3),
                reserved_at=NOW + timedelta(minutes=10),
            )
            wait = self.predictor.predict_availability_time(table, NOW)
            assert (wait == 0) == (status == TableStatus.AVAILABLE)

    def test_upcoming_reservation(self):
        table = Table(
            id="t1",
            capacity=4,
            status=TableStatus.RESERVED,
            reserved_at=NOW + timedelta(minutes=30),
        )
        assert self.predictor.predict_availability_time(table, NOW) == pytest.approx(45)

    def test_overdue_reservation_floors_at_zero(self):
        table = Table(
            id="t1",
            capacity=4,
            status=TableStatus.RESERVED,
            reserved_at=NOW - timedelta(minutes=60),
        )
        assert self.predictor.predict_availability_time(table, NOW) == 0

    def test_reservation_without_time(self):
        table = Table(id="t1", capacity=4, status=TableStatus.RESERVED)
        assert self.predictor.predict_availability_time(table, NOW) == 30

    @pytest.mark.parametrize(
        "capacity, minutes", [(1, 45), (2, 45), (3, 60), (4, 60), (6, 75), (8, 90)]
    )
    def test_average_dining_time(self, capacity, minutes):
        assert AvailabilityPredictor.get_average_dining_time(capacity) == minutes


class TestRealTimeAvailability:
    """Availability checks with reasons."""

    def setup_method(self):
        self.tables = [
            Table(id="free", capacity=4),
            Table(id="wash", capacity=4, status=TableStatus.CLEANING),
            Table(
                id="late",
                capacity=4,
                status=TableStatus.DINING,
                dining_start_time=NOW - timedelta(minutes=80),
            ),
            Table(id="busy", capacity=6, status=TableStatus.ORDERED),
        ]
        self.predictor = AvailabilityPredictor(self.tables)

    def test_available(self):
        result = self.predictor.check_table_availability("free", NOW)
        assert result.is_available is True
        assert result.reason is None

    def test_cleaning(self):
        result = self.predictor.check_table_availability("wash", NOW)
        assert result.is_available is False
        assert result.reason == "Table is being cleaned"
        assert result.estimated_wait_time == 10

    def test_dining_past_average(self):
        result = self.predictor.check_table_availability("late", NOW)
        assert result.is_available is False
        assert result.reason == "Table in use but may free up soon"
        assert result.estimated_wait_time == 15

    def test_other_status(self):
        result = self.predictor.check_table_availability("busy", NOW)
        assert result.reason == "Guests have ordered"
        assert result.estimated_wait_time == 45

    def test_unknown_table(self):
        result = self.predictor.check_table_availability("nope", NOW)
        assert result.is_available is False
        assert result.reason == "Table not found"

    def test_available_and_soon_available(self):
        assert [t.id for t in self.predictor.get_available_tables()] == ["free"]
        soon = self.predictor.get_soon_available_tables(15, NOW)
        assert [t.id for t in soon] == ["wash", "late"]

    def test_update_tables_replaces_snapshot(self):
        self.predictor.update_tables([Table(id="new", capacity=2)])

        assert self.predictor.get_table("free") is None
        assert [t.id for t in self.predictor.tables] == ["new"]


class TestWaitTimeAndReservations:
    """Party wait estimates and reservation conflicts."""

    def setup_method(self):
        self.reserved_at = NOW + timedelta(hours=1)
        self.predictor = AvailabilityPredictor(
            [
                Table(id="small", capacity=2),
                Table(id="mid", capacity=4, status=TableStatus.CLEANING),
                Table(
                    id="big",
                    capacity=8,
                    status=TableStatus.RESERVED,
                    reserved_at=self.reserved_at,
                ),
            ]
        )

    def test_available_suitable_table_means_no_wait(self):
        assert self.predictor.calculate_wait_time(2, now=NOW) == 0

    def test_shortest_predicted_wait(self):
        assert self.predictor.calculate_wait_time(3, now=NOW) == 10

    def test_no_suitable_table(self):
        assert self.predictor.calculate_wait_time(10, now=NOW) == 60

    def test_explicit_table_list(self):
        tables = [Table(id="x", capacity=6, status=TableStatus.SEATED)]
        assert self.predictor.calculate_wait_time(6, tables, NOW) == 20

    def test_conflict_within_two_hours(self):
        table = self.predictor.get_table("big")
        assert self.predictor.validate_reservation_conflict(
            table, self.reserved_at + timedelta(minutes=90)
        )
        assert self.predictor.validate_reservation_conflict(
            table, self.reserved_at - timedelta(minutes=30)
        )

    def test_no_conflict_at_two_hours(self):
        table = self.predictor.get_table("big")
        assert not self.predictor.validate_reservation_conflict(
            table, self.reserved_at + timedelta(hours=2)
        )

    def test_aware_requested_time(self):
        table = self.predictor.get_table("big")
        requested = self.reserved_at.replace(tzinfo=timezone.utc) + timedelta(minutes=30)

        assert self.predictor.validate_reservation_conflict(table, requested)
        assert self.predictor.calculate_wait_time(3, now=NOW.replace(tzinfo=timezone.utc)) == 10

    def test_unreserved_table_never_conflicts(self):
        table = self.predictor.get_table("small")
        assert not self.predictor.validate_reservation_conflict(table, NOW)

    def test_unknown_table_conflicts(self):
        assert self.predictor.validate_reservation_conflict_by_id("ghost", NOW)
