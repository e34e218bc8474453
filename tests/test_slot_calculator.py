"""
Tests for slot calculator.
"""

import pendulum
import pytest

from salonslots.domain.exceptions import ConflictError, ValidationError
from salonslots.domain.models import Booking, BusinessHours, DayHours, TimeInterval
from salonslots.domain.slot_calculator import SlotCalculator, ensure_no_conflict


def _starts(slots):
    return [slot.start_time for slot in slots]


class TestComputeAvailableSlots:
    """Tests for SlotCalculator.compute_available_slots."""

    def test_find_slots_no_bookings(self):
        """Test a free morning yields every half-hour start that fits."""
        calculator = SlotCalculator()

        slots = calculator.compute_available_slots("09:00", "12:00", 60, [])

        assert _starts(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00"]
        assert all(slot.duration_minutes() == 60 for slot in slots)
        assert slots[-1].end_time == "12:00"

    def test_single_slot_fills_the_day(self):
        """Test a service exactly as long as the opening hours."""
        slots = SlotCalculator().compute_available_slots("09:00", "10:00", 60, [])

        assert [slot.to_dict() for slot in slots] == [
            {"start_time": "09:00", "end_time": "10:00"}
        ]

    def test_service_longer_than_opening_hours(self):
        """Test that a service that cannot fit yields no slots."""
        assert SlotCalculator().compute_available_slots("09:00", "10:00", 90, []) == []

    def test_find_slots_with_booking(self):
        """Test that slots overlapping a booking are dropped and touching ones kept."""
        booked = [{"start_time": "10:00", "end_time": "11:00"}]

        slots = SlotCalculator().compute_available_slots("09:00", "12:00", 60, booked)

        # 09:00 ends exactly at the booking start, 11:00 starts exactly at its end
        assert _starts(slots) == ["09:00", "11:00"]

    def test_cancelled_bookings_do_not_block(self):
        """Test that cancelled bookings are ignored in every input shape."""
        booked = [
            {"start_time": "10:00", "end_time": "11:00", "status": "cancelled"},
            Booking(
                salon_id="s1",
                date="2024-11-25",
                start_time="09:00",
                end_time="10:00",
                status="cancelled",
            ),
        ]

        slots = SlotCalculator().compute_available_slots("09:00", "11:00", 60, booked)

        assert _starts(slots) == ["09:00", "09:30", "10:00"]

    def test_accepts_intervals_and_database_times(self):
        booked = [
            TimeInterval.from_strings("09:00", "09:30"),
            {"start_time": "10:30:00", "end_time": "11:00:00"},
        ]

        slots = SlotCalculator().compute_available_slots("09:00", "11:00", 30, booked)

        assert _starts(slots) == ["09:30", "10:00"]

    def test_off_grid_opening_time(self):
        """Test that the grid starts at the opening time."""
        slots = SlotCalculator().compute_available_slots("09:15", "11:00", 45, [])

        assert _starts(slots) == ["09:15", "09:45", "10:15"]

    def test_custom_grid(self):
        """Test a configurable grid step."""
        calculator = SlotCalculator(grid_minutes=15)

        slots = calculator.compute_available_slots("09:00", "10:00", 30, [])

        assert _starts(slots) == ["09:00", "09:15", "09:30"]

    def test_fully_booked_day(self):
        booked = [{"start_time": "08:00", "end_time": "19:00"}]

        assert SlotCalculator().compute_available_slots("09:00", "18:00", 30, booked) == []

    def test_slots_respect_bounds_and_bookings(self):
        """Test the core properties over a realistic day."""
        booked = [
            {"start_time": "09:45", "end_time": "10:15"},
            {"start_time": "12:00", "end_time": "13:00"},
            {"start_time": "16:10", "end_time": "16:40"},
        ]
        intervals = [TimeInterval.from_strings(b["start_time"], b["end_time"]) for b in booked]

        for duration in (15, 30, 45, 60, 90, 120):
            slots = SlotCalculator().compute_available_slots("09:00", "18:00", duration, booked)

            starts = [slot.start for slot in slots]
            assert starts == sorted(set(starts))
            for slot in slots:
                assert 540 <= slot.start
                assert slot.end <= 1080
                assert slot.end - slot.start == duration
                assert not any(slot.overlaps(interval) for interval in intervals)

    def test_result_is_deterministic(self):
        booked = [{"start_time": "11:00", "end_time": "11:30"}]
        calculator = SlotCalculator()

        first = calculator.compute_available_slots("09:00", "17:00", 45, booked)
        second = calculator.compute_available_slots("09:00", "17:00", 45, booked)

        assert first == second

    @pytest.mark.parametrize("duration", [0, -30, 1.5, True, "60", None])
    def test_invalid_duration_raises(self, duration):
        """Test that invalid durations are rejected before computing."""
        with pytest.raises(ValidationError, match="duration_minutes"):
            SlotCalculator().compute_available_slots("09:00", "17:00", duration, [])

    @pytest.mark.parametrize("open_time, close_time", [("17:00", "09:00"), ("09:00", "09:00")])
    def test_open_not_before_close_raises(self, open_time, close_time):
        with pytest.raises(ValidationError, match="must be before closing"):
            SlotCalculator().compute_available_slots(open_time, close_time, 30, [])

    def test_malformed_times_raise(self):
        with pytest.raises(ValidationError):
            SlotCalculator().compute_available_slots("9am", "17:00", 30, [])

        with pytest.raises(ValidationError):
            SlotCalculator().compute_available_slots(
                "09:00", "17:00", 30, [{"start_time": "10:00", "end_time": "25:00"}]
            )

    def test_booking_without_end_raises(self):
        with pytest.raises(ValidationError, match="missing"):
            SlotCalculator().compute_available_slots(
                "09:00", "17:00", 30, [{"start_time": "10:00"}]
            )

    @pytest.mark.parametrize("grid", [0, -15, 7.5])
    def test_invalid_grid_raises(self, grid):
        with pytest.raises(ValidationError, match="grid_minutes"):
            SlotCalculator(grid_minutes=grid)


class TestComputeSlotsForDay:
    """Tests for SlotCalculator.compute_slots_for_day."""

    def setup_method(self):
        self.hours = BusinessHours(days={
            "monday": DayHours.from_strings("09:00", "11:00"),
        })
        self.calculator = SlotCalculator()

    def test_open_day_uses_business_hours(self):
        monday = pendulum.date(2024, 11, 25)

        slots = self.calculator.compute_slots_for_day(self.hours, monday, 60)

        assert _starts(slots) == ["09:00", "09:30", "10:00"]

    def test_closed_day_returns_empty_list(self):
        """Test that a closed day is not an error."""
        sunday = pendulum.date(2024, 11, 24)

        assert self.calculator.compute_slots_for_day(self.hours, sunday, 60) == []

    def test_closed_day_still_validates_duration(self):
        sunday = pendulum.date(2024, 11, 24)

        with pytest.raises(ValidationError):
            self.calculator.compute_slots_for_day(self.hours, sunday, 0)


class TestHasConflict:
    """Tests for SlotCalculator.has_conflict."""

    def setup_method(self):
        self.calculator = SlotCalculator()
        self.booked = [{"id": "b1", "start_time": "09:00", "end_time": "10:00"}]

    def test_touching_after_booking_is_not_a_conflict(self):
        assert not self.calculator.has_conflict("10:00", "10:30", self.booked)

    def test_touching_before_booking_is_not_a_conflict(self):
        assert not self.calculator.has_conflict("08:00", "09:00", self.booked)

    def test_partial_overlap_is_a_conflict(self):
        assert self.calculator.has_conflict("09:30", "10:30", self.booked)

    def test_one_shared_minute_is_a_conflict(self):
        assert self.calculator.has_conflict("09:59", "10:30", self.booked)
        assert self.calculator.has_conflict("08:00", "09:01", self.booked)

    def test_enclosing_interval_is_a_conflict(self):
        assert self.calculator.has_conflict("08:00", "11:00", self.booked)

    def test_excluded_booking_never_conflicts_with_itself(self):
        """Test rescheduling a booking onto its own interval."""
        assert self.calculator.has_conflict("09:00", "10:00", self.booked)
        assert not self.calculator.has_conflict(
            "09:00", "10:00", self.booked, exclude_booking_id="b1"
        )

    def test_no_bookings(self):
        assert not self.calculator.has_conflict("09:00", "10:00", [])

    def test_invalid_candidate_raises(self):
        with pytest.raises(ValidationError):
            self.calculator.has_conflict("10:00", "09:00", self.booked)


class TestEnsureNoConflict:
    """Tests for the write-time conflict check."""

    def test_raises_conflict_error_with_conflicting_interval(self):
        candidate = TimeInterval.from_strings("09:30", "10:30")
        booked = [{"start_time": "09:00", "end_time": "10:00"}]

        with pytest.raises(ConflictError) as exc_info:
            ensure_no_conflict(candidate, booked)

        assert exc_info.value.start_time == "09:00"
        assert exc_info.value.end_time == "10:00"

    def test_conflict_error_is_not_a_validation_error(self):
        """Test that clients can tell conflicts apart from bad input."""
        assert not issubclass(ConflictError, ValidationError)

    def test_free_interval_passes(self):
        candidate = TimeInterval.from_strings("10:00", "11:00")

        ensure_no_conflict(candidate, [{"start_time": "09:00", "end_time": "10:00"}])
