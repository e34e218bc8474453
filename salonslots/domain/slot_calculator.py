"""
Core business logic for calculating bookable appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Union

from .clock import time_to_minutes
from .exceptions import ConflictError, ValidationError
from .models import Booking, BookingStatus, BusinessHours, Slot, TimeInterval

DEFAULT_GRID_MINUTES = 30

BookedEntry = Union[Booking, TimeInterval, Mapping[str, Any]]


class SlotCalculator:
    """
    Calculates free appointment slots for one salon day.

    Algorithm:
    1. Convert opening, closing and booked times to minutes since midnight
    2. Walk candidate start times from opening, one grid step at a time
    3. Keep a candidate only if it ends by closing time
    4. Drop candidates overlapping any non-cancelled booking (half-open test)
    """

    def __init__(self, grid_minutes: int = DEFAULT_GRID_MINUTES):
        self.grid_minutes = _require_positive_int(grid_minutes, "grid_minutes")

    def compute_available_slots(
        self,
        open_time: str,
        close_time: str,
        duration_minutes: int,
        existing_bookings: Iterable[BookedEntry] = ()
    ) -> List[Slot]:
        """
        Find every grid-aligned slot of ``duration_minutes`` that is free.

        Args:
            open_time: Opening time (HH:MM)
            close_time: Closing time (HH:MM)
            duration_minutes: Service duration, a positive integer
            existing_bookings: Booked intervals for that salon/date/staff

        Returns:
            Slots in ascending start order; empty if nothing fits

        Raises:
            ValidationError: On malformed times, bad duration or open >= close
        """
        duration = _require_positive_int(duration_minutes, "duration_minutes")
        opening = time_to_minutes(open_time)
        closing = time_to_minutes(close_time)

        if opening >= closing:
            raise ValidationError(
                f"Opening time {open_time} must be before closing time {close_time}"
            )

        booked = occupied_intervals(existing_bookings)
        slots: List[Slot] = []

        start = opening
        while start + duration <= closing:
            candidate = Slot(start=start, end=start + duration)
            if not any(candidate.overlaps(interval) for interval in booked):
                slots.append(candidate)
            start += self.grid_minutes

        return slots

    def compute_slots_for_day(
        self,
        business_hours: BusinessHours,
        on_date: date,
        duration_minutes: int,
        existing_bookings: Iterable[BookedEntry] = ()
    ) -> List[Slot]:
        """
        Find free slots on a calendar date using the salon's weekly hours.

        A closed day yields an empty list rather than an error.
        """
        _require_positive_int(duration_minutes, "duration_minutes")

        day_hours = business_hours.for_date(on_date)
        if day_hours is None:
            return []

        return self.compute_available_slots(
            open_time=day_hours.opening_time,
            close_time=day_hours.closing_time,
            duration_minutes=duration_minutes,
            existing_bookings=existing_bookings,
        )

    def has_conflict(
        self,
        candidate_start: str,
        candidate_end: str,
        existing_bookings: Iterable[BookedEntry],
        exclude_booking_id: Optional[str] = None
    ) -> bool:
        """
        Check whether a proposed interval overlaps any existing booking.

        Touching intervals (one ends exactly when the other starts) do not
        conflict. ``exclude_booking_id`` skips a booking being rescheduled.
        """
        candidate = TimeInterval.from_strings(candidate_start, candidate_end)
        return find_conflict(candidate, existing_bookings, exclude_booking_id) is not None


def find_conflict(
    candidate: TimeInterval,
    existing_bookings: Iterable[BookedEntry],
    exclude_booking_id: Optional[str] = None
) -> Optional[TimeInterval]:
    """Return the first booked interval overlapping ``candidate``, if any."""
    for entry in existing_bookings:
        if exclude_booking_id is not None and _entry_id(entry) == exclude_booking_id:
            continue
        interval = _as_interval(entry)
        if interval is not None and candidate.overlaps(interval):
            return interval
    return None


def ensure_no_conflict(
    candidate: TimeInterval,
    existing_bookings: Iterable[BookedEntry],
    exclude_booking_id: Optional[str] = None
) -> None:
    """
    Raise ``ConflictError`` if ``candidate`` overlaps an existing booking.

    Booking writers call this inside their serialization boundary.
    """
    conflict = find_conflict(candidate, existing_bookings, exclude_booking_id)
    if conflict is not None:
        raise ConflictError(
            f"Time slot {candidate} not available, overlaps {conflict}",
            start_time=conflict.start_time,
            end_time=conflict.end_time,
        )


def occupied_intervals(existing_bookings: Iterable[BookedEntry]) -> List[TimeInterval]:
    """Convert booked entries to intervals, skipping cancelled ones."""
    intervals: List[TimeInterval] = []
    for entry in existing_bookings:
        interval = _as_interval(entry)
        if interval is not None:
            intervals.append(interval)
    return intervals


def _as_interval(entry: BookedEntry) -> Optional[TimeInterval]:
    if isinstance(entry, Booking):
        return entry.interval if entry.occupies_time else None

    if isinstance(entry, TimeInterval):
        return entry

    if isinstance(entry, Mapping):
        if entry.get("status") == BookingStatus.CANCELLED.value:
            return None
        try:
            return TimeInterval.from_strings(entry["start_time"], entry["end_time"])
        except KeyError as exc:
            raise ValidationError(f"Booked interval is missing {exc}") from exc

    raise ValidationError(f"Unsupported booked interval: {entry!r}")


def _entry_id(entry: BookedEntry) -> Optional[str]:
    if isinstance(entry, Booking):
        return entry.id
    if isinstance(entry, Mapping):
        value = entry.get("id")
        return None if value is None else str(value)
    return None


def _require_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValidationError(f"{name} must be greater than zero, got {value}")
    return value
