"""
Domain models for business hours, bookings and computed slots.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import pendulum

from .clock import MINUTES_PER_DAY, minutes_to_time, time_to_minutes
from .exceptions import ValidationError

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class TimeInterval:
    """
    Half-open wall-clock interval ``[start, end)`` in minutes since midnight.

    Invariant: 0 <= start < end < 1440.
    """
    start: int
    end: int

    def __post_init__(self):
        for value in (self.start, self.end):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"Interval bounds must be integers, got {value!r}")
        if not 0 <= self.start < MINUTES_PER_DAY or not 0 <= self.end < MINUTES_PER_DAY:
            raise ValidationError(
                f"Interval bounds must be within one day, got {self.start}-{self.end}"
            )
        if self.start >= self.end:
            raise ValidationError(
                f"Start time {minutes_to_time(self.start)} must be before "
                f"end time {minutes_to_time(self.end)}"
            )

    @classmethod
    def from_strings(cls, start_time: str, end_time: str) -> "TimeInterval":
        """Build an interval from two ``HH:MM`` strings."""
        return cls(start=time_to_minutes(start_time), end=time_to_minutes(end_time))

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval shares at least one minute with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeInterval") -> bool:
        """Check if another interval lies completely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class Slot(TimeInterval):
    """
    A computed, bookable interval of exactly one service duration.
    """

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the ``{start_time, end_time}`` shape used by API clients."""
        return {"start_time": self.start_time, "end_time": self.end_time}

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM – HH:MM (N min)
        """
        return f"{self.start_time} – {self.end_time} ({self.duration_minutes()} min)"


@dataclass(frozen=True)
class DayHours:
    """Opening hours of a single weekday, in minutes since midnight."""
    opening: int
    closing: int

    def __post_init__(self):
        minutes_to_time(self.opening)
        minutes_to_time(self.closing)
        if self.opening >= self.closing:
            raise ValidationError(
                f"Opening time {minutes_to_time(self.opening)} must be before "
                f"closing time {minutes_to_time(self.closing)}"
            )

    @classmethod
    def from_strings(cls, opening: str, closing: str) -> "DayHours":
        return cls(opening=time_to_minutes(opening), closing=time_to_minutes(closing))

    @property
    def opening_time(self) -> str:
        return minutes_to_time(self.opening)

    @property
    def closing_time(self) -> str:
        return minutes_to_time(self.closing)

    def as_interval(self) -> TimeInterval:
        return TimeInterval(start=self.opening, end=self.closing)


@dataclass
class BusinessHours:
    """
    Weekly business hours of a salon.

    Days that are missing or mapped to ``None`` are closed. Instances are
    produced by ``normalize_business_hours`` so the engine only ever sees
    this one shape.
    """
    days: Dict[str, Optional[DayHours]] = field(default_factory=dict)

    def __post_init__(self):
        unknown = [day for day in self.days if day not in WEEKDAYS]
        if unknown:
            raise ValidationError(f"Invalid day(s): {', '.join(sorted(unknown))}")

    def for_weekday(self, weekday: str) -> Optional[DayHours]:
        """Get the hours for a weekday name, or None when closed."""
        return self.days.get(weekday.lower())

    def for_date(self, on_date: date) -> Optional[DayHours]:
        """Get the hours that apply on a calendar date, or None when closed."""
        return self.for_weekday(WEEKDAYS[on_date.weekday()])

    def is_open_on(self, on_date: date) -> bool:
        return self.for_date(on_date) is not None

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Serialize to the canonical ``{opening, closing, closed}`` form for every day."""
        result: Dict[str, Dict[str, Any]] = {}
        for day in WEEKDAYS:
            hours = self.days.get(day)
            if hours is None:
                result[day] = {"closed": True}
            else:
                result[day] = {
                    "opening": hours.opening_time,
                    "closing": hours.closing_time,
                    "closed": False,
                }
        return result


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"

    @property
    def occupies_time(self) -> bool:
        """Every booking except a cancelled one blocks its interval."""
        return self is not BookingStatus.CANCELLED

    def can_transition_to(self, new_status: "BookingStatus") -> bool:
        return new_status in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
    },
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
    BookingStatus.NO_SHOW: set(),
}


def parse_status(value: "BookingStatus | str") -> BookingStatus:
    """Coerce a raw status value, rejecting unknown names."""
    try:
        return BookingStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid booking status: {value!r}") from exc


def parse_date(value: "date | str") -> date:
    """Coerce a ``YYYY-MM-DD`` string (or a date) to a pendulum Date."""
    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)
    try:
        return pendulum.from_format(str(value), "YYYY-MM-DD").date()
    except ValueError as exc:
        raise ValidationError(f"Invalid date '{value}'. Use YYYY-MM-DD format") from exc


@dataclass
class Booking:
    """
    An occupied interval on a salon's calendar.

    Times are normalized to zero-padded ``HH:MM`` on construction.
    """
    salon_id: str
    date: date
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.PENDING
    id: Optional[str] = None
    staff_id: Optional[str] = None
    service_id: Optional[str] = None
    client_id: Optional[str] = None

    def __post_init__(self):
        self.date = parse_date(self.date)
        self.status = parse_status(self.status)
        interval = TimeInterval.from_strings(self.start_time, self.end_time)
        self.start_time = interval.start_time
        self.end_time = interval.end_time

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval.from_strings(self.start_time, self.end_time)

    @property
    def occupies_time(self) -> bool:
        return self.status.occupies_time

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Booking":
        """
        Build a booking from a ``bookings`` table row.

        Raises:
            ValidationError: If required columns are missing or malformed
        """
        try:
            return cls(
                id=_optional_str(record.get("id")),
                salon_id=str(record["salon_id"]),
                date=record["appointment_date"],
                start_time=record["start_time"],
                end_time=record["end_time"],
                status=record.get("status") or BookingStatus.PENDING,
                staff_id=_optional_str(record.get("staff_id")),
                service_id=_optional_str(record.get("service_id")),
                client_id=_optional_str(record.get("client_id")),
            )
        except KeyError as exc:
            raise ValidationError(f"Booking record is missing column {exc}") from exc

    def to_record(self) -> Dict[str, Any]:
        """Serialize to a ``bookings`` table row, omitting unset optional columns."""
        record: Dict[str, Any] = {
            "salon_id": self.salon_id,
            "appointment_date": self.date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status.value,
        }
        for key in ("id", "staff_id", "service_id", "client_id"):
            value = getattr(self, key)
            if value is not None:
                record[key] = value
        return record


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
