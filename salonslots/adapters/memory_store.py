"""
In-memory salon store for tests and offline use.

Implements every collaborator protocol the availability service needs.
Inserts re-check for conflicts while holding a lock keyed on salon and
date, so two concurrent requests for the same day cannot both succeed.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..domain.business_hours import normalize_business_hours
from ..domain.exceptions import ConflictError, NotFoundError, ValidationError
from ..domain.models import Booking, BookingStatus, BusinessHours, parse_date
from ..domain.slot_calculator import ensure_no_conflict

logger = logging.getLogger(__name__)

SAMPLE_DATA_FILE = Path(__file__).parent / "sample_salon_data.json"


class MemoryBookingStore:
    """
    Keeps salons, services and bookings in dictionaries.
    """

    def __init__(self) -> None:
        self._business_hours: Dict[str, BusinessHours] = {}
        self._durations: Dict[str, int] = {}
        self._bookings: Dict[str, Booking] = {}
        self._data_lock = threading.Lock()
        self._day_locks: Dict[Tuple[str, date], threading.Lock] = {}

    @classmethod
    def from_json(cls, data_file: Path = SAMPLE_DATA_FILE) -> "MemoryBookingStore":
        """
        Load salons, services and bookings from a JSON file.

        Expected format:
        {
            "salons": [{"id": "...", "business_hours": {...}}],
            "services": [{"id": "...", "duration": 60}],
            "bookings": [{"salon_id": "...", "appointment_date": "YYYY-MM-DD", ...}]
        }
        """
        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        store = cls()
        for salon in data.get("salons", []):
            store.add_salon(str(salon["id"]), salon.get("business_hours"))
        for service in data.get("services", []):
            store.add_service(str(service["id"]), service["duration"])
        for record in data.get("bookings", []):
            store.add_booking(Booking.from_record(record))

        logger.debug(
            "Loaded %d salon(s), %d service(s) and %d booking(s) from %s",
            len(store._business_hours),
            len(store._durations),
            len(store._bookings),
            data_file,
        )
        return store

    def add_salon(self, salon_id: str, business_hours: Optional[Mapping[str, Any]]) -> None:
        """Register a salon; raw hours are normalized here."""
        self._business_hours[salon_id] = normalize_business_hours(business_hours)

    def add_service(self, service_id: str, duration_minutes: int) -> None:
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise ValidationError(
                f"Service duration must be a positive integer, got {duration_minutes!r}"
            )
        self._durations[service_id] = duration_minutes

    def add_booking(self, booking: Booking) -> Booking:
        """Store a booking as-is, without a conflict check (seeding only)."""
        stored = booking if booking.id else replace(booking, id=_new_id())
        with self._data_lock:
            self._bookings[stored.id] = stored
        return stored

    # BusinessHoursProvider

    def get_business_hours(self, salon_id: str) -> BusinessHours:
        try:
            return self._business_hours[salon_id]
        except KeyError:
            raise NotFoundError(f"Salon not found: {salon_id}") from None

    # ServiceCatalog

    def get_service_duration(self, service_id: str) -> int:
        try:
            return self._durations[service_id]
        except KeyError:
            raise NotFoundError(f"Service not found: {service_id}") from None

    # BookingReader

    def list_active_bookings(
        self,
        salon_id: str,
        on_date: date,
        staff_id: Optional[str] = None,
    ) -> List[Booking]:
        day = parse_date(on_date)
        with self._data_lock:
            bookings = list(self._bookings.values())

        active = [
            booking for booking in bookings
            if booking.salon_id == salon_id
            and booking.date == day
            and booking.occupies_time
            and (staff_id is None or booking.staff_id == staff_id)
        ]
        return sorted(active, key=lambda b: b.start_time)

    def get_booking(self, booking_id: str) -> Booking:
        with self._data_lock:
            booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking not found: {booking_id}")
        return booking

    # BookingWriter

    def insert_booking(self, booking: Booking) -> Booking:
        """
        Insert a booking after re-checking for conflicts under the day lock.

        Raises:
            ValidationError: If a booking with the same id already exists
            ConflictError: If the interval is taken
        """
        with self._get_day_lock(booking.salon_id, booking.date):
            if booking.id is not None:
                with self._data_lock:
                    if booking.id in self._bookings:
                        raise ValidationError(f"Booking already exists: {booking.id}")

            existing = self.list_active_bookings(
                booking.salon_id, booking.date, booking.staff_id
            )
            ensure_no_conflict(booking.interval, existing)
            return self.add_booking(booking)

    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """
        Change a booking's status, re-checking the transition under the day lock.

        Raises:
            ConflictError: If the booking is no longer in ``expected_status``
            ValidationError: If the transition is not allowed
        """
        snapshot = self.get_booking(booking_id)
        with self._get_day_lock(snapshot.salon_id, snapshot.date):
            current = self.get_booking(booking_id)

            if expected_status is not None and current.status is not expected_status:
                raise ConflictError(
                    f"Booking {booking_id} is now {current.status.value}, "
                    f"expected {expected_status.value}",
                    start_time=current.start_time,
                    end_time=current.end_time,
                )
            if not current.status.can_transition_to(status):
                raise ValidationError(
                    f"Cannot change booking {booking_id} from {current.status.value} to {status.value}"
                )

            updated = replace(current, status=status)
            with self._data_lock:
                self._bookings[booking_id] = updated
        return updated

    def _get_day_lock(self, salon_id: str, on_date: date) -> threading.Lock:
        """Get or create the lock for a salon day."""
        key = (salon_id, on_date)
        with self._data_lock:
            if key not in self._day_locks:
                self._day_locks[key] = threading.Lock()
            return self._day_locks[key]


def _new_id() -> str:
    return str(uuid.uuid4())
