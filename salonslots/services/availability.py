"""
Application services for salon availability and booking creation.

The service coordinates reading business hours, service durations and
existing bookings through narrow collaborator protocols, and delegates the
actual slot and conflict computation to the domain-level ``SlotCalculator``.
Writers must re-check for conflicts inside their own serialization boundary
(a lock, a transaction or a database exclusion constraint), so a slot shown
as free can still be refused at write time with ``ConflictError``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Protocol

from ..domain.clock import add_minutes
from ..domain.exceptions import ConflictError, ValidationError
from ..domain.models import (
    Booking,
    BookingStatus,
    BusinessHours,
    Slot,
    parse_date,
    parse_status,
)
from ..domain.slot_calculator import SlotCalculator, ensure_no_conflict

logger = logging.getLogger(__name__)


class BusinessHoursProvider(Protocol):
    """Returns the normalized weekly hours of a salon."""

    def get_business_hours(self, salon_id: str) -> BusinessHours:
        """Raise NotFoundError if the salon does not exist."""


class ServiceCatalog(Protocol):
    """Returns service durations."""

    def get_service_duration(self, service_id: str) -> int:
        """Raise NotFoundError if the service does not exist."""


class BookingReader(Protocol):
    """Reads bookings from the authoritative store."""

    def list_active_bookings(
        self,
        salon_id: str,
        on_date: date,
        staff_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Return non-cancelled bookings for a salon and date.

        With a staff id, only that staff member's bookings are returned.
        """

    def get_booking(self, booking_id: str) -> Booking:
        """Raise NotFoundError if the booking does not exist."""


class BookingWriter(Protocol):
    """Writes bookings, re-checking for conflicts atomically with the insert."""

    def insert_booking(self, booking: Booking) -> Booking:
        """Persist the booking, or raise ConflictError if its interval is taken."""

    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """
        Persist a status change and return the updated booking.

        The write only applies while the booking is still in
        ``expected_status``; otherwise raise ConflictError.
        """


class AvailabilityService:
    """
    Orchestrates data retrieval, slot calculation and checked booking writes.
    """

    def __init__(
        self,
        hours_provider: BusinessHoursProvider,
        service_catalog: ServiceCatalog,
        booking_reader: BookingReader,
        booking_writer: BookingWriter,
        slot_calculator: SlotCalculator | None = None,
    ) -> None:
        self._hours_provider = hours_provider
        self._service_catalog = service_catalog
        self._booking_reader = booking_reader
        self._booking_writer = booking_writer
        self._slot_calculator = slot_calculator or SlotCalculator()

    def get_available_slots(
        self,
        *,
        salon_id: str,
        service_id: str,
        on_date: date | str,
        staff_id: Optional[str] = None,
    ) -> List[Slot]:
        """
        Retrieve hours, duration and bookings, then compute free slots.
        """
        day = parse_date(on_date)
        duration = self._service_catalog.get_service_duration(service_id)
        business_hours = self._hours_provider.get_business_hours(salon_id)

        if not business_hours.is_open_on(day):
            logger.debug("Salon %s is closed on %s", salon_id, day.isoformat())
            return []

        bookings = self._booking_reader.list_active_bookings(salon_id, day, staff_id)

        slots = self._slot_calculator.compute_slots_for_day(
            business_hours=business_hours,
            on_date=day,
            duration_minutes=duration,
            existing_bookings=bookings,
        )

        logger.debug(
            "Computed %d slot(s) for salon %s on %s (service %s, staff %s, %d booking(s))",
            len(slots),
            salon_id,
            day.isoformat(),
            service_id,
            staff_id,
            len(bookings),
        )
        return slots

    def create_booking(
        self,
        *,
        salon_id: str,
        service_id: str,
        on_date: date | str,
        start_time: str,
        staff_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> Booking:
        """
        Create a pending booking for a service starting at ``start_time``.

        Raises:
            ValidationError: If the interval is malformed or outside business hours
            ConflictError: If the interval overlaps an existing booking, either
                on the pre-check or on the writer's atomic re-check
        """
        day = parse_date(on_date)
        duration = self._service_catalog.get_service_duration(service_id)
        end_time = add_minutes(start_time, duration)

        booking = Booking(
            salon_id=salon_id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=BookingStatus.PENDING,
            staff_id=staff_id,
            service_id=service_id,
            client_id=client_id,
        )

        self._ensure_within_business_hours(salon_id, booking)

        # Fast path only; the writer repeats this check atomically.
        existing = self._booking_reader.list_active_bookings(salon_id, day, staff_id)
        self._raise_on_conflict(booking, existing)

        try:
            created = self._booking_writer.insert_booking(booking)
        except ConflictError:
            logger.warning(
                "Slot %s-%s on %s for salon %s was taken before the booking was written",
                booking.start_time,
                booking.end_time,
                day.isoformat(),
                salon_id,
            )
            raise

        logger.info(
            "Created booking %s for salon %s on %s %s-%s",
            created.id,
            salon_id,
            day.isoformat(),
            created.start_time,
            created.end_time,
        )
        return created

    def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus | str,
    ) -> Booking:
        """
        Move a booking to a new status.

        Raises:
            ValidationError: If the status is unknown or the transition is not allowed
            ConflictError: If the booking changed status before the write
        """
        target = parse_status(new_status)
        booking = self._booking_reader.get_booking(booking_id)

        if not booking.status.can_transition_to(target):
            raise ValidationError(
                f"Cannot change booking {booking_id} from {booking.status.value} to {target.value}"
            )

        updated = self._booking_writer.update_booking_status(
            booking_id, target, expected_status=booking.status
        )
        logger.info(
            "Booking %s moved from %s to %s", booking_id, booking.status.value, target.value
        )
        return updated

    def _ensure_within_business_hours(self, salon_id: str, booking: Booking) -> None:
        business_hours = self._hours_provider.get_business_hours(salon_id)
        day_hours = business_hours.for_date(booking.date)

        if day_hours is None:
            raise ValidationError(
                f"Salon {salon_id} is closed on {booking.date.isoformat()}"
            )

        if not day_hours.as_interval().contains(booking.interval):
            raise ValidationError(
                f"Booking {booking.start_time}-{booking.end_time} is outside business hours "
                f"{day_hours.opening_time}-{day_hours.closing_time}"
            )

    @staticmethod
    def _raise_on_conflict(booking: Booking, existing: List[Booking]) -> None:
        try:
            ensure_no_conflict(booking.interval, existing, exclude_booking_id=booking.id)
        except ConflictError as exc:
            logger.warning(
                "Booking request %s-%s on %s conflicts with %s-%s",
                booking.start_time,
                booking.end_time,
                booking.date.isoformat(),
                exc.start_time,
                exc.end_time,
            )
            raise
