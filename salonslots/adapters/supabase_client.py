"""
Supabase (PostgREST) client for salon hours, service durations and bookings.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from ..domain.business_hours import normalize_business_hours
from ..domain.exceptions import (
    BookingStoreError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..domain.models import Booking, BookingStatus, BusinessHours, parse_date

logger = logging.getLogger(__name__)

# Postgres SQLSTATE raised by the bookings exclusion constraint
EXCLUSION_VIOLATION = "23P01"

BOOKING_COLUMNS = (
    "id,salon_id,staff_id,service_id,client_id,"
    "appointment_date,start_time,end_time,status"
)


class SupabaseClient:
    """
    Client for the Supabase REST API (PostgREST).

    Reads ``salons.business_hours``, ``services.duration`` and ``bookings``.
    Booking inserts rely on the ``bookings_no_overlap`` exclusion constraint
    (see ``migrations/001_bookings_no_overlap.sql``) for the write-time
    conflict check, so the check and the insert are one atomic statement.
    """

    def __init__(
        self,
        url: str,
        key: str,
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the REST client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            key: Service role or anon key
            timeout_seconds: Per-request timeout
            session: Optional requests session (injected in tests)
        """
        self.rest_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def get_business_hours(self, salon_id: str) -> BusinessHours:
        rows = self._request(
            "GET",
            "salons",
            params={"select": "business_hours", "id": f"eq.{salon_id}"},
        )
        if not rows:
            raise NotFoundError(f"Salon not found: {salon_id}")

        return normalize_business_hours(rows[0].get("business_hours"))

    def get_service_duration(self, service_id: str) -> int:
        rows = self._request(
            "GET",
            "services",
            params={"select": "duration", "id": f"eq.{service_id}"},
        )
        if not rows:
            raise NotFoundError(f"Service not found: {service_id}")

        duration = rows[0].get("duration")
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ValidationError(
                f"Service {service_id} has an invalid duration: {duration!r}"
            )
        return duration

    def list_active_bookings(
        self,
        salon_id: str,
        on_date: date,
        staff_id: Optional[str] = None
    ) -> List[Booking]:
        params = {
            "select": BOOKING_COLUMNS,
            "salon_id": f"eq.{salon_id}",
            "appointment_date": f"eq.{parse_date(on_date).isoformat()}",
            "status": f"neq.{BookingStatus.CANCELLED.value}",
            "order": "start_time.asc",
        }
        if staff_id is not None:
            params["staff_id"] = f"eq.{staff_id}"

        rows = self._request("GET", "bookings", params=params)
        return [self._parse_booking(row) for row in rows]

    def get_booking(self, booking_id: str) -> Booking:
        rows = self._request(
            "GET",
            "bookings",
            params={"select": BOOKING_COLUMNS, "id": f"eq.{booking_id}"},
        )
        if not rows:
            raise NotFoundError(f"Booking not found: {booking_id}")
        return self._parse_booking(rows[0])

    def insert_booking(self, booking: Booking) -> Booking:
        """
        Insert a booking; the database rejects overlapping intervals.

        Raises:
            ConflictError: If the exclusion constraint rejects the row
        """
        rows = self._request(
            "POST",
            "bookings",
            params={"select": BOOKING_COLUMNS},
            json=booking.to_record(),
            extra_headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise BookingStoreError("Booking insert returned no row")
        return self._parse_booking(rows[0])

    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """
        Change a booking's status.

        With ``expected_status`` the PATCH only matches a row still in that
        status, so a concurrent change makes it update nothing.

        Raises:
            ConflictError: If the booking is no longer in ``expected_status``
            NotFoundError: If the booking does not exist
        """
        params = {"select": BOOKING_COLUMNS, "id": f"eq.{booking_id}"}
        if expected_status is not None:
            params["status"] = f"eq.{expected_status.value}"

        rows = self._request(
            "PATCH",
            "bookings",
            params=params,
            json={"status": status.value},
            extra_headers={"Prefer": "return=representation"},
        )
        if rows:
            return self._parse_booking(rows[0])

        if expected_status is None:
            raise NotFoundError(f"Booking not found: {booking_id}")

        current = self.get_booking(booking_id)
        raise ConflictError(
            f"Booking {booking_id} is now {current.status.value}, "
            f"expected {expected_status.value}",
            start_time=current.start_time,
            end_time=current.end_time,
        )

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None
    ) -> List[Dict[str, Any]]:
        """
        Perform a PostgREST request and return the decoded rows.

        Raises:
            ConflictError: On an exclusion-constraint violation
            BookingStoreError: On transport errors or other error responses
        """
        url = f"{self.rest_url}/{table}"
        headers = dict(self.headers)
        if extra_headers:
            headers.update(extra_headers)

        logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise BookingStoreError(f"Failed to reach Supabase: {e}") from e

        if response.status_code >= 400:
            self._raise_for_error(response, table)

        try:
            data = response.json()
        except ValueError as e:
            raise BookingStoreError(f"Invalid JSON from Supabase ({table}): {e}") from e

        if isinstance(data, dict):
            return [data]
        return data or []

    @staticmethod
    def _raise_for_error(response: requests.Response, table: str) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = body.get("code")
        message = body.get("message") or response.text

        if code == EXCLUSION_VIOLATION or response.status_code == 409:
            raise ConflictError(f"Time slot not available: {message}")

        raise BookingStoreError(
            f"Supabase request on '{table}' failed with HTTP {response.status_code}: {message}"
        )

    @staticmethod
    def _parse_booking(row: Dict[str, Any]) -> Booking:
        try:
            return Booking.from_record(row)
        except ValidationError as e:
            raise BookingStoreError(f"Malformed booking row {row.get('id')!r}: {e}") from e
