"""
Tests for the in-memory booking store.
"""

import threading

import pendulum
import pytest

from salonslots.adapters.memory_store import MemoryBookingStore
from salonslots.domain.exceptions import ConflictError, NotFoundError, ValidationError
from salonslots.domain.models import Booking, BookingStatus

MONDAY = pendulum.date(2025, 3, 3)


class TestSampleData:
    """Tests for loading the bundled sample data."""

    def test_from_json_loads_salons_services_and_bookings(self):
        store = MemoryBookingStore.from_json()

        hours = store.get_business_hours("salon-downtown")
        assert hours.for_weekday("monday").opening_time == "09:00"
        assert hours.for_weekday("thursday").closing_time == "20:00"
        assert hours.for_weekday("sunday") is None
        assert store.get_service_duration("colour") == 90

    def test_cancelled_sample_booking_is_not_active(self):
        store = MemoryBookingStore.from_json()

        active = store.list_active_bookings("salon-downtown", MONDAY)

        assert [b.id for b in active] == ["b-1001", "b-1002"]
        assert store.get_booking("b-1003").status is BookingStatus.CANCELLED

    def test_staff_filter(self):
        store = MemoryBookingStore.from_json()

        active = store.list_active_bookings("salon-downtown", MONDAY, staff_id="staff-ben")

        assert [b.id for b in active] == ["b-1002"]

    def test_empty_staff_id_matches_no_staff_member(self):
        store = MemoryBookingStore.from_json()

        assert store.list_active_bookings("salon-downtown", MONDAY, staff_id="") == []

    def test_from_custom_file(self, tmp_path):
        data_file = tmp_path / "salons.json"
        data_file.write_text(
            '{"salons": [{"id": "s1", "business_hours": {"friday": "10:00-12:00"}}],'
            ' "services": [{"id": "svc", "duration": 20}]}',
            encoding="utf-8",
        )

        store = MemoryBookingStore.from_json(data_file)

        assert store.get_service_duration("svc") == 20
        assert store.list_active_bookings("s1", MONDAY) == []


class TestMemoryBookingStore:
    """Tests for reads and checked writes."""

    def setup_method(self):
        self.store = MemoryBookingStore()
        self.store.add_salon("s1", {"monday": "09:00-18:00"})

    def _booking(self, start, end, **kwargs):
        return Booking(salon_id="s1", date=MONDAY, start_time=start, end_time=end, **kwargs)

    def test_insert_assigns_id(self):
        created = self.store.insert_booking(self._booking("09:00", "10:00"))

        assert created.id
        assert self.store.get_booking(created.id) == created

    def test_insert_rejects_overlap(self):
        self.store.insert_booking(self._booking("09:00", "10:00"))

        with pytest.raises(ConflictError):
            self.store.insert_booking(self._booking("09:30", "10:30"))

    def test_insert_after_cancellation_succeeds(self):
        first = self.store.insert_booking(self._booking("09:00", "10:00"))
        self.store.update_booking_status(first.id, BookingStatus.CANCELLED)

        second = self.store.insert_booking(self._booking("09:00", "10:00"))

        assert second.id != first.id

    def test_insert_with_existing_id_raises(self):
        """Test that an insert never overwrites a stored booking."""
        first = self.store.insert_booking(self._booking("09:00", "10:00"))

        with pytest.raises(ValidationError, match="already exists"):
            self.store.insert_booking(self._booking("09:00", "10:00", id=first.id))

        assert self.store.get_booking(first.id) == first

    def test_update_with_stale_expected_status_raises(self):
        created = self.store.insert_booking(self._booking("09:00", "10:00"))
        self.store.update_booking_status(created.id, BookingStatus.CANCELLED)

        with pytest.raises(ConflictError, match="is now cancelled"):
            self.store.update_booking_status(
                created.id, BookingStatus.CONFIRMED, expected_status=BookingStatus.PENDING
            )

        assert self.store.get_booking(created.id).status is BookingStatus.CANCELLED

    def test_update_checks_transition(self):
        created = self.store.insert_booking(self._booking("09:00", "10:00"))
        self.store.update_booking_status(created.id, BookingStatus.COMPLETED)

        with pytest.raises(ValidationError, match="Cannot change booking"):
            self.store.update_booking_status(created.id, BookingStatus.PENDING)

    def test_active_bookings_are_sorted(self):
        self.store.add_booking(self._booking("14:00", "15:00"))
        self.store.add_booking(self._booking("09:00", "10:00"))

        active = self.store.list_active_bookings("s1", MONDAY)

        assert [b.start_time for b in active] == ["09:00", "14:00"]

    def test_unknown_ids_raise_not_found(self):
        with pytest.raises(NotFoundError):
            self.store.get_booking("missing")
        with pytest.raises(NotFoundError):
            self.store.get_business_hours("missing")
        with pytest.raises(NotFoundError):
            self.store.get_service_duration("missing")

    @pytest.mark.parametrize("duration", [0, -10, 1.5, True])
    def test_invalid_service_duration_raises(self, duration):
        with pytest.raises(ValidationError):
            self.store.add_service("svc", duration)

    def test_concurrent_inserts_for_same_slot(self):
        """Only one of many simultaneous requests for a slot may succeed."""
        attempts = 12
        barrier = threading.Barrier(attempts)
        created = []
        conflicts = []

        def book():
            barrier.wait()
            try:
                created.append(self.store.insert_booking(self._booking("11:00", "12:00")))
            except ConflictError as exc:
                conflicts.append(exc)

        threads = [threading.Thread(target=book) for _ in range(attempts)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert len(conflicts) == attempts - 1
        assert len(self.store.list_active_bookings("s1", MONDAY)) == 1
