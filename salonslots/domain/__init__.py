"""
Domain layer - Pure business logic without external dependencies.
"""

from .business_hours import normalize_business_hours
from .clock import add_minutes, minutes_to_time, time_to_minutes
from .exceptions import (
    BookingStoreError,
    ConflictError,
    NotFoundError,
    SalonSlotsError,
    ValidationError,
)
from .models import Booking, BookingStatus, BusinessHours, DayHours, Slot, TimeInterval
from .slot_calculator import SlotCalculator

__all__ = [
    "Booking",
    "BookingStatus",
    "BookingStoreError",
    "BusinessHours",
    "ConflictError",
    "DayHours",
    "NotFoundError",
    "SalonSlotsError",
    "Slot",
    "SlotCalculator",
    "TimeInterval",
    "ValidationError",
    "add_minutes",
    "minutes_to_time",
    "normalize_business_hours",
    "time_to_minutes",
]
