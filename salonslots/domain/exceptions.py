"""
Domain-specific exception hierarchy for the salon scheduling engine.
"""


class SalonSlotsError(Exception):
    """Base class for all application-level errors."""


class ValidationError(SalonSlotsError, ValueError):
    """Raised when a time, duration, interval or business-hours value is malformed."""


class ConflictError(SalonSlotsError):
    """
    Raised when a requested booking overlaps an existing non-cancelled booking.

    Callers should re-fetch availability instead of retrying the same request.
    """

    def __init__(self, message: str, start_time: str | None = None, end_time: str | None = None):
        super().__init__(message)
        self.start_time = start_time
        self.end_time = end_time


class NotFoundError(SalonSlotsError):
    """Raised when a salon, service or booking does not exist."""


class BookingStoreError(SalonSlotsError):
    """Raised when booking data cannot be fetched from or written to the store."""
