"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityService,
    BookingReader,
    BookingWriter,
    BusinessHoursProvider,
    ServiceCatalog,
)

__all__ = [
    "AvailabilityService",
    "BookingReader",
    "BookingWriter",
    "BusinessHoursProvider",
    "ServiceCatalog",
]
