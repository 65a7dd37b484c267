"""
Service layer helpers that orchestrate stores and domain logic.
"""

from .availability import AvailabilityChecker
from .booking_service import BookingService, build_booking_service, default_assets
from .booking_writer import BookingWriter
from .calendar import CalendarBuilder, SlotGenerator

__all__ = [
    "AvailabilityChecker",
    "BookingService",
    "BookingWriter",
    "CalendarBuilder",
    "SlotGenerator",
    "build_booking_service",
    "default_assets",
]
