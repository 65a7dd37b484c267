"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    Asset,
    Availability,
    Booking,
    CalendarDay,
    CalibrationStatus,
    OperatingHours,
    TimeRange,
    TimeSlot,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "Asset",
    "Availability",
    "Booking",
    "CalendarDay",
    "CalibrationStatus",
    "OperatingHours",
    "TimeRange",
    "TimeSlot",
    "SlotCalculator",
]
