"""
Core business logic for slot grids and booking conflicts.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). The services layer feeds it bookings read from a store.
"""

from typing import Iterable, List, Optional, Sequence

from pendulum import Date, DateTime

from .models import (
    Availability,
    Booking,
    OperatingHours,
    TimeRange,
    TimeSlot,
    format_wall_clock,
)


class SlotCalculator:
    """
    Builds a day's slot grid and evaluates requested ranges against bookings.

    Algorithm for a single check:
    1. Keep only bookings of the same asset on the same calendar day
    2. Scan them in stored order
    3. Report a conflict on the first booking that collides
    """

    def __init__(self, operating_hours: Optional[OperatingHours] = None, timezone: str = "UTC"):
        self.operating_hours = operating_hours or OperatingHours()
        self.timezone = timezone

    def day_ranges(self) -> List[TimeRange]:
        """Return the wall-clock ranges of every slot of a day."""
        return self.operating_hours.slot_ranges()

    @staticmethod
    def bookings_for(asset_id: str, day: Date, bookings: Iterable[Booking]) -> List[Booking]:
        """
        Filter bookings down to one asset and one calendar day.

        Date equality ignores the time of day.
        """
        return [
            booking for booking in bookings
            if booking.asset_id == asset_id and booking.date == day
        ]

    @staticmethod
    def find_conflict(requested: TimeRange, bookings: Iterable[Booking]) -> Optional[Booking]:
        """Return the first booking that collides with the requested range."""
        for booking in bookings:
            if booking.conflicts_with(requested.start, requested.end):
                return booking
        return None

    def evaluate(self, requested: TimeRange, bookings: Iterable[Booking]) -> Availability:
        """
        Decide availability of a range against the bookings of its day.

        No bookings at all means the range is available.
        """
        if self.find_conflict(requested, bookings) is None:
            return Availability.AVAILABLE
        return Availability.UNAVAILABLE

    def build_slots(
        self,
        day: Date,
        availabilities: Sequence[Availability],
    ) -> List[TimeSlot]:
        """
        Pair the day's slot grid with one availability flag per slot.

        Raises:
            ValueError: If the flag count does not match the grid
        """
        ranges = self.day_ranges()
        if len(ranges) != len(availabilities):
            raise ValueError(
                f"Expected {len(ranges)} availability flags, got {len(availabilities)}"
            )

        slots: List[TimeSlot] = []
        for time_range, availability in zip(ranges, availabilities):
            start, end = time_range.on(day, self.timezone)
            slots.append(TimeSlot(start=start, end=end, availability=availability))
        return slots

    @staticmethod
    def booking_in_progress(bookings: Iterable[Booking], moment: DateTime) -> Optional[Booking]:
        """
        Return the booking covering ``moment`` (already in local time), if any.
        """
        day = moment.date()
        wall_clock = format_wall_clock(moment.hour * 60 + moment.minute)
        for booking in bookings:
            if booking.date == day and booking.start_time <= wall_clock < booking.end_time:
                return booking
        return None
