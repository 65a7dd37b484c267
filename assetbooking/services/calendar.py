"""
Slot generation for a day and the multi-day availability calendar.
"""

from __future__ import annotations

from typing import List

from pendulum import Date, DateTime

from ..domain.models import CalendarDay, TimeSlot, parse_day
from ..domain.slot_calculator import SlotCalculator
from .availability import AvailabilityChecker


class SlotGenerator:
    """
    Produces the fixed slot grid of a day, each slot flagged by the
    availability checker for its exact range.
    """

    def __init__(self, checker: AvailabilityChecker, slot_calculator: SlotCalculator):
        self._checker = checker
        self._slot_calculator = slot_calculator

    async def generate(self, asset_id: str, day: Date) -> List[TimeSlot]:
        """Return the day's slots in chronological order."""
        day = parse_day(day)
        ranges = self._slot_calculator.day_ranges()
        availabilities = await self._checker.check_ranges(asset_id, day, ranges)
        return self._slot_calculator.build_slots(day, availabilities)


class CalendarBuilder:
    """
    Builds one ``CalendarDay`` per day over a window of consecutive days.
    """

    def __init__(self, slot_generator: SlotGenerator, days: int = 14, timezone: str = "UTC"):
        if days <= 0:
            raise ValueError("Calendar must span at least one day")
        self._slot_generator = slot_generator
        self.days = days
        self.timezone = timezone

    def _first_day(self, start: "DateTime | Date") -> Date:
        if isinstance(start, DateTime):
            return start.in_timezone(self.timezone).start_of("day").date()
        return parse_day(start)

    async def build(self, start: "DateTime | Date", asset_id: str) -> List[CalendarDay]:
        """
        Build the calendar starting at the midnight of ``start``.

        Days are generated one after another, in date order.
        """
        first_day = self._first_day(start)
        calendar: List[CalendarDay] = []

        for offset in range(self.days):
            day = first_day.add(days=offset)
            slots = await self._slot_generator.generate(asset_id, day)
            calendar.append(CalendarDay(date=day, slots=slots))

        return calendar
