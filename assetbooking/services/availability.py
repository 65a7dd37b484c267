"""
Availability checks of an asset against the bookings held in a store.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pendulum import Date, DateTime

from ..adapters.base import BookingStore
from ..domain.exceptions import StoreError
from ..domain.models import Availability, Booking, TimeRange
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """
    Answers whether an asset is free for a requested wall-clock range.

    Store failures never propagate from here: they resolve to
    ``Availability.UNKNOWN`` so callers can tell "booked" from "could not
    check".
    """

    def __init__(self, store: BookingStore, slot_calculator: SlotCalculator):
        self._store = store
        self._slot_calculator = slot_calculator

    async def _day_bookings(self, asset_id: str, day: Date) -> Optional[List[Booking]]:
        try:
            bookings = await self._store.list_bookings(asset_id, day)
        except StoreError as exc:
            logger.error("Could not load bookings of %s on %s: %s", asset_id, day, exc)
            return None
        # Stores may return a wider set; the check only looks at this asset and day
        return SlotCalculator.bookings_for(asset_id, day, bookings)

    async def check(
        self,
        asset_id: str,
        day: Date,
        start_time: str,
        end_time: str,
    ) -> Availability:
        """
        Check a single half-open range ``[start_time, end_time)``.

        Raises:
            ValueError: If the times are malformed or not ordered
        """
        requested = TimeRange(start=start_time, end=end_time)
        bookings = await self._day_bookings(asset_id, day)
        if bookings is None:
            return Availability.UNKNOWN
        return self._slot_calculator.evaluate(requested, bookings)

    async def is_available(
        self,
        asset_id: str,
        day: Date,
        start_time: str,
        end_time: str,
    ) -> bool:
        """Boolean form of ``check``. Anything but AVAILABLE is False."""
        availability = await self.check(asset_id, day, start_time, end_time)
        return availability.is_available

    async def check_ranges(
        self,
        asset_id: str,
        day: Date,
        ranges: Sequence[TimeRange],
    ) -> List[Availability]:
        """
        Check many ranges of one day against a single read of its bookings.

        Gives the same answers as calling ``check`` once per range, since
        checks do not write.
        """
        bookings = await self._day_bookings(asset_id, day)
        if bookings is None:
            return [Availability.UNKNOWN] * len(ranges)
        return [self._slot_calculator.evaluate(requested, bookings) for requested in ranges]

    async def availability_at(self, asset_id: str, moment: DateTime) -> Availability:
        """
        Derive whether an asset is free at ``moment`` from its bookings.

        Returns UNAVAILABLE while a booking covers the moment.
        """
        local_moment = moment.in_timezone(self._slot_calculator.timezone)
        bookings = await self._day_bookings(asset_id, local_moment.date())
        if bookings is None:
            return Availability.UNKNOWN
        if SlotCalculator.booking_in_progress(bookings, local_moment) is None:
            return Availability.AVAILABLE
        return Availability.UNAVAILABLE
