"""
Persists bookings and marks the booked asset as unavailable.
"""

from __future__ import annotations

import logging
from typing import Callable

import pendulum
from pendulum import DateTime

from ..adapters.base import BookingStore
from ..domain.exceptions import StoreError
from ..domain.models import Booking, generate_booking_id

logger = logging.getLogger(__name__)


class BookingWriter:
    """
    Writes a booking, then flips the asset's ``available`` flag to False.

    The two writes are independent: a failed flag update does not undo the
    booking. Availability is not checked here; conflicting inserts are
    rejected by the store itself.
    """

    def __init__(
        self,
        store: BookingStore,
        clock: Callable[[], DateTime] = lambda: pendulum.now("UTC"),
    ):
        self._store = store
        self._clock = clock

    def _with_identity(self, booking: Booking) -> Booking:
        if booking.id is not None or getattr(self._store, "assigns_identity", False):
            return booking
        now = self._clock()
        return booking.with_identity(generate_booking_id(now), now)

    async def save_booking(self, booking: Booking) -> Booking:
        """
        Store a booking and return it as stored.

        Raises:
            SlotConflict: If the store rejects the booking as overlapping
            WriteFailed: If the store rejects the booking otherwise
            StoreUnavailable: If no store could be reached
        """
        stored = await self._store.insert_booking(self._with_identity(booking))
        logger.info(
            "Booked %s on %s %s-%s for %s",
            stored.asset_id,
            stored.date,
            stored.start_time,
            stored.end_time,
            stored.user_id,
        )

        try:
            updated = await self._store.set_asset_availability(stored.asset_id, False)
        except StoreError as exc:
            logger.warning(
                "Booking %s stored but availability of %s was not updated: %s",
                stored.id,
                stored.asset_id,
                exc,
            )
        else:
            if not updated:
                logger.warning("Booked asset %s has no asset record", stored.asset_id)

        return stored
