"""
Store wrapper that falls back to a secondary store when the primary fails.
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, List, Optional, Set, Tuple, TypeVar

from pendulum import Date

from ..domain.exceptions import SlotConflict, StoreError, StoreUnavailable
from ..domain.models import Asset, Booking
from .base import BookingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailoverStore:
    """
    Routes every operation to the primary store and retries it once on the
    fallback store when the primary raises a ``StoreError``.

    A ``StoreUnavailable`` from the primary opens a breaker: for
    ``cooldown_seconds`` afterwards calls go straight to the fallback.
    ``SlotConflict`` is a definite answer and is never retried.

    A booking's follow-up availability update goes to the same store that
    accepted the booking.
    """

    def __init__(
        self,
        primary: BookingStore,
        fallback: BookingStore,
        cooldown_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.primary = primary
        self.fallback = fallback
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._primary_down_until: Optional[float] = None
        # asset ids whose latest booking landed on the fallback
        self._fallback_bookings: Set[str] = set()

    @property
    def assigns_identity(self) -> bool:
        return getattr(self.primary, "assigns_identity", False) and getattr(
            self.fallback, "assigns_identity", False
        )

    @property
    def primary_available(self) -> bool:
        """False while the breaker keeps calls away from the primary."""
        if self._primary_down_until is None:
            return True
        if self._clock() >= self._primary_down_until:
            self._primary_down_until = None
            return True
        return False

    def _trip(self) -> None:
        if self.cooldown_seconds > 0:
            self._primary_down_until = self._clock() + self.cooldown_seconds

    async def _call_with_fallback(
        self,
        operation: str,
        call: Callable[[BookingStore], Awaitable[T]],
    ) -> Tuple[T, BookingStore]:
        """Run ``call`` and return its result with the store that answered."""
        if not self.primary_available:
            logger.debug("Primary store cooling down, using fallback for %s", operation)
            return await call(self.fallback), self.fallback

        try:
            return await call(self.primary), self.primary
        except SlotConflict:
            raise
        except StoreError as exc:
            if isinstance(exc, StoreUnavailable):
                self._trip()
            logger.warning(
                "Primary store failed during %s (%s). Falling back to local store.",
                operation,
                exc,
            )
        return await call(self.fallback), self.fallback

    async def _with_fallback(
        self,
        operation: str,
        call: Callable[[BookingStore], Awaitable[T]],
    ) -> T:
        result, _ = await self._call_with_fallback(operation, call)
        return result

    async def list_bookings(self, asset_id: str, day: Date) -> List[Booking]:
        return await self._with_fallback(
            "list_bookings", lambda store: store.list_bookings(asset_id, day)
        )

    async def list_all_bookings(self) -> List[Booking]:
        return await self._with_fallback(
            "list_all_bookings", lambda store: store.list_all_bookings()
        )

    async def insert_booking(self, booking: Booking) -> Booking:
        """
        Insert on the primary, or on the fallback if the primary fails.

        When the fallback takes the booking, the next availability update for
        that asset goes to the fallback as well.
        """
        stored, store = await self._call_with_fallback(
            "insert_booking", lambda target: target.insert_booking(booking)
        )
        if store is self.fallback:
            self._fallback_bookings.add(stored.asset_id)
        else:
            self._fallback_bookings.discard(stored.asset_id)
        return stored

    async def list_assets(self) -> List[Asset]:
        return await self._with_fallback("list_assets", lambda store: store.list_assets())

    async def upsert_asset(self, asset: Asset) -> Asset:
        return await self._with_fallback("upsert_asset", lambda store: store.upsert_asset(asset))

    async def set_asset_availability(self, asset_id: str, available: bool) -> bool:
        if asset_id in self._fallback_bookings:
            self._fallback_bookings.discard(asset_id)
            logger.debug("Updating availability of %s on the store that took its booking", asset_id)
            return await self.fallback.set_asset_availability(asset_id, available)
        return await self._with_fallback(
            "set_asset_availability",
            lambda store: store.set_asset_availability(asset_id, available),
        )
