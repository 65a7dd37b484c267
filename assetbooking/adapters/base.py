"""
Protocol shared by every booking store implementation.
"""

from __future__ import annotations

from typing import List, Protocol

from pendulum import Date

from ..domain.models import Asset, Booking


class BookingStore(Protocol):
    """
    Persistence operations the booking services rely on.

    Implementations raise ``StoreUnavailable`` when they cannot be reached
    and ``WriteFailed`` (or ``SlotConflict``) when a write is rejected.
    """

    async def list_bookings(self, asset_id: str, day: Date) -> List[Booking]:
        """Return the bookings of one asset on one calendar day."""

    async def list_all_bookings(self) -> List[Booking]:
        """Return every stored booking."""

    async def insert_booking(self, booking: Booking) -> Booking:
        """Persist a booking and return it as stored."""

    async def list_assets(self) -> List[Asset]:
        """Return every stored asset."""

    async def upsert_asset(self, asset: Asset) -> Asset:
        """Create or replace an asset and return it as stored."""

    async def set_asset_availability(self, asset_id: str, available: bool) -> bool:
        """Update an asset's availability flag. False if the asset is unknown."""
