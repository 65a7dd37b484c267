"""
Shared test doubles.
"""

from typing import Dict, List, Optional

import pendulum
import pytest

from assetbooking.domain.exceptions import StoreUnavailable
from assetbooking.domain.models import Asset, Booking, CalibrationStatus


class InMemoryStore:
    """Minimal stub matching the BookingStore protocol."""

    def __init__(self, assets: Optional[List[Asset]] = None, bookings: Optional[List[Booking]] = None):
        self.assets: Dict[str, Asset] = {asset.id: asset for asset in assets or []}
        self.bookings: List[Booking] = list(bookings or [])
        self.calls: List[str] = []

    async def list_bookings(self, asset_id, day):
        self.calls.append("list_bookings")
        return [b for b in self.bookings if b.asset_id == asset_id and b.date == day]

    async def list_all_bookings(self):
        self.calls.append("list_all_bookings")
        return list(self.bookings)

    async def insert_booking(self, booking):
        self.calls.append("insert_booking")
        self.bookings.append(booking)
        return booking

    async def list_assets(self):
        self.calls.append("list_assets")
        return list(self.assets.values())

    async def upsert_asset(self, asset):
        self.calls.append("upsert_asset")
        self.assets[asset.id] = asset
        return asset

    async def set_asset_availability(self, asset_id, available):
        self.calls.append("set_asset_availability")
        if asset_id not in self.assets:
            return False
        self.assets[asset_id].available = available
        return True


class UnreachableStore(InMemoryStore):
    """Store whose every call fails as if the backend were down."""

    async def list_bookings(self, asset_id, day):
        raise StoreUnavailable("backend down")

    async def list_all_bookings(self):
        raise StoreUnavailable("backend down")

    async def insert_booking(self, booking):
        raise StoreUnavailable("backend down")

    async def list_assets(self):
        raise StoreUnavailable("backend down")

    async def upsert_asset(self, asset):
        raise StoreUnavailable("backend down")

    async def set_asset_availability(self, asset_id, available):
        raise StoreUnavailable("backend down")


def make_asset(asset_id: str = "A001", type_: str = "Measurement", available: bool = True) -> Asset:
    return Asset(
        id=asset_id,
        name=f"Asset {asset_id}",
        type=type_,
        calibration_status=CalibrationStatus.CALIBRATED,
        location="Lab 1",
        available=available,
    )


def make_booking(start: str, end: str, asset_id: str = "A001", day=None) -> Booking:
    return Booking(
        asset_id=asset_id,
        user_id="alice",
        date=day or pendulum.date(2024, 11, 25),
        start_time=start,
        end_time=end,
        purpose="Signal test",
    )


@pytest.fixture
def day():
    return pendulum.date(2024, 11, 25)


@pytest.fixture
def store():
    return InMemoryStore(assets=[make_asset("A001")])
