"""
Application service for browsing assets, checking slots and booking them.

The service wires a booking store into the availability checker, slot
generator, calendar builder and booking writer. Read operations absorb store
failures and return empty or UNKNOWN results; write operations raise.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import pendulum
from pendulum import Date, DateTime

from ..adapters.base import BookingStore
from ..adapters.factory import create_store
from ..config import AppConfig
from ..domain.exceptions import AssetNotFound, StoreError
from ..domain.models import (
    Asset,
    Availability,
    Booking,
    CalendarDay,
    CalibrationStatus,
    TimeSlot,
)
from ..domain.slot_calculator import SlotCalculator
from .availability import AvailabilityChecker
from .booking_writer import BookingWriter
from .calendar import CalendarBuilder, SlotGenerator

logger = logging.getLogger(__name__)


def default_assets(now: Optional[DateTime] = None) -> List[Asset]:
    """Assets an empty store is seeded with, calibration dates relative to ``now``."""
    now = now or pendulum.now("UTC")
    return [
        Asset(
            id="A001",
            name="Oscilloscope XYZ-2000",
            type="Measurement",
            calibration_status=CalibrationStatus.CALIBRATED,
            last_calibrated=now.subtract(days=30),
            next_calibration_due=now.add(days=150),
            location="Lab 1",
        ),
        Asset(
            id="A002",
            name="Spectrum Analyzer PRO-500",
            type="Measurement",
            calibration_status=CalibrationStatus.DUE_SOON,
            last_calibrated=now.subtract(days=170),
            next_calibration_due=now.add(days=10),
            location="Lab 2",
        ),
        Asset(
            id="A003",
            name="Multimeter DMM-8050",
            type="Testing",
            calibration_status=CalibrationStatus.CALIBRATED,
            last_calibrated=now.subtract(days=15),
            next_calibration_due=now.add(days=165),
            location="Lab 1",
            available=False,
        ),
        Asset(
            id="A004",
            name="Function Generator FG-100",
            type="Signal",
            calibration_status=CalibrationStatus.OVERDUE,
            last_calibrated=now.subtract(days=190),
            next_calibration_due=now.subtract(days=10),
            location="Lab 3",
        ),
        Asset(
            id="A005",
            name="Power Supply PS-3030",
            type="Power",
            calibration_status=CalibrationStatus.NOT_REQUIRED,
            location="Lab 2",
        ),
    ]


class BookingService:
    """
    Orchestrates store access and the booking domain logic.

    Dependency inversion toward the ``BookingStore`` protocol makes it easy
    to plug in the hosted store, the local store or a stub in tests.
    """

    def __init__(
        self,
        store: BookingStore,
        slot_calculator: Optional[SlotCalculator] = None,
        calendar_days: int = 14,
        seed_assets: bool = True,
    ) -> None:
        self._store = store
        self._slot_calculator = slot_calculator or SlotCalculator()
        self._seed_assets = seed_assets
        self._initialized = False

        self.checker = AvailabilityChecker(store, self._slot_calculator)
        self.slot_generator = SlotGenerator(self.checker, self._slot_calculator)
        self.calendar_builder = CalendarBuilder(
            self.slot_generator,
            days=calendar_days,
            timezone=self._slot_calculator.timezone,
        )
        self.writer = BookingWriter(store)

    @property
    def timezone(self) -> str:
        return self._slot_calculator.timezone

    async def initialize(self) -> None:
        """
        Seed the default assets into an empty store, once.

        A failure is logged and not retried; later calls run against
        whatever the store holds.
        """
        if self._initialized:
            return
        self._initialized = True

        if not self._seed_assets:
            return

        try:
            if await self._store.list_assets():
                logger.debug("Store already holds assets, skipping seed")
                return
            for asset in default_assets():
                await self._store.upsert_asset(asset)
            logger.info("Seeded store with default assets")
        except StoreError as exc:
            logger.error("Could not seed default assets: %s", exc)

    async def get_assets(self) -> List[Asset]:
        """Return all assets, or an empty list if the store cannot be read."""
        await self.initialize()
        try:
            return await self._store.list_assets()
        except StoreError as exc:
            logger.error("Error retrieving assets: %s", exc)
            return []

    async def get_asset(self, asset_id: str) -> Asset:
        """
        Raises:
            AssetNotFound: If no asset has this id
        """
        for asset in await self.get_assets():
            if asset.id == asset_id:
                return asset
        raise AssetNotFound(f"No asset with id '{asset_id}'")

    async def save_asset(self, asset: Asset) -> Asset:
        await self.initialize()
        return await self._store.upsert_asset(asset)

    async def get_bookings(self, asset_id: Optional[str] = None) -> List[Booking]:
        """Return stored bookings, optionally of a single asset."""
        await self.initialize()
        try:
            bookings = await self._store.list_all_bookings()
        except StoreError as exc:
            logger.error("Error retrieving bookings: %s", exc)
            return []
        if asset_id is None:
            return bookings
        return [booking for booking in bookings if booking.asset_id == asset_id]

    async def save_booking(self, booking: Booking) -> Booking:
        await self.initialize()
        return await self.writer.save_booking(booking)

    async def check_availability(
        self,
        asset_id: str,
        day: Date,
        start_time: str,
        end_time: str,
    ) -> Availability:
        await self.initialize()
        return await self.checker.check(asset_id, day, start_time, end_time)

    async def is_asset_available(
        self,
        asset_id: str,
        day: Date,
        start_time: str,
        end_time: str,
    ) -> bool:
        await self.initialize()
        return await self.checker.is_available(asset_id, day, start_time, end_time)

    async def asset_availability_now(
        self,
        asset_id: str,
        moment: Optional[DateTime] = None,
    ) -> Availability:
        """Availability derived from bookings instead of the stored flag."""
        await self.initialize()
        return await self.checker.availability_at(asset_id, moment or pendulum.now(self.timezone))

    async def generate_time_slots(self, day: Date, asset_id: str) -> List[TimeSlot]:
        await self.initialize()
        return await self.slot_generator.generate(asset_id, day)

    async def generate_availability_calendar(
        self,
        start: "DateTime | Date",
        asset_id: str,
    ) -> List[CalendarDay]:
        await self.initialize()
        return await self.calendar_builder.build(start, asset_id)

    async def find_alternative(self, asset_id: str) -> Optional[Asset]:
        """
        Return another available asset of the same type, if there is one.

        Unknown asset ids yield None.
        """
        assets = await self.get_assets()
        asset = next((candidate for candidate in assets if candidate.id == asset_id), None)
        if asset is None:
            logger.debug("No asset %s, skipping alternative lookup", asset_id)
            return None

        for candidate in assets:
            if candidate.id != asset_id and candidate.type == asset.type and candidate.available:
                return candidate
        return None


def build_booking_service(config: AppConfig, force_local: bool = False) -> BookingService:
    """Create a ``BookingService`` for the given configuration."""
    slot_calculator = SlotCalculator(
        operating_hours=config.operating_hours.to_operating_hours(),
        timezone=config.timezone,
    )
    return BookingService(
        store=create_store(config, force_local=force_local),
        slot_calculator=slot_calculator,
        calendar_days=config.calendar_days,
        seed_assets=config.seed_default_assets,
    )
