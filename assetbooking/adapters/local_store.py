"""
Local JSON-file store used as the fallback when the hosted backend is down.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import Date

from ..domain.exceptions import SlotConflict, StoreUnavailable, WriteFailed
from ..domain.models import Asset, Booking, generate_booking_id
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Keeps assets and bookings in a single JSON file, one key per entity.

    File layout::

        {
            "assets": [{"id": "A001", "name": "...", "available": true, ...}],
            "bookings": [{"assetId": "A001", "date": "2024-11-25T00:00:00Z", ...}]
        }

    Records use the same column names as the hosted tables. A missing file
    is treated as an empty store. File access runs in a worker thread.
    """

    assigns_identity = True

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        self._write_lock = asyncio.Lock()

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self.path.exists():
            return {"assets": [], "bookings": []}

        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                data = json.load(file_handle)
        except (OSError, ValueError) as exc:
            raise StoreUnavailable(f"Could not read local store {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreUnavailable(f"Local store {self.path} must contain a mapping")

        data.setdefault("assets", [])
        data.setdefault("bookings", [])
        return data

    def _write(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as file_handle:
                json.dump(data, file_handle, indent=2)
            os.replace(temp_path, self.path)
        except OSError as exc:
            raise WriteFailed(f"Could not write local store {self.path}: {exc}") from exc

    def _bookings(self, data: Dict[str, List[Dict[str, Any]]]) -> List[Booking]:
        try:
            return [Booking.from_record(record) for record in data["bookings"]]
        except (KeyError, ValueError) as exc:
            raise StoreUnavailable(f"Malformed booking in {self.path}: {exc}") from exc

    def _assets(self, data: Dict[str, List[Dict[str, Any]]]) -> List[Asset]:
        try:
            return [Asset.from_record(record) for record in data["assets"]]
        except (KeyError, ValueError) as exc:
            raise StoreUnavailable(f"Malformed asset in {self.path}: {exc}") from exc

    async def list_bookings(self, asset_id: str, day: Date) -> List[Booking]:
        data = await asyncio.to_thread(self._read)
        return SlotCalculator.bookings_for(asset_id, day, self._bookings(data))

    async def list_all_bookings(self) -> List[Booking]:
        return self._bookings(await asyncio.to_thread(self._read))

    async def insert_booking(self, booking: Booking) -> Booking:
        """
        Append a booking unless it collides with one already on file.

        Raises:
            SlotConflict: If the asset is already booked for an overlapping range
            WriteFailed: If the file cannot be written
        """
        async with self._write_lock:
            data = await asyncio.to_thread(self._read)
            same_day = SlotCalculator.bookings_for(
                booking.asset_id, booking.date, self._bookings(data)
            )
            for existing in same_day:
                if existing.conflicts_with(booking.start_time, booking.end_time):
                    raise SlotConflict(
                        f"Asset {booking.asset_id} is already booked "
                        f"{existing.start_time}-{existing.end_time} on {booking.date}"
                    )

            if booking.id is None:
                now = pendulum.now("UTC")
                booking = booking.with_identity(generate_booking_id(now), now)

            data["bookings"].append(booking.to_record())
            await asyncio.to_thread(self._write, data)

        logger.debug("Stored booking %s in %s", booking.id, self.path)
        return booking

    async def list_assets(self) -> List[Asset]:
        return self._assets(await asyncio.to_thread(self._read))

    async def upsert_asset(self, asset: Asset) -> Asset:
        async with self._write_lock:
            data = await asyncio.to_thread(self._read)
            record = asset.to_record()
            for index, existing in enumerate(data["assets"]):
                if existing.get("id") == asset.id:
                    data["assets"][index] = record
                    break
            else:
                data["assets"].append(record)
            await asyncio.to_thread(self._write, data)
        return asset

    async def set_asset_availability(self, asset_id: str, available: bool) -> bool:
        async with self._write_lock:
            data = await asyncio.to_thread(self._read)
            for record in data["assets"]:
                if record.get("id") == asset_id:
                    record["available"] = available
                    await asyncio.to_thread(self._write, data)
                    return True
        return False
