"""
Supabase (PostgREST) client for the hosted assets and bookings tables.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests
from pendulum import Date

from ..domain.exceptions import SlotConflict, StoreUnavailable, WriteFailed
from ..domain.models import Asset, Booking, format_day
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)

Params = Sequence[Tuple[str, str]]


class SupabaseStore:
    """
    Store backed by the Supabase REST API.

    Every call goes through ``/rest/v1/<table>`` with the project's API key.
    The ``bookings`` table is expected to fill ``id`` and ``created_at``
    itself and to carry a constraint that rejects overlapping rows for the
    same asset and day (reported by PostgREST as HTTP 409).
    """

    assigns_identity = True

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        assets_table: str = "assets",
        bookings_table: str = "bookings",
    ):
        """
        Initialize the client.

        Args:
            url: Project URL, e.g. ``https://<ref>.supabase.co``
            api_key: Anon or service key
            timeout: Per-request timeout in seconds
            assets_table: Name of the assets table
            bookings_table: Name of the bookings table
        """
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.assets_table = assets_table
        self.bookings_table = bookings_table
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Params] = None,
        payload: Any = None,
        prefer: Optional[str] = None,
    ) -> requests.Response:
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            return requests.request(
                method,
                f"{self.base_url}/{table}",
                headers=headers,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise StoreUnavailable(f"Supabase request to {table} failed: {exc}") from exc

    async def _call(self, method: str, table: str, **kwargs: Any) -> requests.Response:
        return await asyncio.to_thread(self._request, method, table, **kwargs)

    @staticmethod
    def _rows(response: requests.Response) -> List[Dict[str, Any]]:
        try:
            data = response.json()
        except ValueError as exc:
            raise StoreUnavailable(f"Supabase returned invalid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise StoreUnavailable(f"Unexpected Supabase response: {data!r}")
        return data

    @staticmethod
    def _check_read(response: requests.Response, what: str) -> None:
        if response.status_code >= 400:
            raise StoreUnavailable(
                f"Fetching {what} failed with HTTP {response.status_code}: {response.text}"
            )

    @staticmethod
    def _check_write(response: requests.Response, what: str) -> None:
        """
        Map a write response to the error taxonomy.

        Server-side errors count as the store being unavailable, client-side
        errors as a rejected write.
        """
        status = response.status_code
        if status < 400:
            return
        if status == 409:
            raise SlotConflict(f"{what} rejected as conflicting: {response.text}")
        if status >= 500:
            raise StoreUnavailable(f"{what} failed with HTTP {status}: {response.text}")
        raise WriteFailed(f"{what} rejected with HTTP {status}: {response.text}")

    def _parse_bookings(self, rows: List[Dict[str, Any]]) -> List[Booking]:
        bookings: List[Booking] = []
        for row in rows:
            try:
                bookings.append(Booking.from_record(row))
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping malformed booking row %s: %s", row.get("id"), exc)
        return bookings

    async def list_bookings(self, asset_id: str, day: Date) -> List[Booking]:
        """
        Fetch one asset's bookings for a calendar day.

        The ``date`` column holds timestamps, so the day is queried as
        ``[midnight, next midnight)`` and filtered again locally.
        """
        params = [
            ("select", "*"),
            ("assetId", f"eq.{asset_id}"),
            ("date", f"gte.{format_day(day)}"),
            ("date", f"lt.{format_day(day.add(days=1))}"),
        ]
        response = await self._call("GET", self.bookings_table, params=params)
        self._check_read(response, "bookings")
        bookings = self._parse_bookings(self._rows(response))
        return SlotCalculator.bookings_for(asset_id, day, bookings)

    async def list_all_bookings(self) -> List[Booking]:
        response = await self._call("GET", self.bookings_table, params=[("select", "*")])
        self._check_read(response, "bookings")
        return self._parse_bookings(self._rows(response))

    async def insert_booking(self, booking: Booking) -> Booking:
        response = await self._call(
            "POST",
            self.bookings_table,
            payload=booking.to_record(),
            prefer="return=representation",
        )
        self._check_write(response, f"Booking of {booking.asset_id}")

        rows = self._rows(response)
        if rows:
            return Booking.from_record(rows[0])
        return booking

    async def list_assets(self) -> List[Asset]:
        response = await self._call("GET", self.assets_table, params=[("select", "*")])
        self._check_read(response, "assets")

        assets: List[Asset] = []
        for row in self._rows(response):
            try:
                assets.append(Asset.from_record(row))
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping malformed asset row %s: %s", row.get("id"), exc)
        return assets

    async def upsert_asset(self, asset: Asset) -> Asset:
        response = await self._call(
            "POST",
            self.assets_table,
            params=[("on_conflict", "id")],
            payload=asset.to_record(),
            prefer="resolution=merge-duplicates,return=representation",
        )
        self._check_write(response, f"Asset {asset.id}")

        rows = self._rows(response)
        if rows:
            return Asset.from_record(rows[0])
        return asset

    async def set_asset_availability(self, asset_id: str, available: bool) -> bool:
        response = await self._call(
            "PATCH",
            self.assets_table,
            params=[("id", f"eq.{asset_id}")],
            payload={"available": available},
            prefer="return=representation",
        )
        self._check_write(response, f"Availability update of {asset_id}")
        return bool(self._rows(response))
