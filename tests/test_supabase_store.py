"""
Tests for the Supabase REST store with HTTP calls stubbed out.
"""

import asyncio
from typing import Any, Dict, List

import pytest
import requests

from assetbooking.adapters import supabase_store
from assetbooking.adapters.supabase_store import SupabaseStore
from assetbooking.domain.exceptions import SlotConflict, StoreUnavailable, WriteFailed

from conftest import make_asset, make_booking


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeRequests:
    """Records calls and replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def client():
    return SupabaseStore(url="https://example.supabase.co/", api_key="anon-key")


def _install(monkeypatch, fake: FakeRequests) -> FakeRequests:
    monkeypatch.setattr(supabase_store.requests, "request", fake)
    return fake


BOOKING_ROW = {
    "id": 1,
    "assetId": "A001",
    "userId": "alice",
    "date": "2024-11-25T00:00:00+00:00",
    "startTime": "09:00",
    "endTime": "10:00",
    "purpose": "Signal test",
    "created_at": "2024-11-20T12:00:00+00:00",
}


def test_list_bookings_queries_one_day(monkeypatch, client, day):
    fake = _install(monkeypatch, FakeRequests(FakeResponse(payload=[BOOKING_ROW])))

    bookings = asyncio.run(client.list_bookings("A001", day))

    call = fake.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://example.supabase.co/rest/v1/bookings"
    assert ("assetId", "eq.A001") in call["params"]
    assert ("date", "gte.2024-11-25T00:00:00Z") in call["params"]
    assert ("date", "lt.2024-11-26T00:00:00Z") in call["params"]
    assert call["headers"]["apikey"] == "anon-key"
    assert call["headers"]["Authorization"] == "Bearer anon-key"
    assert [(b.id, b.start_time) for b in bookings] == [("1", "09:00")]


def test_malformed_rows_are_skipped(monkeypatch, client, day):
    _install(monkeypatch, FakeRequests(FakeResponse(payload=[BOOKING_ROW, {"id": 2, "assetId": "A001"}])))

    bookings = asyncio.run(client.list_bookings("A001", day))

    assert len(bookings) == 1


def test_connection_error_is_unavailable(monkeypatch, client, day):
    _install(monkeypatch, FakeRequests(requests.exceptions.ConnectionError("refused")))

    with pytest.raises(StoreUnavailable):
        asyncio.run(client.list_bookings("A001", day))


def test_read_error_status_is_unavailable(monkeypatch, client):
    _install(monkeypatch, FakeRequests(FakeResponse(status_code=401, text="bad key")))

    with pytest.raises(StoreUnavailable, match="HTTP 401"):
        asyncio.run(client.list_assets())


def test_insert_booking_returns_stored_row(monkeypatch, client):
    fake = _install(monkeypatch, FakeRequests(FakeResponse(status_code=201, payload=[BOOKING_ROW])))

    stored = asyncio.run(client.insert_booking(make_booking("09:00", "10:00")))

    call = fake.calls[0]
    assert call["method"] == "POST"
    assert call["headers"]["Prefer"] == "return=representation"
    assert call["json"]["date"] == "2024-11-25T00:00:00Z"
    assert "id" not in call["json"]
    assert stored.id == "1"


@pytest.mark.parametrize(
    "status, error",
    [(409, SlotConflict), (400, WriteFailed), (503, StoreUnavailable)],
)
def test_insert_error_mapping(monkeypatch, client, status, error):
    _install(monkeypatch, FakeRequests(FakeResponse(status_code=status, text="nope")))

    with pytest.raises(error):
        asyncio.run(client.insert_booking(make_booking("09:00", "10:00")))


def test_upsert_asset_merges_on_id(monkeypatch, client):
    asset = make_asset("A001")
    fake = _install(monkeypatch, FakeRequests(FakeResponse(status_code=201, payload=[asset.to_record()])))

    stored = asyncio.run(client.upsert_asset(asset))

    call = fake.calls[0]
    assert call["params"] == [("on_conflict", "id")]
    assert "merge-duplicates" in call["headers"]["Prefer"]
    assert stored.id == "A001"


def test_set_asset_availability(monkeypatch, client):
    fake = _install(monkeypatch, FakeRequests(
        FakeResponse(payload=[{"id": "A001", "available": False}]),
        FakeResponse(payload=[]),
    ))

    assert asyncio.run(client.set_asset_availability("A001", False)) is True
    assert asyncio.run(client.set_asset_availability("A999", False)) is False
    assert fake.calls[0]["method"] == "PATCH"
    assert fake.calls[0]["params"] == [("id", "eq.A001")]
    assert fake.calls[0]["json"] == {"available": False}
