"""
Tests for the failover store wrapper.
"""

import asyncio

import pytest

from assetbooking.adapters.failover_store import FailoverStore
from assetbooking.domain.exceptions import SlotConflict, WriteFailed
from assetbooking.services.booking_writer import BookingWriter

from conftest import InMemoryStore, UnreachableStore, make_asset, make_booking


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class ConflictingStore(InMemoryStore):
    async def insert_booking(self, booking):
        raise SlotConflict("overlaps an existing booking")


class RejectingStore(InMemoryStore):
    async def insert_booking(self, booking):
        raise WriteFailed("column missing")


def test_primary_is_used_when_healthy(day):
    primary = InMemoryStore(bookings=[make_booking("09:00", "10:00")])
    fallback = InMemoryStore()
    store = FailoverStore(primary, fallback)

    bookings = asyncio.run(store.list_bookings("A001", day))

    assert len(bookings) == 1
    assert fallback.calls == []


def test_unavailable_primary_falls_back(day):
    fallback = InMemoryStore(assets=[make_asset("A001")])
    store = FailoverStore(UnreachableStore(), fallback)

    stored = asyncio.run(store.insert_booking(make_booking("09:00", "10:00")))
    updated = asyncio.run(store.set_asset_availability("A001", False))

    assert fallback.bookings == [stored]
    assert updated is True
    assert fallback.assets["A001"].available is False


def test_breaker_skips_primary_until_cooldown_ends(day):
    clock = FakeClock()
    primary = UnreachableStore()
    fallback = InMemoryStore()
    store = FailoverStore(primary, fallback, cooldown_seconds=30, clock=clock)

    asyncio.run(store.list_bookings("A001", day))
    assert not store.primary_available

    clock.now += 31
    assert store.primary_available


def test_zero_cooldown_always_tries_primary(day):
    store = FailoverStore(UnreachableStore(), InMemoryStore(), cooldown_seconds=0)

    asyncio.run(store.list_assets())

    assert store.primary_available


def test_breaker_routes_to_fallback_without_calling_primary(day):
    clock = FakeClock()
    primary = InMemoryStore()
    fallback = InMemoryStore()
    store = FailoverStore(primary, fallback, cooldown_seconds=30, clock=clock)
    store._trip()

    asyncio.run(store.list_assets())

    assert primary.calls == []
    assert fallback.calls == ["list_assets"]


def test_slot_conflict_is_not_retried():
    fallback = InMemoryStore()
    store = FailoverStore(ConflictingStore(), fallback)

    with pytest.raises(SlotConflict):
        asyncio.run(store.insert_booking(make_booking("09:00", "10:00")))

    assert fallback.bookings == []


def test_rejected_write_falls_back_without_tripping():
    fallback = InMemoryStore()
    store = FailoverStore(RejectingStore(), fallback)

    asyncio.run(store.insert_booking(make_booking("09:00", "10:00")))

    assert len(fallback.bookings) == 1
    assert store.primary_available


def test_fallback_failure_propagates():
    store = FailoverStore(UnreachableStore(), RejectingStore())

    with pytest.raises(WriteFailed):
        asyncio.run(store.insert_booking(make_booking("09:00", "10:00")))


def test_flag_update_follows_booking_to_fallback():
    primary = RejectingStore(assets=[make_asset("A001")])
    fallback = InMemoryStore(assets=[make_asset("A001")])
    store = FailoverStore(primary, fallback)

    asyncio.run(BookingWriter(store).save_booking(make_booking("09:00", "10:00")))

    assert len(fallback.bookings) == 1
    assert fallback.assets["A001"].available is False
    assert primary.assets["A001"].available is True
    assert "set_asset_availability" not in primary.calls


def test_flag_update_stays_on_primary_after_primary_booking():
    primary = InMemoryStore(assets=[make_asset("A001")])
    fallback = InMemoryStore(assets=[make_asset("A001")])
    store = FailoverStore(primary, fallback)

    asyncio.run(BookingWriter(store).save_booking(make_booking("09:00", "10:00")))

    assert primary.assets["A001"].available is False
    assert fallback.calls == []
