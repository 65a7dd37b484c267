"""
Tests for the AvailabilityChecker service.
"""

import asyncio

import pendulum
import pytest

from assetbooking.domain.models import Availability, TimeRange
from assetbooking.domain.slot_calculator import SlotCalculator
from assetbooking.services.availability import AvailabilityChecker

from conftest import InMemoryStore, UnreachableStore, make_booking


def _checker(store) -> AvailabilityChecker:
    return AvailabilityChecker(store, SlotCalculator())


def test_empty_store_is_available(day):
    checker = _checker(InMemoryStore())

    assert asyncio.run(checker.check("A001", day, "09:00", "09:30")) is Availability.AVAILABLE
    assert asyncio.run(checker.is_available("A001", day, "09:00", "09:30")) is True


def test_stored_booking_blocks_overlap_only(day):
    checker = _checker(InMemoryStore(bookings=[make_booking("09:00", "10:00")]))

    assert asyncio.run(checker.is_available("A001", day, "09:30", "10:00")) is False
    assert asyncio.run(checker.is_available("A001", day, "10:00", "10:30")) is True


def test_other_assets_and_days_are_ignored(day):
    store = InMemoryStore(bookings=[
        make_booking("09:00", "10:00", asset_id="A002"),
        make_booking("09:00", "10:00", day=day.add(days=1)),
    ])
    checker = _checker(store)

    assert asyncio.run(checker.check("A001", day, "09:00", "10:00")) is Availability.AVAILABLE


def test_repeated_checks_agree(day):
    checker = _checker(InMemoryStore(bookings=[make_booking("11:00", "12:00")]))

    first = asyncio.run(checker.check("A001", day, "11:30", "12:30"))
    second = asyncio.run(checker.check("A001", day, "11:30", "12:30"))

    assert first is second is Availability.UNAVAILABLE


def test_unreachable_store_is_unknown(day):
    checker = _checker(UnreachableStore())

    assert asyncio.run(checker.check("A001", day, "09:00", "09:30")) is Availability.UNKNOWN
    assert asyncio.run(checker.is_available("A001", day, "09:00", "09:30")) is False


def test_invalid_range_raises(day):
    checker = _checker(InMemoryStore())

    with pytest.raises(ValueError):
        asyncio.run(checker.check("A001", day, "10:00", "09:00"))


def test_check_ranges_matches_single_checks(day):
    store = InMemoryStore(bookings=[make_booking("08:45", "09:15"), make_booking("16:00", "18:00")])
    checker = _checker(store)
    ranges = SlotCalculator().day_ranges()

    batch = asyncio.run(checker.check_ranges("A001", day, ranges))
    single = [asyncio.run(checker.check("A001", day, r.start, r.end)) for r in ranges]

    assert batch == single
    assert store.calls.count("list_bookings") == 1 + len(ranges)


def test_check_ranges_unknown_for_every_range(day):
    checker = _checker(UnreachableStore())
    ranges = [TimeRange(start="08:00", end="08:30"), TimeRange(start="08:30", end="09:00")]

    assert asyncio.run(checker.check_ranges("A001", day, ranges)) == [Availability.UNKNOWN] * 2


def test_availability_at_derives_from_bookings():
    checker = _checker(InMemoryStore(bookings=[make_booking("09:00", "10:00")]))

    during = asyncio.run(checker.availability_at("A001", pendulum.datetime(2024, 11, 25, 9, 30)))
    after = asyncio.run(checker.availability_at("A001", pendulum.datetime(2024, 11, 25, 10, 0)))

    assert during is Availability.UNAVAILABLE
    assert after is Availability.AVAILABLE
