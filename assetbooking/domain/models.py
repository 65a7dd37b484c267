"""
Domain models for assets, bookings and bookable time slots.
"""

import random
import re
from dataclasses import dataclass, field, replace
from datetime import time
from enum import Enum
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import Date, DateTime

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_wall_clock(value: str) -> int:
    """
    Convert a zero-padded ``HH:MM`` string to minutes after midnight.

    Raises:
        ValueError: If the value is not a valid 24h ``HH:MM`` string
    """
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time '{value}', expected HH:MM (24h, zero padded)")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_wall_clock(minutes: int) -> str:
    """Format minutes after midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_day(value: Any) -> Date:
    """
    Reduce an ISO-8601 date/timestamp string (or date object) to its calendar day.

    The time-of-day part is dropped as written, without timezone conversion.
    """
    if isinstance(value, DateTime):
        return value.date()
    if isinstance(value, Date):
        return value
    if hasattr(value, "year") and hasattr(value, "day"):
        return pendulum.date(value.year, value.month, value.day)

    parsed = pendulum.parse(str(value))
    if isinstance(parsed, DateTime):
        return parsed.date()
    if isinstance(parsed, Date):
        return parsed
    raise ValueError(f"Could not parse date: {value}")


def format_day(day: Date) -> str:
    """Serialize a calendar day as a midnight UTC ISO-8601 timestamp."""
    return pendulum.datetime(day.year, day.month, day.day, tz="UTC").to_iso8601_string()


def _parse_timestamp(value: Optional[str]) -> Optional[DateTime]:
    if not value:
        return None
    parsed = pendulum.parse(value)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse timestamp: {value}")
    return parsed


def _format_timestamp(value: Optional[DateTime]) -> Optional[str]:
    return value.to_iso8601_string() if value else None


def generate_booking_id(moment: DateTime) -> str:
    """Build a ``booking-<epoch ms>-<0..999>`` identifier."""
    return f"booking-{int(moment.timestamp() * 1000)}-{random.randrange(1000)}"


def intervals_conflict(start: str, end: str, other_start: str, other_end: str) -> bool:
    """
    Check whether ``[start, end)`` collides with a stored ``[other_start, other_end)``.

    A conflict exists when the requested start falls inside the stored
    interval, the requested end falls inside it, or the request fully covers
    it. Touching boundaries do not conflict. Values are zero-padded ``HH:MM``
    strings on the same day, so plain string comparison orders them.
    """
    return (
        (other_start <= start < other_end)
        or (other_start < end <= other_end)
        or (start <= other_start and end >= other_end)
    )


@dataclass(frozen=True)
class TimeRange:
    """
    Half-open wall-clock interval ``[start, end)`` within a single day.

    Invariant: start must be before end, both ``HH:MM``.
    """
    start: str
    end: str

    def __post_init__(self):
        start_minutes = parse_wall_clock(self.start)
        end_minutes = parse_wall_clock(self.end)
        if start_minutes >= end_minutes:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def from_minutes(cls, start_minutes: int, end_minutes: int) -> "TimeRange":
        return cls(start=format_wall_clock(start_minutes), end=format_wall_clock(end_minutes))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return parse_wall_clock(self.end) - parse_wall_clock(self.start)

    def conflicts_with(self, other: "TimeRange") -> bool:
        """Check if this range collides with another (touching ends are fine)."""
        return intervals_conflict(self.start, self.end, other.start, other.end)

    def covers(self, moment: str) -> bool:
        """Check whether a ``HH:MM`` moment lies inside the half-open range."""
        return self.start <= moment < self.end

    def on(self, day: Date, timezone: str = "UTC") -> "tuple[DateTime, DateTime]":
        """
        Anchor the range to a calendar day, returning start and end timestamps.

        Timestamps are built from the wall-clock fields, so on a DST change
        day slots still start at their local ``HH:MM``.
        """
        def _at(minutes: int) -> DateTime:
            hour, minute = divmod(minutes, 60)
            return pendulum.datetime(day.year, day.month, day.day, hour, minute, tz=timezone)

        return _at(parse_wall_clock(self.start)), _at(parse_wall_clock(self.end))

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass
class OperatingHours:
    """
    Daily window in which an asset can be booked, cut into fixed slots.
    """
    open_time: time = time(8, 0)
    close_time: time = time(18, 0)
    slot_minutes: int = 30

    def __post_init__(self):
        if self.slot_minutes <= 0:
            raise ValueError("slot_minutes must be greater than zero")
        if self._open_minutes >= self._close_minutes:
            raise ValueError(
                f"Opening time {self.open_time} must be before closing time {self.close_time}"
            )
        if (self._close_minutes - self._open_minutes) % self.slot_minutes:
            raise ValueError("Operating window must divide evenly into slots")

    @property
    def _open_minutes(self) -> int:
        return self.open_time.hour * 60 + self.open_time.minute

    @property
    def _close_minutes(self) -> int:
        return self.close_time.hour * 60 + self.close_time.minute

    @property
    def slots_per_day(self) -> int:
        return (self._close_minutes - self._open_minutes) // self.slot_minutes

    def slot_ranges(self) -> List[TimeRange]:
        """
        Return the day's slot grid in chronological order.

        Slot ``i`` starts at ``open + i * slot_minutes``.
        """
        return [
            TimeRange.from_minutes(
                self._open_minutes + index * self.slot_minutes,
                self._open_minutes + (index + 1) * self.slot_minutes,
            )
            for index in range(self.slots_per_day)
        ]


class CalibrationStatus(str, Enum):
    CALIBRATED = "Calibrated"
    DUE_SOON = "Due Soon"
    OVERDUE = "Overdue"
    NOT_REQUIRED = "Not Required"


class Availability(str, Enum):
    """
    Outcome of an availability check.

    UNKNOWN means the bookings could not be read, which is distinct from
    a confirmed conflict.
    """
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"

    @property
    def is_available(self) -> bool:
        return self is Availability.AVAILABLE


@dataclass
class Asset:
    """A piece of lab equipment that can be booked."""
    id: str
    name: str
    type: str
    calibration_status: CalibrationStatus
    last_calibrated: Optional[DateTime] = None
    next_calibration_due: Optional[DateTime] = None
    location: Optional[str] = None
    available: bool = True

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the column layout of the ``assets`` table."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "calibrationStatus": self.calibration_status.value,
            "lastCalibrated": _format_timestamp(self.last_calibrated),
            "nextCalibrationDue": _format_timestamp(self.next_calibration_due),
            "location": self.location or None,
            "available": self.available,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Asset":
        return cls(
            id=record["id"],
            name=record["name"],
            type=record["type"],
            calibration_status=CalibrationStatus(record["calibrationStatus"]),
            last_calibrated=_parse_timestamp(record.get("lastCalibrated")),
            next_calibration_due=_parse_timestamp(record.get("nextCalibrationDue")),
            location=record.get("location"),
            available=bool(record.get("available", True)),
        )


@dataclass
class Booking:
    """
    A reservation of one asset for a wall-clock interval on one day.

    ``id`` and ``created_at`` stay empty until the booking is written.
    """
    asset_id: str
    user_id: str
    date: Date
    start_time: str
    end_time: str
    purpose: str
    id: Optional[str] = None
    created_at: Optional[DateTime] = None

    def __post_init__(self):
        self.date = parse_day(self.date)
        # Ordering by string comparison needs zero-padded values
        parse_wall_clock(self.start_time)
        parse_wall_clock(self.end_time)

    def conflicts_with(self, start_time: str, end_time: str) -> bool:
        """Check a requested interval against this booking's interval."""
        return intervals_conflict(start_time, end_time, self.start_time, self.end_time)

    def with_identity(self, booking_id: str, created_at: DateTime) -> "Booking":
        return replace(self, id=booking_id, created_at=created_at)

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the column layout of the ``bookings`` table."""
        record: Dict[str, Any] = {
            "assetId": self.asset_id,
            "userId": self.user_id,
            "date": format_day(self.date),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "purpose": self.purpose,
        }
        if self.id:
            record["id"] = self.id
        if self.created_at:
            record["created_at"] = _format_timestamp(self.created_at)
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Booking":
        booking_id = record.get("id")
        return cls(
            asset_id=record["assetId"],
            user_id=record["userId"],
            date=parse_day(record["date"]),
            start_time=record["startTime"],
            end_time=record["endTime"],
            purpose=record.get("purpose", ""),
            id=str(booking_id) if booking_id is not None else None,
            created_at=_parse_timestamp(record.get("created_at")),
        )


@dataclass
class TimeSlot:
    """
    One bookable slot of a day, computed on every query.
    """
    start: DateTime
    end: DateTime
    availability: Availability

    @property
    def available(self) -> bool:
        return self.availability.is_available

    def format_display(self) -> str:
        """Format as ``HH:MM - HH:MM``."""
        return f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')}"


@dataclass
class CalendarDay:
    """A day of the availability calendar with its slots."""
    date: Date
    slots: List[TimeSlot] = field(default_factory=list)

    @property
    def available(self) -> bool:
        """True if any slot of the day can still be booked."""
        return any(slot.available for slot in self.slots)

    def free_slot_count(self) -> int:
        return sum(1 for slot in self.slots if slot.available)
