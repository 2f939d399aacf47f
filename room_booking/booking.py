from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Iterable
import re

from .errors import InvalidPatternError, ValidationError

ROOM_NAMES = ("BTB", "SR", "PP", "KPS", "PVH", "Seminar", "Koh Kong")

STATUS_CONFIRMED = "confirmed"
STATUS_PENDING = "pending"
STATUS_CANCELLED = "cancelled"
BOOKING_STATUSES = (STATUS_CONFIRMED, STATUS_PENDING, STATUS_CANCELLED)

FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"
FREQUENCIES = (FREQUENCY_DAILY, FREQUENCY_WEEKLY, FREQUENCY_MONTHLY)

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_iso_date(value: str, name: str) -> date:
    """Parse a zero-padded ``YYYY-MM-DD`` date.

    Stored dates are compared as strings, so other ISO spellings of the same
    day (week dates, basic format) are rejected.
    """
    if not _ISO_DATE_RE.fullmatch(value):
        raise ValidationError(f"{name} must be formatted as YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as error:
        raise ValidationError(f"{name} must be formatted as YYYY-MM-DD") from error


@dataclass(frozen=True)
class RecurringPattern:
    frequency: str
    interval: int
    end_date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "frequency": self.frequency,
            "interval": self.interval,
            "endDate": self.end_date.isoformat(),
        }

    @staticmethod
    def from_dict(data: Any) -> "RecurringPattern":
        """Build a pattern from its wire form, raising InvalidPatternError on any defect."""
        if not isinstance(data, dict):
            raise InvalidPatternError()

        frequency = data.get("frequency")
        interval = data.get("interval")
        end_date = data.get("endDate")
        if not frequency or not interval or not end_date:
            raise InvalidPatternError()
        if frequency not in FREQUENCIES:
            raise InvalidPatternError()

        if isinstance(interval, bool):
            raise InvalidPatternError()
        if isinstance(interval, str) and interval.strip().isdigit():
            interval = int(interval.strip())
        if not isinstance(interval, int) or interval <= 0:
            raise InvalidPatternError()

        try:
            parsed_end = date.fromisoformat(str(end_date))
        except ValueError as error:
            raise InvalidPatternError() from error

        return RecurringPattern(frequency=str(frequency), interval=interval, end_date=parsed_end)


@dataclass(frozen=True)
class TimeSlot:
    room_name: str
    date: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class Booking:
    booking_id: str
    date: str
    start_time: str
    end_time: str
    group_name: str
    room_name: str
    created_at: str
    booked_by: str | None = None
    purpose: str | None = None
    description: str | None = None
    attendee_count: int | None = None
    status: str = STATUS_CONFIRMED
    recurring_pattern: RecurringPattern | None = field(default=None)
    updated_at: str | None = None

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(self.room_name, self.date, self.start_time, self.end_time)

    def with_changes(self, **changes: Any) -> "Booking":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.booking_id,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "groupName": self.group_name,
            "className": self.room_name,
        }
        optional = {
            "bookedBy": self.booked_by,
            "purpose": self.purpose,
            "description": self.description,
            "attendees": self.attendee_count,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        payload["status"] = self.status
        if self.recurring_pattern is not None:
            payload["recurring"] = self.recurring_pattern.to_dict()
        payload["createdAt"] = self.created_at
        if self.updated_at is not None:
            payload["updatedAt"] = self.updated_at
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Booking":
        recurring = data.get("recurring")
        attendees = data.get("attendees")
        return Booking(
            booking_id=str(data["id"]),
            date=str(data["date"]),
            start_time=str(data["startTime"]),
            end_time=str(data["endTime"]),
            group_name=str(data["groupName"]),
            room_name=str(data["className"]),
            created_at=str(data["createdAt"]),
            booked_by=_optional_str(data.get("bookedBy")),
            purpose=_optional_str(data.get("purpose")),
            description=_optional_str(data.get("description")),
            attendee_count=int(attendees) if attendees is not None else None,
            status=str(data.get("status") or STATUS_CONFIRMED),
            recurring_pattern=RecurringPattern.from_dict(recurring) if recurring else None,
            updated_at=_optional_str(data.get("updatedAt")),
        )


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None


def has_time_overlap(new_start: str, new_end: str, exist_start: str, exist_end: str) -> bool:
    """Return True when two time-of-day intervals overlap by even one minute.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-11:00 and 11:00-12:00) do not overlap.
    Times are zero-padded ``HH:MM`` strings, so string order is time order.
    An empty interval overlaps nothing.
    """
    if new_start >= new_end or exist_start >= exist_end:
        return False

    return new_start < exist_end and new_end > exist_start


def has_conflict(
    candidate: TimeSlot | Booking,
    existing: Iterable[Booking],
    exclude_id: str | None = None,
) -> bool:
    """Return True if the candidate overlaps any booking for the same room and date."""
    for booking in existing:
        if exclude_id is not None and booking.booking_id == exclude_id:
            continue
        if booking.room_name != candidate.room_name or booking.date != candidate.date:
            continue
        if has_time_overlap(candidate.start_time, candidate.end_time, booking.start_time, booking.end_time):
            return True
    return False
