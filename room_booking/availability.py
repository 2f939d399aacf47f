from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

import holidays as pyholidays

from .booking import BOOKING_STATUSES, Booking

DAY_START = "08:00"
DAY_END = "18:00"
HOLIDAY_COUNTRY = "KH"
_HOLIDAY_CACHE: dict[tuple[str, int], dict[date, str]] = {}


@dataclass(frozen=True)
class RoomAvailability:
    room_name: str
    date: str
    day_start: str
    day_end: str
    holiday: str | None = None
    booked: list[tuple[str, str]] = field(default_factory=list)
    free: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "className": self.room_name,
            "date": self.date,
            "dayStart": self.day_start,
            "dayEnd": self.day_end,
            "holiday": self.holiday,
            "booked": [{"startTime": start, "endTime": end} for start, end in self.booked],
            "free": [{"startTime": start, "endTime": end} for start, end in self.free],
        }


def holiday_name(target_date: date, country: str | None = HOLIDAY_COUNTRY) -> str | None:
    if country is None:
        return None
    key = (country, target_date.year)
    if key not in _HOLIDAY_CACHE:
        holiday_map = pyholidays.country_holidays(country, years=[target_date.year])
        _HOLIDAY_CACHE[key] = dict(holiday_map.items())
    return _HOLIDAY_CACHE[key].get(target_date)


def room_availability(
    bookings: Iterable[Booking],
    room_name: str,
    day: str,
    day_start: str = DAY_START,
    day_end: str = DAY_END,
    country: str | None = HOLIDAY_COUNTRY,
) -> RoomAvailability:
    """Return the booked and free intervals of one room between ``day_start`` and ``day_end``."""
    if day_start >= day_end:
        raise ValueError("day_start must be earlier than day_end")

    same_day = sorted(
        (booking for booking in bookings if booking.room_name == room_name and booking.date == day),
        key=lambda booking: booking.start_time,
    )

    booked = [(booking.start_time, booking.end_time) for booking in same_day]
    free: list[tuple[str, str]] = []
    cursor = day_start
    for start, end in booked:
        if end <= cursor:
            continue
        if start > cursor:
            free.append((cursor, min(start, day_end)))
        cursor = max(cursor, end)
        if cursor >= day_end:
            break
    if cursor < day_end:
        free.append((cursor, day_end))

    return RoomAvailability(
        room_name=room_name,
        date=day,
        day_start=day_start,
        day_end=day_end,
        holiday=holiday_name(date.fromisoformat(day), country),
        booked=booked,
        free=[(start, end) for start, end in free if start < end],
    )


def booking_statistics(bookings: Iterable[Booking]) -> dict[str, Any]:
    rows = list(bookings)
    by_status = Counter(booking.status for booking in rows)
    return {
        "total": len(rows),
        "byStatus": {status: by_status.get(status, 0) for status in BOOKING_STATUSES},
        "byRoom": dict(sorted(Counter(booking.room_name for booking in rows).items())),
        "byDate": dict(sorted(Counter(booking.date for booking in rows).items())),
        "recurring": sum(1 for booking in rows if booking.recurring_pattern is not None),
    }
