from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Mapping, Protocol, Sequence
import logging
import re
import threading
from uuid import uuid4

from .availability import DAY_END, DAY_START, HOLIDAY_COUNTRY, RoomAvailability, booking_statistics, room_availability
from .booking import (
    BOOKING_STATUSES,
    ROOM_NAMES,
    STATUS_CONFIRMED,
    Booking,
    RecurringPattern,
    has_conflict,
    parse_iso_date,
)
from .errors import ConflictError, NotFoundError, ValidationError
from .query import QueryResult, QuerySpec, query
from .recurrence import expand, occurrence_dates

logger = logging.getLogger(__name__)

CREATE_REQUIRED_FIELDS = ("date", "startTime", "endTime", "groupName", "className", "bookedBy", "purpose")
UPDATE_REQUIRED_FIELDS = ("date", "startTime", "endTime", "groupName", "className", "bookedBy")
IMMUTABLE_FIELDS = {"id", "createdAt", "updatedAt", "recurring"}

_TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")


class BookingStorage(Protocol):
    def read_all(self) -> list[Booking]: ...

    def write_all(self, bookings: Sequence[Booking]) -> None: ...


class EventLog(Protocol):
    def log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None: ...


class BookingStore:
    """CRUD over the booking collection with overlap prevention.

    Each mutating call reads the whole collection, checks it and writes it
    back while holding one lock, so two concurrent requests cannot both pass
    the conflict check against the same snapshot.
    """

    def __init__(
        self,
        storage: BookingStorage,
        event_log: EventLog | None = None,
        now_provider: Callable[[], datetime] | None = None,
        rooms: Sequence[str] = ROOM_NAMES,
        holiday_country: str | None = HOLIDAY_COUNTRY,
    ) -> None:
        self._storage = storage
        self._event_log = event_log
        self._clock: Callable[[], datetime] = now_provider or datetime.now
        self._lock = threading.RLock()
        self.rooms = tuple(rooms)
        self.holiday_country = holiday_country

    def create(self, draft: Mapping[str, Any], now: datetime | None = None) -> Booking | list[Booking]:
        payload = dict(draft)
        _require_fields(payload, CREATE_REQUIRED_FIELDS)
        values = self._validated_values(payload)

        pattern: RecurringPattern | None = None
        if payload.get("recurring") is not None:
            pattern = RecurringPattern.from_dict(payload["recurring"])

        effective_now = now or self._clock()
        created_at = effective_now.isoformat(timespec="seconds")

        with self._lock:
            existing = self._storage.read_all()

            if pattern is not None:
                base = Booking(booking_id="", created_at=created_at, **values)
                series = expand(base, pattern, existing)
                if not series:
                    raise ConflictError()
                self._storage.write_all([*existing, *series])
                skipped = _count_occurrences(base, pattern) - len(series)
                if skipped:
                    logger.info("Skipped %d conflicting occurrence(s) for %s", skipped, base.room_name)
                self._log(
                    "BOOKING_SERIES_CREATED",
                    {
                        "ids": [booking.booking_id for booking in series],
                        "room": base.room_name,
                        "pattern": pattern.to_dict(),
                        "skipped": skipped,
                    },
                    effective_now,
                )
                return series

            booking = Booking(booking_id=str(uuid4()), created_at=created_at, **values)
            if has_conflict(booking, existing):
                raise ConflictError()

            self._storage.write_all([*existing, booking])
            self._log("BOOKING_CREATED", _event_payload(booking), effective_now)
            return booking

    def update(self, booking_id: str, patch: Mapping[str, Any], now: datetime | None = None) -> Booking:
        payload = dict(patch)
        _require_fields(payload, UPDATE_REQUIRED_FIELDS)
        effective_now = now or self._clock()

        with self._lock:
            bookings = self._storage.read_all()
            index = _find_index(bookings, booking_id)
            if index is None:
                raise NotFoundError()

            current = bookings[index]
            merged = current.to_dict()
            merged.update({key: value for key, value in payload.items() if key not in IMMUTABLE_FIELDS})
            values = self._validated_values(merged)

            updated = current.with_changes(**values, updated_at=effective_now.isoformat(timespec="seconds"))
            if has_conflict(updated, bookings, exclude_id=booking_id):
                raise ConflictError()

            bookings[index] = updated
            self._storage.write_all(bookings)
            self._log("BOOKING_UPDATED", _event_payload(updated), effective_now)
            return updated

    def remove(self, booking_id: str, now: datetime | None = None) -> bool:
        with self._lock:
            bookings = self._storage.read_all()
            index = _find_index(bookings, booking_id)
            if index is None:
                raise NotFoundError()

            removed = bookings.pop(index)
            self._storage.write_all(bookings)
            self._log("BOOKING_DELETED", _event_payload(removed), now or self._clock())
            return True

    def get(self, booking_id: str) -> Booking:
        bookings = self._storage.read_all()
        index = _find_index(bookings, booking_id)
        if index is None:
            raise NotFoundError()
        return bookings[index]

    def list_bookings(self, spec: QuerySpec | None = None) -> QueryResult:
        bookings = self._storage.read_all()
        if spec is None or spec.is_empty():
            return QueryResult(results=bookings, total=len(bookings))
        return query(bookings, spec)

    def statistics(self) -> dict[str, Any]:
        return booking_statistics(self._storage.read_all())

    def availability(
        self,
        room_name: str,
        day: str,
        day_start: str = DAY_START,
        day_end: str = DAY_END,
    ) -> RoomAvailability:
        if room_name not in self.rooms:
            raise NotFoundError("Room not found")
        parse_iso_date(day, "date")
        return room_availability(
            self._storage.read_all(),
            room_name,
            day,
            day_start=day_start,
            day_end=day_end,
            country=self.holiday_country,
        )

    def _validated_values(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Turn wire fields into Booking keyword arguments, raising ValidationError on bad input."""
        booking_date = str(payload.get("date", "")).strip()
        parse_iso_date(booking_date, "date")

        start_time = str(payload.get("startTime", "")).strip()
        end_time = str(payload.get("endTime", "")).strip()
        for name, value in (("startTime", start_time), ("endTime", end_time)):
            if not _TIME_RE.match(value):
                raise ValidationError(f"{name} must be formatted as HH:MM")
        if start_time >= end_time:
            raise ValidationError("endTime must be later than startTime")

        room_name = str(payload.get("className", "")).strip()
        if room_name not in self.rooms:
            raise ValidationError(f"className must be one of: {', '.join(self.rooms)}")

        group_name = str(payload.get("groupName", "")).strip()
        if not group_name:
            raise ValidationError("groupName is required")

        status = payload.get("status") or STATUS_CONFIRMED
        if status not in BOOKING_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(BOOKING_STATUSES)}")

        return {
            "date": booking_date,
            "start_time": start_time,
            "end_time": end_time,
            "group_name": group_name,
            "room_name": room_name,
            "booked_by": _optional_text(payload.get("bookedBy")),
            "purpose": _optional_text(payload.get("purpose")),
            "description": _optional_text(payload.get("description")),
            "attendee_count": _parse_attendees(payload.get("attendees")),
            "status": status,
        }

    def _log(self, event_type: str, payload: dict[str, Any], event_time: datetime) -> None:
        if self._event_log is not None:
            self._event_log.log_event(event_type, payload, event_time)


def _require_fields(payload: Mapping[str, Any], names: Sequence[str]) -> None:
    for name in names:
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required")


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_attendees(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("attendees must be a non-negative integer")
    try:
        count = int(value)
    except (TypeError, ValueError) as error:
        raise ValidationError("attendees must be a non-negative integer") from error
    if count < 0 or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("attendees must be a non-negative integer")
    return count


def _find_index(bookings: Sequence[Booking], booking_id: str) -> int | None:
    for index, booking in enumerate(bookings):
        if booking.booking_id == booking_id:
            return index
    return None


def _count_occurrences(base: Booking, pattern: RecurringPattern) -> int:
    return sum(1 for _ in occurrence_dates(date.fromisoformat(base.date), pattern))


def _event_payload(booking: Booking) -> dict[str, Any]:
    return {
        "id": booking.booking_id,
        "room": booking.room_name,
        "date": booking.date,
        "startTime": booking.start_time,
        "endTime": booking.end_time,
        "groupName": booking.group_name,
    }
