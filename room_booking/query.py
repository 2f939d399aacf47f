from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Iterable, Mapping

from .booking import Booking, parse_iso_date
from .errors import ValidationError

SORT_ASC = "asc"
SORT_DESC = "desc"

SORT_ACCESSORS: dict[str, Callable[[Booking], str]] = {
    "date": lambda booking: booking.date,
    "createdAt": lambda booking: booking.created_at,
    "className": lambda booking: booking.room_name,
}
DEFAULT_SORT_BY = "date"


@dataclass(frozen=True)
class QuerySpec:
    start_date: str | None = None
    end_date: str | None = None
    room_name: str | None = None
    group_name: str | None = None
    booked_by: str | None = None
    status: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    page: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.sort_by is not None and self.sort_by not in SORT_ACCESSORS:
            raise ValidationError(f"sortBy must be one of: {', '.join(SORT_ACCESSORS)}")
        if self.sort_order is not None and self.sort_order not in (SORT_ASC, SORT_DESC):
            raise ValidationError("sortOrder must be 'asc' or 'desc'")
        for attribute, name in (("start_date", "startDate"), ("end_date", "endDate")):
            value = getattr(self, attribute)
            if value is not None:
                parse_iso_date(value, name)
        if self.page is not None and self.page < 1:
            raise ValidationError("page must be a positive integer")
        if self.limit is not None and self.limit < 1:
            raise ValidationError("limit must be a positive integer")

    def is_empty(self) -> bool:
        return all(getattr(self, item.name) is None for item in fields(self))

    @property
    def is_paginated(self) -> bool:
        return self.page is not None and self.limit is not None

    @staticmethod
    def from_args(args: Mapping[str, Any]) -> "QuerySpec":
        """Parse wire query parameters (camelCase names, string values).

        Blank values count as absent, and pagination is only taken into
        account when both ``page`` and ``limit`` are supplied.
        """

        def text(name: str) -> str | None:
            value = args.get(name)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        page = text("page")
        limit = text("limit")
        if page is None or limit is None:
            page = limit = None

        return QuerySpec(
            start_date=text("startDate"),
            end_date=text("endDate"),
            room_name=text("className"),
            group_name=text("groupName"),
            booked_by=text("bookedBy"),
            status=text("status"),
            sort_by=text("sortBy"),
            sort_order=text("sortOrder"),
            page=_parse_positive_int(page, "page"),
            limit=_parse_positive_int(limit, "limit"),
        )


@dataclass(frozen=True)
class QueryResult:
    results: list[Booking]
    total: int


def query(bookings: Iterable[Booking], spec: QuerySpec) -> QueryResult:
    rows = list(bookings)

    if spec.start_date is not None:
        rows = [row for row in rows if row.date >= spec.start_date]
    if spec.end_date is not None:
        rows = [row for row in rows if row.date <= spec.end_date]

    if spec.room_name is not None:
        rows = [row for row in rows if row.room_name == spec.room_name]

    if spec.group_name is not None:
        needle = spec.group_name.lower()
        rows = [
            row
            for row in rows
            if needle in row.group_name.lower() or (row.purpose is not None and needle in row.purpose.lower())
        ]

    if spec.booked_by is not None:
        needle = spec.booked_by.lower()
        rows = [row for row in rows if row.booked_by is not None and needle in row.booked_by.lower()]

    if spec.status is not None:
        rows = [row for row in rows if row.status == spec.status]

    total = len(rows)

    # list.sort is stable for reverse=True as well, so ties keep storage order.
    accessor = SORT_ACCESSORS[spec.sort_by or DEFAULT_SORT_BY]
    rows.sort(key=accessor, reverse=spec.sort_order == SORT_DESC)

    if spec.is_paginated:
        start = (spec.page - 1) * spec.limit
        rows = rows[start : start + spec.limit]

    return QueryResult(results=rows, total=total)


def total_pages(total: int, limit: int | None) -> int:
    if not limit:
        return 1
    return (total + limit - 1) // limit


def _parse_positive_int(value: str | None, name: str) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(value)
    except ValueError as error:
        raise ValidationError(f"{name} must be a positive integer") from error
    if parsed < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return parsed

