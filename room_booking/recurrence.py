from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Iterator
from uuid import uuid4

from .booking import (
    FREQUENCY_DAILY,
    FREQUENCY_MONTHLY,
    FREQUENCY_WEEKLY,
    Booking,
    RecurringPattern,
    has_conflict,
)
from .errors import InvalidPatternError

MAX_OCCURRENCES = 366


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole calendar months, clamping to the target month's last day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def occurrence_dates(start: date, pattern: RecurringPattern) -> Iterator[date]:
    """Yield every date of the series from ``start`` up to ``pattern.end_date`` inclusive.

    Monthly steps are computed from the start date rather than from the previous
    occurrence, so a series anchored on the 31st returns to the 31st after a
    short month instead of drifting.
    """
    if pattern.interval <= 0:
        raise InvalidPatternError()

    index = 0
    cursor = start
    while cursor <= pattern.end_date:
        if index >= MAX_OCCURRENCES:
            raise InvalidPatternError(f"Recurring pattern produces more than {MAX_OCCURRENCES} bookings")
        yield cursor

        index += 1
        if pattern.frequency == FREQUENCY_DAILY:
            cursor = start + timedelta(days=index * pattern.interval)
        elif pattern.frequency == FREQUENCY_WEEKLY:
            cursor = start + timedelta(days=index * pattern.interval * 7)
        elif pattern.frequency == FREQUENCY_MONTHLY:
            cursor = add_months(start, index * pattern.interval)
        else:
            raise InvalidPatternError()


def expand(
    base: Booking,
    pattern: RecurringPattern | None,
    existing: Iterable[Booking] = (),
) -> list[Booking]:
    """Generate the bookings of a recurring series.

    Occurrences that collide with ``existing`` or with an occurrence accepted
    earlier in the same series are skipped and generation continues. Every
    returned booking gets its own id and carries ``pattern``.
    """
    if pattern is None:
        raise InvalidPatternError()

    try:
        start = date.fromisoformat(base.date)
    except ValueError as error:
        raise InvalidPatternError() from error
    if pattern.end_date < start:
        raise InvalidPatternError("Recurring pattern ends before the first booking")

    taken = list(existing)
    accepted: list[Booking] = []
    for occurrence in occurrence_dates(start, pattern):
        candidate = base.with_changes(
            booking_id=str(uuid4()),
            date=occurrence.isoformat(),
            recurring_pattern=pattern,
        )
        if has_conflict(candidate, taken):
            continue
        taken.append(candidate)
        accepted.append(candidate)

    return accepted
