"""Business-day arithmetic on calendar dates.

Every function here works on ``datetime.date`` values only: there is no
time-of-day and no timezone, so the same ISO string always maps to the
same calendar day.

Weekend convention: a start date falling on Saturday or Sunday is first
moved forward to the following Monday, then business days are counted
from there. ``add_work_days(d, 0)`` is therefore the normalised start.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

SATURDAY = 5
_ONE_DAY = timedelta(days=1)


class ScheduleInputError(ValueError):
    """Raised when a schedule input cannot be interpreted.

    Attributes:
        field: Name of the offending input.
        value: The rejected value.
    """

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} {value!r}: {reason}")


def is_business_day(day: date) -> bool:
    """Return True for Monday through Friday."""
    return day.weekday() < SATURDAY


def next_business_day(day: date) -> date:
    """Return ``day`` itself if it is a business day, else the next Monday."""
    while not is_business_day(day):
        day += _ONE_DAY
    return day


def add_work_days(start: date, days: int) -> date:
    """Return the date ``days`` business days after ``start``.

    ``start`` is normalised forward to a business day before counting, so
    the result is never a Saturday or Sunday.

    Args:
        start: Any calendar date.
        days: Number of business days to advance (>= 0).

    Returns:
        The resulting business day.

    Raises:
        ScheduleInputError: If ``days`` is negative.
    """
    if days < 0:
        raise ScheduleInputError("days", days, "must be zero or positive")

    current = next_business_day(start)
    added = 0
    while added < days:
        current += _ONE_DAY
        if is_business_day(current):
            added += 1
    return current


def business_days_between(start: date, end: date) -> int:
    """Count business days stepped over going from ``start`` to ``end``.

    Both dates are normalised forward first. The result is negative when
    ``end`` comes before ``start``.
    """
    start = next_business_day(start)
    end = next_business_day(end)
    if end < start:
        return -business_days_between(end, start)

    count = 0
    current = start
    while current < end:
        current += _ONE_DAY
        if is_business_day(current):
            count += 1
    return count


def parse_calendar_date(value: date | str | None, field: str = "date") -> date | None:
    """Interpret a boundary value as a calendar date.

    Accepts ``date`` objects, ISO ``YYYY-MM-DD`` strings (a trailing time
    part such as ``T12:00:00`` is dropped) and empty values.

    Args:
        value: Value to parse.
        field: Input name used in error messages.

    Returns:
        The calendar date, or None for ``None`` and blank strings.

    Raises:
        ScheduleInputError: If the value is present but not a date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ScheduleInputError(field, value, "expected an ISO date string")

    text = value.strip()
    if not text:
        return None
    if len(text) > 10 and text[10] in "T ":
        text = text[:10]
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ScheduleInputError(field, value, "expected YYYY-MM-DD") from None


def format_calendar_date(day: date | None) -> str | None:
    """Render a calendar date as ``YYYY-MM-DD`` (None passes through)."""
    return day.isoformat() if day is not None else None
