"""Calendar helpers for week keys and year arithmetic.

A week key is the 8-digit ``YYYYMMDD`` string of the Monday that opens a
reporting week.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from kbindex.core.errors import ValidationError

WEEK_KEY_FORMAT = "%Y%m%d"


def week_key(day: date) -> str:
    """Format a date as an 8-digit week key."""
    return day.strftime(WEEK_KEY_FORMAT)


def parse_week_key(key: str) -> date:
    """Parse an 8-digit week key.

    Raises:
        ValidationError: If ``key`` is not a real YYYYMMDD date
    """
    if not (isinstance(key, str) and len(key) == 8 and key.isdigit()):
        raise ValidationError(f"Invalid week key {key!r}: expected YYYYMMDD")
    try:
        return datetime.strptime(key, WEEK_KEY_FORMAT).date()
    except ValueError as e:
        raise ValidationError(f"Invalid week key {key!r}: expected YYYYMMDD") from e


def parse_iso_date(value: str | date | None, field_name: str = "date") -> date | None:
    """Parse an ISO date (``YYYY-MM-DD``).

    A timestamp is accepted when the date is followed by ``T`` or a space
    (``2025-01-10T09:00:00Z``); any other trailing text is rejected.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        if len(value) > 10 and value[10] not in "T ":
            raise ValueError(value)
        return date.fromisoformat(value[:10])
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name} {value!r}: expected YYYY-MM-DD") from e


def subtract_years(day: date, years: int) -> date:
    """Return the same calendar day ``years`` earlier.

    Feb 29 maps to Feb 28 when the target year is not a leap year.
    """
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def format_display_date(day: date) -> str:
    """Human-readable ``YYYY.M.D`` rendering used by the publisher (e.g. 2022.1.10)."""
    return f"{day.year}.{day.month}.{day.day}"


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def current_week(today: date | None = None) -> str:
    """Week key of the Monday opening the week that contains ``today``."""
    return week_key(monday_of(today or date.today()))
