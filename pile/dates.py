"""Date-key helpers: today, relative days, display formatting."""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo

from pile.errors import ParseError
from pile.keys import DateKey


def _today_date(tz: tzinfo | None = None) -> date:
    return datetime.now(tz).date()


def to_key(value: date | datetime | str) -> DateKey:
    """Normalize a date, datetime or ISO date string to a DateKey."""
    if isinstance(value, datetime):
        value = value.date()
    elif isinstance(value, str):
        value = parse_key_date(value)
    return DateKey(value.isoformat())


def parse_key_date(key: str) -> date:
    """Parse a date key into a ``date``. Raises ParseError on bad text."""
    try:
        return date.fromisoformat(key.strip())
    except (AttributeError, ValueError) as e:
        raise ParseError(f"Invalid date: {key!r}") from e


def today(tz: tzinfo | None = None) -> DateKey:
    """Today's key in *tz* (local time when omitted)."""
    return to_key(_today_date(tz))


def day_ago(days: int, tz: tzinfo | None = None) -> DateKey:
    return to_key(_today_date(tz) - timedelta(days=days))


def day_ahead(days: int, tz: tzinfo | None = None) -> DateKey:
    return to_key(_today_date(tz) + timedelta(days=days))


def days_ago(days: int, tz: tzinfo | None = None) -> list[DateKey]:
    """The *days* keys before today, nearest first. Today is not included."""
    base = _today_date(tz)
    return [to_key(base - timedelta(days=d + 1)) for d in range(days)]


def days_ahead(days: int, tz: tzinfo | None = None) -> list[DateKey]:
    """The *days* keys after today, furthest first. Today is not included.

    ``days_ahead(n) + [today] + days_ago(n)`` is one descending run.
    """
    base = _today_date(tz)
    return [to_key(base + timedelta(days=d + 1)) for d in range(days)][::-1]


def format_key(key: str) -> str:
    """'2023-10-23' -> 'Monday, Oct 23'."""
    d = parse_key_date(key)
    return f"{d:%A}, {d:%b} {d.day}"
