"""UTC calendar date helpers.

Every date in the cap table is a UTC calendar date. Strings without an
offset are read as UTC (never host-local time), so results do not depend on
the machine's time zone.

Contract with callers: ``parse_utc_date`` returns ``None`` for malformed
input instead of raising, and the calculation functions do not re-validate
dates they are handed as ``date`` values. Reject bad strings with
``is_valid_iso_date`` before they reach the engine; entry points that
receive an unparseable string raise ``InvalidDateError``.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from .errors import InvalidDateError

DateLike = Union[date, datetime, str]

_DATE_ONLY = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DATE_PREFIX = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}")


def parse_utc_date(value: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` or an ISO-8601 timestamp as a UTC datetime.

    Args:
        value: Date string. A bare date means UTC midnight; a timestamp
            without an offset is taken as UTC; an explicit offset is
            converted to UTC.

    Returns:
        Timezone-aware datetime in UTC, or None if the string is malformed
        (e.g. ``"2024-13-01"`` or ``"not-a-date"``).
    """
    if not isinstance(value, str):
        return None

    match = _DATE_ONLY.match(value)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            return None

    text = value
    if text.endswith("Z") or text.endswith("z"):
        # fromisoformat only learned the Z suffix in 3.11
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_utc_date(value: Union[date, datetime]) -> str:
    """Render a date as zero-padded ``YYYY-MM-DD`` using UTC fields."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def is_valid_iso_date(value: str) -> bool:
    """Check the ``YYYY-MM-DD`` prefix and that the string parses. Never raises."""
    if not isinstance(value, str) or not _DATE_PREFIX.match(value):
        return False
    return parse_utc_date(value) is not None


def get_today_utc() -> str:
    """Today's date in UTC as ``YYYY-MM-DD``."""
    return format_utc_date(datetime.now(timezone.utc))


def to_utc_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to a UTC calendar date.

    Raises:
        InvalidDateError: If ``value`` is a string that does not parse.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_utc_date(value)
    if parsed is None:
        raise InvalidDateError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    return parsed.date()


def months_between(later: DateLike, earlier: DateLike) -> int:
    """Whole months elapsed from ``earlier`` to ``later``.

    months = (year diff) * 12 + (month diff), minus one when the day of
    month of ``later`` is before that of ``earlier`` (a partial final month
    does not count). Never negative.

    Example:
        months_between("2025-01-01", "2024-01-01") → 12
        months_between("2024-12-31", "2024-01-01") → 11
        months_between("2024-02-29", "2024-01-31") → 0
    """
    a = to_utc_date(later)
    b = to_utc_date(earlier)

    months = (a.year - b.year) * 12 + (a.month - b.month)
    if a.day < b.day:
        months -= 1

    return max(0, months)
