"""UTC day-key helpers shared by the streak engine and puzzle lookup."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional

_EPOCH = date(1970, 1, 1)


def to_utc_day_number(date_string: Optional[str]) -> Optional[int]:
    """Convert ``YYYY-MM-DD`` to days since the Unix epoch at UTC midnight.

    Only the literal year/month/day segments are read, so the result never
    depends on the server's local timezone. Returns ``None`` when a segment is
    missing, non-numeric or zero. Out-of-range months and days roll over into
    the following month or year, so ``2024-02-30`` is the same day as
    ``2024-03-01``.
    """
    if not date_string:
        return None
    parts = str(date_string).split("-")
    if len(parts) < 3:
        return None
    try:
        year, month, day = (int(part) for part in parts[:3])
    except ValueError:
        return None
    if not year or not month or not day:
        return None

    carry_years, month_index = divmod(month - 1, 12)
    try:
        first_of_month = date(year + carry_years, month_index + 1, 1)
        return (first_of_month + timedelta(days=day - 1) - _EPOCH).days
    except (ValueError, OverflowError):
        return None


def is_consecutive(earlier: str, later: str) -> bool:
    first = to_utc_day_number(earlier)
    second = to_utc_day_number(later)
    if first is None or second is None:
        return False
    return second == first + 1


def today_iso(now: Optional[datetime] = None) -> str:
    """Return the current UTC calendar date, used to pick today's puzzle."""
    ref = now or datetime.now(timezone.utc)
    if ref.tzinfo is None:
        ref = ref.replace(tzinfo=timezone.utc)
    return ref.astimezone(timezone.utc).date().isoformat()
