"""brokerai.core.time

The only time helper surface in the codebase.

Bars are stamped in aware UTC. Range bounds may be dates or datetimes.
"""

from __future__ import annotations

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Return an aware UTC datetime."""

    return datetime.now(tz=UTC)


def parse_dt(value: str) -> datetime:
    """Parse an ISO-8601 datetime string into an aware UTC datetime.

    Accepts:
    - `Z` suffix
    - explicit offsets
    - naive timestamps (assumed UTC)
    - bare dates (midnight UTC)

    Raises:
        ValueError: if parsing fails.
    """

    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"

    dt = datetime.fromisoformat(v)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_bound(value: str | date | datetime) -> date | datetime:
    """Normalize a range bound.

    A string without a time component stays a calendar ``date`` so that the
    whole day is covered; anything with a time becomes an aware UTC datetime.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return value

    v = value.strip()
    if len(v) == 10:
        return date.fromisoformat(v)
    return parse_dt(v)


def within(ts: datetime, start: date | datetime | None, end: date | datetime | None) -> bool:
    """Inclusive range check. Date bounds compare on the calendar day. None is open."""

    if start is not None:
        lo = ts if isinstance(start, datetime) else ts.date()
        if lo < start:
            return False
    if end is not None:
        hi = ts if isinstance(end, datetime) else ts.date()
        if hi > end:
            return False
    return True


def to_iso(dt: datetime | date | None) -> str | None:
    if dt is None:
        return None
    if isinstance(dt, datetime):
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC).isoformat()
    return dt.isoformat()
