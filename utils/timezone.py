"""UTC-everywhere time handling for entry stamps and document numbers."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def date_stamp(dt: datetime | None = None) -> str:
    """UTC calendar date as YYYYMMDD, used in document numbers."""
    return (dt or now_utc()).astimezone(timezone.utc).strftime("%Y%m%d")
