from __future__ import annotations

from datetime import datetime, timezone


def to_utc_iso(dt: datetime) -> str:
    """Format a datetime as a fixed-width UTC ISO-8601 string with Z.

    Naive datetimes are treated as UTC. The fixed year and microsecond layout
    keeps lexicographic order identical to time order.

    Raises OverflowError when the UTC instant falls outside years 1..9999.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    u = dt.astimezone(timezone.utc)
    # strftime("%Y") does not zero-pad years below 1000 on every platform.
    return f"{u.year:04d}-{u:%m-%dT%H:%M:%S.%f}Z"


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return to_utc_iso(datetime.now(timezone.utc))


def month_start_iso(now: datetime | None = None) -> str:
    n = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return to_utc_iso(n.replace(day=1, hour=0, minute=0, second=0, microsecond=0))
