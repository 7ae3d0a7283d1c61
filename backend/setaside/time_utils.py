# Overview: UTC helpers; the database stores naive UTC, the API speaks ISO-8601 with 'Z'.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as naive UTC (the storage convention for every timestamp column)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are assumed to be UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a client-supplied ISO-8601 string (e.g. an order's pickup_time).

    Accepts "2030-05-01T10:30", "...Z" and "...+02:00". Blank input gives
    None; malformed input raises ValueError.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    return as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Serialize for JSON responses: whole seconds, trailing 'Z'."""
    if dt is None:
        return None
    return as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"
