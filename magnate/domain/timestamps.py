"""
Timestamp normalization.

Documents arrive with temporal fields in several shapes: ``datetime``/``date``
objects, ISO 8601 strings, epoch numbers (seconds or milliseconds), and
Firestore-style mappings ``{"seconds": ..., "nanoseconds": ...}``. Everything is
normalized to an aware UTC ``datetime``; anything unparseable becomes ``None``
and is treated as a missing value by the sorter and date-range facets.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

# Epoch values above this are assumed to be milliseconds (year ~2286 in seconds).
_MILLIS_THRESHOLD = 10_000_000_000


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(value: float) -> Optional[datetime]:
    if abs(value) >= _MILLIS_THRESHOLD:
        value = value / 1000.0
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_mapping(value: Mapping[str, Any]) -> Optional[datetime]:
    seconds = value.get("seconds", value.get("_seconds"))
    if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
        return None
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
    return _from_epoch(float(seconds) + float(nanos) / 1e9)


def _from_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _aware(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return _from_epoch(float(text))
    except ValueError:
        return None


def to_datetime(value: Any) -> Optional[datetime]:
    """Normalize a stored temporal value to an aware UTC datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))
    if isinstance(value, str):
        return _from_string(value)
    if isinstance(value, Mapping):
        return _from_mapping(value)
    return None


def utc_now_iso() -> str:
    """Current instant as an ISO 8601 UTC string, the format written on updates."""
    return datetime.now(timezone.utc).isoformat()


__all__ = ["to_datetime", "utc_now_iso"]
