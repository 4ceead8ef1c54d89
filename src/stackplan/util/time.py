from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse a timestamp written by `to_rfc3339` (or by the Drive API) into UTC.

    Both the ``Z`` suffix and explicit offsets are accepted. Naive values are
    rejected so that plan documents never carry an ambiguous instant.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("timestamp must be a non-empty string")

    text = value.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return ensure_aware(datetime.fromisoformat(text)).astimezone(timezone.utc)


def to_rfc3339(dt: datetime) -> str:
    """Format as UTC with a ``Z`` suffix and microsecond precision."""
    utc = ensure_aware(dt).astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def ensure_aware(dt: datetime) -> datetime:
    if not isinstance(dt, datetime):
        raise TypeError("expected a datetime")
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("timezone-aware datetime required")
    return dt
