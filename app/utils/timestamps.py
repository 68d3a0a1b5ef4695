"""
Instant helpers: ledger timestamps are UTC with millisecond precision.

Usage:
    from app.utils.timestamps import parse_instant, format_instant

    parse_instant("2026-01-05T10:00:00Z")   -> datetime(2026, 1, 5, 10, 0, tzinfo=UTC)
    format_instant(dt)                      -> "2026-01-05T10:00:00.000Z"
"""
from datetime import datetime, timezone


def truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes (e.g. read back from SQLite) are treated as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return truncate_to_millis(datetime.now(timezone.utc))


def parse_instant(value) -> datetime:
    """
    Parse an ISO-8601 instant.

    Accepts datetime objects and ISO strings ("Z" suffix allowed, naive
    values are taken as UTC). The result is UTC, truncated to milliseconds.

    Raises:
        ValueError: if the value is not a parseable instant, or falls
            outside the representable range once shifted to UTC
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Not an ISO-8601 instant: {value!r}")

    try:
        return truncate_to_millis(as_utc(parsed))
    except OverflowError as exc:
        # e.g. 0001-01-01T00:00:00+01:00 lands before year 1 in UTC
        raise ValueError(f"Instant out of range: {value!r}") from exc


def format_instant(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2026-01-05T10:00:00.000Z"""
    utc = as_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
