"""Datetime utility functions."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def to_iso_timestamp(dt: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC timestamp with millisecond precision.

    Args:
        dt: Datetime to format (naive values are assumed to be UTC)

    Returns:
        Timestamp like ``2024-05-01T09:30:00.000Z``, the format the ordering API stores
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
