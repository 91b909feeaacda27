"""Timestamp formatting for Nightscout query filters and payloads."""

from datetime import UTC, datetime


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to already be in UTC.

    >>> format_timestamp(datetime(2024, 1, 1, tzinfo=UTC))
    '2024-01-01T00:00:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
