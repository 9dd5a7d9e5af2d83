#!/usr/bin/env python3
"""
Datetime Utility Functions

Centralized date parsing and time-frame bucketing used by the aggregator,
the stores and the orchestrator.

Handles common patterns:
- GitHub calendar dates ("2024-05-10") and ISO timestamps with 'Z' suffix
- Monday-aligned week labels and month labels for chart grouping
- Store timestamps (UTC, fixed-width so string comparison is chronological)
"""

from datetime import UTC, date, datetime, timedelta

WEEK_LABEL_FORMAT = "%b %d"
MONTH_LABEL_FORMAT = "%b %y"
STORE_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def parse_iso_timestamp(timestamp_str: str | None) -> datetime | None:
    """
    Parse generic ISO 8601 timestamp (with or without 'Z' suffix).

    Handles:
    - "2026-02-10T10:00:00Z" (UTC with Z)
    - "2026-02-10T10:00:00+00:00" (UTC explicit)
    - "2026-02-10T10:00:00" (naive datetime)
    - "2026-02-10" (date only)

    Args:
        timestamp_str: ISO 8601 timestamp string, or None

    Returns:
        datetime object (timezone-aware if specified), or None if input is empty

    Raises:
        ValueError: If timestamp format is invalid

    Examples:
        >>> parse_iso_timestamp("2026-02-10T10:00:00Z")
        datetime.datetime(2026, 2, 10, 10, 0, tzinfo=datetime.timezone.utc)
    """
    if not timestamp_str:
        return None

    if not isinstance(timestamp_str, str):
        raise ValueError(f"Timestamp must be a string, got {type(timestamp_str)}")

    try:
        if timestamp_str.endswith("Z"):
            return datetime.fromisoformat(timestamp_str[:-1] + "+00:00")
        return datetime.fromisoformat(timestamp_str)
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid ISO timestamp format: {timestamp_str}") from e


def parse_calendar_date(value: str | None) -> date | None:
    """
    Parse a calendar date from a date or timestamp string.

    Args:
        value: "YYYY-MM-DD" or an ISO timestamp

    Returns:
        date, or None if input is empty

    Raises:
        ValueError: If the value is not a valid date

    Examples:
        >>> parse_calendar_date("2024-03-06")
        datetime.date(2024, 3, 6)
    """
    parsed = parse_iso_timestamp(value)
    if parsed is None:
        return None
    return parsed.date()


def week_start(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def week_label(day: date) -> str:
    """
    Week bucket label: the Monday of the week, formatted "MMM dd".

    Examples:
        >>> week_label(date(2024, 3, 6))
        'Mar 04'
    """
    return week_start(day).strftime(WEEK_LABEL_FORMAT)


def month_label(day: date) -> str:
    """
    Month bucket label, formatted "MMM yy".

    Examples:
        >>> month_label(date(2024, 3, 6))
        'Mar 24'
    """
    return day.strftime(MONTH_LABEL_FORMAT)


def format_store_timestamp(moment: datetime) -> str:
    """
    Format a timestamp for storage.

    Naive datetimes are treated as UTC. The output is fixed-width, so
    lexicographic order matches chronological order.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(STORE_TIMESTAMP_FORMAT)


def parse_store_timestamp(value: str) -> datetime:
    """Inverse of format_store_timestamp (also accepts any ISO timestamp)."""
    parsed = parse_iso_timestamp(value)
    if parsed is None:
        raise ValueError("Empty store timestamp")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def utc_now() -> datetime:
    return datetime.now(UTC)
