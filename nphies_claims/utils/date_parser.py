"""Date parsing and wire formatting for claim envelopes."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

# Reasonable date bounds for healthcare claims
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100


def parse_flexible_date(date_str: str | None) -> datetime | None:
    """Parse date from multiple common formats with validation.

    Supports the following formats:
    - ISO 8601: YYYY-MM-DD (e.g., 2025-03-15)
    - US format: MM/DD/YYYY (e.g., 03/15/2025)
    - Compact: YYYYMMDD (e.g., 20250315)

    Validates that:
    - The date is a real calendar date (no Feb 30, etc.)
    - The year is between 1900 and 2100

    Args:
        date_str: Date string to parse, or None

    Returns:
        Parsed datetime object, or None if parsing fails or input is None

    Examples:
        >>> parse_flexible_date("2025-03-15")
        datetime.datetime(2025, 3, 15, 0, 0)
        >>> parse_flexible_date("20250315")
        datetime.datetime(2025, 3, 15, 0, 0)
        >>> parse_flexible_date("2025-02-30")  # Invalid date
        None
    """
    if not date_str:
        return None

    formats = [
        "%Y-%m-%d",  # ISO 8601
        "%m/%d/%Y",  # US format
        "%Y%m%d",  # Compact
    ]

    for fmt in formats:
        try:
            parsed = datetime.strptime(date_str, fmt)
            if parsed.year < MIN_VALID_YEAR or parsed.year > MAX_VALID_YEAR:
                continue
            return parsed
        except ValueError:
            # strptime raises ValueError for invalid dates like Feb 30
            continue

    return None


def format_date(value: date | datetime | None) -> str | None:
    """Format as a plain ``YYYY-MM-DD`` date, keeping the local calendar day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def format_datetime(value: datetime | None = None) -> str:
    """Format as a UTC instant with millisecond precision, e.g.
    ``2025-03-15T09:30:00.000Z``. Naive values are taken as UTC; ``None``
    means now.
    """
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def format_datetime_with_offset(
    value: date | datetime | None = None, utc_offset_hours: int = 3
) -> str:
    """Format as a wall-clock time with a fixed offset, e.g.
    ``2025-03-15T09:30:00+03:00``.

    Naive values are taken to already be in the target offset; aware values
    are converted. ``None`` means now.
    """
    tz = timezone(timedelta(hours=utc_offset_hours))
    if value is None:
        value = datetime.now(tz)
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)

    if value.tzinfo is not None:
        value = value.astimezone(tz)
    else:
        value = value.replace(tzinfo=tz)
    return value.isoformat(timespec="seconds")


def accounting_period_date(*candidates: date | datetime | None) -> str:
    """Return the first day of the month of the first non-empty candidate.

    Falls back to today when every candidate is empty.
    """
    chosen = next((c for c in candidates if c is not None), None)
    if chosen is None:
        chosen = date.today()
    return f"{chosen.year:04d}-{chosen.month:02d}-01"


def compact_date(value: date | datetime | None) -> str:
    """Format as ``YYYYMMDD`` (today when empty)."""
    if value is None:
        value = date.today()
    return value.strftime("%Y%m%d")
