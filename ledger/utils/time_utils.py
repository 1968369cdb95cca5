"""
Date parsing and period utilities for Autoledger.

Provides consistent date handling across the history endpoints with:
- Strict ISO 8601 parsing (YYYY-MM-DD or full timestamps)
- Named period presets (last_month, last_6_months, all_time, ...)
- Period midpoint splitting for trend analysis
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

ALL_TIME_START = date(2000, 1, 1)


def utc_now() -> datetime:
    """
    Get current UTC time with timezone info.

    Returns:
        datetime: Current time in UTC timezone
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC."""
    return utc_now().date()


def parse_date(date_string: Optional[str]) -> Optional[date]:
    """
    Parse an ISO 8601 date or timestamp string into a date.

    Only ISO input is accepted so that ambiguous values such as "01/02/2024"
    are rejected rather than silently guessed.

    Args:
        date_string: "2024-06-15" or "2024-06-15T10:30:00Z"

    Returns:
        date object, or None if the string is empty or unparsable

    Example:
        >>> parse_date("2024-06-15")
        datetime.date(2024, 6, 15)
        >>> parse_date("15/06/2024") is None
        True
    """
    if date_string is None:
        return None
    if isinstance(date_string, datetime):
        return date_string.date()
    if isinstance(date_string, date):
        return date_string

    date_string = str(date_string).strip()
    if not date_string:
        return None

    try:
        return date_parser.isoparse(date_string).date()
    except (ValueError, OverflowError):
        logger.debug(f"Failed to parse date string: {date_string}")
        return None


# Presets are calendar offsets from today; all_time is anchored
PERIOD_PRESETS = {
    "last_month": relativedelta(months=1),
    "last_3_months": relativedelta(months=3),
    "last_6_months": relativedelta(months=6),
    "last_year": relativedelta(years=1),
    "all_time": None,
}


def parse_period_preset(preset: str, today: Optional[date] = None) -> Optional[Tuple[date, date]]:
    """
    Resolve a named period preset into a (start, end) date pair.

    Supported presets:
    - "last_month": same day one month ago to today
    - "last_3_months": same day three months ago to today
    - "last_6_months": same day six months ago to today
    - "last_year": same day one year ago to today
    - "all_time": 2000-01-01 to today

    Args:
        preset: The preset name
        today: Reference date (default: current UTC date)

    Returns:
        Tuple of (start, end) or None if the preset is unknown

    Example:
        >>> parse_period_preset("last_3_months", today=date(2024, 5, 31))
        (datetime.date(2024, 2, 29), datetime.date(2024, 5, 31))
    """
    if not preset:
        return None

    key = preset.lower()
    if key not in PERIOD_PRESETS:
        return None

    today = today or utc_today()
    offset = PERIOD_PRESETS[key]
    if offset is None:
        return ALL_TIME_START, today
    return today - offset, today


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (0 when end precedes start)."""
    return max((end - start).days, 0)


def period_midpoint(start: date, end: date) -> date:
    """
    Calendar midpoint of a period, rounded down to whole days.

    Example:
        >>> period_midpoint(date(2024, 1, 1), date(2024, 3, 31))
        datetime.date(2024, 2, 15)
    """
    return start + (end - start) / 2


def format_date_iso(value: Optional[date]) -> Optional[str]:
    """Format a date (or datetime) as ISO 8601, passing None through."""
    if value is None:
        return None
    return value.isoformat()
