"""Utility modules for the Autoledger API."""

from .error_codes import ErrorCategory, ErrorCode, StructuredError
from .time_utils import (
    format_date_iso,
    parse_date,
    parse_period_preset,
    utc_now,
    utc_today,
)

__all__ = [
    'ErrorCategory',
    'ErrorCode',
    'StructuredError',
    'format_date_iso',
    'parse_date',
    'parse_period_preset',
    'utc_now',
    'utc_today',
]
