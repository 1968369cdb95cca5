"""
Services module for Autoledger business logic.

This module contains the history engine services that encapsulate business
logic separate from the Flask route handlers.
"""

from services.comparison_service import compare_vehicles
from services.history_filters import compile_history_filters, parse_comparison_ids, resolve_period
from services.history_service import list_timeline
from services.statistics_service import get_period_statistics

__all__ = [
    # Filter compiler
    'compile_history_filters',
    'parse_comparison_ids',
    'resolve_period',
    # Timeline
    'list_timeline',
    # Statistics
    'get_period_statistics',
    # Comparison
    'compare_vehicles',
]
