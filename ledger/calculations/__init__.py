"""
Autoledger Calculation Module

Pure calculation utilities for fuel consumption and cost statistics.
Nothing in this package touches the database.

Usage:
    from calculations import estimate_consumption, build_period_statistics
    from calculations.constants import MAX_PLAUSIBLE_CONSUMPTION
"""

# Consumption calculations
from .consumption import (
    average_consumption,
    calculate_consumption,
    estimate_consumption,
)

# Cost statistics
from .cost_statistics import (
    TREND_DECREASING,
    TREND_INCREASING,
    TREND_STABLE,
    build_period_statistics,
    calculate_cost_per_distance,
    calculate_distance_traveled,
    calculate_percent_change,
    classify_cost_trend,
    find_most_expensive,
    project_costs,
    split_costs,
    summarize_fuel,
    summarize_maintenance,
)

__all__ = [
    "average_consumption",
    "calculate_consumption",
    "estimate_consumption",
    "TREND_DECREASING",
    "TREND_INCREASING",
    "TREND_STABLE",
    "build_period_statistics",
    "calculate_cost_per_distance",
    "calculate_distance_traveled",
    "calculate_percent_change",
    "classify_cost_trend",
    "find_most_expensive",
    "project_costs",
    "split_costs",
    "summarize_fuel",
    "summarize_maintenance",
]
