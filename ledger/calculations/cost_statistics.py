"""
Cost Statistics Calculations

Pure aggregations over maintenance and fuel rows for a date window:
- Cost split and percentages
- Cost per distance and distance traveled
- Category and fuel-type breakdowns
- Spending projections and cost trend classification

Inputs are plain objects (ORM rows or anything with the same attributes);
nothing here touches the database.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models import FUEL_TYPES, MAINTENANCE_CATEGORIES
from utils.time_utils import days_between, format_date_iso, period_midpoint

from .constants import (
    DAYS_PER_MONTH,
    MAX_PERCENTAGE,
    MAX_PLAUSIBLE_CONSUMPTION,
    MONEY_DECIMALS,
    PERCENT_DECIMALS,
    TREND_MIN_DAYS,
    TREND_THRESHOLD_PERCENT,
    VOLUME_DECIMALS,
)
from .consumption import average_consumption, estimate_consumption

TREND_INCREASING = "increasing"
TREND_DECREASING = "decreasing"
TREND_STABLE = "stable"


def _money(value) -> float:
    return round(float(value or 0), MONEY_DECIMALS)


def calculate_percent_change(
    new_value: float,
    old_value: float
) -> Optional[float]:
    """
    Calculate percentage change between two values.

    Examples:
        >>> calculate_percent_change(115, 100)
        15.0
        >>> calculate_percent_change(100, 0)
        None
    """
    if old_value == 0:
        return None

    change = ((new_value - old_value) / old_value) * 100
    return round(change, PERCENT_DECIMALS)


def calculate_distance_traveled(odometers: Iterable[Optional[int]]) -> int:
    """
    Distance covered in a window: max - min of the known odometer readings.

    Readings from both streams are pooled. Fewer than two readings give 0.

    Examples:
        >>> calculate_distance_traveled([10000, None, 10500, 11000])
        1000
        >>> calculate_distance_traveled([])
        0
    """
    known = [int(o) for o in odometers if o is not None]
    if not known:
        return 0
    return max(known) - min(known)


def calculate_cost_per_distance(cost: float, distance: float) -> float:
    """
    Cost per km, 0 when no distance was covered.

    Examples:
        >>> calculate_cost_per_distance(500.0, 1000)
        0.5
        >>> calculate_cost_per_distance(500.0, 0)
        0.0
    """
    if not distance or distance <= 0:
        return 0.0
    return round(float(cost) / distance, MONEY_DECIMALS)


def split_costs(maintenance_cost: float, fuel_cost: float) -> Dict[str, float]:
    """
    Total cost with its maintenance / fuel decomposition.

    The fuel percentage is the complement of the maintenance percentage so
    the two never add up to more than 100.

    Examples:
        >>> split_costs(300.0, 700.0)['maintenance_percentage']
        30.0
        >>> split_costs(0, 0)['fuel_percentage']
        0.0
    """
    maintenance = _money(maintenance_cost)
    fuel = _money(fuel_cost)
    total = round(maintenance + fuel, MONEY_DECIMALS)

    if total > 0:
        maintenance_pct = round(maintenance / total * 100, PERCENT_DECIMALS)
        fuel_pct = round(MAX_PERCENTAGE - maintenance_pct, PERCENT_DECIMALS)
    else:
        maintenance_pct = 0.0
        fuel_pct = 0.0

    return {
        "total": total,
        "maintenance": maintenance,
        "fuel": fuel,
        "maintenance_percentage": maintenance_pct,
        "fuel_percentage": fuel_pct,
    }


def find_most_expensive(maintenance_records: Iterable) -> Optional[Dict]:
    """Highest-cost maintenance; ties go to the earliest date, then the lowest id."""
    best = None
    for record in maintenance_records:
        key = (-float(record.cost or 0), record.service_date, record.id)
        if best is None or key < best[0]:
            best = (key, record)

    if best is None:
        return None

    record = best[1]
    return {
        "id": record.id,
        "description": record.description,
        "cost": _money(record.cost),
        "date": format_date_iso(record.service_date),
    }


def summarize_maintenance(maintenance_records: Sequence) -> Dict:
    """
    Maintenance block of the period statistics.

    Every category is present in ``by_category`` even when it has no rows.
    """
    by_category = {category: {"count": 0, "cost": 0.0} for category in MAINTENANCE_CATEGORIES}
    total_cost = 0.0

    for record in maintenance_records:
        cost = float(record.cost or 0)
        total_cost += cost
        bucket = by_category.setdefault(record.category, {"count": 0, "cost": 0.0})
        bucket["count"] += 1
        bucket["cost"] += cost

    for bucket in by_category.values():
        bucket["cost"] = _money(bucket["cost"])

    count = len(maintenance_records)
    return {
        "total_services": count,
        "average_cost": _money(total_cost / count) if count else 0.0,
        "by_category": by_category,
        "most_expensive": find_most_expensive(maintenance_records),
    }


def summarize_fuel(
    fuel_records: Sequence,
    max_plausible: float = MAX_PLAUSIBLE_CONSUMPTION
) -> Dict:
    """
    Fuel block of the period statistics.

    Average consumption only uses full-tank chains inside the given rows.
    """
    by_fuel_type = {
        fuel_type: {"count": 0, "liters": 0.0, "cost": 0.0} for fuel_type in FUEL_TYPES
    }
    total_liters = 0.0
    price_sum = 0.0

    for record in fuel_records:
        liters = float(record.liters or 0)
        total_liters += liters
        price_sum += float(record.price_per_liter or 0)
        bucket = by_fuel_type.setdefault(record.fuel_type, {"count": 0, "liters": 0.0, "cost": 0.0})
        bucket["count"] += 1
        bucket["liters"] += liters
        bucket["cost"] += float(record.total_cost or 0)

    for bucket in by_fuel_type.values():
        bucket["liters"] = round(bucket["liters"], VOLUME_DECIMALS)
        bucket["cost"] = _money(bucket["cost"])

    count = len(fuel_records)
    consumption = estimate_consumption(fuel_records)
    return {
        "total_refuels": count,
        "total_liters": round(total_liters, VOLUME_DECIMALS),
        "average_consumption": average_consumption(consumption.values(), max_plausible),
        "average_price_per_liter": _money(price_sum / count) if count else 0.0,
        "by_fuel_type": by_fuel_type,
    }


def classify_cost_trend(
    period_start: date,
    period_end: date,
    cost_samples: Iterable[Tuple[date, float]],
    min_days: int = TREND_MIN_DAYS,
    threshold_percent: float = TREND_THRESHOLD_PERCENT
) -> Optional[Dict]:
    """
    Compare spending in the two halves of a window.

    The first half is [start, mid), the second half [mid, end]. A change above
    the threshold in either direction is a trend; a zero first half counts as
    no change.

    Args:
        period_start: First day of the window
        period_end: Last day of the window
        cost_samples: (date, cost) pairs from both streams
        min_days: Windows shorter than this are not classified
        threshold_percent: Minimum |change| for a trend

    Returns:
        {"direction", "first_half_cost", "second_half_cost", "percent_change"},
        or None when the window is too short

    Examples:
        >>> classify_cost_trend(date(2024, 1, 1), date(2024, 1, 31), [])
        None
        >>> classify_cost_trend(date(2024, 1, 1), date(2024, 3, 31),
        ...                     [(date(2024, 1, 10), 100), (date(2024, 3, 10), 115)])['direction']
        'increasing'
    """
    if days_between(period_start, period_end) < min_days:
        return None

    midpoint = period_midpoint(period_start, period_end)
    first_half = 0.0
    second_half = 0.0
    for sample_date, cost in cost_samples:
        if sample_date < period_start or sample_date > period_end:
            continue
        if sample_date < midpoint:
            first_half += float(cost or 0)
        else:
            second_half += float(cost or 0)

    first_half = _money(first_half)
    second_half = _money(second_half)
    percent_change = calculate_percent_change(second_half, first_half) or 0.0

    if percent_change > threshold_percent:
        direction = TREND_INCREASING
    elif percent_change < -threshold_percent:
        direction = TREND_DECREASING
    else:
        direction = TREND_STABLE

    return {
        "direction": direction,
        "first_half_cost": first_half,
        "second_half_cost": second_half,
        "percent_change": percent_change,
    }


def project_costs(total_cost: float, days: int) -> Dict[str, float]:
    """
    Extrapolate the window's spending rate.

    Examples:
        >>> project_costs(600.0, 180)['monthly_average']
        100.0
        >>> project_costs(600.0, 0)['next_6_months_estimate']
        0.0
    """
    if days <= 0:
        monthly = 0.0
    else:
        monthly = float(total_cost) / (days / DAYS_PER_MONTH)

    return {
        "monthly_average": _money(monthly),
        "next_3_months_estimate": _money(monthly * 3),
        "next_6_months_estimate": _money(monthly * 6),
    }


def build_period_statistics(
    period_start: date,
    period_end: date,
    maintenance_records: List,
    fuel_records: List,
    max_plausible: float = MAX_PLAUSIBLE_CONSUMPTION
) -> Dict:
    """
    Assemble the full statistics document for one window.

    Rows must already be restricted to the window and the vehicle scope.
    """
    days = days_between(period_start, period_end)
    distance = calculate_distance_traveled(
        [r.odometer_at_service for r in maintenance_records] + [r.odometer for r in fuel_records]
    )

    totals = split_costs(
        sum(float(r.cost or 0) for r in maintenance_records),
        sum(float(r.total_cost or 0) for r in fuel_records),
    )

    samples = [(r.service_date, r.cost) for r in maintenance_records]
    samples.extend((r.date, r.total_cost) for r in fuel_records)

    projections = project_costs(totals["total"], days)
    projections["cost_trend"] = classify_cost_trend(period_start, period_end, samples)

    return {
        "period": {
            "start_date": format_date_iso(period_start),
            "end_date": format_date_iso(period_end),
            "days": days,
            "distance_traveled": distance,
        },
        "total_costs": totals,
        "cost_per_distance": {
            "total": calculate_cost_per_distance(totals["total"], distance),
            "maintenance": calculate_cost_per_distance(totals["maintenance"], distance),
            "fuel": calculate_cost_per_distance(totals["fuel"], distance),
        },
        "maintenance_stats": summarize_maintenance(maintenance_records),
        "fuel_stats": summarize_fuel(fuel_records, max_plausible),
        "projections": projections,
    }
