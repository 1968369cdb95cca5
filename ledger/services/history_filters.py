"""
History Filter Compiler

Turns raw query-string arguments into validated, typed predicates for the
maintenance and fuel event sources, plus the sort and page window of the
unified timeline. Every rejection happens here, before any store access.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from config import Config
from exceptions import ComparisonCardinalityError, FilterValidationError
from models import FUEL_TYPES, MAINTENANCE_CATEGORIES
from sqlalchemy import and_
from utils.time_utils import PERIOD_PRESETS, format_date_iso, parse_date, parse_period_preset, utc_today

logger = logging.getLogger(__name__)

MAINTENANCE = "maintenance"
FUEL = "fuel"
ALL_SOURCES = frozenset({MAINTENANCE, FUEL})

EVENT_TYPES = ("all", MAINTENANCE, FUEL)
SORT_FIELDS = ("date", "km", "cost")
SORT_ORDERS = ("asc", "desc")


# =============================================================================
# Predicates
# =============================================================================


@dataclass(frozen=True)
class VehicleIs:
    """Restrict to a single vehicle."""

    vehicle_id: int
    applies_to: FrozenSet[str] = ALL_SOURCES

    def to_clause(self, columns):
        return columns["vehicle_id"] == self.vehicle_id


@dataclass(frozen=True)
class VehicleIn:
    """Restrict to a set of vehicles (comparison batches)."""

    vehicle_ids: Tuple[int, ...]
    applies_to: FrozenSet[str] = ALL_SOURCES

    def to_clause(self, columns):
        return columns["vehicle_id"].in_(self.vehicle_ids)


@dataclass(frozen=True)
class DateRange:
    """Inclusive date bounds; either side may be open."""

    start: Optional[date] = None
    end: Optional[date] = None
    applies_to: FrozenSet[str] = ALL_SOURCES

    def __post_init__(self):
        if self.start is None and self.end is None:
            raise ValueError("DateRange needs at least one bound")

    def to_clause(self, columns):
        column = columns["date"]
        clauses = []
        if self.start is not None:
            clauses.append(column >= self.start)
        if self.end is not None:
            clauses.append(column <= self.end)
        return and_(*clauses)


@dataclass(frozen=True)
class CostRange:
    """Inclusive cost bounds; either side may be open."""

    min_cost: Optional[float] = None
    max_cost: Optional[float] = None
    applies_to: FrozenSet[str] = ALL_SOURCES

    def __post_init__(self):
        if self.min_cost is None and self.max_cost is None:
            raise ValueError("CostRange needs at least one bound")

    def to_clause(self, columns):
        column = columns["cost"]
        clauses = []
        if self.min_cost is not None:
            clauses.append(column >= self.min_cost)
        if self.max_cost is not None:
            clauses.append(column <= self.max_cost)
        return and_(*clauses)


@dataclass(frozen=True)
class CategoryIs:
    category: str
    applies_to: FrozenSet[str] = frozenset({MAINTENANCE})

    def to_clause(self, columns):
        return columns["category"] == self.category


@dataclass(frozen=True)
class FuelTypeIs:
    fuel_type: str
    applies_to: FrozenSet[str] = frozenset({FUEL})

    def to_clause(self, columns):
        return columns["fuel_type"] == self.fuel_type


@dataclass(frozen=True)
class FullTankOnly:
    applies_to: FrozenSet[str] = frozenset({FUEL})

    def to_clause(self, columns):
        return columns["is_full_tank"].is_(True)


# =============================================================================
# Compiled query
# =============================================================================


@dataclass(frozen=True)
class SortSpec:
    """Global ordering of the unified timeline."""

    sort_by: str = "date"
    descending: bool = True


@dataclass(frozen=True)
class PageWindow:
    limit: int = 50
    offset: int = 0

    def has_more(self, total: int) -> bool:
        return self.offset + self.limit < total


@dataclass(frozen=True)
class CompiledHistoryQuery:
    """
    Validated timeline request.

    ``filters`` is the JSON-safe echo of the resolved filters. Predicates for
    a source excluded by ``type`` are always empty.
    """

    filters: Dict
    sources: FrozenSet[str]
    maintenance_predicates: Tuple = ()
    fuel_predicates: Tuple = ()
    sort: SortSpec = field(default_factory=SortSpec)
    page: PageWindow = field(default_factory=PageWindow)

    def includes(self, source: str) -> bool:
        return source in self.sources

    def predicates_for(self, source: str) -> Tuple:
        return self.maintenance_predicates if source == MAINTENANCE else self.fuel_predicates


def split_predicates(predicates, sources=ALL_SOURCES) -> Dict[str, Tuple]:
    """Route each predicate to the sources it applies to."""
    routed = {source: [] for source in ALL_SOURCES}
    for predicate in predicates:
        for source in predicate.applies_to & sources:
            routed[source].append(predicate)
    return {source: tuple(items) for source, items in routed.items()}


# =============================================================================
# Argument parsing
# =============================================================================


def _raw(args: Mapping, name: str) -> Optional[str]:
    value = args.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_choice(args: Mapping, name: str, choices, default: Optional[str] = None) -> Optional[str]:
    value = _raw(args, name)
    if value is None:
        return default
    if value not in choices:
        raise FilterValidationError(
            f"Invalid {name}: must be one of {', '.join(choices)}", field=name, value=value
        )
    return value


def _parse_id(value: str, name: str) -> int:
    if not (value.isascii() and value.isdigit()) or int(value) <= 0:
        raise FilterValidationError(f"Invalid {name}: must be a positive integer", field=name, value=value)
    return int(value)


def _parse_cost(args: Mapping, name: str) -> Optional[float]:
    value = _raw(args, name)
    if value is None:
        return None
    try:
        cost = float(value)
    except ValueError:
        raise FilterValidationError(f"Invalid {name}: must be a number", field=name, value=value)
    if not math.isfinite(cost):
        raise FilterValidationError(f"Invalid {name}: must be a number", field=name, value=value)
    if cost < 0:
        raise FilterValidationError(
            f"Invalid {name}: must not be negative", field=name, value=value, out_of_range=True
        )
    return cost


def _parse_date_arg(args: Mapping, name: str) -> Optional[date]:
    value = _raw(args, name)
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise FilterValidationError(
            f"Invalid {name}: expected YYYY-MM-DD or ISO 8601", field=name, value=value
        )
    return parsed


def _parse_bounded_int(args: Mapping, name: str, default: int, minimum: int, maximum: Optional[int] = None) -> int:
    value = _raw(args, name)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        raise FilterValidationError(f"Invalid {name}: must be an integer", field=name, value=value)
    if number < minimum or (maximum is not None and number > maximum):
        bounds = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        raise FilterValidationError(
            f"Invalid {name}: must be {bounds}", field=name, value=value, out_of_range=True
        )
    return number


def parse_vehicle_id(args: Mapping, name: str = "vehicle_id") -> Optional[int]:
    value = _raw(args, name)
    if value is None:
        return None
    return _parse_id(value, name)


def _check_date_order(start: Optional[date], end: Optional[date]):
    if start is not None and end is not None and start > end:
        raise FilterValidationError(
            "start_date must not be after end_date",
            field="start_date",
            value=format_date_iso(start),
            out_of_range=True,
        )


# =============================================================================
# Compilers
# =============================================================================


def compile_history_filters(args: Mapping) -> CompiledHistoryQuery:
    """
    Validate timeline arguments and build the per-source predicate lists.

    Args:
        args: Flat mapping (e.g. request.args) of optional string values

    Returns:
        CompiledHistoryQuery

    Raises:
        FilterValidationError: naming the first offending field

    Example:
        >>> q = compile_history_filters({"type": "fuel", "fuel_type": "diesel"})
        >>> q.sources
        frozenset({'fuel'})
    """
    vehicle_id = parse_vehicle_id(args)
    event_type = _parse_choice(args, "type", EVENT_TYPES, default="all")
    category = _parse_choice(args, "category", MAINTENANCE_CATEGORIES)
    fuel_type = _parse_choice(args, "fuel_type", FUEL_TYPES)
    start_date = _parse_date_arg(args, "start_date")
    end_date = _parse_date_arg(args, "end_date")
    min_cost = _parse_cost(args, "min_cost")
    max_cost = _parse_cost(args, "max_cost")
    sort_by = _parse_choice(args, "sort_by", SORT_FIELDS, default="date")
    sort_order = _parse_choice(args, "sort_order", SORT_ORDERS, default="desc")
    limit = _parse_bounded_int(args, "limit", Config.HISTORY_DEFAULT_LIMIT, 1, Config.HISTORY_MAX_LIMIT)
    offset = _parse_bounded_int(args, "offset", 0, 0)

    _check_date_order(start_date, end_date)
    if min_cost is not None and max_cost is not None and min_cost > max_cost:
        raise FilterValidationError(
            "min_cost must not be greater than max_cost", field="min_cost", value=min_cost, out_of_range=True
        )

    sources = ALL_SOURCES if event_type == "all" else frozenset({event_type})

    predicates = []
    if vehicle_id is not None:
        predicates.append(VehicleIs(vehicle_id))
    if start_date is not None or end_date is not None:
        predicates.append(DateRange(start_date, end_date))
    if min_cost is not None or max_cost is not None:
        predicates.append(CostRange(min_cost, max_cost))
    if category is not None:
        predicates.append(CategoryIs(category))
    if fuel_type is not None:
        predicates.append(FuelTypeIs(fuel_type))

    routed = split_predicates(predicates, sources)

    filters = {
        "vehicle_id": vehicle_id,
        "type": event_type,
        "category": category,
        "fuel_type": fuel_type,
        "start_date": format_date_iso(start_date),
        "end_date": format_date_iso(end_date),
        "min_cost": min_cost,
        "max_cost": max_cost,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }

    return CompiledHistoryQuery(
        filters=filters,
        sources=sources,
        maintenance_predicates=routed[MAINTENANCE],
        fuel_predicates=routed[FUEL],
        sort=SortSpec(sort_by=sort_by, descending=sort_order == "desc"),
        page=PageWindow(limit=limit, offset=offset),
    )


def _parse_period(args: Mapping) -> Optional[str]:
    """Preset name, matched case-insensitively like parse_period_preset."""
    value = _raw(args, "period")
    if value is None:
        return None
    if value.lower() not in PERIOD_PRESETS:
        raise FilterValidationError(
            f"Invalid period: must be one of {', '.join(PERIOD_PRESETS)}", field="period", value=value
        )
    return value.lower()


def resolve_period(args: Mapping, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Resolve the statistics window.

    A ``period`` preset wins over start_date and is anchored at end_date when
    one is given, otherwise at today. Without a preset an explicit start_date
    is used (end_date defaults to today), and without either the configured
    default preset applies.

    Raises:
        FilterValidationError: unknown preset, bad date, or start after end
    """
    today = today or utc_today()
    preset = _parse_period(args)
    start_date = _parse_date_arg(args, "start_date")
    end_date = _parse_date_arg(args, "end_date")

    if preset is None and start_date is not None:
        end_date = end_date or today
    else:
        start_date, end_date = parse_period_preset(preset or Config.DEFAULT_PERIOD, today=end_date or today)

    _check_date_order(start_date, end_date)
    return start_date, end_date


def parse_comparison_ids(
    raw_ids: Optional[str],
    min_count: int = None,
    max_count: int = None
) -> List[int]:
    """
    Parse the comma-separated vehicle id list of a comparison request.

    Raises:
        FilterValidationError: an id is not a positive integer
        ComparisonCardinalityError: too few, too many, or duplicate ids

    Example:
        >>> parse_comparison_ids("3, 1,2")
        [3, 1, 2]
    """
    min_count = Config.COMPARE_MIN_VEHICLES if min_count is None else min_count
    max_count = Config.COMPARE_MAX_VEHICLES if max_count is None else max_count

    parts = [p.strip() for p in (raw_ids or "").split(",") if p.strip()]
    ids = [_parse_id(p, "vehicle_ids") for p in parts]

    if len(ids) < min_count:
        raise ComparisonCardinalityError(
            f"At least {min_count} vehicles are required for comparison", bound="min", received=len(ids)
        )
    if len(ids) > max_count:
        raise ComparisonCardinalityError(
            f"At most {max_count} vehicles can be compared", bound="max", received=len(ids)
        )
    if len(set(ids)) != len(ids):
        raise ComparisonCardinalityError(
            "Vehicle ids must be distinct", bound="distinct", received=len(ids)
        )
    return ids
