"""
Vehicle Comparison Service

Ranks 2-5 of an owner's vehicles by cost per distance over the same window.
Both sources are fetched once for the whole batch and partitioned per
vehicle; each vehicle then goes through the regular period statistics.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence

from calculations.cost_statistics import build_period_statistics
from calculations.constants import MAX_PLAUSIBLE_CONSUMPTION
from exceptions import VehicleAccessDeniedError
from sqlalchemy.orm import Session
from utils.time_utils import format_date_iso
from utils.wide_events import track_operation

from services import event_sources
from services.history_filters import DateRange, VehicleIn

logger = logging.getLogger(__name__)


def build_comparison_row(vehicle_id: int, name: Optional[str], stats: Dict) -> Dict:
    """Flatten one vehicle's period statistics into a comparison row."""
    return {
        "vehicle_id": vehicle_id,
        "name": name,
        "distance_traveled": stats["period"]["distance_traveled"],
        "total_cost": stats["total_costs"]["total"],
        "cost_per_distance": stats["cost_per_distance"]["total"],
        "maintenance_cost": stats["total_costs"]["maintenance"],
        "fuel_cost": stats["total_costs"]["fuel"],
        "average_consumption": stats["fuel_stats"]["average_consumption"],
        "services_count": stats["maintenance_stats"]["total_services"] + stats["fuel_stats"]["total_refuels"],
    }


def rank_vehicles(rows: List[Dict]) -> List[Dict]:
    """
    Order rows by ascending cost per distance and number them 1..N.

    The sort is stable, so equal costs keep the order the ids were requested in.
    """
    ranked = sorted(rows, key=lambda row: row["cost_per_distance"])
    for index, row in enumerate(ranked):
        row["efficiency_rank"] = index + 1
    return ranked


def summarize_comparison(ranked: List[Dict]) -> Dict:
    """Best and worst performers of a ranked comparison."""
    if not ranked:
        return {"most_economical": None, "most_expensive": None, "best_consumption": None}

    # Ascending and stable: ties give the first and the last requested vehicle
    cheapest = ranked[0]
    priciest = ranked[-1]

    with_consumption = [row for row in ranked if row["average_consumption"] is not None]
    best = max(with_consumption, key=lambda row: row["average_consumption"]) if with_consumption else None

    return {
        "most_economical": {
            "vehicle_id": cheapest["vehicle_id"],
            "name": cheapest["name"],
            "cost_per_distance": cheapest["cost_per_distance"],
        },
        "most_expensive": {
            "vehicle_id": priciest["vehicle_id"],
            "name": priciest["name"],
            "cost_per_distance": priciest["cost_per_distance"],
        },
        "best_consumption": {
            "vehicle_id": best["vehicle_id"],
            "name": best["name"],
            "average_consumption": best["average_consumption"],
        } if best else None,
    }


def compare_vehicles(
    db: Session,
    user_id: int,
    vehicle_ids: Sequence[int],
    start_date: date,
    end_date: date
) -> Dict:
    """
    Compare vehicles over one window.

    Args:
        db: Database session
        user_id: Authenticated owner
        vehicle_ids: Validated, distinct ids (see parse_comparison_ids)
        start_date: First day of the window (inclusive)
        end_date: Last day of the window (inclusive)

    Returns:
        {"period": {...}, "vehicles": [ranked rows], "summary": {...}}

    Raises:
        VehicleAccessDeniedError: any id is not owned by the caller
    """
    vehicle_ids = list(vehicle_ids)

    with track_operation("vehicle_comparison", user_id=user_id, vehicle_ids=vehicle_ids) as event:
        owned = event_sources.verify_vehicle_ownership(db, user_id, vehicle_ids)
        foreign = [vehicle_id for vehicle_id in vehicle_ids if vehicle_id not in owned]
        if foreign:
            logger.warning(f"User {user_id} requested comparison of vehicles they do not own: {foreign}")
            raise VehicleAccessDeniedError("Access denied to one or more vehicles", vehicle_ids=foreign)

        predicates = [VehicleIn(tuple(vehicle_ids)), DateRange(start_date, end_date)]
        with event.timer("batch_queries"):
            maintenance = event_sources.find_maintenance_events(db, user_id, predicates)
            fuel = event_sources.find_fuel_events(db, user_id, predicates)
            names = event_sources.get_vehicle_names(db, user_id, vehicle_ids)

        maintenance_by_vehicle = defaultdict(list)
        for record in maintenance:
            maintenance_by_vehicle[record.vehicle_id].append(record)
        fuel_by_vehicle = defaultdict(list)
        for record in fuel:
            fuel_by_vehicle[record.vehicle_id].append(record)

        rows = []
        for vehicle_id in vehicle_ids:
            stats = build_period_statistics(
                start_date,
                end_date,
                maintenance_by_vehicle[vehicle_id],
                fuel_by_vehicle[vehicle_id],
                MAX_PLAUSIBLE_CONSUMPTION,
            )
            rows.append(build_comparison_row(vehicle_id, names.get(vehicle_id), stats))

        ranked = rank_vehicles(rows)
        event.add_business_metric("vehicles_compared", len(ranked))

    return {
        "period": {
            "start_date": format_date_iso(start_date),
            "end_date": format_date_iso(end_date),
        },
        "vehicles": ranked,
        "summary": summarize_comparison(ranked),
    }
