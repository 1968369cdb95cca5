"""
Period Statistics Service

Loads one owner's maintenance and fuel rows for a date window (optionally a
single vehicle) and hands them to the pure cost statistics calculations.
"""

import logging
from datetime import date
from typing import Dict, Optional

from calculations.cost_statistics import build_period_statistics
from calculations.constants import MAX_PLAUSIBLE_CONSUMPTION
from exceptions import VehicleNotFoundError
from sqlalchemy.orm import Session
from utils.wide_events import track_operation

from services import event_sources
from services.history_filters import DateRange, VehicleIs

logger = logging.getLogger(__name__)


def ensure_vehicle_owned(db: Session, user_id: int, vehicle_id: int) -> None:
    """Raise VehicleNotFoundError unless the owner has this vehicle."""
    if not event_sources.verify_vehicle_ownership(db, user_id, [vehicle_id]):
        raise VehicleNotFoundError(f"Vehicle {vehicle_id} not found", vehicle_id=vehicle_id)


def get_period_statistics(
    db: Session,
    user_id: int,
    start_date: date,
    end_date: date,
    vehicle_id: Optional[int] = None
) -> Dict:
    """
    Cost, distance and consumption statistics for a window.

    Args:
        db: Database session
        user_id: Authenticated owner
        start_date: First day of the window (inclusive)
        end_date: Last day of the window (inclusive)
        vehicle_id: Restrict to one vehicle (must be owned), or all vehicles

    Returns:
        Statistics document (period, total_costs, cost_per_distance,
        maintenance_stats, fuel_stats, projections)

    Raises:
        VehicleNotFoundError: vehicle_id is not one of the owner's vehicles
    """
    with track_operation(
        "history_statistics",
        user_id=user_id,
        vehicle_id=vehicle_id,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
    ) as event:
        if vehicle_id is not None:
            ensure_vehicle_owned(db, user_id, vehicle_id)

        predicates = [DateRange(start_date, end_date)]
        if vehicle_id is not None:
            predicates.append(VehicleIs(vehicle_id))

        with event.timer("maintenance_query"):
            maintenance = event_sources.find_maintenance_events(db, user_id, predicates)
        with event.timer("fuel_query"):
            fuel = event_sources.find_fuel_events(db, user_id, predicates)

        stats = build_period_statistics(start_date, end_date, maintenance, fuel, MAX_PLAUSIBLE_CONSUMPTION)

        event.add_business_metric("maintenance_rows", len(maintenance))
        event.add_business_metric("fuel_rows", len(fuel))
        event.add_business_metric("total_cost", stats["total_costs"]["total"])

    logger.debug(
        f"Statistics for user {user_id} ({start_date} to {end_date}): "
        f"{len(maintenance)} maintenance, {len(fuel)} fuel rows"
    )
    return stats
