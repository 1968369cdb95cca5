"""
Event Source Adapters

Read-only access to the maintenance and fuel stores. Every query is joined to
Vehicle and scoped to the requesting owner, so a foreign vehicle simply yields
no rows. Filters arrive as compiled predicates and are rendered through each
source's column map.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from database import store_access
from models import FuelRecord, MaintenanceRecord, Vehicle
from sqlalchemy import String, literal_column, select
from sqlalchemy.orm import Session

from services.history_filters import FUEL, MAINTENANCE, DateRange, FullTankOnly, VehicleIn

logger = logging.getLogger(__name__)

# Logical column name -> model column, per source
MAINTENANCE_COLUMNS = {
    "vehicle_id": MaintenanceRecord.vehicle_id,
    "date": MaintenanceRecord.service_date,
    "odometer": MaintenanceRecord.odometer_at_service,
    "cost": MaintenanceRecord.cost,
    "category": MaintenanceRecord.category,
}

FUEL_COLUMNS = {
    "vehicle_id": FuelRecord.vehicle_id,
    "date": FuelRecord.date,
    "odometer": FuelRecord.odometer,
    "cost": FuelRecord.total_cost,
    "fuel_type": FuelRecord.fuel_type,
    "is_full_tank": FuelRecord.is_full_tank,
}

SOURCE_MODELS = {
    MAINTENANCE: (MaintenanceRecord, MAINTENANCE_COLUMNS),
    FUEL: (FuelRecord, FUEL_COLUMNS),
}


def _clauses(predicates: Iterable, columns: Dict) -> List:
    return [predicate.to_clause(columns) for predicate in predicates]


def _scoped_query(db: Session, source: str, user_id: int, predicates: Sequence = ()):
    model, columns = SOURCE_MODELS[source]
    return (
        db.query(model)
        .join(Vehicle, model.vehicle_id == Vehicle.id)
        .filter(Vehicle.user_id == user_id)
        .filter(*_clauses(predicates, columns))
    )


def _find(db: Session, source: str, user_id: int, predicates: Sequence) -> List:
    model, columns = SOURCE_MODELS[source]
    with store_access(f"find_{source}_events"):
        return (
            _scoped_query(db, source, user_id, predicates)
            .order_by(columns["date"], model.id)
            .all()
        )


def _count(db: Session, source: str, user_id: int, predicates: Sequence) -> int:
    with store_access(f"count_{source}_events"):
        return _scoped_query(db, source, user_id, predicates).count()


def find_maintenance_events(db: Session, user_id: int, predicates: Sequence = ()) -> List[MaintenanceRecord]:
    """Owner's maintenance records matching every predicate, by (service_date, id)."""
    return _find(db, MAINTENANCE, user_id, predicates)


def count_maintenance_events(db: Session, user_id: int, predicates: Sequence = ()) -> int:
    return _count(db, MAINTENANCE, user_id, predicates)


def find_fuel_events(db: Session, user_id: int, predicates: Sequence = ()) -> List[FuelRecord]:
    """Owner's fuel records matching every predicate, by (date, id)."""
    return _find(db, FUEL, user_id, predicates)


def count_fuel_events(db: Session, user_id: int, predicates: Sequence = ()) -> int:
    return _count(db, FUEL, user_id, predicates)


def envelope_select(source: str, user_id: int, predicates: Sequence = ()):
    """
    Narrow select of the columns shared by both sources.

    Used as one arm of the timeline UNION ALL; the rest of each record is
    loaded only for the rows that land on the requested page.
    """
    model, columns = SOURCE_MODELS[source]
    return (
        select(
            literal_column(f"'{source}'", String).label("type"),
            model.id.label("id"),
            columns["vehicle_id"].label("vehicle_id"),
            columns["date"].label("date"),
            columns["odometer"].label("odometer"),
            columns["cost"].label("cost"),
        )
        .select_from(model)
        .join(Vehicle, model.vehicle_id == Vehicle.id)
        .where(Vehicle.user_id == user_id, *_clauses(predicates, columns))
    )


def load_events_by_id(db: Session, source: str, user_id: int, event_ids: Sequence[int]) -> Dict[int, object]:
    """Hydrate full records for a page of envelope rows."""
    if not event_ids:
        return {}

    model, _ = SOURCE_MODELS[source]
    with store_access(f"load_{source}_events"):
        records = _scoped_query(db, source, user_id).filter(model.id.in_(list(event_ids))).all()
    return {record.id: record for record in records}


def verify_vehicle_ownership(db: Session, user_id: int, vehicle_ids: Sequence[int]) -> List[int]:
    """
    Return the subset of vehicle_ids owned by user_id.

    Example:
        >>> verify_vehicle_ownership(db, 1, [3, 4, 99])
        [3, 4]
    """
    if not vehicle_ids:
        return []

    with store_access("verify_vehicle_ownership"):
        rows = (
            db.query(Vehicle.id)
            .filter(Vehicle.user_id == user_id, Vehicle.id.in_(list(vehicle_ids)))
            .all()
        )
    owned = {row.id for row in rows}
    return [vehicle_id for vehicle_id in vehicle_ids if vehicle_id in owned]


def get_vehicle_names(db: Session, user_id: int, vehicle_ids: Iterable[int]) -> Dict[int, str]:
    """Display names ("brand model year") of the owner's vehicles."""
    vehicle_ids = list(set(vehicle_ids))
    if not vehicle_ids:
        return {}

    with store_access("get_vehicle_names"):
        vehicles = (
            db.query(Vehicle)
            .filter(Vehicle.user_id == user_id, Vehicle.id.in_(vehicle_ids))
            .all()
        )
    return {vehicle.id: vehicle.display_name for vehicle in vehicles}


def find_full_tank_history(
    db: Session,
    user_id: int,
    vehicle_ids: Iterable[int],
    until: Optional[date] = None
) -> List[FuelRecord]:
    """
    Full-tank refuels of the given vehicles up to ``until`` (inclusive).

    Lets consumption be derived for events whose predecessor lies outside the
    requested timeline window.
    """
    vehicle_ids = tuple(sorted(set(vehicle_ids)))
    if not vehicle_ids:
        return []

    predicates = [VehicleIn(vehicle_ids), FullTankOnly()]
    if until is not None:
        predicates.append(DateRange(end=until))
    return find_fuel_events(db, user_id, predicates)
