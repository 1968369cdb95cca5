"""
History Timeline Service

Merges maintenance and fuel records into one globally ordered, paginated
timeline. Ordering and pagination happen on the UNION ALL of both sources in
the database, never per source; only the rows of the requested page are then
hydrated and normalized.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from calculations.consumption import estimate_consumption
from database import store_access
from models import FuelRecord, MaintenanceRecord, to_float
from sqlalchemy import case, select, union_all
from sqlalchemy.orm import Session
from utils.time_utils import format_date_iso
from utils.wide_events import track_operation

from services import event_sources
from services.history_filters import FUEL, MAINTENANCE, CompiledHistoryQuery, SortSpec

logger = logging.getLogger(__name__)


@dataclass
class TimelineItem:
    """One entry of the unified timeline; ``details`` holds the type-specific payload."""

    type: str
    id: int
    vehicle_id: int
    vehicle_name: Optional[str]
    date: Optional[str]
    odometer: Optional[int]
    cost: float
    consumption: Optional[float] = None
    details: Dict = field(default_factory=dict)

    @classmethod
    def from_maintenance(cls, record: MaintenanceRecord, vehicle_name: Optional[str]) -> "TimelineItem":
        return cls(
            type=MAINTENANCE,
            id=record.id,
            vehicle_id=record.vehicle_id,
            vehicle_name=vehicle_name,
            date=format_date_iso(record.service_date),
            odometer=record.odometer_at_service,
            cost=round(to_float(record.cost) or 0.0, 2),
            details={
                "description": record.description,
                "category": record.category,
                "service_provider": record.service_provider_name,
                "is_completed": record.is_completed,
                "attachments_count": record.attachment_count or 0,
            },
        )

    @classmethod
    def from_fuel(
        cls, record: FuelRecord, vehicle_name: Optional[str], consumption: Optional[float] = None
    ) -> "TimelineItem":
        return cls(
            type=FUEL,
            id=record.id,
            vehicle_id=record.vehicle_id,
            vehicle_name=vehicle_name,
            date=format_date_iso(record.date),
            odometer=record.odometer,
            cost=round(to_float(record.total_cost) or 0.0, 2),
            consumption=consumption if record.is_full_tank else None,
            details={
                "liters": to_float(record.liters),
                "price_per_liter": to_float(record.price_per_liter),
                "fuel_type": record.fuel_type,
                "is_full_tank": record.is_full_tank,
                "gas_station": record.gas_station,
            },
        )

    def to_dict(self) -> Dict:
        return {
            "type": self.type,
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "vehicle_name": self.vehicle_name,
            "date": self.date,
            "odometer": self.odometer,
            "cost": self.cost,
            "consumption": self.consumption,
            "details": self.details,
        }


def _timeline_order(timeline, sort: SortSpec) -> List:
    """
    ORDER BY for the union: sort column, NULL odometers last, then id and
    type so equal keys from both sources always come back in the same order.
    """
    column = {
        "date": timeline.c.date,
        "km": timeline.c.odometer,
        "cost": timeline.c.cost,
    }[sort.sort_by]

    order = []
    if sort.sort_by == "km":
        order.append(case((timeline.c.odometer.is_(None), 1), else_=0))
    order.append(column.desc() if sort.descending else column.asc())
    order.extend([timeline.c.id.asc(), timeline.c.type.asc()])
    return order


def fetch_page_envelopes(db: Session, user_id: int, compiled: CompiledHistoryQuery) -> List:
    """Ordered (type, id, vehicle_id, date, odometer, cost) rows of the requested page."""
    selects = [
        event_sources.envelope_select(source, user_id, compiled.predicates_for(source))
        for source in (MAINTENANCE, FUEL)
        if compiled.includes(source)
    ]
    if not selects:
        return []

    combined = selects[0] if len(selects) == 1 else union_all(*selects)
    timeline = combined.subquery("timeline")

    stmt = (
        select(timeline)
        .order_by(*_timeline_order(timeline, compiled.sort))
        .limit(compiled.page.limit)
        .offset(compiled.page.offset)
    )
    with store_access("fetch_timeline_page"):
        return db.execute(stmt).all()


def count_timeline(db: Session, user_id: int, compiled: CompiledHistoryQuery) -> int:
    """Total matching events; same predicates as the page fetch."""
    total = 0
    if compiled.includes(MAINTENANCE):
        total += event_sources.count_maintenance_events(db, user_id, compiled.maintenance_predicates)
    if compiled.includes(FUEL):
        total += event_sources.count_fuel_events(db, user_id, compiled.fuel_predicates)
    return total


def _page_consumption(db: Session, user_id: int, fuel_records: List[FuelRecord]) -> Dict[int, Optional[float]]:
    """Consumption for full-tank records on the page, using their complete chains."""
    full_tanks = [record for record in fuel_records if record.is_full_tank]
    if not full_tanks:
        return {}

    history = event_sources.find_full_tank_history(
        db,
        user_id,
        {record.vehicle_id for record in full_tanks},
        until=max(record.date for record in full_tanks),
    )
    return estimate_consumption(history)


def hydrate_page(db: Session, user_id: int, envelopes: List) -> List[TimelineItem]:
    """Load full records for the page rows and normalize them in page order."""
    ids_by_source = {MAINTENANCE: [], FUEL: []}
    for row in envelopes:
        ids_by_source[row.type].append(row.id)

    maintenance = event_sources.load_events_by_id(db, MAINTENANCE, user_id, ids_by_source[MAINTENANCE])
    fuel = event_sources.load_events_by_id(db, FUEL, user_id, ids_by_source[FUEL])
    names = event_sources.get_vehicle_names(db, user_id, {row.vehicle_id for row in envelopes})
    consumption = _page_consumption(db, user_id, list(fuel.values()))

    items = []
    for row in envelopes:
        if row.type == MAINTENANCE:
            record = maintenance.get(row.id)
            if record is not None:
                items.append(TimelineItem.from_maintenance(record, names.get(record.vehicle_id)))
        else:
            record = fuel.get(row.id)
            if record is not None:
                items.append(TimelineItem.from_fuel(record, names.get(record.vehicle_id), consumption.get(record.id)))
    return items


def list_timeline(db: Session, user_id: int, compiled: CompiledHistoryQuery) -> Dict:
    """
    Unified maintenance + fuel history for one owner.

    Args:
        db: Database session
        user_id: Authenticated owner
        compiled: Output of compile_history_filters

    Returns:
        {"items": [...], "pagination": {...}, "filters_applied": {...}}
    """
    with track_operation("history_list", user_id=user_id, filters=compiled.filters) as event:
        with event.timer("count_query"):
            total = count_timeline(db, user_id, compiled)

        with event.timer("page_query"):
            envelopes = fetch_page_envelopes(db, user_id, compiled)

        with event.timer("hydrate"):
            items = hydrate_page(db, user_id, envelopes)

        event.add_business_metric("items_returned", len(items))
        event.add_business_metric("total", total)

    logger.debug(f"History page for user {user_id}: {len(items)} of {total} events")

    return {
        "items": [item.to_dict() for item in items],
        "pagination": {
            "total": total,
            "limit": compiled.page.limit,
            "offset": compiled.page.offset,
            "has_more": compiled.page.has_more(total),
        },
        "filters_applied": compiled.filters,
    }
