"""
Fuel Consumption Calculations

Derives distance-per-volume from full-tank to full-tank refuel sequences:
- Per-event consumption for full-tank refuels
- Plausibility-bounded average consumption

Partial fills never receive a value and never act as a predecessor.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from .constants import CONSUMPTION_DECIMALS, MAX_PLAUSIBLE_CONSUMPTION, MIN_PLAUSIBLE_CONSUMPTION


def calculate_consumption(
    odometer: float,
    previous_odometer: float,
    liters: float
) -> Optional[float]:
    """
    Calculate consumption between two full-tank readings.

    Args:
        odometer: Odometer at the current full-tank refuel (km)
        previous_odometer: Odometer at the previous full-tank refuel (km)
        liters: Volume added at the current refuel

    Returns:
        Distance per liter rounded to 1 decimal, or None if invalid

    Examples:
        >>> calculate_consumption(11000, 10000, 45.0)
        22.2
        >>> calculate_consumption(10000, 10000, 45.0)
        None
    """
    if odometer is None or previous_odometer is None or liters is None:
        return None

    distance = odometer - previous_odometer
    if distance <= 0 or liters <= 0:
        return None

    return round(distance / liters, CONSUMPTION_DECIMALS)


def estimate_consumption(fuel_events: Iterable) -> Dict[int, Optional[float]]:
    """
    Attach a consumption value to every full-tank fuel event.

    Events are grouped per vehicle and ordered by (date, id). The predecessor
    of a full-tank event is the latest full-tank event of the same vehicle
    with a strictly earlier date.

    Args:
        fuel_events: Objects with id, vehicle_id, date, odometer, liters, is_full_tank

    Returns:
        Mapping of full-tank event id to consumption (None when undefined).
        Partial fills are absent from the mapping.
    """
    by_vehicle = defaultdict(list)
    for event in fuel_events:
        if event.is_full_tank:
            by_vehicle[event.vehicle_id].append(event)

    results: Dict[int, Optional[float]] = {}
    for events in by_vehicle.values():
        events.sort(key=lambda e: (e.date, e.id))

        # Latest full tank from a strictly earlier day; same-day fills share it
        previous = None
        day_start_previous = None
        current_day = None
        for event in events:
            if event.date != current_day:
                day_start_previous = previous
                current_day = event.date

            if day_start_previous is None:
                results[event.id] = None
            else:
                results[event.id] = calculate_consumption(
                    _as_number(event.odometer),
                    _as_number(day_start_previous.odometer),
                    _as_number(event.liters),
                )
            previous = event

    return results


def average_consumption(
    values: Iterable[Optional[float]],
    max_plausible: float = MAX_PLAUSIBLE_CONSUMPTION
) -> Optional[float]:
    """
    Mean of plausible consumption values.

    Values outside (0, max_plausible) are treated as data-entry outliers.

    Examples:
        >>> average_consumption([12.0, 14.0, 80.0])
        13.0
        >>> average_consumption([None, 0.0])
        None
    """
    plausible: List[float] = [
        v for v in values
        if v is not None and MIN_PLAUSIBLE_CONSUMPTION < v < max_plausible
    ]
    if not plausible:
        return None

    return round(sum(plausible) / len(plausible), CONSUMPTION_DECIMALS)


def _as_number(value):
    return float(value) if value is not None else None
