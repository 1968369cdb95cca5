"""
Test Data Factories for Autoledger

Provides factory classes to easily create test data with sensible defaults,
reducing boilerplate in tests and making them more maintainable.

Usage:
    # Create a vehicle with defaults
    vehicle = VehicleFactory.create(db_session)

    # Create with overrides
    fuel = FuelFactory.create(db_session, vehicle_id=vehicle.id, is_full_tank=True)

    # Create multiple instances
    services = MaintenanceFactory.create_batch(5, db_session, vehicle_id=vehicle.id)
"""

import itertools
from datetime import date
from typing import Any, Dict

from models import FuelRecord, MaintenanceRecord, Vehicle

OWNER_ID = 1
OTHER_OWNER_ID = 2

_plate_counter = itertools.count(1)


class BaseFactory:
    """Base factory with common functionality."""

    model = None

    @classmethod
    def create(cls, db_session=None, **kwargs):
        """Create and optionally persist an instance."""
        instance = cls.build(**kwargs)

        if db_session:
            db_session.add(instance)
            db_session.commit()
            db_session.refresh(instance)

        return instance

    @classmethod
    def create_batch(cls, count: int, db_session=None, **kwargs):
        """Create multiple instances."""
        return [cls.create(db_session=db_session, **kwargs) for _ in range(count)]

    @classmethod
    def build(cls, **kwargs):
        """Build instance without persisting to database."""
        defaults = cls.get_defaults()
        defaults.update(kwargs)
        return cls.model(**defaults)

    @classmethod
    def get_defaults(cls) -> Dict[str, Any]:
        """Override in subclasses to provide default values."""
        raise NotImplementedError


class VehicleFactory(BaseFactory):
    """Factory for Vehicle instances."""

    model = Vehicle

    @classmethod
    def get_defaults(cls) -> Dict[str, Any]:
        return {
            "user_id": OWNER_ID,
            "brand": "Volkswagen",
            "model": "Gol",
            "year": 2018,
            "plate": f"TST{next(_plate_counter):04d}",
            "current_odometer": 50000,
            "is_active": True,
        }


class MaintenanceFactory(BaseFactory):
    """Factory for MaintenanceRecord instances."""

    model = MaintenanceRecord

    @classmethod
    def get_defaults(cls) -> Dict[str, Any]:
        return {
            "service_date": date(2024, 5, 1),
            "odometer_at_service": 10000,
            "cost": 150.00,
            "category": "preventive",
            "description": "Scheduled service",
            "service_provider_name": "Corner Garage",
            "invoice_number": None,
            "attachment_count": 0,
        }

    @classmethod
    def create_completed(cls, db_session=None, **kwargs):
        """Create a maintenance with an invoice attached."""
        defaults = {"invoice_number": "INV-0001", "attachment_count": 1}
        defaults.update(kwargs)
        return cls.create(db_session=db_session, **defaults)


class FuelFactory(BaseFactory):
    """Factory for FuelRecord instances; total_cost follows liters x price unless given."""

    model = FuelRecord

    @classmethod
    def build(cls, **kwargs):
        defaults = cls.get_defaults()
        defaults.update(kwargs)
        if "total_cost" not in kwargs:
            defaults["total_cost"] = FuelRecord.compute_total_cost(defaults["liters"], defaults["price_per_liter"])
        return cls.model(**defaults)

    @classmethod
    def get_defaults(cls) -> Dict[str, Any]:
        return {
            "date": date(2024, 5, 1),
            "odometer": 10000,
            "liters": 40.0,
            "price_per_liter": 5.5,
            "fuel_type": "gasoline",
            "is_full_tank": True,
            "gas_station": "Shell",
        }
