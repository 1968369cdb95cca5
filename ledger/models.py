from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, Date,
    DateTime, ForeignKey, Numeric, Text, create_engine
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship
from sqlalchemy.pool import StaticPool


Base = declarative_base()


MAINTENANCE_CATEGORIES = (
    'preventive', 'corrective', 'inspection', 'upgrade', 'warranty', 'recall', 'other',
)
FUEL_TYPES = ('gasoline', 'ethanol', 'diesel')


def to_float(value):
    """Numeric columns come back as Decimal; the API speaks floats."""
    return float(value) if value is not None else None


class Vehicle(Base):
    """A vehicle owned by a single user."""

    __tablename__ = 'vehicles'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    brand = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)
    plate = Column(String(10), unique=True, nullable=False)
    current_odometer = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    # Relationships
    maintenance_records = relationship('MaintenanceRecord', back_populates='vehicle')
    fuel_records = relationship('FuelRecord', back_populates='vehicle')

    @property
    def display_name(self):
        return f"{self.brand} {self.model} {self.year}"


class MaintenanceRecord(Base):
    """A maintenance service performed on a vehicle."""

    __tablename__ = 'maintenance_records'

    id = Column(Integer, primary_key=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete='CASCADE'), nullable=False, index=True)
    service_date = Column(Date, nullable=False, index=True)
    odometer_at_service = Column(Integer)
    cost = Column(Numeric(10, 2), nullable=False, default=0)
    category = Column(String(20), nullable=False, default='other', index=True)
    description = Column(Text, nullable=False)
    service_provider_name = Column(String(100))
    invoice_number = Column(String(50))
    attachment_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    # Relationships
    vehicle = relationship('Vehicle', back_populates='maintenance_records')

    @property
    def is_completed(self):
        return self.invoice_number is not None


class FuelRecord(Base):
    """A fuel purchase for a vehicle."""

    __tablename__ = 'fuel_records'

    id = Column(Integer, primary_key=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete='CASCADE'), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    odometer = Column(Integer, nullable=False)
    liters = Column(Numeric(8, 2), nullable=False)
    price_per_liter = Column(Numeric(8, 3), nullable=False)
    total_cost = Column(Numeric(10, 2), nullable=False)
    fuel_type = Column(String(20), nullable=False, default='gasoline', index=True)
    is_full_tank = Column(Boolean, nullable=False, default=False, index=True)
    gas_station = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    # Relationships
    vehicle = relationship('Vehicle', back_populates='fuel_records')

    @staticmethod
    def compute_total_cost(liters, price_per_liter):
        """Total cost is always liters x price rounded to cents."""
        return round(float(liters) * float(price_per_liter), 2)


def get_engine(database_url):
    """Create database engine."""
    if database_url.startswith('sqlite') and ':memory:' in database_url:
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)
