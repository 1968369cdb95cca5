"""
Pytest fixtures for Autoledger tests.
"""

import os
import sys
from datetime import date

import pytest

# Add the application directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'ledger'))

# Set DATABASE_URL BEFORE importing app to use SQLite for tests
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['FLASK_TESTING'] = 'true'
os.environ['RATELIMIT_ENABLED'] = 'false'

from app import app as flask_app, SessionLocal, engine  # noqa: E402
from models import Base  # noqa: E402

from factories import OTHER_OWNER_ID, OWNER_ID, FuelFactory, MaintenanceFactory, VehicleFactory  # noqa: E402


@pytest.fixture
def app():
    """Create application for testing."""
    flask_app.config['TESTING'] = True

    # Create all tables in the test database
    Base.metadata.create_all(engine)

    yield flask_app

    # Clean up tables after test
    SessionLocal.remove()
    Base.metadata.drop_all(engine)


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Provide a database session for tests."""
    session = SessionLocal()
    yield session
    session.rollback()
    SessionLocal.remove()


@pytest.fixture
def auth_headers():
    """Identity header of the default owner."""
    return {'X-User-Id': str(OWNER_ID)}


@pytest.fixture
def other_auth_headers():
    return {'X-User-Id': str(OTHER_OWNER_ID)}


@pytest.fixture
def vehicle(db_session):
    """A vehicle owned by the default owner."""
    return VehicleFactory.create(db_session, user_id=OWNER_ID, brand='Honda', model='Civic', year=2020)


@pytest.fixture
def second_vehicle(db_session):
    return VehicleFactory.create(db_session, user_id=OWNER_ID, brand='Toyota', model='Corolla', year=2019)


@pytest.fixture
def foreign_vehicle(db_session):
    """A vehicle owned by someone else."""
    return VehicleFactory.create(db_session, user_id=OTHER_OWNER_ID, brand='Fiat', model='Uno', year=2010)


@pytest.fixture
def merged_history(db_session, vehicle):
    """
    One maintenance (2024-06-15, 250.00) and one fuel purchase
    (2024-07-01, 247.50) on the same vehicle.
    """
    maintenance = MaintenanceFactory.create(
        db_session,
        vehicle_id=vehicle.id,
        service_date=date(2024, 6, 15),
        odometer_at_service=10200,
        cost=250.00,
        category='preventive',
        description='Oil change',
    )
    fuel = FuelFactory.create(
        db_session,
        vehicle_id=vehicle.id,
        date=date(2024, 7, 1),
        odometer=10800,
        liters=45.0,
        price_per_liter=5.5,
    )
    return {'vehicle_id': vehicle.id, 'maintenance_id': maintenance.id, 'fuel_id': fuel.id}


@pytest.fixture
def consumption_chain(db_session, vehicle):
    """Full (40 L) -> partial (20 L) -> full (45 L) at 10000 / 10500 / 11000 km."""
    first = FuelFactory.create(
        db_session, vehicle_id=vehicle.id, date=date(2024, 3, 1), odometer=10000, liters=40.0, is_full_tank=True
    )
    partial = FuelFactory.create(
        db_session, vehicle_id=vehicle.id, date=date(2024, 3, 10), odometer=10500, liters=20.0, is_full_tank=False
    )
    last = FuelFactory.create(
        db_session, vehicle_id=vehicle.id, date=date(2024, 3, 20), odometer=11000, liters=45.0, is_full_tank=True
    )
    return {'vehicle_id': vehicle.id, 'ids': [first.id, partial.id, last.id]}
