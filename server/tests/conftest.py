"""Test configuration and fixtures."""

from datetime import time

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from railfare.core.config import Settings
from railfare.core.database import create_db_engine, create_session_factory, init_db
from railfare.core.dependencies import build_container
from railfare.main import create_app
from railfare.schemas.booking import NewBooking
from railfare.services.booking_lifecycle import BookingLifecycle
from railfare.services.payment_verifier import PaymentVerifier
from railfare.services.route_info import RouteTiming, StaticRouteInfoProvider
from railfare.stores.memory import InMemoryBookingStore

TEST_PAYMENT_SECRET = "test-payment-secret"

# Rajdhani: 17:00 day 1 -> 08:32 day 2 is 932 minutes, 1010 km at 65 km/h
RAJDHANI_TRAIN_ID = 12951
RAJDHANI_TIMING = RouteTiming(
    train_name="Mumbai Rajdhani Express",
    departure_time=time(17, 0),
    arrival_time=time(8, 32),
    departure_day=1,
    arrival_day=2,
    from_sequence=1,
    to_sequence=6,
)

# Passenger train with stops but no times: 3 segments of 60 km
PASSENGER_TRAIN_ID = 56501
PASSENGER_TIMING = RouteTiming(
    train_name="Pune Nashik Passenger",
    from_sequence=2,
    to_sequence=5,
)


@pytest.fixture
def test_settings():
    """Settings for an in-memory test instance."""
    return Settings(
        environment="test",
        storage_backend="memory",
        payment_secret=TEST_PAYMENT_SECRET,
        pnr_max_attempts=5,
        quote_workers=4,
    )


@pytest.fixture
def route_info():
    """Route timings for the test trains."""
    provider = StaticRouteInfoProvider()
    provider.add(RAJDHANI_TRAIN_ID, "Mumbai", "Delhi", RAJDHANI_TIMING)
    provider.add(PASSENGER_TRAIN_ID, "Pune", "Nashik", PASSENGER_TIMING)
    return provider


@pytest.fixture
def container(test_settings, route_info):
    """Fully wired services."""
    return build_container(test_settings, route_info=route_info)


@pytest.fixture
def test_app(container):
    """Create a test FastAPI application."""
    return create_app(container=container)


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def booking_store():
    return InMemoryBookingStore()


@pytest.fixture
def lifecycle(booking_store):
    return BookingLifecycle(booking_store, pnr_max_attempts=5)


@pytest.fixture
def verifier(lifecycle):
    return PaymentVerifier(lifecycle, TEST_PAYMENT_SECRET)


@pytest.fixture
def new_booking():
    """Booking ids for a reservation."""
    return NewBooking(
        user_id=7,
        train_id=RAJDHANI_TRAIN_ID,
        journey_id=301,
        source_station_id=11,
        dest_station_id=42,
    )


@pytest.fixture
def sql_session_factory():
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sample_booking_data():
    """Sample reservation request body."""
    return {
        "user_id": 7,
        "train_id": RAJDHANI_TRAIN_ID,
        "journey_id": 301,
        "source_station_id": 11,
        "dest_station_id": 42,
        "from_station": "Mumbai",
        "to_station": "Delhi",
        "train_class": "SL",
        "passengers": 2,
    }


@pytest.fixture
def rajdhani_train_id():
    return RAJDHANI_TRAIN_ID


@pytest.fixture
def passenger_train_id():
    return PASSENGER_TRAIN_ID
