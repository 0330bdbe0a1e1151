"""Service wiring and FastAPI dependencies."""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy import Engine

from ..services.booking_lifecycle import BookingLifecycle
from ..services.consistency_cache import ConsistencyCache
from ..services.fare_engine import FareEngine
from ..services.fare_table import FareTable
from ..services.gateway import LocalOrderGateway, PaymentGateway
from ..services.payment_verifier import PaymentVerifier
from ..services.pnr_service import PnrService
from ..services.quote_service import QuoteService
from ..services.reservation_service import ReservationService
from ..services.route_info import RouteInfoProvider, StaticRouteInfoProvider
from ..stores.base import BookingStore, FareStore
from ..stores.memory import InMemoryBookingStore, InMemoryFareStore
from ..stores.sql import SqlBookingStore, SqlFareStore
from .config import Settings
from .database import create_db_engine, create_session_factory, init_db

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """All services of one application instance."""

    settings: Settings
    booking_store: BookingStore
    fare_store: FareStore
    fare_table: FareTable
    fare_engine: FareEngine
    cache: ConsistencyCache
    quotes: QuoteService
    lifecycle: BookingLifecycle
    verifier: PaymentVerifier
    reservations: ReservationService
    pnr: PnrService
    engine: Engine | None = None


def build_container(
    settings: Settings,
    route_info: RouteInfoProvider | None = None,
    gateway: PaymentGateway | None = None,
) -> ServiceContainer:
    """
    Build the service graph for the configured storage backend.

    Args:
        settings: Application settings
        route_info: Schedule source; an empty static provider when omitted
        gateway: Payment gateway; the local order gateway when omitted

    Returns:
        ServiceContainer: Wired services
    """
    engine = None
    if settings.storage_backend == "sql":
        engine = create_db_engine(settings.database_url, echo=settings.debug and settings.log_level == "DEBUG")
        init_db(engine)
        session_factory = create_session_factory(engine)
        booking_store: BookingStore = SqlBookingStore(session_factory)
        fare_store: FareStore = SqlFareStore(session_factory)
    else:
        booking_store = InMemoryBookingStore()
        fare_store = InMemoryFareStore()

    fare_table = FareTable(store=fare_store, default_tiers=settings.default_fare_tiers)
    fare_engine = FareEngine(fare_table)
    cache = ConsistencyCache()
    quotes = QuoteService(
        fare_engine,
        route_info or StaticRouteInfoProvider(),
        cache,
        max_workers=settings.quote_workers,
    )
    lifecycle = BookingLifecycle(booking_store, pnr_max_attempts=settings.pnr_max_attempts)
    verifier = PaymentVerifier(lifecycle, settings.payment_secret)
    reservations = ReservationService(
        quotes,
        lifecycle,
        gateway or LocalOrderGateway(),
        currency=settings.currency,
    )

    logger.info(
        "Service container built",
        extra={"storage_backend": settings.storage_backend, "environment": settings.environment}
    )

    return ServiceContainer(
        settings=settings,
        booking_store=booking_store,
        fare_store=fare_store,
        fare_table=fare_table,
        fare_engine=fare_engine,
        cache=cache,
        quotes=quotes,
        lifecycle=lifecycle,
        verifier=verifier,
        reservations=reservations,
        pnr=PnrService(lifecycle, booking_store),
        engine=engine,
    )


def get_container(request: Request) -> ServiceContainer:
    """Container stored on the application state."""
    return request.app.state.container


CONTAINER_DEPENDENCY = Depends(get_container)


def get_fare_table(container: ServiceContainer = CONTAINER_DEPENDENCY) -> FareTable:
    return container.fare_table


def get_fare_engine(container: ServiceContainer = CONTAINER_DEPENDENCY) -> FareEngine:
    return container.fare_engine


def get_quote_service(container: ServiceContainer = CONTAINER_DEPENDENCY) -> QuoteService:
    return container.quotes


def get_lifecycle(container: ServiceContainer = CONTAINER_DEPENDENCY) -> BookingLifecycle:
    return container.lifecycle


def get_payment_verifier(container: ServiceContainer = CONTAINER_DEPENDENCY) -> PaymentVerifier:
    return container.verifier


def get_reservation_service(container: ServiceContainer = CONTAINER_DEPENDENCY) -> ReservationService:
    return container.reservations


def get_pnr_service(container: ServiceContainer = CONTAINER_DEPENDENCY) -> PnrService:
    return container.pnr


FareTableDependency = Depends(get_fare_table)
FareEngineDependency = Depends(get_fare_engine)
QuoteServiceDependency = Depends(get_quote_service)
LifecycleDependency = Depends(get_lifecycle)
PaymentVerifierDependency = Depends(get_payment_verifier)
ReservationServiceDependency = Depends(get_reservation_service)
PnrServiceDependency = Depends(get_pnr_service)
