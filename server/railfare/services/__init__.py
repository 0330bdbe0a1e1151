"""Service layer package."""

from .booking_lifecycle import BookingLifecycle
from .consistency_cache import ConsistencyCache, ConsistencyRecord
from .fare_engine import FareEngine
from .fare_table import FareTable
from .gateway import LocalOrderGateway, PaymentGateway
from .payment_verifier import PaymentVerifier
from .pnr_service import PnrService
from .quote_service import QuoteService
from .reservation_service import ReservationService
from .route_info import RouteInfoProvider, RouteTiming, StaticRouteInfoProvider

__all__ = [
    "BookingLifecycle",
    "ConsistencyCache",
    "ConsistencyRecord",
    "FareEngine",
    "FareTable",
    "LocalOrderGateway",
    "PaymentGateway",
    "PaymentVerifier",
    "PnrService",
    "QuoteService",
    "ReservationService",
    "RouteInfoProvider",
    "RouteTiming",
    "StaticRouteInfoProvider",
]
