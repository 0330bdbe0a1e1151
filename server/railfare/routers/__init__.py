"""FastAPI routers package."""

from .booking import router as booking_router
from .fare import router as fare_router
from .metrics import router as metrics_router
from .payment import router as payment_router
from .pnr import router as pnr_router
from .quote import router as quote_router

__all__ = [
    "booking_router",
    "fare_router",
    "metrics_router",
    "payment_router",
    "pnr_router",
    "quote_router",
]
