"""Storage backends for bookings, payments and fare tiers."""

from .base import BookingStore, FareStore, FareTableData
from .memory import InMemoryBookingStore, InMemoryFareStore
from .sql import SqlBookingStore, SqlFareStore

__all__ = [
    "BookingStore",
    "FareStore",
    "FareTableData",
    "InMemoryBookingStore",
    "InMemoryFareStore",
    "SqlBookingStore",
    "SqlFareStore",
]
