"""Models module exporting all database models."""

from .booking import BookingRecord, PaymentRecord
from .fare import FareTierRecord

__all__ = [
    # Booking entities
    "BookingRecord",
    "PaymentRecord",

    # Pricing entity
    "FareTierRecord",
]
