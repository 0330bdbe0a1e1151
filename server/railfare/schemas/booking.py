"""Booking and payment Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .common import Money
from .fare import TrainClass


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    WAITING = "WAITING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    INITIATED = "INITIATED"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"


class Booking(BaseModel):
    """Booking record. Status changes only through the booking lifecycle."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    booking_id: int = Field(..., description="Unique booking ID")
    pnr: str = Field(..., min_length=10, max_length=10, description="10-digit passenger name record")
    user_id: int = Field(..., description="Booking user")
    train_id: int = Field(..., description="Booked train")
    journey_id: int = Field(..., description="Journey (train + date) the booking belongs to")
    source_station_id: int = Field(..., description="Boarding station")
    dest_station_id: int = Field(..., description="Destination station")
    total_fare: float = Field(..., ge=0, description="Fare fixed at reservation time")
    status: BookingStatus = Field(..., description="Booking status")
    booking_time: datetime = Field(..., description="Reservation time (ISO 8601)")


class Payment(BaseModel):
    """Payment record paired with a booking."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    payment_id: int = Field(..., description="Unique payment ID")
    booking_id: int = Field(..., description="Associated booking ID")
    amount: float = Field(..., ge=0, description="Amount charged in major units")
    gateway_order_id: str | None = Field(None, description="Order ID issued by the gateway")
    gateway_payment_id: str | None = Field(None, description="Payment ID reported by the gateway")
    signature: str | None = Field(None, description="Signature supplied with the callback")
    status: PaymentStatus = Field(..., description="Payment status")
    failure_reason: str | None = Field(None, description="Why the payment failed")


class NewBooking(BaseModel):
    """Booking fields supplied by the caller; the lifecycle assigns the rest."""

    user_id: int = Field(..., gt=0, description="Booking user")
    train_id: int = Field(..., gt=0, description="Booked train")
    journey_id: int = Field(..., gt=0, description="Journey the booking belongs to")
    source_station_id: int = Field(..., gt=0, description="Boarding station")
    dest_station_id: int = Field(..., gt=0, description="Destination station")


class CreateBookingRequest(NewBooking):
    """Request schema for reserving seats at the cached quote price."""

    from_station: str = Field(..., min_length=1, max_length=128, description="Boarding station name")
    to_station: str = Field(..., min_length=1, max_length=128, description="Destination station name")
    train_class: TrainClass = Field(..., description="Travel class code")
    passengers: int = Field(..., ge=1, description="Number of passengers")


class CancelBookingRequest(BaseModel):
    """Request schema for cancelling a booking."""

    booking_id: int = Field(..., description="Booking to cancel")
    reason: str = Field("user_cancelled", max_length=255, description="Cancellation reason")


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking."""

    booking_id: int = Field(..., description="Booking to retrieve")


class DeleteBookingRequest(BaseModel):
    """Request schema for the administrative deletion of a booking."""

    pnr: str = Field(..., pattern=r"^\d{10}$", description="PNR of the booking to delete")


class ReservationResponse(BaseModel):
    """Response for a new reservation awaiting payment."""

    booking: Booking = Field(..., description="Booking in WAITING state")
    payment: Payment = Field(..., description="Payment in INITIATED state")
    order_amount: Money = Field(..., description="Amount requested from the gateway")


class BookingPaymentResponse(BaseModel):
    """Booking together with its payment."""

    booking: Booking = Field(..., description="Booking record")
    payment: Payment | None = Field(None, description="Payment record, if any")
