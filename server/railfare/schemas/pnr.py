"""PNR enquiry Pydantic schemas."""

from pydantic import BaseModel, Field

from .booking import Booking, BookingStatus, Payment


class PnrStatusRequest(BaseModel):
    """Request schema for a PNR status enquiry."""

    pnr: str = Field(..., pattern=r"^\d{10}$", description="10-digit PNR")


class PnrStatus(BaseModel):
    """Status of a booking as seen through its PNR."""

    pnr: str = Field(..., description="10-digit PNR")
    booking: Booking = Field(..., description="Booking record")
    payment: Payment | None = Field(None, description="Payment record, if any")


class UserBookingsRequest(BaseModel):
    """Request schema for listing a user's bookings."""

    user_id: int = Field(..., gt=0, description="Booking user")
    status: BookingStatus | None = Field(None, description="Only return bookings in this status")


class UserBookingsResponse(BaseModel):
    """A user's bookings, newest first."""

    items: list[Booking] = Field(default_factory=list, description="Bookings")


class BookingStatistics(BaseModel):
    """Per-user booking counts."""

    user_id: int = Field(..., description="Booking user")
    total: int = Field(0, ge=0, description="All bookings")
    waiting: int = Field(0, ge=0, description="Bookings awaiting payment")
    confirmed: int = Field(0, ge=0, description="Confirmed bookings")
    cancelled: int = Field(0, ge=0, description="Cancelled bookings")
    confirmed_spend: float = Field(0.0, ge=0, description="Sum of confirmed booking fares")


class UserStatisticsRequest(BaseModel):
    """Request schema for a user's booking statistics."""

    user_id: int = Field(..., gt=0, description="Booking user")
