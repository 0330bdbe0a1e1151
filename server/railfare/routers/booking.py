"""Booking router for booking operations."""

import logging

from fastapi import APIRouter, Response, status

from ..core.dependencies import LifecycleDependency, ReservationServiceDependency
from ..schemas.booking import (
    Booking,
    BookingPaymentResponse,
    CancelBookingRequest,
    CreateBookingRequest,
    DeleteBookingRequest,
    GetBookingRequest,
    ReservationResponse,
)
from ..services.booking_lifecycle import BookingLifecycle
from ..services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])


@router.post("/create", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: CreateBookingRequest,
    reservations: ReservationService = ReservationServiceDependency,
) -> ReservationResponse:
    """
    Reserve seats at the quoted price.

    The booking starts WAITING with an INITIATED payment carrying the
    gateway order id; the payment callback confirms or cancels it.
    """
    booking, payment, amount = reservations.reserve(request)
    return ReservationResponse(booking=booking, payment=payment, order_amount=amount)


@router.post("/cancel", response_model=Booking)
def cancel_booking(
    request: CancelBookingRequest,
    lifecycle: BookingLifecycle = LifecycleDependency,
) -> Booking:
    """Cancel a WAITING or CONFIRMED booking."""
    return lifecycle.cancel(request.booking_id, request.reason)


@router.post("/get", response_model=BookingPaymentResponse)
def get_booking(
    request: GetBookingRequest,
    lifecycle: BookingLifecycle = LifecycleDependency,
) -> BookingPaymentResponse:
    """Get a booking and its payment."""
    booking = lifecycle.get_booking(request.booking_id)
    return BookingPaymentResponse(booking=booking, payment=lifecycle.store.get_payment(booking.booking_id))


@router.post("/delete", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    request: DeleteBookingRequest,
    lifecycle: BookingLifecycle = LifecycleDependency,
) -> Response:
    """Administrative deletion of a booking, whatever its status."""
    lifecycle.delete_booking(request.pnr)
    logger.info("Booking deleted by admin request", extra={"pnr": request.pnr})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
