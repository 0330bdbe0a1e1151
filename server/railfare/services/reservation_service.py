"""Reservation service: fixes the price of a booking and opens its gateway order."""

import logging

from ..core.exceptions import GatewayError, NoFareDefined, ProblemDetailsException
from ..schemas.booking import Booking, CreateBookingRequest, NewBooking, Payment
from ..schemas.common import Money
from .booking_lifecycle import BookingLifecycle
from .gateway import PaymentGateway
from .quote_service import QuoteService

logger = logging.getLogger(__name__)


class ReservationService:
    """Service for the booking-page flow."""

    def __init__(
        self,
        quotes: QuoteService,
        lifecycle: BookingLifecycle,
        gateway: PaymentGateway,
        currency: str = "INR",
    ):
        self.quotes = quotes
        self.lifecycle = lifecycle
        self.gateway = gateway
        self.currency = currency

    def reserve(self, request: CreateBookingRequest) -> tuple[Booking, Payment, Money]:
        """
        Reserve seats at the price every page showed for this train and route.

        Args:
            request: Booking ids, route, class and passenger count

        Returns:
            The WAITING booking, its INITIATED payment carrying the order id,
            and the amount requested from the gateway

        Raises:
            NoFareDefined: If the class has no fare at the route's distance
            GatewayError: If the gateway could not create an order; the
                booking is cancelled first
        """
        record = self.quotes.quote(request.train_id, request.from_station, request.to_station)

        price = record.price_for(request.train_class)
        if price is None:
            raise NoFareDefined(request.train_class.value, record.distance_km)

        total_fare = price * request.passengers
        new_booking = NewBooking.model_validate(request.model_dump(include=set(NewBooking.model_fields)))
        booking, _ = self.lifecycle.create_booking(new_booking, total_fare)

        amount = Money.from_major(total_fare, self.currency)
        try:
            order_id = self.gateway.create_order(amount, receipt=booking.pnr)
        except ProblemDetailsException:
            self.lifecycle.cancel(booking.booking_id, reason="gateway_error")
            raise
        except Exception as exc:
            self.lifecycle.cancel(booking.booking_id, reason="gateway_error")
            logger.error(
                "Gateway order creation failed",
                extra={"booking_id": booking.booking_id, "pnr": booking.pnr, "error": str(exc)}
            )
            raise GatewayError(detail=f"Could not create a payment order for PNR {booking.pnr}") from exc

        payment = self.lifecycle.attach_order(booking.booking_id, order_id)

        logger.info(
            "Reservation created",
            extra={
                "booking_id": booking.booking_id,
                "pnr": booking.pnr,
                "route_key": record.route_key,
                "train_class": request.train_class.value,
                "passengers": request.passengers,
                "total_fare": total_fare,
                "gateway_order_id": order_id,
            }
        )
        return booking, payment, amount
