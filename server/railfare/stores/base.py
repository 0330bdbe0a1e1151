"""Abstract storage collaborators consumed by the pricing and booking core."""

from abc import ABC, abstractmethod
from datetime import datetime

from ..schemas.booking import Booking, BookingStatus, NewBooking, Payment, PaymentStatus

# {class_code: [[distance_km, fare], ...]}
FareTableData = dict[str, list[list[float]]]


class BookingStore(ABC):
    """
    Storage for Booking/Payment pairs.

    Implementations return immutable snapshots; every status change goes
    through a compare-and-set so a stale writer cannot overwrite a newer state.
    """

    @abstractmethod
    def create_booking(
        self,
        new_booking: NewBooking,
        pnr: str,
        total_fare: float,
        booking_time: datetime,
    ) -> tuple[Booking, Payment]:
        """
        Store a WAITING booking with its INITIATED payment.

        Raises:
            DuplicatePNRError: If the PNR is already taken
        """

    @abstractmethod
    def get_booking(self, booking_id: int) -> Booking | None:
        """Get booking by ID."""

    @abstractmethod
    def get_booking_by_pnr(self, pnr: str) -> Booking | None:
        """Get booking by PNR."""

    @abstractmethod
    def pnr_exists(self, pnr: str) -> bool:
        """Return True if a booking already uses this PNR."""

    @abstractmethod
    def list_bookings(self, user_id: int, status: BookingStatus | None = None) -> list[Booking]:
        """List a user's bookings, newest first."""

    @abstractmethod
    def compare_and_set_status(
        self,
        booking_id: int,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> Booking | None:
        """
        Atomically move a booking from `expected` to `new`.

        Returns:
            The updated booking, or None if the booking is missing or its
            status was no longer `expected`
        """

    @abstractmethod
    def delete_booking(self, pnr: str) -> bool:
        """Delete a booking and its payment. Returns False if nothing was deleted."""

    @abstractmethod
    def get_payment(self, booking_id: int) -> Payment | None:
        """Get the payment of a booking."""

    @abstractmethod
    def update_payment(
        self,
        booking_id: int,
        expected: PaymentStatus,
        status: PaymentStatus | None = None,
        **fields: str | None,
    ) -> Payment | None:
        """
        Atomically update a payment whose status is still `expected`.

        Args:
            booking_id: Booking the payment belongs to
            expected: Status the payment must currently have
            status: New status, or None to keep the current one
            **fields: gateway_order_id, gateway_payment_id, signature, failure_reason

        Returns:
            The updated payment, or None if the payment is missing or its
            status was no longer `expected`
        """


class FareStore(ABC):
    """Persistence for the fare table."""

    @abstractmethod
    def load(self) -> FareTableData:
        """Load all tiers. Returns an empty mapping when nothing is stored."""

    @abstractmethod
    def save(self, data: FareTableData) -> None:
        """Replace the stored tiers with `data`."""


PAYMENT_FIELDS = frozenset({"gateway_order_id", "gateway_payment_id", "signature", "failure_reason"})
