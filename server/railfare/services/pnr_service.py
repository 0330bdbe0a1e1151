"""PNR enquiries and per-user booking summaries."""

from ..schemas.booking import Booking, BookingStatus
from ..schemas.pnr import BookingStatistics, PnrStatus
from ..stores.base import BookingStore
from .booking_lifecycle import BookingLifecycle


class PnrService:
    """Read-side service over bookings."""

    def __init__(self, lifecycle: BookingLifecycle, store: BookingStore):
        self.lifecycle = lifecycle
        self.store = store

    def get_status(self, pnr: str) -> PnrStatus:
        """Booking and payment for a PNR; NotFoundError if unknown."""
        booking = self.lifecycle.get_by_pnr(pnr)
        return PnrStatus(pnr=pnr, booking=booking, payment=self.store.get_payment(booking.booking_id))

    def list_bookings(self, user_id: int, status: BookingStatus | None = None) -> list[Booking]:
        return self.store.list_bookings(user_id, status)

    def statistics(self, user_id: int) -> BookingStatistics:
        bookings = self.store.list_bookings(user_id)
        counts = {status: 0 for status in BookingStatus}
        for booking in bookings:
            counts[booking.status] += 1

        return BookingStatistics(
            user_id=user_id,
            total=len(bookings),
            waiting=counts[BookingStatus.WAITING],
            confirmed=counts[BookingStatus.CONFIRMED],
            cancelled=counts[BookingStatus.CANCELLED],
            confirmed_spend=sum(b.total_fare for b in bookings if b.status == BookingStatus.CONFIRMED),
        )
