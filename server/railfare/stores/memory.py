"""In-process stores backed by dictionaries."""

import copy
import itertools
import logging
from datetime import datetime
from threading import RLock

from ..core.exceptions import DuplicatePNRError, ValidationError
from ..schemas.booking import Booking, BookingStatus, NewBooking, Payment, PaymentStatus
from .base import PAYMENT_FIELDS, BookingStore, FareStore, FareTableData

logger = logging.getLogger(__name__)


class InMemoryBookingStore(BookingStore):
    """Booking store for a single process; all access is serialized by one lock."""

    def __init__(self):
        self._bookings: dict[int, Booking] = {}
        self._payments: dict[int, Payment] = {}  # booking_id -> payment
        self._pnr_index: dict[str, int] = {}  # pnr -> booking_id

        self._booking_ids = itertools.count(1)
        self._payment_ids = itertools.count(1)

        self._lock = RLock()

    def create_booking(
        self,
        new_booking: NewBooking,
        pnr: str,
        total_fare: float,
        booking_time: datetime,
    ) -> tuple[Booking, Payment]:
        with self._lock:
            if pnr in self._pnr_index:
                raise DuplicatePNRError(pnr)

            booking = Booking(
                booking_id=next(self._booking_ids),
                pnr=pnr,
                total_fare=total_fare,
                status=BookingStatus.WAITING,
                booking_time=booking_time,
                **new_booking.model_dump(),
            )
            payment = Payment(
                payment_id=next(self._payment_ids),
                booking_id=booking.booking_id,
                amount=total_fare,
                status=PaymentStatus.INITIATED,
            )

            self._bookings[booking.booking_id] = booking
            self._payments[booking.booking_id] = payment
            self._pnr_index[pnr] = booking.booking_id

        return booking, payment

    def get_booking(self, booking_id: int) -> Booking | None:
        with self._lock:
            return self._bookings.get(booking_id)

    def get_booking_by_pnr(self, pnr: str) -> Booking | None:
        with self._lock:
            booking_id = self._pnr_index.get(pnr)
            if booking_id is None:
                return None
            return self._bookings.get(booking_id)

    def pnr_exists(self, pnr: str) -> bool:
        with self._lock:
            return pnr in self._pnr_index

    def list_bookings(self, user_id: int, status: BookingStatus | None = None) -> list[Booking]:
        with self._lock:
            bookings = [
                b for b in self._bookings.values()
                if b.user_id == user_id and (status is None or b.status == status)
            ]
        return sorted(bookings, key=lambda b: (b.booking_time, b.booking_id), reverse=True)

    def compare_and_set_status(
        self,
        booking_id: int,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> Booking | None:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.status != expected:
                return None

            updated = booking.model_copy(update={"status": new})
            self._bookings[booking_id] = updated
            return updated

    def delete_booking(self, pnr: str) -> bool:
        with self._lock:
            booking_id = self._pnr_index.pop(pnr, None)
            if booking_id is None:
                return False

            self._bookings.pop(booking_id, None)
            self._payments.pop(booking_id, None)
            return True

    def get_payment(self, booking_id: int) -> Payment | None:
        with self._lock:
            return self._payments.get(booking_id)

    def update_payment(
        self,
        booking_id: int,
        expected: PaymentStatus,
        status: PaymentStatus | None = None,
        **fields: str | None,
    ) -> Payment | None:
        unknown = set(fields) - PAYMENT_FIELDS
        if unknown:
            raise ValidationError(detail=f"Unknown payment fields: {sorted(unknown)}")

        with self._lock:
            payment = self._payments.get(booking_id)
            if payment is None or payment.status != expected:
                return None

            update = dict(fields)
            if status is not None:
                update["status"] = status

            updated = payment.model_copy(update=update)
            self._payments[booking_id] = updated
            return updated


class InMemoryFareStore(FareStore):
    """Fare store that keeps the last saved table in memory."""

    def __init__(self, initial: FareTableData | None = None):
        self._data: FareTableData = copy.deepcopy(initial) if initial else {}
        self._lock = RLock()
        self.save_count = 0

    def load(self) -> FareTableData:
        with self._lock:
            return copy.deepcopy(self._data)

    def save(self, data: FareTableData) -> None:
        with self._lock:
            self._data = copy.deepcopy(data)
            self.save_count += 1

        logger.debug(
            "Fare table saved",
            extra={"classes": sorted(data), "tiers": sum(len(t) for t in data.values())}
        )
