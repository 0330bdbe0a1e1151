"""Booking/payment state machine."""

import logging
import secrets
import string
from datetime import datetime, timezone
from threading import Lock, RLock
from typing import Callable
from weakref import WeakValueDictionary

from ..core.exceptions import DuplicatePNRError, InvalidTransitionError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..schemas.booking import Booking, BookingStatus, NewBooking, Payment, PaymentStatus
from ..stores.base import BookingStore

logger = logging.getLogger(__name__)

PNR_LENGTH = 10

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.WAITING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


def assert_booking_transition(booking: Booking, target: BookingStatus) -> None:
    """Raise InvalidTransitionError unless the table allows booking.status -> target."""
    if target not in BOOKING_TRANSITIONS[booking.status]:
        raise InvalidTransitionError(booking.booking_id, booking.status.value, target.value)


def generate_pnr() -> str:
    """Random 10-digit PNR."""
    return "".join(secrets.choice(string.digits) for _ in range(PNR_LENGTH))


class BookingLifecycle:
    """
    The only writer of Booking and Payment status fields.

    Transitions for one booking run under that booking's lock and are
    committed through the store's compare-and-set, so a duplicate or late
    callback can never move a booking out of a terminal state.
    """

    def __init__(
        self,
        store: BookingStore,
        pnr_max_attempts: int = 10,
        pnr_generator: Callable[[], str] = generate_pnr,
    ):
        self.store = store
        self.pnr_max_attempts = pnr_max_attempts
        self.pnr_generator = pnr_generator

        # Entries vanish once no transition holds the lock
        self._locks: WeakValueDictionary[int, RLock] = WeakValueDictionary()
        self._locks_guard = Lock()

    def _lock_for(self, booking_id: int) -> RLock:
        with self._locks_guard:
            lock = self._locks.get(booking_id)
            if lock is None:
                lock = self._locks[booking_id] = RLock()
            return lock

    def _require_booking(self, booking_id: int) -> Booking:
        booking = self.store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("booking", str(booking_id))
        return booking

    def _set_status(self, booking: Booking, target: BookingStatus) -> Booking:
        assert_booking_transition(booking, target)

        updated = self.store.compare_and_set_status(booking.booking_id, booking.status, target)
        if updated is None:
            # Changed by another writer between our read and the update
            current = self._require_booking(booking.booking_id)
            raise InvalidTransitionError(booking.booking_id, current.status.value, target.value)
        return updated

    def _fail_initiated_payment(self, booking_id: int, **fields: str | None) -> Payment | None:
        return self.store.update_payment(
            booking_id,
            expected=PaymentStatus.INITIATED,
            status=PaymentStatus.FAILED,
            **fields
        )

    def create_booking(self, new_booking: NewBooking, total_fare: float) -> tuple[Booking, Payment]:
        """
        Create a WAITING booking and its INITIATED payment under a fresh PNR.

        Args:
            new_booking: User, train, journey and station ids
            total_fare: Fare fixed for the whole booking

        Returns:
            The stored booking and payment

        Raises:
            ValidationError: If the fare is negative
            DuplicatePNRError: If every generated PNR collided
        """
        if total_fare < 0:
            raise ValidationError(detail="total_fare must not be negative", errors={"total_fare": total_fare})

        last_error: DuplicatePNRError | None = None
        for attempt in range(1, self.pnr_max_attempts + 1):
            pnr = self.pnr_generator()
            try:
                booking, payment = self.store.create_booking(
                    new_booking,
                    pnr=pnr,
                    total_fare=total_fare,
                    booking_time=datetime.now(timezone.utc),
                )
            except DuplicatePNRError as exc:
                last_error = exc
                metrics_collector.record_pnr_collision()
                logger.warning("PNR collision, retrying", extra={"pnr": pnr, "attempt": attempt})
                continue

            metrics_collector.record_booking_created()
            logger.info(
                "Booking created",
                extra={
                    "booking_id": booking.booking_id,
                    "pnr": pnr,
                    "user_id": booking.user_id,
                    "train_id": booking.train_id,
                    "total_fare": total_fare,
                }
            )
            return booking, payment

        logger.error(
            "Could not allocate a unique PNR",
            extra={"attempts": self.pnr_max_attempts, "user_id": new_booking.user_id}
        )
        raise last_error

    def attach_order(self, booking_id: int, gateway_order_id: str) -> Payment:
        """
        Record the gateway order on the booking's INITIATED payment.

        Raises:
            NotFoundError: If the booking does not exist
            InvalidTransitionError: If the payment is no longer INITIATED
        """
        with self._lock_for(booking_id):
            booking = self._require_booking(booking_id)
            payment = self.store.update_payment(
                booking_id,
                expected=PaymentStatus.INITIATED,
                gateway_order_id=gateway_order_id,
            )
            if payment is None:
                current = self.store.get_payment(booking_id)
                raise InvalidTransitionError(
                    booking_id,
                    current.status.value if current else booking.status.value,
                    PaymentStatus.INITIATED.value
                )

        logger.info(
            "Gateway order attached",
            extra={"booking_id": booking_id, "gateway_order_id": gateway_order_id}
        )
        return payment

    def confirm(self, booking_id: int, gateway_payment_id: str, signature: str) -> Booking:
        """
        Confirm a booking whose payment signature verified.

        A booking that is already CONFIRMED is returned unchanged so a
        re-delivered success callback is harmless.

        Raises:
            NotFoundError: If the booking does not exist
            InvalidTransitionError: If the booking is CANCELLED or its payment already FAILED
        """
        with self._lock_for(booking_id):
            booking = self._require_booking(booking_id)

            if booking.status == BookingStatus.CONFIRMED:
                logger.info("Duplicate confirmation ignored", extra={"booking_id": booking_id})
                return booking

            assert_booking_transition(booking, BookingStatus.CONFIRMED)

            payment = self.store.update_payment(
                booking_id,
                expected=PaymentStatus.INITIATED,
                status=PaymentStatus.VERIFIED,
                gateway_payment_id=gateway_payment_id,
                signature=signature,
            )
            if payment is None:
                raise InvalidTransitionError(booking_id, booking.status.value, BookingStatus.CONFIRMED.value)

            booking = self._set_status(booking, BookingStatus.CONFIRMED)

        metrics_collector.record_booking_confirmed()
        logger.info(
            "Booking confirmed",
            extra={"booking_id": booking_id, "pnr": booking.pnr, "gateway_payment_id": gateway_payment_id}
        )
        return booking

    def reject_payment(
        self,
        booking_id: int,
        gateway_payment_id: str | None,
        signature: str | None,
        reason: str = "signature_mismatch",
    ) -> Booking:
        """
        Fail an unverifiable payment and cancel its WAITING booking.

        A CONFIRMED booking and a VERIFIED payment are left untouched.

        Raises:
            NotFoundError: If the booking does not exist
        """
        with self._lock_for(booking_id):
            booking = self._require_booking(booking_id)

            if booking.status == BookingStatus.CONFIRMED:
                logger.warning(
                    "Rejected payment ignored for confirmed booking",
                    extra={"booking_id": booking_id, "reason": reason}
                )
                return booking

            self._fail_initiated_payment(
                booking_id,
                gateway_payment_id=gateway_payment_id,
                signature=signature,
                failure_reason=reason,
            )

            if booking.status == BookingStatus.CANCELLED:
                return booking

            booking = self._set_status(booking, BookingStatus.CANCELLED)

        metrics_collector.record_booking_cancelled(reason)
        logger.info("Booking cancelled after rejected payment", extra={"booking_id": booking_id, "reason": reason})
        return booking

    def fail_payment(self, booking_id: int, reason: str = "payment_failed") -> Booking:
        """
        Cancel a booking whose payment failed at the gateway.

        Calling it again on a CANCELLED booking is a no-op.

        Raises:
            NotFoundError: If the booking does not exist
            InvalidTransitionError: If the booking is CONFIRMED (its payment already verified)
        """
        with self._lock_for(booking_id):
            booking = self._require_booking(booking_id)

            if booking.status == BookingStatus.CANCELLED:
                logger.info("Duplicate payment failure ignored", extra={"booking_id": booking_id})
                return booking

            if booking.status == BookingStatus.CONFIRMED:
                raise InvalidTransitionError(booking_id, booking.status.value, BookingStatus.CANCELLED.value)

            self._fail_initiated_payment(booking_id, failure_reason=reason)
            booking = self._set_status(booking, BookingStatus.CANCELLED)

        metrics_collector.record_booking_cancelled(reason)
        logger.info("Booking cancelled after payment failure", extra={"booking_id": booking_id, "reason": reason})
        return booking

    def cancel(self, booking_id: int, reason: str = "user_cancelled") -> Booking:
        """
        Cancel a WAITING or CONFIRMED booking.

        An INITIATED payment is marked FAILED; a VERIFIED payment keeps its
        status (refunds are handled elsewhere).

        Raises:
            NotFoundError: If the booking does not exist
            InvalidTransitionError: If the booking is already CANCELLED
        """
        with self._lock_for(booking_id):
            booking = self._require_booking(booking_id)
            previous = booking.status

            booking = self._set_status(booking, BookingStatus.CANCELLED)
            self._fail_initiated_payment(booking_id, failure_reason=reason)

        metrics_collector.record_booking_cancelled(reason)
        logger.info(
            "Booking cancelled",
            extra={"booking_id": booking_id, "previous_status": previous.value, "reason": reason}
        )
        return booking

    def get_booking(self, booking_id: int) -> Booking:
        """Get booking by ID, raising NotFoundError if absent."""
        return self._require_booking(booking_id)

    def get_payment(self, booking_id: int) -> Payment:
        payment = self.store.get_payment(booking_id)
        if payment is None:
            raise NotFoundError("payment", str(booking_id))
        return payment

    def get_by_pnr(self, pnr: str) -> Booking:
        """Get booking by PNR, raising NotFoundError if absent."""
        booking = self.store.get_booking_by_pnr(pnr)
        if booking is None:
            raise NotFoundError("booking", pnr, detail=f"No booking found for PNR {pnr}")
        return booking

    def delete_booking(self, pnr: str) -> None:
        """
        Administrative deletion of a booking and its payment, in any state.

        Raises:
            NotFoundError: If no booking has this PNR
        """
        booking = self.get_by_pnr(pnr)

        with self._lock_for(booking.booking_id):
            if not self.store.delete_booking(pnr):
                raise NotFoundError("booking", pnr, detail=f"No booking found for PNR {pnr}")

        logger.info(
            "Booking deleted",
            extra={"booking_id": booking.booking_id, "pnr": pnr, "status": booking.status.value}
        )
