"""Payment callback verification."""

import hashlib
import hmac
import logging

from ..core.exceptions import SignatureMismatchError
from ..core.observability import get_logger, metrics_collector
from ..schemas.booking import Booking
from .booking_lifecycle import BookingLifecycle

logger = logging.getLogger(__name__)

# Structured audit trail of every callback outcome
audit_log = get_logger("railfare.payments.audit")


def compute_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """Hex HMAC-SHA256 of ``"<order_id>|<payment_id>"``."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class PaymentVerifier:
    """Verifies gateway callbacks and drives the booking lifecycle."""

    def __init__(self, lifecycle: BookingLifecycle, secret: str):
        if not secret:
            raise ValueError("Payment secret must not be empty")
        self.lifecycle = lifecycle
        self._secret = secret

    def compute_signature(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        return compute_signature(self._secret, gateway_order_id, gateway_payment_id)

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, supplied_signature: str) -> bool:
        """Constant-time comparison of the supplied signature with the expected one."""
        expected = self.compute_signature(gateway_order_id, gateway_payment_id)
        return hmac.compare_digest(expected.encode("utf-8"), supplied_signature.encode("utf-8"))

    def handle_payment_success(
        self,
        booking_id: int,
        gateway_order_id: str,
        gateway_payment_id: str,
        supplied_signature: str,
    ) -> Booking:
        """
        Handle a gateway success callback.

        Args:
            booking_id: Booking the payment belongs to
            gateway_order_id: Order ID issued by the gateway
            gateway_payment_id: Payment ID reported by the gateway
            supplied_signature: Hex signature sent with the callback

        Returns:
            The CONFIRMED booking

        Raises:
            SignatureMismatchError: If the signature does not verify or the
                order id is not the one recorded for the booking. The payment
                is marked FAILED and a WAITING booking is cancelled before
                this is raised.
            InvalidTransitionError: If the booking is already CANCELLED
            NotFoundError: If the booking does not exist
        """
        audit = audit_log.with_context(booking_id=booking_id, gateway_order_id=gateway_order_id)

        payment = self.lifecycle.get_payment(booking_id)

        # A genuine signature only counts for the order recorded on this booking
        order_matches = payment.gateway_order_id is None or payment.gateway_order_id == gateway_order_id
        if not order_matches:
            logger.warning(
                "Callback order id differs from the recorded order",
                extra={
                    "booking_id": booking_id,
                    "recorded_order_id": payment.gateway_order_id,
                    "callback_order_id": gateway_order_id,
                }
            )

        verified = order_matches and self.verify_signature(gateway_order_id, gateway_payment_id, supplied_signature)
        if not verified:
            booking = self.lifecycle.reject_payment(
                booking_id,
                gateway_payment_id=gateway_payment_id,
                signature=supplied_signature,
                reason="signature_mismatch",
            )
            metrics_collector.record_signature_mismatch()
            audit.warning("payment_signature_mismatch", booking_status=booking.status.value)
            raise SignatureMismatchError(booking_id, gateway_order_id)

        booking = self.lifecycle.confirm(booking_id, gateway_payment_id, supplied_signature)
        audit.info("payment_verified", gateway_payment_id=gateway_payment_id, pnr=booking.pnr)
        return booking

    def handle_payment_failure(self, booking_id: int, reason: str = "payment_failed") -> Booking:
        """
        Handle a gateway failure callback; repeating it is a no-op.

        Raises:
            InvalidTransitionError: If the booking is CONFIRMED
            NotFoundError: If the booking does not exist
        """
        booking = self.lifecycle.fail_payment(booking_id, reason)
        audit_log.info("payment_failed", booking_id=booking_id, reason=reason)
        return booking
