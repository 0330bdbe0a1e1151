"""Unit tests for payment callback verification."""

import hashlib
import hmac

import pytest

from railfare.core.exceptions import InvalidTransitionError, SignatureMismatchError
from railfare.schemas.booking import BookingStatus, PaymentStatus
from railfare.services.payment_verifier import PaymentVerifier, compute_signature

SECRET = "test-payment-secret"


def _sign(order_id: str, payment_id: str) -> str:
    return hmac.new(SECRET.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def waiting_booking(lifecycle, new_booking):
    booking, _ = lifecycle.create_booking(new_booking, total_fare=1140.0)
    lifecycle.attach_order(booking.booking_id, "order_1")
    return booking


def test_compute_signature_matches_hmac_sha256():
    assert compute_signature(SECRET, "order_1", "pay_1") == _sign("order_1", "pay_1")


def test_verify_signature(verifier):
    good = _sign("order_1", "pay_1")

    assert verifier.verify_signature("order_1", "pay_1", good)
    assert not verifier.verify_signature("order_1", "pay_2", good)
    assert not verifier.verify_signature("order_1", "pay_1", good.upper())
    assert not verifier.verify_signature("order_1", "pay_1", "")


def test_empty_secret_is_rejected(lifecycle):
    with pytest.raises(ValueError):
        PaymentVerifier(lifecycle, "")


def test_valid_signature_confirms(verifier, lifecycle, waiting_booking):
    booking = verifier.handle_payment_success(
        waiting_booking.booking_id, "order_1", "pay_1", _sign("order_1", "pay_1")
    )

    assert booking.status == BookingStatus.CONFIRMED
    assert lifecycle.get_payment(booking.booking_id).status == PaymentStatus.VERIFIED


def test_altered_signature_fails_payment(verifier, lifecycle, waiting_booking):
    tampered = _sign("order_1", "pay_1")[:-1] + "0"
    if tampered == _sign("order_1", "pay_1"):
        tampered = tampered[:-1] + "1"

    with pytest.raises(SignatureMismatchError) as exc_info:
        verifier.handle_payment_success(waiting_booking.booking_id, "order_1", "pay_1", tampered)

    assert exc_info.value.code == "SIGNATURE_MISMATCH"
    assert exc_info.value.status_code == 400
    assert lifecycle.get_booking(waiting_booking.booking_id).status == BookingStatus.CANCELLED
    payment = lifecycle.get_payment(waiting_booking.booking_id)
    assert payment.status == PaymentStatus.FAILED
    assert payment.signature == tampered


def test_mismatch_after_confirmation_keeps_booking_confirmed(verifier, lifecycle, waiting_booking):
    verifier.handle_payment_success(waiting_booking.booking_id, "order_1", "pay_1", _sign("order_1", "pay_1"))

    with pytest.raises(SignatureMismatchError):
        verifier.handle_payment_success(waiting_booking.booking_id, "order_1", "pay_1", "forged")

    assert lifecycle.get_booking(waiting_booking.booking_id).status == BookingStatus.CONFIRMED
    assert lifecycle.get_payment(waiting_booking.booking_id).status == PaymentStatus.VERIFIED


def test_duplicate_success_callback_is_harmless(verifier, waiting_booking):
    signature = _sign("order_1", "pay_1")

    first = verifier.handle_payment_success(waiting_booking.booking_id, "order_1", "pay_1", signature)
    second = verifier.handle_payment_success(waiting_booking.booking_id, "order_1", "pay_1", signature)

    assert first == second
    assert second.status == BookingStatus.CONFIRMED


def test_late_success_for_cancelled_booking_is_rejected(verifier, lifecycle, waiting_booking):
    verifier.handle_payment_failure(waiting_booking.booking_id, "timeout")

    with pytest.raises(InvalidTransitionError):
        verifier.handle_payment_success(
            waiting_booking.booking_id, "order_1", "pay_1", _sign("order_1", "pay_1")
        )

    assert lifecycle.get_booking(waiting_booking.booking_id).status == BookingStatus.CANCELLED
    assert lifecycle.get_payment(waiting_booking.booking_id).status == PaymentStatus.FAILED


def test_payment_failure_twice(verifier, lifecycle, waiting_booking):
    first = verifier.handle_payment_failure(waiting_booking.booking_id, "card_declined")
    second = verifier.handle_payment_failure(waiting_booking.booking_id, "card_declined")

    assert first.status == second.status == BookingStatus.CANCELLED
    assert lifecycle.get_payment(waiting_booking.booking_id).status == PaymentStatus.FAILED


def test_signature_for_another_order_is_rejected(verifier, lifecycle, new_booking):
    """A genuine signature for a cheap order cannot confirm a pricier booking."""
    cheap, _ = lifecycle.create_booking(new_booking, total_fare=100.0)
    lifecycle.attach_order(cheap.booking_id, "order_cheap")
    pricey, _ = lifecycle.create_booking(new_booking, total_fare=9000.0)
    lifecycle.attach_order(pricey.booking_id, "order_pricey")

    with pytest.raises(SignatureMismatchError):
        verifier.handle_payment_success(
            pricey.booking_id, "order_cheap", "pay_cheap", _sign("order_cheap", "pay_cheap")
        )

    assert lifecycle.get_booking(pricey.booking_id).status == BookingStatus.CANCELLED
    payment = lifecycle.get_payment(pricey.booking_id)
    assert payment.status == PaymentStatus.FAILED
    assert payment.gateway_order_id == "order_pricey"
    assert lifecycle.get_booking(cheap.booking_id).status == BookingStatus.WAITING


def test_signature_for_another_order_leaves_confirmed_booking(verifier, lifecycle, waiting_booking):
    verifier.handle_payment_success(waiting_booking.booking_id, "order_1", "pay_1", _sign("order_1", "pay_1"))

    with pytest.raises(SignatureMismatchError):
        verifier.handle_payment_success(
            waiting_booking.booking_id, "order_2", "pay_2", _sign("order_2", "pay_2")
        )

    assert lifecycle.get_booking(waiting_booking.booking_id).status == BookingStatus.CONFIRMED
    assert lifecycle.get_payment(waiting_booking.booking_id).status == PaymentStatus.VERIFIED
