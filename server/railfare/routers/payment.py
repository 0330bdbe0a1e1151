"""Payment router for gateway callbacks."""

from fastapi import APIRouter

from ..core.dependencies import PaymentVerifierDependency
from ..schemas.booking import Booking
from ..schemas.payment import PaymentFailureRequest, PaymentSuccessRequest
from ..services.payment_verifier import PaymentVerifier

router = APIRouter(prefix="/v1/payment", tags=["payment"])


@router.post("/success", response_model=Booking)
def payment_success(
    request: PaymentSuccessRequest,
    verifier: PaymentVerifier = PaymentVerifierDependency,
) -> Booking:
    """
    Gateway success callback.

    A valid signature confirms the booking. A bad one fails the payment,
    cancels a WAITING booking and answers 400 SIGNATURE_MISMATCH.
    """
    return verifier.handle_payment_success(
        request.booking_id,
        request.gateway_order_id,
        request.gateway_payment_id,
        request.signature,
    )


@router.post("/failure", response_model=Booking)
def payment_failure(
    request: PaymentFailureRequest,
    verifier: PaymentVerifier = PaymentVerifierDependency,
) -> Booking:
    """Gateway failure callback; repeated deliveries are harmless."""
    return verifier.handle_payment_failure(request.booking_id, request.reason)
