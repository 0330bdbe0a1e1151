"""Payment callback Pydantic schemas."""

from pydantic import BaseModel, Field


class PaymentSuccessRequest(BaseModel):
    """Gateway success callback payload."""

    booking_id: int = Field(..., description="Booking the payment belongs to")
    gateway_order_id: str = Field(..., min_length=1, max_length=64, description="Gateway order ID")
    gateway_payment_id: str = Field(..., min_length=1, max_length=64, description="Gateway payment ID")
    signature: str = Field(..., min_length=1, max_length=128, description="Hex HMAC-SHA256 of 'order_id|payment_id'")


class PaymentFailureRequest(BaseModel):
    """Gateway failure callback payload."""

    booking_id: int = Field(..., description="Booking the payment belongs to")
    reason: str = Field("payment_failed", max_length=255, description="Failure reason reported by the gateway")
