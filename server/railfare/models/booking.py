"""Booking and Payment model definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from ..schemas.booking import BookingStatus, PaymentStatus


class BookingRecord(Base):
    """Booking row; the PNR is the public lookup key."""

    __tablename__ = "bookings"

    # Primary key
    booking_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    pnr: Mapped[str] = mapped_column(String(10), nullable=False, unique=True, index=True)

    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    train_id: Mapped[int] = mapped_column(Integer, nullable=False)
    journey_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    source_station_id: Mapped[int] = mapped_column(Integer, nullable=False)
    dest_station_id: Mapped[int] = mapped_column(Integer, nullable=False)

    total_fare: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.WAITING.value,
        index=True
    )

    booking_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("length(pnr) = 10", name="ck_booking_pnr_length"),
        CheckConstraint("total_fare >= 0", name="ck_booking_total_fare_non_negative"),
        CheckConstraint(
            "status IN ('WAITING', 'CONFIRMED', 'CANCELLED')",
            name="ck_booking_status_valid"
        ),
    )

    # Relationships
    payment: Mapped["PaymentRecord | None"] = relationship(
        "PaymentRecord",
        back_populates="booking",
        cascade="all, delete-orphan",
        uselist=False
    )

    def __repr__(self) -> str:
        return (
            f"<BookingRecord(booking_id={self.booking_id}, pnr='{self.pnr}', "
            f"train_id={self.train_id}, status={self.status})>"
        )


class PaymentRecord(Base):
    """Payment row, one per booking."""

    __tablename__ = "payments"

    # Primary key
    payment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign key to booking
    booking_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("bookings.booking_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    gateway_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.INITIATED.value
    )
    failure_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payment_amount_non_negative"),
        CheckConstraint(
            "status IN ('INITIATED', 'VERIFIED', 'FAILED')",
            name="ck_payment_status_valid"
        ),
    )

    # Relationships
    booking: Mapped["BookingRecord"] = relationship("BookingRecord", back_populates="payment")

    def __repr__(self) -> str:
        return (
            f"<PaymentRecord(payment_id={self.payment_id}, booking_id={self.booking_id}, "
            f"status={self.status})>"
        )
