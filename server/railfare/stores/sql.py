"""SQLAlchemy-backed stores."""

import logging
from datetime import datetime

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..core.exceptions import DuplicatePNRError, ValidationError
from ..models.booking import BookingRecord, PaymentRecord
from ..models.fare import FareTierRecord
from ..schemas.booking import Booking, BookingStatus, NewBooking, Payment, PaymentStatus
from .base import PAYMENT_FIELDS, BookingStore, FareStore, FareTableData

logger = logging.getLogger(__name__)


class SqlBookingStore(BookingStore):
    """
    Booking store over a relational database.

    Status changes are conditional UPDATEs (`... WHERE status = :expected`),
    so the database row count decides which of two racing writers wins.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def create_booking(
        self,
        new_booking: NewBooking,
        pnr: str,
        total_fare: float,
        booking_time: datetime,
    ) -> tuple[Booking, Payment]:
        try:
            with self.session_factory.begin() as session:
                record = BookingRecord(
                    pnr=pnr,
                    total_fare=total_fare,
                    status=BookingStatus.WAITING.value,
                    booking_time=booking_time,
                    **new_booking.model_dump(),
                )
                record.payment = PaymentRecord(
                    amount=total_fare,
                    status=PaymentStatus.INITIATED.value,
                )
                session.add(record)
                session.flush()

                booking = Booking.model_validate(record)
                payment = Payment.model_validate(record.payment)
        except IntegrityError:
            if self.pnr_exists(pnr):
                raise DuplicatePNRError(pnr)
            raise

        return booking, payment

    def get_booking(self, booking_id: int) -> Booking | None:
        with self.session_factory() as session:
            record = session.get(BookingRecord, booking_id)
            return Booking.model_validate(record) if record else None

    def get_booking_by_pnr(self, pnr: str) -> Booking | None:
        with self.session_factory() as session:
            record = session.scalar(select(BookingRecord).where(BookingRecord.pnr == pnr))
            return Booking.model_validate(record) if record else None

    def pnr_exists(self, pnr: str) -> bool:
        with self.session_factory() as session:
            return bool(session.scalar(select(exists().where(BookingRecord.pnr == pnr))))

    def list_bookings(self, user_id: int, status: BookingStatus | None = None) -> list[Booking]:
        query = select(BookingRecord).where(BookingRecord.user_id == user_id)
        if status is not None:
            query = query.where(BookingRecord.status == status.value)
        query = query.order_by(BookingRecord.booking_time.desc(), BookingRecord.booking_id.desc())

        with self.session_factory() as session:
            return [Booking.model_validate(record) for record in session.scalars(query)]

    def compare_and_set_status(
        self,
        booking_id: int,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> Booking | None:
        with self.session_factory.begin() as session:
            result = session.execute(
                update(BookingRecord)
                .where(
                    BookingRecord.booking_id == booking_id,
                    BookingRecord.status == expected.value
                )
                .values(status=new.value)
            )
            if result.rowcount != 1:
                return None

            record = session.get(BookingRecord, booking_id, populate_existing=True)
            return Booking.model_validate(record)

    def delete_booking(self, pnr: str) -> bool:
        with self.session_factory.begin() as session:
            record = session.scalar(select(BookingRecord).where(BookingRecord.pnr == pnr))
            if record is None:
                return False

            # ORM delete so the payment row cascades on every backend
            session.delete(record)
            return True

    def get_payment(self, booking_id: int) -> Payment | None:
        with self.session_factory() as session:
            record = session.scalar(
                select(PaymentRecord).where(PaymentRecord.booking_id == booking_id)
            )
            return Payment.model_validate(record) if record else None

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

        values = dict(fields, updated_at=func.now())
        if status is not None:
            values["status"] = status.value

        with self.session_factory.begin() as session:
            result = session.execute(
                update(PaymentRecord)
                .where(
                    PaymentRecord.booking_id == booking_id,
                    PaymentRecord.status == expected.value
                )
                .values(**values)
            )
            if result.rowcount != 1:
                return None

            record = session.scalar(
                select(PaymentRecord)
                .where(PaymentRecord.booking_id == booking_id)
                .execution_options(populate_existing=True)
            )
            return Payment.model_validate(record)


class SqlFareStore(FareStore):
    """Fare store persisting tiers in the fare_tiers table."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def load(self) -> FareTableData:
        data: FareTableData = {}
        query = select(FareTierRecord).order_by(
            FareTierRecord.train_class, FareTierRecord.distance_km
        )

        with self.session_factory() as session:
            for record in session.scalars(query):
                data.setdefault(record.train_class, []).append([record.distance_km, record.fare])

        return data

    def save(self, data: FareTableData) -> None:
        # Whole-table replace in one transaction; readers never see a partial table
        with self.session_factory.begin() as session:
            session.execute(delete(FareTierRecord))
            session.add_all(
                FareTierRecord(train_class=train_class, distance_km=distance_km, fare=fare)
                for train_class, tiers in data.items()
                for distance_km, fare in tiers
            )

        logger.debug(
            "Fare table persisted",
            extra={"classes": sorted(data), "tiers": sum(len(t) for t in data.values())}
        )
