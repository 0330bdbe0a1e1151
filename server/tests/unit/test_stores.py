"""Contract tests run against the in-memory and SQLAlchemy stores."""

from datetime import datetime, timedelta, timezone

import pytest

from railfare.core.exceptions import DuplicatePNRError, ValidationError
from railfare.schemas.booking import BookingStatus, PaymentStatus
from railfare.services.booking_lifecycle import BookingLifecycle
from railfare.services.fare_table import FareTable
from railfare.stores.memory import InMemoryBookingStore, InMemoryFareStore
from railfare.stores.sql import SqlBookingStore, SqlFareStore

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sql"])
def store(request, sql_session_factory):
    if request.param == "memory":
        return InMemoryBookingStore()
    return SqlBookingStore(sql_session_factory)


@pytest.fixture(params=["memory", "sql"])
def fare_store(request, sql_session_factory):
    if request.param == "memory":
        return InMemoryFareStore()
    return SqlFareStore(sql_session_factory)


def test_create_and_read(store, new_booking):
    booking, payment = store.create_booking(new_booking, "1234567890", 500.0, NOW)

    assert booking.status == BookingStatus.WAITING
    assert payment.status == PaymentStatus.INITIATED
    assert payment.booking_id == booking.booking_id
    assert store.get_booking(booking.booking_id).pnr == "1234567890"
    assert store.get_booking_by_pnr("1234567890").booking_id == booking.booking_id
    assert store.get_payment(booking.booking_id).amount == 500.0
    assert store.pnr_exists("1234567890")
    assert not store.pnr_exists("0987654321")


def test_missing_rows(store):
    assert store.get_booking(1) is None
    assert store.get_booking_by_pnr("1234567890") is None
    assert store.get_payment(1) is None
    assert store.compare_and_set_status(1, BookingStatus.WAITING, BookingStatus.CONFIRMED) is None
    assert store.update_payment(1, PaymentStatus.INITIATED, PaymentStatus.FAILED) is None
    assert store.delete_booking("1234567890") is False


def test_duplicate_pnr(store, new_booking):
    store.create_booking(new_booking, "1234567890", 500.0, NOW)

    with pytest.raises(DuplicatePNRError):
        store.create_booking(new_booking, "1234567890", 700.0, NOW)

    assert len(store.list_bookings(new_booking.user_id)) == 1


def test_compare_and_set_status(store, new_booking):
    booking, _ = store.create_booking(new_booking, "1234567890", 500.0, NOW)

    updated = store.compare_and_set_status(booking.booking_id, BookingStatus.WAITING, BookingStatus.CONFIRMED)
    assert updated.status == BookingStatus.CONFIRMED

    stale = store.compare_and_set_status(booking.booking_id, BookingStatus.WAITING, BookingStatus.CANCELLED)
    assert stale is None
    assert store.get_booking(booking.booking_id).status == BookingStatus.CONFIRMED


def test_update_payment(store, new_booking):
    booking, _ = store.create_booking(new_booking, "1234567890", 500.0, NOW)

    attached = store.update_payment(booking.booking_id, PaymentStatus.INITIATED, gateway_order_id="order_1")
    assert attached.status == PaymentStatus.INITIATED
    assert attached.gateway_order_id == "order_1"

    verified = store.update_payment(
        booking.booking_id,
        PaymentStatus.INITIATED,
        PaymentStatus.VERIFIED,
        gateway_payment_id="pay_1",
        signature="abc",
    )
    assert verified.status == PaymentStatus.VERIFIED
    assert (verified.gateway_order_id, verified.gateway_payment_id) == ("order_1", "pay_1")

    assert store.update_payment(booking.booking_id, PaymentStatus.INITIATED, PaymentStatus.FAILED) is None
    assert store.get_payment(booking.booking_id).status == PaymentStatus.VERIFIED


def test_update_payment_rejects_unknown_fields(store, new_booking):
    booking, _ = store.create_booking(new_booking, "1234567890", 500.0, NOW)

    with pytest.raises(ValidationError):
        store.update_payment(booking.booking_id, PaymentStatus.INITIATED, amount="0")


def test_list_bookings_newest_first(store, new_booking):
    older, _ = store.create_booking(new_booking, "1111111111", 100.0, NOW - timedelta(days=1))
    newer, _ = store.create_booking(new_booking, "2222222222", 200.0, NOW)
    other_user = new_booking.model_copy(update={"user_id": 99})
    store.create_booking(other_user, "3333333333", 300.0, NOW)
    store.compare_and_set_status(older.booking_id, BookingStatus.WAITING, BookingStatus.CANCELLED)

    assert [b.pnr for b in store.list_bookings(new_booking.user_id)] == ["2222222222", "1111111111"]
    assert [b.pnr for b in store.list_bookings(new_booking.user_id, BookingStatus.CANCELLED)] == ["1111111111"]
    assert store.list_bookings(12345) == []


def test_delete_booking_removes_payment(store, new_booking):
    booking, _ = store.create_booking(new_booking, "1234567890", 500.0, NOW)

    assert store.delete_booking("1234567890") is True
    assert store.get_booking(booking.booking_id) is None
    assert store.get_payment(booking.booking_id) is None
    assert not store.pnr_exists("1234567890")


def test_lifecycle_over_store(store, new_booking):
    lifecycle = BookingLifecycle(store)
    booking, _ = lifecycle.create_booking(new_booking, 250.0)

    lifecycle.attach_order(booking.booking_id, "order_1")
    lifecycle.confirm(booking.booking_id, "pay_1", "sig")
    cancelled = lifecycle.cancel(booking.booking_id)

    assert cancelled.status == BookingStatus.CANCELLED
    assert store.get_payment(booking.booking_id).status == PaymentStatus.VERIFIED


# Fare stores

def test_fare_store_round_trip(fare_store):
    assert fare_store.load() == {}

    fare_store.save({"SL": [[100.0, 150.0], [250.0, 300.0]], "1A": [[100.0, 1100.0]]})
    fare_store.save({"SL": [[100.0, 160.0]]})

    assert fare_store.load() == {"SL": [[100.0, 160.0]]}


def test_fare_table_survives_restart(fare_store):
    table = FareTable(store=fare_store, default_tiers={"SL": [[100, 150.0]]})
    table.set_fare("3A", 500, 1650.0)

    reloaded = FareTable(store=fare_store, default_tiers={"SL": [[100, 999.0]]})

    assert reloaded.snapshot() == table.snapshot()
    assert reloaded.get_fare("SL", 120) == 150.0
