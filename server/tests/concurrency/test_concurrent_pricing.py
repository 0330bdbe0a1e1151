"""Concurrency tests for fare lookups, quotes and payment callbacks."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from railfare.core.exceptions import InvalidTransitionError, SignatureMismatchError
from railfare.schemas.booking import BookingStatus, PaymentStatus
from railfare.schemas.fare import TrainClass
from railfare.services.consistency_cache import ConsistencyCache, ConsistencyRecord
from railfare.services.fare_table import FareTable
from railfare.services.payment_verifier import compute_signature

NUM_THREADS = 16


def test_concurrent_misses_compute_once():
    """Test that racing requests for one key share a single computation."""
    cache = ConsistencyCache()
    barrier = threading.Barrier(NUM_THREADS)
    calls = []
    calls_lock = threading.Lock()

    def compute():
        with calls_lock:
            calls.append(threading.get_ident())
        time.sleep(0.05)
        return ConsistencyRecord(
            train_id=1,
            route_key="a→b",
            distance_km=300,
            duration_text="5h 27m",
            departure_time="06:00",
            arrival_time="11:27",
            price_per_class={TrainClass.SLEEPER: 300.0},
        )

    def request():
        barrier.wait()
        return cache.get_or_compute(1, "a→b", compute)

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as executor:
        records = list(executor.map(lambda _: request(), range(NUM_THREADS)))

    assert len(calls) == 1
    assert all(record is records[0] for record in records)
    assert cache.stats()["entries"] == 1


def test_concurrent_quotes_for_one_train_agree(container, rajdhani_train_id):
    barrier = threading.Barrier(NUM_THREADS)

    def request(i):
        barrier.wait()
        # Vary whitespace and case; all map to one route key
        from_station = " Mumbai" if i % 2 else "MUMBAI"
        return container.quotes.quote(rajdhani_train_id, from_station, "delhi")

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as executor:
        records = list(executor.map(request, range(NUM_THREADS)))

    assert len({id(record) for record in records}) == 1
    assert len(container.cache) == 1


def test_readers_never_see_a_partial_table():
    """Test that lookups during writes see either the old or the new fare."""
    table = FareTable()
    table.set_fare(TrainClass.SLEEPER, 100, 150.0)
    stop = threading.Event()
    seen = set()
    errors = []

    def reader():
        while not stop.is_set():
            try:
                seen.add(table.get_fare(TrainClass.SLEEPER, 120))
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for thread in readers:
        thread.start()

    for i in range(200):
        table.set_fare(TrainClass.SLEEPER, 100, 150.0 if i % 2 else 175.0)
        table.set_fare(TrainClass.SLEEPER, 110 + i, 160.0)

    stop.set()
    for thread in readers:
        thread.join()

    assert errors == []
    assert seen <= {150.0, 175.0, 160.0}
    assert len(table.tiers(TrainClass.SLEEPER)) == 201


def test_concurrent_writers_lose_no_tiers():
    table = FareTable()

    def write(distance):
        table.set_fare(TrainClass.AC_FIRST, distance, distance * 5.5)

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as executor:
        list(executor.map(write, range(1, 501)))

    tiers = table.tiers(TrainClass.AC_FIRST)
    assert [tier.distance_km for tier in tiers] == [float(d) for d in range(1, 501)]


def test_racing_success_and_failure_callbacks(lifecycle, verifier, new_booking):
    """Test that one callback wins and the pair stays consistent."""
    for _ in range(20):
        booking, _ = lifecycle.create_booking(new_booking, 500.0)
        lifecycle.attach_order(booking.booking_id, "order_1")
        signature = compute_signature("test-payment-secret", "order_1", "pay_1")
        barrier = threading.Barrier(2)

        def succeed():
            barrier.wait()
            try:
                verifier.handle_payment_success(booking.booking_id, "order_1", "pay_1", signature)
            except InvalidTransitionError:
                pass

        def fail():
            barrier.wait()
            try:
                verifier.handle_payment_failure(booking.booking_id, "timeout")
            except InvalidTransitionError:
                pass

        threads = [threading.Thread(target=succeed), threading.Thread(target=fail)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = lifecycle.get_booking(booking.booking_id)
        payment = lifecycle.get_payment(booking.booking_id)
        assert (final.status, payment.status) in {
            (BookingStatus.CONFIRMED, PaymentStatus.VERIFIED),
            (BookingStatus.CANCELLED, PaymentStatus.FAILED),
        }


def test_duplicate_success_callbacks(lifecycle, verifier, new_booking):
    booking, _ = lifecycle.create_booking(new_booking, 500.0)
    lifecycle.attach_order(booking.booking_id, "order_1")
    signature = compute_signature("test-payment-secret", "order_1", "pay_1")
    barrier = threading.Barrier(NUM_THREADS)

    def deliver(_):
        barrier.wait()
        return verifier.handle_payment_success(booking.booking_id, "order_1", "pay_1", signature)

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as executor:
        results = list(executor.map(deliver, range(NUM_THREADS)))

    assert {result.status for result in results} == {BookingStatus.CONFIRMED}
    assert lifecycle.get_payment(booking.booking_id).status == PaymentStatus.VERIFIED


def test_forged_and_genuine_callbacks_race(lifecycle, verifier, new_booking):
    """Test that a forged callback can never leave a verified payment on a cancelled booking."""
    for _ in range(20):
        booking, _ = lifecycle.create_booking(new_booking, 500.0)
        lifecycle.attach_order(booking.booking_id, "order_1")
        genuine = compute_signature("test-payment-secret", "order_1", "pay_1")
        barrier = threading.Barrier(2)

        def deliver(signature):
            barrier.wait()
            try:
                verifier.handle_payment_success(booking.booking_id, "order_1", "pay_1", signature)
            except (InvalidTransitionError, SignatureMismatchError):
                pass

        threads = [
            threading.Thread(target=deliver, args=(genuine,)),
            threading.Thread(target=deliver, args=("forged",)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = lifecycle.get_booking(booking.booking_id)
        payment = lifecycle.get_payment(booking.booking_id)
        assert (final.status, payment.status) in {
            (BookingStatus.CONFIRMED, PaymentStatus.VERIFIED),
            (BookingStatus.CANCELLED, PaymentStatus.FAILED),
        }
