"""Unit tests for the consistency cache and quote service."""

import pytest

from railfare.core.config import DEFAULT_FARE_TIERS
from railfare.schemas.fare import TrainClass
from railfare.services.consistency_cache import ConsistencyCache, ConsistencyRecord
from railfare.services.fare_engine import FareEngine
from railfare.services.fare_table import FareTable
from railfare.services.quote_service import QuoteService


def _record(train_id=1, route_key="a→b", fare=100.0):
    return ConsistencyRecord(
        train_id=train_id,
        route_key=route_key,
        distance_km=300,
        duration_text="5h 27m",
        departure_time="06:00",
        arrival_time="11:27",
        price_per_class={TrainClass.SLEEPER: fare},
    )


def test_compute_once_per_key():
    cache = ConsistencyCache()
    calls = []

    def compute():
        calls.append(1)
        return _record(fare=100.0 + len(calls))

    first = cache.get_or_compute(1, "a→b", compute)
    second = cache.get_or_compute(1, "a→b", compute)

    assert first is second
    assert len(calls) == 1
    assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1}


def test_keys_are_independent():
    cache = ConsistencyCache()

    one = cache.get_or_compute(1, "a→b", lambda: _record(1, "a→b"))
    other_route = cache.get_or_compute(1, "b→a", lambda: _record(1, "b→a"))
    other_train = cache.get_or_compute(2, "a→b", lambda: _record(2, "a→b"))

    assert len({id(one), id(other_route), id(other_train)}) == 3
    assert len(cache) == 3
    assert (2, "a→b") in cache


def test_failed_compute_is_not_stored():
    cache = ConsistencyCache()

    def failing():
        raise RuntimeError("schedule lookup failed")

    with pytest.raises(RuntimeError):
        cache.get_or_compute(1, "a→b", failing)

    assert cache.peek(1, "a→b") is None
    record = cache.get_or_compute(1, "a→b", lambda: _record())
    assert cache.peek(1, "a→b") is record


def test_records_are_immutable():
    prices = {TrainClass.SLEEPER: 100.0}
    record = ConsistencyRecord(
        train_id=1,
        route_key="a→b",
        distance_km=300,
        duration_text="5h 27m",
        departure_time="06:00",
        arrival_time="11:27",
        price_per_class=prices,
    )

    prices[TrainClass.SLEEPER] = 1.0
    assert record.price_for(TrainClass.SLEEPER) == 100.0

    with pytest.raises(TypeError):
        record.price_per_class[TrainClass.SLEEPER] = 1.0
    with pytest.raises(AttributeError):
        record.distance_km = 1


# Quote service

@pytest.fixture
def fare_table():
    return FareTable(default_tiers=DEFAULT_FARE_TIERS)


@pytest.fixture
def quotes(fare_table, route_info):
    return QuoteService(FareEngine(fare_table), route_info, ConsistencyCache(), max_workers=4)


def test_quote_prices_every_class(quotes, fare_table, rajdhani_train_id):
    record = quotes.quote(rajdhani_train_id, "Mumbai", "Delhi")

    assert record.route_key == "mumbai→delhi"
    assert record.distance_km == 1010
    assert record.duration_text == "15h 32m"
    assert (record.departure_time, record.arrival_time) == ("17:00", "08:32")
    assert record.price_per_class[TrainClass.SLEEPER] == fare_table.get_fare(TrainClass.SLEEPER, 1010) * 1.20
    assert record.price_per_class[TrainClass.AC_FIRST] == fare_table.get_fare(TrainClass.AC_FIRST, 1010) * 1.05


def test_quote_without_surcharge(quotes, passenger_train_id):
    record = quotes.quote(passenger_train_id, "Pune", "Nashik")

    assert record.distance_km == 180
    assert dict(record.price_per_class) == {
        TrainClass.SLEEPER: 150.0,
        TrainClass.AC_THREE_TIER: 450.0,
        TrainClass.AC_TWO_TIER: 700.0,
        TrainClass.AC_FIRST: 1100.0,
    }


def test_quote_omits_classes_without_a_tier(route_info, passenger_train_id):
    table = FareTable()
    table.set_fare(TrainClass.SLEEPER, 100, 150.0)
    quotes = QuoteService(FareEngine(table), route_info, ConsistencyCache())

    record = quotes.quote(passenger_train_id, "Pune", "Nashik")

    assert list(record.price_per_class) == [TrainClass.SLEEPER]


def test_quote_is_frozen_after_fare_change(quotes, fare_table, passenger_train_id):
    """Later fare edits do not change a quote already shown to users."""
    before = quotes.quote(passenger_train_id, "Pune", "Nashik")

    fare_table.set_fare(TrainClass.SLEEPER, 150, 999.0)
    after = quotes.quote(passenger_train_id, " pune", "NASHIK ")

    assert after is before
    assert after.price_per_class[TrainClass.SLEEPER] == 150.0


def test_search_preserves_order_and_shares_records(quotes, passenger_train_id):
    train_ids = [passenger_train_id, 99, 98, 97]

    records = quotes.search("Pune", "Nashik", train_ids)

    assert [r.train_id for r in records] == train_ids
    for record in records:
        assert quotes.quote(record.train_id, "Pune", "Nashik") is record


def test_search_empty(quotes):
    assert quotes.search("Pune", "Nashik", []) == []
