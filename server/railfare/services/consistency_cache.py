"""Compute-once cache of per (train, route) quote snapshots."""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from threading import Lock
from types import MappingProxyType
from typing import Callable, Mapping

from ..core.observability import metrics_collector
from ..schemas.fare import TrainClass

logger = logging.getLogger(__name__)

CacheKey = tuple[int, str]


@dataclass(frozen=True)
class ConsistencyRecord:
    """Distance, duration, times and prices every page shows for one train on one route."""

    train_id: int
    route_key: str
    distance_km: int
    duration_text: str
    departure_time: str
    arrival_time: str
    price_per_class: Mapping[TrainClass, float] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only view over a private copy so a stored record cannot change
        object.__setattr__(self, "price_per_class", MappingProxyType(dict(self.price_per_class)))

    def price_for(self, train_class: TrainClass) -> float | None:
        return self.price_per_class.get(train_class)


class ConsistencyCache:
    """
    Check-and-set cache: the first computed record for a key is canonical.

    Concurrent first access is single-flight. The first caller registers a
    Future under the lock and runs ``compute_fn`` outside it; every other
    caller for that key waits on the same Future. Entries are never evicted.
    """

    def __init__(self):
        self._records: dict[CacheKey, ConsistencyRecord] = {}
        self._in_flight: dict[CacheKey, Future] = {}
        self._lock = Lock()

        self.hits = 0
        self.misses = 0

    def get_or_compute(
        self,
        train_id: int,
        route_key: str,
        compute_fn: Callable[[], ConsistencyRecord],
    ) -> ConsistencyRecord:
        """
        Return the stored record for the key, computing it on first access.

        Args:
            train_id: Train identifier
            route_key: Normalized route key
            compute_fn: Builds the record; called at most once per successful key

        Returns:
            The canonical record; identical for every caller

        Raises:
            Exception: Whatever ``compute_fn`` raised. Nothing is stored in that
                case and a later call computes again.
        """
        key = (train_id, route_key)

        with self._lock:
            record = self._records.get(key)
            if record is not None:
                self.hits += 1
                metrics_collector.record_cache_lookup("hit")
                return record

            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future
                self.misses += 1

        if not owner:
            metrics_collector.record_cache_lookup("wait")
            return future.result()

        metrics_collector.record_cache_lookup("miss")
        try:
            record = compute_fn()
        except BaseException as exc:
            with self._lock:
                del self._in_flight[key]
            future.set_exception(exc)
            logger.warning(
                "Quote computation failed",
                extra={"train_id": train_id, "route_key": route_key, "error": str(exc)}
            )
            raise

        with self._lock:
            self._records[key] = record
            del self._in_flight[key]
            entries = len(self._records)
        future.set_result(record)

        metrics_collector.set_cache_entries(entries)
        logger.debug(
            "Quote cached",
            extra={"train_id": train_id, "route_key": route_key, "entries": entries}
        )
        return record

    def peek(self, train_id: int, route_key: str) -> ConsistencyRecord | None:
        """Stored record for the key, without computing."""
        with self._lock:
            return self._records.get((train_id, route_key))

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._records), "hits": self.hits, "misses": self.misses}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._records
