"""Quote service: builds and serves consistency records for trains on a route."""

import logging
from concurrent.futures import ThreadPoolExecutor

from ..core.exceptions import NoFareDefined
from ..schemas.fare import TrainClass
from .consistency_cache import ConsistencyCache, ConsistencyRecord
from .fare_engine import FareEngine
from .route_info import RouteInfoProvider, normalize_route_key, resolve_route

logger = logging.getLogger(__name__)


class QuoteService:
    """Service that prices trains on a route through the consistency cache."""

    def __init__(
        self,
        fare_engine: FareEngine,
        route_info: RouteInfoProvider,
        cache: ConsistencyCache,
        max_workers: int = 8,
    ):
        self.fare_engine = fare_engine
        self.route_info = route_info
        self.cache = cache
        self.max_workers = max_workers

    def quote(self, train_id: int, from_station: str, to_station: str) -> ConsistencyRecord:
        """
        Return the canonical quote of a train on a route.

        The first request for a (train, route) pair computes the distance,
        duration, times and per-class prices; every later request, from any
        page, gets the same record.
        """
        route_key = normalize_route_key(from_station, to_station)
        return self.cache.get_or_compute(
            train_id,
            route_key,
            lambda: self._compute(train_id, route_key, from_station, to_station),
        )

    def search(self, from_station: str, to_station: str, train_ids: list[int]) -> list[ConsistencyRecord]:
        """
        Quote several trains on one route in parallel.

        Returns:
            Records in the order of ``train_ids``
        """
        if not train_ids:
            return []

        workers = min(self.max_workers, len(train_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quote") as executor:
            futures = [
                executor.submit(self.quote, train_id, from_station, to_station)
                for train_id in train_ids
            ]
            records = [future.result() for future in futures]

        logger.info(
            "Route searched",
            extra={
                "from_station": from_station,
                "to_station": to_station,
                "trains": len(train_ids),
            }
        )
        return records

    def _compute(self, train_id: int, route_key: str, from_station: str, to_station: str) -> ConsistencyRecord:
        timing = self.route_info.get_timing(train_id, from_station, to_station)
        facts = resolve_route(timing, from_station, to_station)

        # Surcharge matching uses the human-readable "From-To" form
        surcharge_key = f"{from_station.strip()}-{to_station.strip()}"

        prices: dict[TrainClass, float] = {}
        for train_class in TrainClass:
            try:
                prices[train_class] = self.fare_engine.calculate_dynamic_fare(
                    train_class, facts.distance_km, surcharge_key
                )
            except NoFareDefined:
                continue

        logger.info(
            "Quote computed",
            extra={
                "train_id": train_id,
                "route_key": route_key,
                "distance_km": facts.distance_km,
                "classes": [c.value for c in prices],
            }
        )

        return ConsistencyRecord(
            train_id=train_id,
            route_key=route_key,
            distance_km=facts.distance_km,
            duration_text=facts.duration_text,
            departure_time=facts.departure_time,
            arrival_time=facts.arrival_time,
            price_per_class=prices,
        )
