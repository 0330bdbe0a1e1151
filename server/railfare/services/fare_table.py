"""Distance-tiered fare table."""

import logging
import math
from bisect import bisect_left, bisect_right
from threading import RLock
from types import MappingProxyType
from typing import Mapping

from ..core.exceptions import NoFareDefined, ValidationError
from ..core.observability import metrics_collector
from ..schemas.fare import FareTier, TrainClass
from ..stores.base import FareStore, FareTableData

logger = logging.getLogger(__name__)

# Per class: (sorted thresholds, fares in the same order)
_ClassTiers = tuple[tuple[float, ...], tuple[float, ...]]


def _require_finite(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(detail=f"{name} must be a number", errors={name: value})
    if not math.isfinite(value):
        raise ValidationError(detail=f"{name} must be finite", errors={name: value})
    return value


def _require_positive(name: str, value: float) -> float:
    if _require_finite(name, value) <= 0:
        raise ValidationError(detail=f"{name} must be strictly positive", errors={name: value})
    return float(value)


class FareTable:
    """
    Per-class sorted fare tiers with floor lookup.

    Readers never lock. Every write builds a new immutable mapping and swaps
    the reference under ``_write_lock``, so a reader sees either the table
    before a write or the table after it.
    """

    def __init__(
        self,
        store: FareStore | None = None,
        default_tiers: FareTableData | None = None,
    ):
        self.store = store
        self._write_lock = RLock()
        self._tables: Mapping[TrainClass, _ClassTiers] = MappingProxyType({})

        data = store.load() if store is not None else {}
        seeded = False
        if not data and default_tiers:
            data = default_tiers
            seeded = True

        self.load(data)

        if seeded and store is not None:
            store.save(self.snapshot())
            logger.info("Fare table seeded with default tiers", extra={"classes": sorted(data)})

    def set_fare(self, train_class: TrainClass | str, distance_km: float, fare: float) -> None:
        """
        Insert or overwrite the tier at ``distance_km`` for a class.

        Args:
            train_class: Travel class or class code
            distance_km: Tier threshold, strictly positive
            fare: Tier fare, strictly positive

        Raises:
            ValidationError: If the class is unknown or a value is not strictly positive
        """
        train_class = TrainClass.parse(train_class)
        distance_km = _require_positive("distance_km", distance_km)
        fare = _require_positive("fare", fare)

        with self._write_lock:
            thresholds, fares = self._tables.get(train_class, ((), ()))
            tiers = dict(zip(thresholds, fares))
            previous = tiers.get(distance_km)
            tiers[distance_km] = fare

            tables = dict(self._tables)
            tables[train_class] = self._build(tiers)
            new_tables = MappingProxyType(tables)

            # Persist before publishing so a failed save leaves both sides unchanged
            if self.store is not None:
                self.store.save(self._to_data(new_tables))

            self._tables = new_tables

        metrics_collector.record_fare_write(train_class.value)
        logger.info(
            "Fare tier set",
            extra={
                "train_class": train_class.value,
                "distance_km": distance_km,
                "fare": fare,
                "previous_fare": previous,
            }
        )

    def get_fare(self, train_class: TrainClass | str, distance_km: float) -> float:
        """
        Return the fare of the tier with the greatest threshold <= ``distance_km``.

        Raises:
            ValidationError: If the class is unknown or the distance is not a finite number
            NoFareDefined: If no tier lies at or below the distance
        """
        train_class = TrainClass.parse(train_class)
        distance_km = _require_finite("distance_km", distance_km)
        thresholds, fares = self._tables.get(train_class, ((), ()))

        index = bisect_right(thresholds, distance_km) - 1
        if index < 0:
            metrics_collector.record_fare_lookup(train_class.value, "no_fare")
            raise NoFareDefined(train_class.value, distance_km)

        metrics_collector.record_fare_lookup(train_class.value, "hit")
        return fares[index]

    def tiers(self, train_class: TrainClass | str) -> list[FareTier]:
        """Sorted tiers of a class."""
        thresholds, fares = self._tables.get(TrainClass.parse(train_class), ((), ()))
        return [FareTier(distance_km=d, fare=f) for d, f in zip(thresholds, fares)]

    def fare_range(
        self,
        train_class: TrainClass | str,
        min_km: float | None = None,
        max_km: float | None = None,
    ) -> list[FareTier]:
        """Tiers with ``min_km <= distance <= max_km``; a missing bound is open."""
        thresholds, fares = self._tables.get(TrainClass.parse(train_class), ((), ()))

        start = 0 if min_km is None else bisect_left(thresholds, min_km)
        end = len(thresholds) if max_km is None else bisect_right(thresholds, max_km)
        return [
            FareTier(distance_km=thresholds[i], fare=fares[i])
            for i in range(start, end)
        ]

    def nearest_higher_tier(self, train_class: TrainClass | str, distance_km: float) -> FareTier | None:
        """The tier with the smallest threshold >= ``distance_km``, if any."""
        thresholds, fares = self._tables.get(TrainClass.parse(train_class), ((), ()))

        index = bisect_left(thresholds, distance_km)
        if index == len(thresholds):
            return None
        return FareTier(distance_km=thresholds[index], fare=fares[index])

    def snapshot(self) -> FareTableData:
        """The whole table as ``{class_code: [[distance_km, fare], ...]}``."""
        return self._to_data(self._tables)

    def load(self, data: FareTableData) -> None:
        """
        Replace the whole table with ``data``.

        The table is validated in full before it is published; invalid data
        leaves the current table untouched. Nothing is persisted.

        Raises:
            ValidationError: If a class code or tier is invalid
        """
        tables: dict[TrainClass, _ClassTiers] = {}
        for code, pairs in data.items():
            train_class = TrainClass.parse(code)
            tiers: dict[float, float] = {}
            for pair in pairs:
                if len(pair) != 2:
                    raise ValidationError(
                        detail=f"Fare tier must be a [distance_km, fare] pair, got {pair!r}",
                        errors={"train_class": train_class.value}
                    )
                distance_km, fare = pair
                tiers[_require_positive("distance_km", distance_km)] = _require_positive("fare", fare)
            if tiers:
                tables[train_class] = self._build(tiers)

        with self._write_lock:
            self._tables = MappingProxyType(tables)

        logger.debug(
            "Fare table loaded",
            extra={"classes": sorted(c.value for c in tables)}
        )

    @staticmethod
    def _build(tiers: dict[float, float]) -> _ClassTiers:
        ordered = sorted(tiers.items())
        return tuple(d for d, _ in ordered), tuple(f for _, f in ordered)

    @staticmethod
    def _to_data(tables: Mapping[TrainClass, _ClassTiers]) -> FareTableData:
        return {
            train_class.value: [[d, f] for d, f in zip(thresholds, fares)]
            for train_class, (thresholds, fares) in sorted(tables.items(), key=lambda kv: kv[0].rank)
        }
