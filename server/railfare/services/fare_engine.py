"""Dynamic fare calculation on top of the fare table."""

import logging

from ..schemas.fare import TrainClass
from .fare_table import FareTable

logger = logging.getLogger(__name__)

# A route is popular when its key mentions both cities of a pair.
# Plain substring matching over-matches (any station containing "delhi").
POPULAR_ROUTE_PAIRS: tuple[tuple[str, str], ...] = (
    ("delhi", "mumbai"),
    ("bangalore", "chennai"),
    ("kolkata", "delhi"),
)

POPULAR_ROUTE_SURCHARGE: dict[TrainClass, float] = {
    TrainClass.SLEEPER: 1.20,
    TrainClass.AC_THREE_TIER: 1.15,
    TrainClass.AC_TWO_TIER: 1.10,
    TrainClass.AC_FIRST: 1.05,
}


def is_popular_route(route_key: str | None) -> bool:
    """Return True if the route key contains both keywords of a popular city pair."""
    if not route_key:
        return False
    key = route_key.lower()
    return any(first in key and second in key for first, second in POPULAR_ROUTE_PAIRS)


def surcharge_for(train_class: TrainClass | str) -> float:
    """Popular-route multiplier for a class."""
    return POPULAR_ROUTE_SURCHARGE[TrainClass.parse(train_class)]


class FareEngine:
    """Stateless pricing over a FareTable."""

    def __init__(self, fare_table: FareTable):
        self.fare_table = fare_table

    def get_fare(self, train_class: TrainClass | str, distance_km: float) -> float:
        """Base fare, without any surcharge."""
        return self.fare_table.get_fare(train_class, distance_km)

    def calculate_dynamic_fare(
        self,
        train_class: TrainClass | str,
        distance_km: float,
        route_key: str | None = None,
    ) -> float:
        """
        Fare for a journey, including the popular-route surcharge.

        Args:
            train_class: Travel class or class code
            distance_km: Journey distance in km
            route_key: Route key such as "Delhi-Mumbai"; None means no surcharge

        Returns:
            Fare at full float precision

        Raises:
            ValidationError: If the class is unknown or the distance is not a finite number
            NoFareDefined: If no tier lies at or below the distance
        """
        train_class = TrainClass.parse(train_class)
        base = self.fare_table.get_fare(train_class, distance_km)

        if not is_popular_route(route_key):
            return base

        fare = base * POPULAR_ROUTE_SURCHARGE[train_class]
        logger.debug(
            "Popular route surcharge applied",
            extra={
                "train_class": train_class.value,
                "route_key": route_key,
                "base_fare": base,
                "fare": fare,
            }
        )
        return fare
