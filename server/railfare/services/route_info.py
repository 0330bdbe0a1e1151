"""Route distance, duration and timing helpers used to build quotes."""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import time

logger = logging.getLogger(__name__)

MAX_DISTANCE_KM = 2500
MIN_DISTANCE_KM = 50
MAX_JOURNEY_MINUTES = 24 * 60
MIN_JOURNEY_MINUTES = 30

AVERAGE_TRAIN_SPEED_KMPH = 55.0
EXPRESS_TRAIN_SPEED_KMPH = 65.0
LOCAL_TRAIN_SPEED_KMPH = 45.0

EXPRESS_TRAIN_KEYWORDS = ("rajdhani", "shatabdi", "vande bharat", "duronto")
LOCAL_TRAIN_KEYWORDS = ("passenger", "local")

UNKNOWN_TIME = "--:--"

# Known distances in km, keyed "from-to" (lower case); looked up in both directions
KNOWN_DISTANCES: dict[str, int] = {
    "delhi-mumbai": 1384,
    "delhi-chennai": 2180,
    "mumbai-chennai": 1279,
    "bangalore-chennai": 350,
    "cldy-nd": 350,
}


@dataclass(frozen=True)
class RouteTiming:
    """Schedule data of one train between two stations."""

    train_name: str
    departure_time: time | None = None
    arrival_time: time | None = None
    departure_day: int = 1
    arrival_day: int = 1
    from_sequence: int | None = None
    to_sequence: int | None = None


@dataclass(frozen=True)
class RouteFacts:
    """Distance, duration and times resolved for a train on a route."""

    distance_km: int
    duration_text: str
    departure_time: str
    arrival_time: str


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_route_key(from_station: str, to_station: str) -> str:
    """Route key ``"<from>→<to>"`` with both names stripped and lower-cased."""
    return f"{from_station.strip().lower()}→{to_station.strip().lower()}"


def journey_minutes(departure: time, arrival: time, departure_day: int = 1, arrival_day: int = 1) -> int:
    """
    Minutes between departure and arrival, rolling over midnight.

    An arrival on a later day number counts the remaining minutes of the
    departure day, the full days in between and the minutes into the arrival
    day. An arrival earlier in the day than the departure on the same day
    number is treated as next-day. The result is clamped to [30, 1440].
    """
    departure_minute = departure.hour * 60 + departure.minute
    arrival_minute = arrival.hour * 60 + arrival.minute
    minutes_to_midnight = MAX_JOURNEY_MINUTES - 1 - departure_minute

    if arrival_day > departure_day:
        days = arrival_day - departure_day
        minutes = minutes_to_midnight + (days - 1) * MAX_JOURNEY_MINUTES + arrival_minute + 1
    elif arrival < departure:
        minutes = minutes_to_midnight + arrival_minute + 1
    else:
        minutes = arrival_minute - departure_minute

    return _clamp(minutes, MIN_JOURNEY_MINUTES, MAX_JOURNEY_MINUTES)


def format_duration(minutes: int) -> str:
    """Format minutes as e.g. ``"5h 05m"``."""
    return "%dh %02dm" % (minutes // 60, minutes % 60)


def train_speed(train_name: str) -> float:
    """Average speed in km/h assumed for a train, based on its name."""
    name = train_name.lower()
    if any(keyword in name for keyword in EXPRESS_TRAIN_KEYWORDS):
        return EXPRESS_TRAIN_SPEED_KMPH
    if any(keyword in name for keyword in LOCAL_TRAIN_KEYWORDS):
        return LOCAL_TRAIN_SPEED_KMPH
    return AVERAGE_TRAIN_SPEED_KMPH


def time_based_distance(train_name: str, minutes: int) -> int:
    """Distance covered in ``minutes`` at the train's speed, clamped to [50, 2500] km."""
    distance = _round_half_up(train_speed(train_name) * minutes / 60.0)
    return _clamp(distance, MIN_DISTANCE_KM, MAX_DISTANCE_KM)


def segment_distance(segments: int, train_name: str) -> int:
    """Distance estimated from the number of stops travelled, clamped to [50, 2500] km."""
    if segments <= 0:
        return MIN_DISTANCE_KM

    name = train_name.lower()
    if "rajdhani" in name or "duronto" in name:
        per_segment = 120
    elif "express" in name or "mail" in name:
        per_segment = 80
    else:
        per_segment = 60

    return _clamp(segments * per_segment, MIN_DISTANCE_KM, MAX_DISTANCE_KM)


def estimate_distance(from_station: str, to_station: str) -> int:
    """Distance from the known-route table, else a guess from the station name lengths."""
    from_name = from_station.strip().lower()
    to_name = to_station.strip().lower()

    for key in (f"{from_name}-{to_name}", f"{to_name}-{from_name}"):
        if key in KNOWN_DISTANCES:
            return KNOWN_DISTANCES[key]

    average_length = (len(from_station) + len(to_station)) // 2
    if average_length <= 3:
        return 200
    if average_length <= 6:
        return 400
    return 600


def _format_time(value: time | None) -> str:
    return value.strftime("%H:%M") if value is not None else UNKNOWN_TIME


def resolve_route(timing: RouteTiming | None, from_station: str, to_station: str) -> RouteFacts:
    """
    Resolve distance, duration and times for a train on a route.

    Distance comes from the scheduled travel time when both times are known,
    from the stop count when only the stop sequence is known, and from
    ``estimate_distance`` otherwise. Without scheduled times the duration is
    derived from the distance at the average train speed.
    """
    has_sequence = (
        timing is not None
        and timing.from_sequence is not None
        and timing.to_sequence is not None
        and timing.from_sequence < timing.to_sequence
    )

    if timing is None or not has_sequence:
        distance = estimate_distance(from_station, to_station)
        minutes = _clamp(
            _round_half_up(distance / AVERAGE_TRAIN_SPEED_KMPH * 60),
            MIN_JOURNEY_MINUTES,
            MAX_JOURNEY_MINUTES,
        )
        logger.debug(
            "Route timing unavailable, using estimates",
            extra={"from_station": from_station, "to_station": to_station, "distance_km": distance}
        )
        return RouteFacts(
            distance_km=distance,
            duration_text=format_duration(minutes),
            departure_time=_format_time(timing.departure_time if timing else None),
            arrival_time=_format_time(timing.arrival_time if timing else None),
        )

    if timing.departure_time is not None and timing.arrival_time is not None:
        minutes = journey_minutes(
            timing.departure_time,
            timing.arrival_time,
            timing.departure_day,
            timing.arrival_day,
        )
        distance = time_based_distance(timing.train_name, minutes)
    else:
        distance = segment_distance(timing.to_sequence - timing.from_sequence, timing.train_name)
        minutes = _clamp(
            _round_half_up(distance / train_speed(timing.train_name) * 60),
            MIN_JOURNEY_MINUTES,
            MAX_JOURNEY_MINUTES,
        )

    return RouteFacts(
        distance_km=distance,
        duration_text=format_duration(minutes),
        departure_time=_format_time(timing.departure_time),
        arrival_time=_format_time(timing.arrival_time),
    )


class RouteInfoProvider(ABC):
    """Source of schedule data for trains."""

    @abstractmethod
    def get_timing(self, train_id: int, from_station: str, to_station: str) -> RouteTiming | None:
        """Return the train's timing between the stations, or None if unknown."""


class StaticRouteInfoProvider(RouteInfoProvider):
    """Route timings held in a dictionary keyed by (train_id, route_key)."""

    def __init__(self, timings: dict[tuple[int, str], RouteTiming] | None = None):
        self._timings = dict(timings or {})

    def add(self, train_id: int, from_station: str, to_station: str, timing: RouteTiming) -> None:
        self._timings[(train_id, normalize_route_key(from_station, to_station))] = timing

    def get_timing(self, train_id: int, from_station: str, to_station: str) -> RouteTiming | None:
        return self._timings.get((train_id, normalize_route_key(from_station, to_station)))
