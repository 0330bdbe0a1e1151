"""Fare router for fare table administration and lookups."""

import logging

from fastapi import APIRouter

from ..core.dependencies import FareEngineDependency, FareTableDependency
from ..schemas.fare import (
    FareResponse,
    FareTableRequest,
    FareTableResponse,
    GetFareRequest,
    SetFareRequest,
)
from ..services.fare_engine import FareEngine, is_popular_route
from ..services.fare_table import FareTable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/fare", tags=["fare"])


@router.post("/set", response_model=FareTableResponse)
def set_fare(
    request: SetFareRequest,
    fare_table: FareTable = FareTableDependency,
) -> FareTableResponse:
    """
    Insert or overwrite a fare tier.

    Returns the class's tiers after the write.
    """
    fare_table.set_fare(request.train_class, request.distance_km, request.fare)
    return FareTableResponse(
        train_class=request.train_class,
        tiers=fare_table.tiers(request.train_class)
    )


@router.post("/get", response_model=FareResponse)
def get_fare(
    request: GetFareRequest,
    fare_engine: FareEngine = FareEngineDependency,
) -> FareResponse:
    """Look up a fare; a route key applies the popular-route surcharge."""
    fare = fare_engine.calculate_dynamic_fare(request.train_class, request.distance_km, request.route_key)
    return FareResponse(
        train_class=request.train_class,
        distance_km=request.distance_km,
        fare=fare,
        surcharge_applied=is_popular_route(request.route_key),
    )


@router.post("/table", response_model=FareTableResponse)
def get_fare_table(
    request: FareTableRequest,
    fare_table: FareTable = FareTableDependency,
) -> FareTableResponse:
    """List a class's tiers, optionally within a distance range."""
    return FareTableResponse(
        train_class=request.train_class,
        tiers=fare_table.fare_range(request.train_class, request.min_km, request.max_km)
    )
