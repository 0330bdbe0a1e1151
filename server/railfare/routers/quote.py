"""Quote router: the per train+route snapshot shown on every page."""

from fastapi import APIRouter

from ..core.dependencies import QuoteServiceDependency
from ..schemas.quote import QuoteRequest, QuoteResponse, SearchQuotesRequest, SearchQuotesResponse
from ..services.consistency_cache import ConsistencyRecord
from ..services.quote_service import QuoteService

router = APIRouter(prefix="/v1/quote", tags=["quote"])


def _convert_record_to_schema(record: ConsistencyRecord) -> QuoteResponse:
    return QuoteResponse(
        train_id=record.train_id,
        route_key=record.route_key,
        distance_km=record.distance_km,
        duration_text=record.duration_text,
        departure_time=record.departure_time,
        arrival_time=record.arrival_time,
        prices=dict(record.price_per_class),
    )


@router.post("/get", response_model=QuoteResponse)
def get_quote(
    request: QuoteRequest,
    quotes: QuoteService = QuoteServiceDependency,
) -> QuoteResponse:
    """Quote one train on a route."""
    record = quotes.quote(request.train_id, request.from_station, request.to_station)
    return _convert_record_to_schema(record)


@router.post("/search", response_model=SearchQuotesResponse)
def search_quotes(
    request: SearchQuotesRequest,
    quotes: QuoteService = QuoteServiceDependency,
) -> SearchQuotesResponse:
    """Quote several trains on a route, in request order."""
    records = quotes.search(request.from_station, request.to_station, request.train_ids)
    return SearchQuotesResponse(items=[_convert_record_to_schema(r) for r in records])
