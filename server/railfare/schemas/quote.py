"""Quote (consistency record) Pydantic schemas."""

from pydantic import BaseModel, Field, model_validator

from .fare import TrainClass


class QuoteRequest(BaseModel):
    """Request schema for one train's quote on a route."""

    train_id: int = Field(..., gt=0, description="Train to quote")
    from_station: str = Field(..., min_length=1, max_length=128, description="Boarding station name")
    to_station: str = Field(..., min_length=1, max_length=128, description="Destination station name")


class SearchQuotesRequest(BaseModel):
    """Request schema for quoting several trains on one route."""

    from_station: str = Field(..., min_length=1, max_length=128, description="Boarding station name")
    to_station: str = Field(..., min_length=1, max_length=128, description="Destination station name")
    train_ids: list[int] = Field(..., min_length=1, max_length=100, description="Trains to quote")

    @model_validator(mode="after")
    def validate_train_ids(self):
        if any(train_id <= 0 for train_id in self.train_ids):
            raise ValueError("train_ids must be positive")
        return self


class QuoteResponse(BaseModel):
    """Distance, duration, times and prices a train shows for a route."""

    train_id: int = Field(..., description="Quoted train")
    route_key: str = Field(..., description="Normalized 'from→to' route key")
    distance_km: int = Field(..., description="Route distance in km")
    duration_text: str = Field(..., description="Journey duration, e.g. '5h 05m'")
    departure_time: str = Field(..., description="Departure time of day (HH:MM)")
    arrival_time: str = Field(..., description="Arrival time of day (HH:MM)")
    prices: dict[TrainClass, float] = Field(default_factory=dict, description="Per-passenger fare by class")


class SearchQuotesResponse(BaseModel):
    """Quotes in the order the trains were requested."""

    items: list[QuoteResponse] = Field(default_factory=list, description="Quotes")
