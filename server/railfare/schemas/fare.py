"""Fare-related Pydantic schemas."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.exceptions import ValidationError


class TrainClass(str, Enum):
    """Travel class, declared in ascending comfort and price order."""
    SLEEPER = "SL"
    AC_THREE_TIER = "3A"
    AC_TWO_TIER = "2A"
    AC_FIRST = "1A"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def rank(self) -> int:
        """Position in the comfort ordering, SL being 0."""
        return list(TrainClass).index(self)

    @classmethod
    def parse(cls, code: "str | TrainClass") -> "TrainClass":
        """Parse a class code such as '3A', raising ValidationError if unknown."""
        if isinstance(code, TrainClass):
            return code
        try:
            return cls(str(code).strip().upper())
        except ValueError:
            raise ValidationError(
                detail=f"Invalid train class: {code!r}",
                errors={"train_class": [c.value for c in cls]}
            ) from None


_DISPLAY_NAMES = {
    TrainClass.SLEEPER: "Sleeper",
    TrainClass.AC_THREE_TIER: "AC 3 Tier",
    TrainClass.AC_TWO_TIER: "AC 2 Tier",
    TrainClass.AC_FIRST: "AC First Class",
}


class FareTier(BaseModel):
    """A pricing step: every distance at or above the threshold costs this fare."""

    model_config = ConfigDict(frozen=True)

    distance_km: float = Field(..., gt=0, description="Distance threshold in km")
    fare: float = Field(..., gt=0, description="Fare for journeys from this threshold")


class SetFareRequest(BaseModel):
    """Request schema for inserting or overwriting a fare tier."""

    train_class: TrainClass = Field(..., description="Travel class code")
    distance_km: float = Field(..., allow_inf_nan=False, description="Distance threshold in km")
    fare: float = Field(..., allow_inf_nan=False, description="Fare for the tier")


class GetFareRequest(BaseModel):
    """Request schema for a fare lookup."""

    train_class: TrainClass = Field(..., description="Travel class code")
    distance_km: float = Field(..., allow_inf_nan=False, description="Journey distance in km")
    route_key: str | None = Field(None, description="Route key; applies the popular-route surcharge when set")


class FareResponse(BaseModel):
    """Fare lookup response schema."""

    train_class: TrainClass = Field(..., description="Travel class code")
    distance_km: float = Field(..., description="Journey distance in km")
    fare: float = Field(..., description="Fare at full precision")
    surcharge_applied: bool = Field(False, description="Whether the popular-route surcharge was applied")


class FareTableRequest(BaseModel):
    """Request schema for listing the tiers of one class."""

    train_class: TrainClass = Field(..., description="Travel class code")
    min_km: float | None = Field(None, ge=0, description="Inclusive lower distance bound")
    max_km: float | None = Field(None, ge=0, description="Inclusive upper distance bound")

    @field_validator("max_km")
    @classmethod
    def validate_bounds(cls, v, info):
        min_km = info.data.get("min_km")
        if v is not None and min_km is not None and v < min_km:
            raise ValueError("max_km must not be smaller than min_km")
        return v


class FareTableResponse(BaseModel):
    """Tiers of one class, sorted by distance."""

    train_class: TrainClass = Field(..., description="Travel class code")
    tiers: list[FareTier] = Field(default_factory=list, description="Sorted fare tiers")
