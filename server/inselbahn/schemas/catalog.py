"""Tour catalog Pydantic schemas."""

import re
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.tour_config import TourType

_SLOT_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class CreateTourConfigRequest(BaseModel):
    """Request schema for publishing a tour configuration."""

    tour_type: TourType = Field(..., description="Tour product")
    times: list[str] = Field(..., min_length=1, description="Departure times as HH:MM")
    adult_price: int = Field(..., ge=0, description="Adult price in cents")
    child_price: int = Field(..., ge=0, description="Child price in cents")
    child_free_times: list[str] = Field(default_factory=list, description="Departures where children ride free")
    valid_from: date = Field(..., description="First day the configuration applies")
    valid_until: date | None = Field(None, description="Last day the configuration applies (open-ended if absent)")

    @field_validator("times", "child_free_times")
    @classmethod
    def validate_slot_times(cls, v: list[str]) -> list[str]:
        for value in v:
            if not _SLOT_TIME.match(value):
                raise ValueError(f"'{value}' is not a HH:MM time")
        if len(set(v)) != len(v):
            raise ValueError("times must be unique")
        return sorted(v)

    @model_validator(mode="after")
    def validate_consistency(self) -> "CreateTourConfigRequest":
        unknown = set(self.child_free_times) - set(self.times)
        if unknown:
            raise ValueError(f"child_free_times not in times: {sorted(unknown)}")
        if self.valid_until and self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be before valid_from")
        return self


class TourConfig(BaseModel):
    """Tour configuration response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique configuration ID")
    tour_type: TourType
    times: list[str]
    child_free_times: list[str]
    adult_price: int
    child_price: int
    valid_from: date
    valid_until: date | None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: object) -> str:
        return str(v)
