"""Common Pydantic schemas."""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.tour_config import TourType


class Slot(BaseModel):
    """One departure: a (date, time, tour type) triple."""

    model_config = ConfigDict(frozen=True)

    tour_date: date = Field(..., description="Departure date")
    tour_time: time = Field(..., description="Departure time of day (local)")
    tour_type: TourType = Field(..., description="Tour product")

    @field_validator("tour_time")
    @classmethod
    def truncate_to_minute(cls, v: time) -> time:
        """Timetable slots have minute resolution."""
        return v.replace(second=0, microsecond=0, tzinfo=None)

    @property
    def lock_key(self) -> str:
        return f"{self.tour_date.isoformat()}|{self.tour_time.strftime('%H:%M')}|{self.tour_type.value}"


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


class Prices(BaseModel):
    """Ticket prices in minor units."""

    adult: int = Field(..., ge=0, description="Adult price in cents")
    child: int = Field(..., ge=0, description="Child price in cents")
