"""Statistics Pydantic schemas. Money values are in cents."""

from datetime import date

from pydantic import BaseModel, Field, model_validator


class GetStatisticsRequest(BaseModel):
    """
    Reporting period.

    Either an explicit date range, a month of a year, a whole year, or
    nothing for the current year.
    """

    start_date: date | None = None
    end_date: date | None = None
    year: int | None = Field(None, ge=2000, le=2100)
    month: int | None = Field(None, ge=1, le=12)

    @model_validator(mode="after")
    def validate_period(self) -> "GetStatisticsRequest":
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be given together")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.month is not None and self.year is None:
            raise ValueError("month requires year")
        return self


class CountRevenue(BaseModel):
    count: int = 0
    revenue: int = 0


class TourTypeBreakdown(BaseModel):
    count: int = 0
    revenue: int = 0
    passengers: int = 0
    average_group_size: float = 0.0
    average_revenue: float = 0.0


class MonthBreakdown(BaseModel):
    count: int = 0
    revenue: int = 0
    passengers: int = 0


class DailyRevenue(BaseModel):
    total: int = 0
    by_payment_method: dict[str, int] = Field(default_factory=dict)


class SlotOccurrence(BaseModel):
    """One dated departure of a time slot."""

    tour_date: date
    bookings: int = 0
    passengers: int = 0
    revenue: int = 0


class SlotSeries(BaseModel):
    """Aggregates of one time slot over all its departures in the period."""

    total_tours: int = 0
    total_passengers: int = 0
    total_revenue: int = 0
    average_passengers: float = 0.0
    average_revenue: float = 0.0
    tours: list[SlotOccurrence] = Field(default_factory=list)


class StatisticsReport(BaseModel):
    """Rollup of confirmed bookings in a period."""

    start_date: date
    end_date: date
    total_bookings: int = 0
    total_passengers: int = 0
    total_revenue: int = 0
    by_tour_type: dict[str, TourTypeBreakdown] = Field(default_factory=dict)
    by_payment_method: dict[str, CountRevenue] = Field(default_factory=dict)
    by_month: dict[str, MonthBreakdown] = Field(default_factory=dict)
    daily_revenue: dict[str, DailyRevenue] = Field(default_factory=dict)
    popular_times: dict[str, dict[str, int]] = Field(default_factory=dict)
    tour_statistics: dict[str, dict[str, SlotSeries]] = Field(default_factory=dict)
    occupancy_rates: dict[str, dict[str, float]] = Field(
        default_factory=dict,
        description="Percent of staffed capacity used, per tour type and HH:MM"
    )
