from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, List
from datetime import date

from app.schemas.bookings.booking_shema import BookingOut, validate_time_format


class SeriesRequest(BaseModel):
    tutor_id: int
    start_date: date
    time: str
    weeks: int
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=480)

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return validate_time_format(value)


class SeriesPricingOut(BaseModel):
    regular_price: float
    discount_percent: int
    discounted_total: float
    per_lesson_price: float
    savings: float


class SeriesData(BaseModel):
    series_id: str
    bookings: List[BookingOut]
    pricing: Optional[SeriesPricingOut] = None
    stats: Optional[Dict[str, int]] = None


class SeriesResponse(BaseModel):
    success: bool
    message: str
    data: Optional[SeriesData] = None


class SeriesCancelData(BaseModel):
    cancelled_count: int
    failed_count: int = 0


class SeriesCancelResponse(BaseModel):
    success: bool
    message: str
    data: Optional[SeriesCancelData] = None
