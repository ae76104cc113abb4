from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, List, Any
from datetime import date, datetime
import re

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time_format(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("time must use the HH:MM 24h format")
    return value


class BookingRequest(BaseModel):
    tutor_id: int
    date: date
    time: str
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=480)
    payment_amount: Optional[float] = Field(default=None, ge=0)

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return validate_time_format(value)


class MeetingLinkRequest(BaseModel):
    meeting_link: Optional[str] = None


class DisputeRequest(BaseModel):
    reason: Optional[str] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    series_id: Optional[str] = None
    series_index: Optional[int] = None
    series_total: Optional[int] = None
    tutor_id: int
    tutor_email: str
    tutor_name: str
    student_id: int
    student_email: str
    date: date
    time: str
    duration_minutes: int
    hourly_rate: float
    payment_amount: float
    is_trial: bool
    status: str
    payment_status: str
    meeting_link: Optional[str] = None
    meeting_link_added_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    disputed_at: Optional[datetime] = None
    disputed_by: Optional[str] = None
    dispute_reason: Optional[str] = None
    paid_at: Optional[datetime] = None


class BookingResponse(BaseModel):
    success: bool
    message: str
    data: Optional[BookingOut] = None


class BookingListResponse(BaseModel):
    success: bool
    message: str
    data: List[BookingOut] = []


class GenericResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
