from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class CheckoutRequest(BaseModel):
    booking_id: int
    is_trial: bool = False


class CheckoutData(BaseModel):
    session_id: str
    url: Optional[str] = None
    amount: float
    is_trial: bool


class CheckoutResponse(BaseModel):
    success: bool
    message: str
    data: Optional[CheckoutData] = None


class PaymentStatusData(BaseModel):
    payment_status: str
    paid_at: Optional[datetime] = None


class PaymentStatusResponse(BaseModel):
    success: bool
    message: str
    data: Optional[PaymentStatusData] = None


class TrialStatusData(BaseModel):
    eligible: bool
    has_used_trial: bool
    trial_price: float


class TrialStatusResponse(BaseModel):
    success: bool
    message: str
    data: Optional[TrialStatusData] = None
