from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AutoCompleteData(BaseModel):
    cutoff: datetime
    sessions_processed: int
    sessions_completed: int
    sessions_skipped: int
    sessions_failed: int


class AutoCompleteResponse(BaseModel):
    success: bool
    message: str
    data: Optional[AutoCompleteData] = None


class ReminderData(BaseModel):
    sent_24h: int
    sent_1h: int
    failed: int


class ReminderResponse(BaseModel):
    success: bool
    message: str
    data: Optional[ReminderData] = None
