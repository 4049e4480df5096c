import datetime
from pydantic import BaseModel
from typing import Optional


class LeaveRequestCreate(BaseModel):
    leave_type: Optional[str] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    reason: Optional[str] = None
    proof_url: Optional[str] = None  # already uploaded to the leave-proofs bucket


class LeaveReview(BaseModel):
    notes: Optional[str] = None


class HolidayIn(BaseModel):
    date: Optional[datetime.date] = None
    name: Optional[str] = None
    description: Optional[str] = None
    end_date: Optional[datetime.date] = None


class HolidayUpdate(BaseModel):
    date: Optional[datetime.date] = None
    name: Optional[str] = None
    description: Optional[str] = None
    end_date: Optional[datetime.date] = None
    is_active: Optional[bool] = None
