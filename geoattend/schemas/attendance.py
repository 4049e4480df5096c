from pydantic import BaseModel
from typing import Any, List, Optional


class ClockRequest(BaseModel):
    # Loosely typed: clock() checks types itself and answers with error codes
    record_type: Any = None
    latitude: Any = None
    longitude: Any = None
    accuracy_meters: Optional[float] = None
    photo_url: Any = None


class AttendanceRecord(BaseModel):
    id: str
    user_id: str
    record_type: str
    recorded_at: str
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    location_id: Optional[str] = None


class DailyAttendance(BaseModel):
    """One employee's day: first clock-in and last clock-out."""
    date: str
    user_id: str
    name: str
    email: str = ""
    clock_in_time: Optional[str] = None
    clock_in_photo: Optional[str] = None
    clock_in_location: Optional[str] = None
    clock_out_time: Optional[str] = None
    clock_out_photo: Optional[str] = None
    clock_out_location: Optional[str] = None


class HistoryOut(BaseModel):
    start: str
    end: str
    records: List[AttendanceRecord]
    clock_in_count: int
    clock_out_count: int


class EmployeeDayStatus(BaseModel):
    user_id: str
    full_name: str
    email: str = ""
    department: Optional[str] = None
    job_title: Optional[str] = None
    shift_name: Optional[str] = None
    status: str
    clock_in_time: Optional[str] = None  # HH:MM, local
    clock_out_time: Optional[str] = None
    late_minutes: int = 0
    leave_type: Optional[str] = None
    holiday_name: Optional[str] = None
