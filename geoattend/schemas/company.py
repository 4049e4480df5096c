from pydantic import BaseModel
from typing import Optional


class CompanySettingsUpdate(BaseModel):
    """Office geofence and work-day settings. Omitted fields are left as is."""
    name: Optional[str] = None
    office_latitude: Optional[float] = None
    office_longitude: Optional[float] = None
    radius_meters: Optional[int] = None
    work_start_time: Optional[str] = None  # HH:MM or HH:MM:SS
