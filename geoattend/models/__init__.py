from geoattend.models.user import (
    AppRole, EmployeeType, PRIVILEGED_ROLES,
    PROFILES_TABLE, USER_ROLES_TABLE, COMPANIES_TABLE, SHIFTS_TABLE, LOCATIONS_TABLE,
)
from geoattend.models.attendance import (
    RecordType, DayStatus, CLOCK_RECORD_TYPES, SUSPECTED_MOCK_NOTE, DEFAULT_WORK_START,
    ATTENDANCE_TABLE, AUDIT_EVENT_RPC, AUDIT_LOGS_TABLE,
)
from geoattend.models.leave import LeaveType, LeaveStatus, LEAVE_REQUESTS_TABLE, HOLIDAYS_TABLE

__all__ = [
    "AppRole",
    "EmployeeType",
    "PRIVILEGED_ROLES",
    "PROFILES_TABLE",
    "USER_ROLES_TABLE",
    "COMPANIES_TABLE",
    "SHIFTS_TABLE",
    "LOCATIONS_TABLE",
    "RecordType",
    "DayStatus",
    "CLOCK_RECORD_TYPES",
    "SUSPECTED_MOCK_NOTE",
    "DEFAULT_WORK_START",
    "ATTENDANCE_TABLE",
    "AUDIT_EVENT_RPC",
    "AUDIT_LOGS_TABLE",
    "LeaveType",
    "LeaveStatus",
    "LEAVE_REQUESTS_TABLE",
    "HOLIDAYS_TABLE",
]
