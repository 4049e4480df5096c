"""Leave requests and company holidays."""
import enum


class LeaveType(str, enum.Enum):
    CUTI = "cuti"    # annual leave
    IZIN = "izin"    # permission / personal leave
    SAKIT = "sakit"  # sick leave


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


LEAVE_REQUESTS_TABLE = "leave_requests"
HOLIDAYS_TABLE = "holidays"
