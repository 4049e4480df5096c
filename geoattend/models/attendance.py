"""Attendance record vocabulary.

Records are immutable rows in ``attendance_records``; ``recorded_at`` is
always the server timestamp of the clock call.
"""
import enum


class RecordType(str, enum.Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK_IN = "break_in"
    BREAK_OUT = "break_out"


# Types the clock function accepts; breaks are recorded by other clients
CLOCK_RECORD_TYPES = (RecordType.CLOCK_IN.value, RecordType.CLOCK_OUT.value)

SUSPECTED_MOCK_NOTE = "suspected_mock_location"

ATTENDANCE_TABLE = "attendance_records"
AUDIT_EVENT_RPC = "log_audit_event"
AUDIT_LOGS_TABLE = "audit_logs"


class DayStatus(str, enum.Enum):
    """Where an employee stands on a given day (daily monitor)."""
    ON_TIME = "on_time"
    LATE = "late"
    ON_LEAVE = "on_leave"
    HOLIDAY = "holiday"
    ABSENT = "absent"
    NOT_YET = "not_yet"


DEFAULT_WORK_START = "08:00:00"
