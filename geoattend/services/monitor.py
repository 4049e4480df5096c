"""Daily attendance monitor: one status per active employee for a local day.

Precedence: holiday, then approved leave, then the day's clock records.
Lateness is measured against the employee's shift start, else the company
work start, else DEFAULT_WORK_START.
"""
import logging
from datetime import date, datetime, time
from typing import Optional

from geoattend.core.backend import BackendClient
from geoattend.core.timeutil import day_bounds, get_tz, local_today, now_utc, to_local
from geoattend.models.attendance import ATTENDANCE_TABLE, DEFAULT_WORK_START, DayStatus, RecordType
from geoattend.models.user import COMPANIES_TABLE, PROFILES_TABLE, SHIFTS_TABLE
from geoattend.schemas.attendance import EmployeeDayStatus
from geoattend.services import holidays, leaves

logger = logging.getLogger(__name__)


def parse_work_start(value: Optional[str]) -> time:
    hours, minutes = (value or DEFAULT_WORK_START).split(":")[:2]
    return time(int(hours), int(minutes))


def late_minutes(clock_in: datetime, work_start: time) -> int:
    """Whole minutes after ``work_start`` on the clock-in's own day; never negative."""
    start = clock_in.replace(hour=work_start.hour, minute=work_start.minute, second=0, microsecond=0)
    return max(0, int((clock_in - start).total_seconds() // 60))


def _clock_times(records: list[dict]) -> dict[str, dict]:
    """Earliest local clock-in and latest local clock-out per user."""
    times: dict[str, dict] = {}
    for r in records:
        entry = times.setdefault(r["user_id"], {})
        at = to_local(r["recorded_at"])
        if r["record_type"] == RecordType.CLOCK_IN.value:
            if "in" not in entry or at < entry["in"]:
                entry["in"] = at
        elif r["record_type"] == RecordType.CLOCK_OUT.value:
            if "out" not in entry or at > entry["out"]:
                entry["out"] = at
    return times


def _status_for(profile: dict, shift: Optional[dict], company_start: Optional[str], clock: dict,
                leave: Optional[dict], holiday: Optional[dict], day: date) -> EmployeeDayStatus:
    row = EmployeeDayStatus(
        user_id=profile["user_id"],
        full_name=profile.get("full_name") or "",
        email=profile.get("email") or "",
        department=profile.get("department"),
        job_title=profile.get("job_title"),
        shift_name=(shift or {}).get("name"),
        status=DayStatus.ABSENT.value,
    )
    if holiday:
        row.status = DayStatus.HOLIDAY.value
        row.holiday_name = holiday.get("name")
        return row
    if leave:
        row.status = DayStatus.ON_LEAVE.value
        row.leave_type = leave.get("leave_type")
        return row

    work_start = parse_work_start((shift or {}).get("start_time") or company_start)
    clock_in = clock.get("in")
    if clock_in is None:
        if day == local_today():
            now = now_utc().astimezone(get_tz())
            if now.time() < work_start:
                row.status = DayStatus.NOT_YET.value
        return row

    row.late_minutes = late_minutes(clock_in, work_start)
    row.status = DayStatus.LATE.value if row.late_minutes > 0 else DayStatus.ON_TIME.value
    row.clock_in_time = clock_in.strftime("%H:%M")
    if clock.get("out"):
        row.clock_out_time = clock["out"].strftime("%H:%M")
    return row


def daily_status(
    backend: BackendClient,
    day: Optional[date] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
    department: Optional[str] = None,
) -> dict:
    """Statuses for every active employee on ``day`` (default today).

    ``stats`` counts all employees; ``employees`` honours the filters.
    """
    day = day or local_today()
    profiles = backend.select(PROFILES_TABLE, "*", [("is_active", "eq", True)], order="full_name")
    shifts = {s["id"]: s for s in backend.select(SHIFTS_TABLE, "id, name, start_time, end_time")}
    company = backend.select_one(COMPANIES_TABLE, "work_start_time") or {}

    start_ts, end_ts = day_bounds(day)
    records = backend.select(
        ATTENDANCE_TABLE, "id, user_id, record_type, recorded_at",
        [("recorded_at", "gte", start_ts), ("recorded_at", "lte", end_ts)],
    )
    clock = _clock_times(records)
    on_leave = {}
    for leave in leaves.approved_on(backend, day):
        on_leave.setdefault(leave["user_id"], leave)
    holiday = holidays.holiday_on(backend, day)

    rows = [
        _status_for(p, shifts.get(p.get("shift_id")), company.get("work_start_time"),
                    clock.get(p["user_id"], {}), on_leave.get(p["user_id"]), holiday, day)
        for p in profiles
    ]
    stats = {"total": len(rows)}
    for s in DayStatus:
        stats[s.value] = sum(1 for r in rows if r.status == s.value)
    departments = sorted({r.department for r in rows if r.department})

    if search:
        term = search.lower()
        rows = [r for r in rows if term in r.full_name.lower() or term in r.email.lower()]
    if status:
        rows = [r for r in rows if r.status == status]
    if department:
        rows = [r for r in rows if r.department == department]

    logger.info("Daily monitor for %s: %s", day, stats)
    return {
        "date": day.isoformat(),
        "holiday": holiday.get("name") if holiday else None,
        "stats": stats,
        "departments": departments,
        "employees": [r.model_dump() for r in rows],
    }
