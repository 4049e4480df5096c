"""Admin API: attendance review and export, daily monitor, leave review,
holidays, company settings, audit logs and employee management."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Header, Query, UploadFile
from fastapi.responses import Response

from geoattend.core.backend import BackendClient
from geoattend.core.security import get_admin_user, get_backend
from geoattend.models.user import PROFILES_TABLE, USER_ROLES_TABLE
from geoattend.schemas.company import CompanySettingsUpdate
from geoattend.schemas.leave import HolidayIn, HolidayUpdate, LeaveReview
from geoattend.services import audit, company, employee_import, history, holidays, leaves, monitor

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _admin_records(backend: BackendClient, start: Optional[date], end: Optional[date],
                   search: Optional[str], user_id: Optional[str]):
    start, end = history.resolve_range(start, end)
    records = history.fetch_records(backend, start, end, user_id=user_id)
    records = history.search(history.attach_profiles(backend, records), search)
    return start, end, records


# ── Attendance Review ────────────────────────────────────────────────

@router.get("/attendance")
def list_attendance(
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = Query(None, description="Matches employee name or email"),
    user_id: Optional[str] = None,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    """All attendance records in range with the owner's profile attached."""
    start, end, records = _admin_records(backend, start, end, search, user_id)
    return {"start": start.isoformat(), "end": end.isoformat(), "records": records}


@router.get("/attendance/daily")
def daily_attendance(
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = None,
    user_id: Optional[str] = None,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    start, end, records = _admin_records(backend, start, end, search, user_id)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "days": [d.model_dump() for d in history.to_daily(records)],
    }


@router.get("/attendance/export")
def export_attendance(
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = None,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    """Download the daily roll-up as an Excel workbook."""
    start, end, records = _admin_records(backend, start, end, search, None)
    content = history.export_xlsx(history.to_daily(records))
    filename = f"attendance_{start.isoformat()}_{end.isoformat()}.xlsx"
    logger.info("Admin %s exported attendance %s..%s", admin["id"], start, end)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats")
def stats(
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return history.admin_stats(backend)


# ── Employee Management ──────────────────────────────────────────────

@router.get("/employees")
def list_employees(
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    """List all profiles with their assigned role."""
    profiles = backend.select(PROFILES_TABLE, "*", order="full_name")
    roles = {r["user_id"]: r["role"] for r in backend.select(USER_ROLES_TABLE, "user_id, role")}
    return [{**p, "role": roles.get(p["user_id"], p.get("role"))} for p in profiles]


@router.post("/employees/import")
async def import_employees(
    file: UploadFile = File(...),
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    """Create employees in bulk from a CSV/XLSX upload."""
    content = await file.read()
    return employee_import.import_employees(backend, admin["id"], admin["role"], file.filename, content)


# ── Daily Monitor ────────────────────────────────────────────────────

@router.get("/monitor")
def daily_monitor(
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, local day; default today"),
    search: Optional[str] = None,
    status: Optional[str] = Query(None, description="on_time, late, on_leave, holiday, absent or not_yet"),
    department: Optional[str] = None,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return monitor.daily_status(backend, day, search=search, status=status, department=department)


# ── Leave Requests ───────────────────────────────────────────────────

@router.get("/leaves")
def list_leaves(
    status: Optional[str] = Query(None, description="pending, approved or rejected"),
    search: Optional[str] = None,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return leaves.list_requests(backend, status=status, search=search)


def _review(backend, admin, leave_id, approve, data, user_agent):
    notes = data.notes if data else None
    return leaves.review(backend, admin, leave_id, approve, notes=notes, user_agent=user_agent)


@router.post("/leaves/{leave_id}/approve")
def approve_leave(
    leave_id: str,
    data: Optional[LeaveReview] = None,
    user_agent: Optional[str] = Header(None),
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return _review(backend, admin, leave_id, True, data, user_agent)


@router.post("/leaves/{leave_id}/reject")
def reject_leave(
    leave_id: str,
    data: Optional[LeaveReview] = None,
    user_agent: Optional[str] = Header(None),
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return _review(backend, admin, leave_id, False, data, user_agent)


# ── Holidays ─────────────────────────────────────────────────────────

@router.get("/holidays")
def list_holidays(
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return holidays.list_holidays(backend)


@router.post("/holidays")
def create_holiday(
    data: HolidayIn,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return holidays.create_holiday(backend, data)


@router.put("/holidays/{holiday_id}")
def update_holiday(
    holiday_id: str,
    data: HolidayUpdate,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return holidays.update_holiday(backend, holiday_id, data)


@router.delete("/holidays/{holiday_id}")
def delete_holiday(
    holiday_id: str,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return holidays.delete_holiday(backend, holiday_id)


# ── Company Settings ─────────────────────────────────────────────────

@router.get("/company")
def get_company(
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    return company.get_company(backend)


@router.put("/company")
def update_company(
    data: CompanySettingsUpdate,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    """Update the office geofence and work start time used by clock-attendance."""
    updated = company.update_company(backend, data)
    logger.info("Admin %s updated company settings", admin["id"])
    return updated


# ── Audit Logs ───────────────────────────────────────────────────────

@router.get("/audit-logs")
def list_audit_logs(
    action: Optional[str] = None,
    search: Optional[str] = None,
    admin: dict = Depends(get_admin_user),
    backend: BackendClient = Depends(get_backend),
):
    """Latest audit entries, newest first."""
    return audit.list_logs(backend, action=action, search=search)
