"""Leave requests: employees submit, admins approve or reject.

Approved leave that covers a day puts the employee "on leave" in the daily
monitor instead of absent.
"""
import logging
from datetime import date
from typing import Optional

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError, FunctionError
from geoattend.core.timeutil import local_today, now_utc
from geoattend.models.leave import LEAVE_REQUESTS_TABLE, LeaveStatus, LeaveType
from geoattend.models.user import PROFILES_TABLE
from geoattend.schemas.leave import LeaveRequestCreate
from geoattend.services import audit

logger = logging.getLogger(__name__)

LEAVE_TYPES = [t.value for t in LeaveType]


def submit_leave(backend: BackendClient, user_id: str, data: LeaveRequestCreate) -> dict:
    """Create a pending leave request for ``user_id``."""
    leave_type = (data.leave_type or "").strip().lower()
    if leave_type not in LEAVE_TYPES:
        raise FunctionError(400, f"Choose a leave type: {', '.join(LEAVE_TYPES)}")
    if not data.start_date or not data.end_date:
        raise FunctionError(400, "Start and end dates are required")
    if data.start_date > data.end_date:
        raise FunctionError(400, "Start date cannot be after end date")
    if data.start_date < local_today():
        raise FunctionError(400, "Cannot request leave for a date that has passed")

    try:
        record = backend.insert(LEAVE_REQUESTS_TABLE, {
            "user_id": user_id,
            "leave_type": leave_type,
            "start_date": data.start_date.isoformat(),
            "end_date": data.end_date.isoformat(),
            "reason": (data.reason or "").strip() or None,
            "proof_url": data.proof_url or None,
            "status": LeaveStatus.PENDING.value,
        })
    except BackendError as e:
        logger.error("Leave request insert failed for %s: %s", user_id, e)
        raise FunctionError(500, "Failed to submit leave request")

    logger.info("Leave request %s submitted by %s (%s %s..%s)", record.get("id"), user_id,
                leave_type, data.start_date, data.end_date)
    return record


def list_own(backend: BackendClient, user_id: str) -> list[dict]:
    return backend.select(LEAVE_REQUESTS_TABLE, "*", [("user_id", "eq", user_id)], order="created_at", desc=True)


def list_requests(backend: BackendClient, status: Optional[str] = None, search: Optional[str] = None) -> list[dict]:
    """All leave requests, newest first, with the requester's profile attached."""
    filters = [("status", "eq", status)] if status else []
    rows = backend.select(LEAVE_REQUESTS_TABLE, "*", filters, order="created_at", desc=True)

    user_ids = sorted({r["user_id"] for r in rows})
    profiles = {}
    if user_ids:
        found = backend.select(PROFILES_TABLE, "user_id, full_name, email, department", [("user_id", "in", user_ids)])
        profiles = {p["user_id"]: p for p in found}
    rows = [{**r, "profile": profiles.get(r["user_id"])} for r in rows]

    if search:
        term = search.lower()
        rows = [
            r for r in rows
            if term in ((r["profile"] or {}).get("full_name") or "").lower()
            or term in ((r["profile"] or {}).get("email") or "").lower()
        ]
    return rows


def review(
    backend: BackendClient,
    reviewer: dict,
    leave_id: str,
    approve: bool,
    notes: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> dict:
    """Approve or reject a pending request and write an audit event.

    ``reviewer`` is the admin user dict (``id``, ``email``, ``role``).
    """
    request = backend.select_one(LEAVE_REQUESTS_TABLE, "*", [("id", "eq", leave_id)])
    if not request:
        raise FunctionError(404, "Leave request not found")
    if request.get("status") != LeaveStatus.PENDING.value:
        raise FunctionError(400, f"Leave request is already {request.get('status')}")

    status = LeaveStatus.APPROVED.value if approve else LeaveStatus.REJECTED.value
    notes = (notes or "").strip() or None
    updated = backend.update(LEAVE_REQUESTS_TABLE, {
        "status": status,
        "reviewed_by": reviewer["id"],
        "reviewed_at": now_utc().isoformat(),
        "review_notes": notes,
    }, [("id", "eq", leave_id)])
    logger.info("Leave request %s %s by %s", leave_id, status, reviewer["id"])

    employee = backend.select_one(PROFILES_TABLE, "full_name", [("user_id", "eq", request["user_id"])]) or {}
    reviewer_profile = backend.select_one(PROFILES_TABLE, "email, company_id", [("user_id", "eq", reviewer["id"])]) or {}
    audit.log_event(
        backend,
        reviewer["id"],
        action="approve_leave" if approve else "reject_leave",
        resource_type="leave_request",
        resource_id=leave_id,
        details={
            "employee_name": employee.get("full_name"),
            "leave_type": request.get("leave_type"),
            "start_date": request.get("start_date"),
            "end_date": request.get("end_date"),
            "review_notes": notes,
        },
        user_email=reviewer_profile.get("email") or reviewer.get("email"),
        user_role=reviewer.get("role"),
        company_id=reviewer_profile.get("company_id"),
        user_agent=user_agent,
    )
    return updated[0] if updated else {**request, "status": status}


def approved_on(backend: BackendClient, day: date) -> list[dict]:
    """Approved requests whose range covers ``day``."""
    return backend.select(
        LEAVE_REQUESTS_TABLE,
        "id, user_id, leave_type, start_date, end_date, status",
        [
            ("status", "eq", LeaveStatus.APPROVED.value),
            ("start_date", "lte", day.isoformat()),
            ("end_date", "gte", day.isoformat()),
        ],
    )
