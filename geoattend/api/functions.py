"""Function entry points: JSON in, JSON out, open CORS.

- bootstrap-admin: create the first developer account (no auth)
- create-user: admin/developer creates an employee or admin
- delete-user: admin/developer removes a user
- send-reset-password: email a recovery link (no auth)
- clock-attendance: employee clock-in / clock-out
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError, FunctionError
from geoattend.core.security import get_backend, get_clock_user, get_current_user, get_user_role
from geoattend.schemas.account import CreateUserRequest, DeleteUserRequest, ResetPasswordRequest
from geoattend.schemas.attendance import ClockRequest
from geoattend.services import accounts, attendance, reset_email

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/functions/v1", tags=["functions"])


def _caller_role(backend: BackendClient, user_id: str) -> Optional[str]:
    try:
        role = get_user_role(backend, user_id)
    except BackendError as e:
        logger.error("Role fetch error for %s: %s", user_id, e)
        raise FunctionError(500, "Failed to verify role")
    logger.info("Requesting user role: %s", role)
    return role


@router.post("/bootstrap-admin")
async def bootstrap_admin(request: Request, backend: BackendClient = Depends(get_backend)):
    # Body is decoded by the operation, after the existing-admin check
    body = await request.body()
    return accounts.bootstrap_admin(backend, body)


@router.post("/create-user")
def create_user(
    data: Optional[CreateUserRequest] = None,
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    role = _caller_role(backend, current_user["id"])
    return accounts.create_user(backend, current_user["id"], role, data or CreateUserRequest())


@router.post("/delete-user")
def delete_user(
    data: Optional[DeleteUserRequest] = None,
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    # An unreadable role counts as no role: the operation answers 403
    try:
        role = get_user_role(backend, current_user["id"])
    except BackendError as e:
        logger.error("Role fetch error for %s: %s", current_user["id"], e)
        role = None
    user_id = data.user_id if data else None
    return accounts.delete_user(backend, current_user["id"], role, user_id)


@router.post("/send-reset-password")
def send_reset_password(
    data: Optional[ResetPasswordRequest] = None,
    backend: BackendClient = Depends(get_backend),
):
    logger.info("Reset password request received")
    data = data or ResetPasswordRequest()
    return reset_email.send_reset_password(backend, data.email, data.redirect_to)


@router.post("/clock-attendance")
def clock_attendance(
    request: Request,
    data: Optional[ClockRequest] = None,
    current_user: dict = Depends(get_clock_user),
    backend: BackendClient = Depends(get_backend),
):
    ip_address = request.headers.get("x-forwarded-for") or request.headers.get("cf-connecting-ip")
    return attendance.clock(
        backend,
        current_user["id"],
        data or ClockRequest(),
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )
