"""Employee leave requests: submit and track own requests."""
from fastapi import APIRouter, Depends

from geoattend.core.backend import BackendClient
from geoattend.core.security import get_backend, get_current_user
from geoattend.schemas.leave import LeaveRequestCreate
from geoattend.services import leaves

router = APIRouter(prefix="/api/leaves", tags=["leaves"])


@router.post("")
def submit_leave(
    data: LeaveRequestCreate,
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    return leaves.submit_leave(backend, current_user["id"], data)


@router.get("")
def list_my_leaves(
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    """The caller's own requests, newest first."""
    return leaves.list_own(backend, current_user["id"])
