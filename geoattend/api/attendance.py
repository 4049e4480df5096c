"""Employee attendance API: own history and today's status."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from geoattend.core.backend import BackendClient
from geoattend.core.security import get_backend, get_current_user
from geoattend.models.attendance import RecordType
from geoattend.schemas.attendance import HistoryOut
from geoattend.services import attendance, history

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/attendance", tags=["attendance"])


@router.get("/history", response_model=HistoryOut)
def get_my_history(
    start: Optional[date] = Query(None, description="YYYY-MM-DD, local day"),
    end: Optional[date] = Query(None, description="YYYY-MM-DD, local day"),
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    """Records of the logged-in user between ``start`` and ``end``, newest first."""
    start, end = history.resolve_range(start, end)
    records = history.fetch_records(backend, start, end, user_id=current_user["id"])
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "records": records,
        "clock_in_count": sum(1 for r in records if r.get("record_type") == RecordType.CLOCK_IN.value),
        "clock_out_count": sum(1 for r in records if r.get("record_type") == RecordType.CLOCK_OUT.value),
    }


@router.get("/history/by-day")
def get_my_history_by_day(
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    start, end = history.resolve_range(start, end)
    records = history.fetch_records(backend, start, end, user_id=current_user["id"])
    return {"start": start.isoformat(), "end": end.isoformat(), "days": history.group_by_date(records)}


@router.get("/status")
def get_status(
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    """Current clock status for the logged-in user."""
    return attendance.current_status(backend, current_user["id"])
