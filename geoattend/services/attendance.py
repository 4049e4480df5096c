"""Clock-in / clock-out recording.

Checks, in order:
1. record type, coordinates and photo are present
2. GPS accuracy is good enough (MAX_ACCURACY_METERS)
3. caller has a profile
4. caller is inside the company geofence, when the profile requires one
5. caller's state today allows this record (no double clock-in, no clock-out
   without clock-in)

The row is written with the server timestamp, never the client's.
"""
import logging
import math
from typing import Optional

from geoattend.core.backend import BackendClient
from geoattend.core.config import settings
from geoattend.core.errors import BackendError, FunctionError
from geoattend.core.timeutil import day_bounds, local_today, now_utc
from geoattend.models.attendance import (
    ATTENDANCE_TABLE, CLOCK_RECORD_TYPES, SUSPECTED_MOCK_NOTE, RecordType,
)
from geoattend.models.user import AppRole, COMPANIES_TABLE, PROFILES_TABLE, USER_ROLES_TABLE
from geoattend.schemas.attendance import ClockRequest
from geoattend.services import audit
from geoattend.services.geofence import looks_mocked, office_distance

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    # JSON numbers only; numeric strings and booleans are not coordinates
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _validate(data: ClockRequest):
    if not isinstance(data.record_type, str) or data.record_type not in CLOCK_RECORD_TYPES:
        raise FunctionError(400, "Invalid record_type", code="INVALID_TYPE")
    if not _is_number(data.latitude) or not _is_number(data.longitude):
        raise FunctionError(400, "Invalid coordinates", code="INVALID_COORDS")
    if not isinstance(data.photo_url, str) or not data.photo_url:
        raise FunctionError(400, "Photo is required", code="NO_PHOTO")
    if data.accuracy_meters is not None and data.accuracy_meters > settings.MAX_ACCURACY_METERS:
        logger.warning("High accuracy rejected: %sm", data.accuracy_meters)
        raise FunctionError(
            400,
            f"GPS accuracy too low ({round(data.accuracy_meters)}m). Try again in an open area.",
            code="LOW_ACCURACY",
        )


def _check_geofence(backend: BackendClient, user_id: str, profile: dict, data: ClockRequest):
    """Return (distance_to_office, suspected_mock). Raises on a fence violation."""
    if not (profile.get("requires_geofence") and profile.get("company_id")):
        return None, False

    try:
        company = backend.select_one(
            COMPANIES_TABLE,
            "office_latitude, office_longitude, radius_meters",
            [("id", "eq", profile["company_id"])],
        )
    except BackendError as e:
        logger.error("Company lookup failed for %s: %s", profile["company_id"], e)
        return None, False

    distance = office_distance(data.latitude, data.longitude, company)
    if distance is None:
        return None, False

    radius = float(company.get("radius_meters") or 0)
    logger.info("Distance to office: %.1fm, radius: %sm", distance, radius)

    if distance > radius:
        logger.warning("Geofence violation: user %s is %dm from office", user_id, round(distance))
        raise FunctionError(
            400,
            f"You are {round(distance)}m from the office. Maximum is {round(radius)}m to clock.",
            code="OUTSIDE_GEOFENCE",
            distance=round(distance),
            max_distance=company.get("radius_meters"),
        )

    suspected = looks_mocked(
        data.accuracy_meters, distance, radius,
        max_accuracy=settings.MOCK_ACCURACY_METERS,
        edge_meters=settings.MOCK_EDGE_METERS,
    )
    if suspected:
        logger.warning("Suspicious location pattern detected for user %s", user_id)
    return distance, suspected


def last_clock_record_today(backend: BackendClient, user_id: str) -> Optional[dict]:
    """Most recent clock record for ``user_id`` on the local current day."""
    start, end = day_bounds(local_today())
    return backend.select_one(
        ATTENDANCE_TABLE,
        "id, record_type, recorded_at",
        [
            ("user_id", "eq", user_id),
            ("record_type", "in", CLOCK_RECORD_TYPES),
            ("recorded_at", "gte", start),
            ("recorded_at", "lte", end),
        ],
        order="recorded_at",
        desc=True,
    )


def _check_state(backend: BackendClient, user_id: str, record_type: str):
    try:
        last = last_clock_record_today(backend, user_id)
    except BackendError as e:
        # State check is advisory when the lookup itself fails
        logger.error("Error checking existing records for %s: %s", user_id, e)
        return

    last_type = last.get("record_type") if last else None
    if record_type == RecordType.CLOCK_IN.value:
        if last_type == RecordType.CLOCK_IN.value:
            raise FunctionError(
                400, "Already clocked in today. Clock out before clocking in again.",
                code="ALREADY_CLOCKED_IN",
            )
    elif last_type != RecordType.CLOCK_IN.value:
        raise FunctionError(400, "Cannot clock out before clocking in.", code="NOT_CLOCKED_IN")


def _log_audit(backend: BackendClient, user_id: str, profile: dict, record: dict, details: dict,
               ip_address: Optional[str], user_agent: Optional[str]):
    try:
        role_row = backend.select_one(USER_ROLES_TABLE, "role", [("user_id", "eq", user_id)])
    except BackendError as e:
        logger.error("Role lookup for audit of %s failed: %s", user_id, e)
        role_row = None
    audit.log_event(
        backend,
        user_id,
        action=record.get("record_type"),
        resource_type="attendance",
        resource_id=record.get("id"),
        details=details,
        user_email=profile.get("email"),
        user_role=(role_row or {}).get("role") or AppRole.EMPLOYEE.value,
        company_id=profile.get("company_id"),
        ip_address=ip_address,
        user_agent=user_agent,
    )


def clock(
    backend: BackendClient,
    user_id: str,
    data: ClockRequest,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> dict:
    """Validate and record a clock-in or clock-out for ``user_id``."""
    _validate(data)
    logger.info("Processing attendance for user: %s", user_id)

    try:
        profile = backend.select_one(
            PROFILES_TABLE,
            "id, full_name, email, requires_geofence, company_id, employee_type",
            [("user_id", "eq", user_id)],
        )
    except BackendError as e:
        logger.error("Profile lookup failed for %s: %s", user_id, e)
        profile = None
    if not profile:
        raise FunctionError(404, "Profile not found", code="NO_PROFILE")

    distance, suspected_mock = _check_geofence(backend, user_id, profile, data)
    _check_state(backend, user_id, data.record_type)

    server_timestamp = now_utc().isoformat()
    try:
        record = backend.insert(ATTENDANCE_TABLE, {
            "user_id": user_id,
            "record_type": data.record_type,
            "latitude": data.latitude,
            "longitude": data.longitude,
            "accuracy_meters": data.accuracy_meters,
            "photo_url": data.photo_url,
            "recorded_at": server_timestamp,
            "notes": SUSPECTED_MOCK_NOTE if suspected_mock else None,
        })
    except BackendError as e:
        logger.error("Insert error for %s: %s", user_id, e)
        raise FunctionError(500, "Failed to record attendance", code="INSERT_FAILED")

    logger.info("Attendance recorded successfully: %s", record.get("id"))

    _log_audit(backend, user_id, profile, record, {
        "latitude": data.latitude,
        "longitude": data.longitude,
        "accuracy_meters": data.accuracy_meters,
        "distance_to_office": distance,
        "suspected_mock": suspected_mock,
        "server_timestamp": server_timestamp,
    }, ip_address, user_agent)

    return {
        "success": True,
        "record": record,
        "message": "Clocked in!" if data.record_type == RecordType.CLOCK_IN.value else "Clocked out!",
    }


def current_status(backend: BackendClient, user_id: str) -> dict:
    """Today's clock state for ``user_id``."""
    last = last_clock_record_today(backend, user_id)
    if not last:
        return {"status": "not_clocked_in"}
    if last.get("record_type") == RecordType.CLOCK_IN.value:
        return {"status": "clocked_in", "since": last.get("recorded_at"), "record_id": last.get("id")}
    return {"status": "clocked_out", "at": last.get("recorded_at"), "record_id": last.get("id")}
