"""Account operations: first-admin bootstrap, user creation and deletion.

Identity rows live in the backend's auth store; ``user_roles`` and
``profiles`` rows are created for every new identity by a backend trigger,
so these operations upsert rather than insert.
"""
import json
import logging
from typing import Optional

from geoattend.core.backend import BackendClient
from geoattend.core.config import settings
from geoattend.core.errors import BackendError, FunctionError
from geoattend.models.user import (
    AppRole, EmployeeType, PRIVILEGED_ROLES,
    COMPANIES_TABLE, PROFILES_TABLE, SHIFTS_TABLE, USER_ROLES_TABLE,
)
from geoattend.schemas.account import AccountOut, BootstrapAdminRequest, CreateUserRequest

logger = logging.getLogger(__name__)

USERNAME_LENGTH = (3, 30)
FULL_NAME_LENGTH = (2, 100)
PASSWORD_LENGTH = (6, 72)


def _check_length(value: str, bounds: tuple, label: str):
    low, high = bounds
    if not low <= len(value) <= high:
        raise FunctionError(400, f"{label} must be between {low}-{high} characters")


def _first_id(backend: BackendClient, table: str, filters=None) -> Optional[str]:
    try:
        row = backend.select_one(table, "id", filters)
    except BackendError as e:
        logger.error("Default %s lookup failed: %s", table, e)
        return None
    return row.get("id") if row else None


def _create_or_reuse_identity(backend: BackendClient, email: str, password: str, full_name: str) -> dict:
    try:
        return backend.create_user(email, password, user_metadata={"full_name": full_name})
    except BackendError as e:
        if not e.already_registered:
            logger.error("Create user error for %s: %s", email, e)
            raise FunctionError(400, e.message)

    logger.info("Identity %s already exists, reusing it", email)
    try:
        existing = backend.find_user_by_email(email)
    except BackendError as e:
        logger.error("Lookup of existing identity %s failed: %s", email, e)
        raise FunctionError(400, e.message)
    if not existing:
        raise FunctionError(400, f"User {email} is registered but could not be found")
    return existing


def _as_text(value) -> str:
    """String form of a JSON scalar, rendered the way the web client does."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_bootstrap_body(raw: Optional[bytes]) -> BootstrapAdminRequest:
    """Decode the bootstrap request body. An empty body is an empty request."""
    if not raw or not raw.strip():
        return BootstrapAdminRequest()
    try:
        payload = json.loads(raw)
    except ValueError:
        raise FunctionError(400, "Invalid request body")
    if not isinstance(payload, dict):
        raise FunctionError(400, "Invalid request body")
    return BootstrapAdminRequest.model_validate(payload)


def bootstrap_admin(backend: BackendClient, body: Optional[bytes]) -> dict:
    """Create the first privileged account. Refuses once any admin/developer exists.

    The body is only decoded after that check, so a second bootstrap attempt
    is always a 403 whatever it sends.
    """
    try:
        existing_admins = backend.select(
            USER_ROLES_TABLE, "id", [("role", "in", PRIVILEGED_ROLES)], limit=1,
        )
    except BackendError as e:
        logger.error("Check error: %s", e)
        raise FunctionError(500, "Failed to check existing admins")

    if existing_admins:
        raise FunctionError(403, "Admin already exists. Use the app to create more users.")

    data = parse_bootstrap_body(body)
    if not data.username or not data.password or not data.full_name:
        raise FunctionError(400, "Missing required fields: username, password, fullName")

    username = _as_text(data.username).strip().lower()
    full_name = _as_text(data.full_name).strip()
    password = _as_text(data.password)

    _check_length(username, USERNAME_LENGTH, "Username")
    _check_length(full_name, FULL_NAME_LENGTH, "Name")
    _check_length(password, PASSWORD_LENGTH, "Password")

    company_id = _first_id(backend, COMPANIES_TABLE)
    shift_id = _first_id(backend, SHIFTS_TABLE, [("is_active", "eq", True)])

    email = f"{username}@{settings.INTERNAL_EMAIL_DOMAIN}"
    logger.info("Creating bootstrap admin user: username=%s email=%s", username, email)

    user = _create_or_reuse_identity(backend, email, password, full_name)
    user_id = user["id"]
    role = AppRole.DEVELOPER.value

    try:
        backend.upsert(USER_ROLES_TABLE, {"user_id": user_id, "role": role}, on_conflict="user_id")
    except BackendError as e:
        logger.error("Role upsert error for %s: %s", user_id, e)

    try:
        backend.upsert(PROFILES_TABLE, {
            "user_id": user_id,
            "email": email,
            "full_name": full_name,
            "username": username,
            "role": role,
            "company_id": company_id,
            "shift_id": shift_id,
            "job_title": "System Administrator",
            "department": "IT",
            "is_active": True,
            "requires_geofence": False,
            "employee_type": EmployeeType.OFFICE.value,
        }, on_conflict="user_id")
    except BackendError as e:
        logger.error("Profile upsert error for %s: %s", user_id, e)

    logger.info("Bootstrap admin %s created", username)
    return {
        "success": True,
        "message": "Admin created! Sign in with the username and password you set.",
        "user": AccountOut(id=user_id, username=username, role=role).model_dump(exclude_none=True),
    }


def create_user(backend: BackendClient, requesting_user_id: str, requesting_role: Optional[str],
                data: CreateUserRequest) -> dict:
    """Create an employee or admin account on behalf of an admin/developer."""
    if requesting_role not in PRIVILEGED_ROLES:
        raise FunctionError(403, "Only admin or developer can create users")

    try:
        admin_profile = backend.select_one(PROFILES_TABLE, "company_id", [("user_id", "eq", requesting_user_id)])
    except BackendError as e:
        logger.error("Admin profile fetch error: %s", e)
        raise FunctionError(500, "Failed to fetch admin profile")
    company_id = (admin_profile or {}).get("company_id")

    if not data.email or not data.password or not data.full_name or not data.role:
        raise FunctionError(400, "Missing required fields: email, password, fullName, role")

    new_role = data.role.strip().lower()
    if new_role == AppRole.DEVELOPER.value:
        raise FunctionError(403, "Cannot create developer users")
    if new_role == AppRole.ADMIN.value and requesting_role != AppRole.DEVELOPER.value:
        raise FunctionError(403, "Only developer can create admin users")
    if new_role not in (AppRole.ADMIN.value, AppRole.EMPLOYEE.value):
        raise FunctionError(400, "Invalid role. Must be admin or employee")

    email = data.email.strip().lower()
    logger.info("Creating user %s with role %s in company %s", email, new_role, company_id)

    try:
        user = backend.create_user(email, data.password, user_metadata={"full_name": data.full_name})
    except BackendError as e:
        logger.error("Create user error for %s: %s", email, e)
        raise FunctionError(400, e.message)
    user_id = user["id"]

    if new_role != AppRole.EMPLOYEE.value:
        try:
            backend.update(USER_ROLES_TABLE, {"role": new_role}, [("user_id", "eq", user_id)])
        except BackendError as e:
            logger.error("Update role error for %s: %s", user_id, e)

    profile_update = {}
    if new_role != AppRole.EMPLOYEE.value:
        profile_update["role"] = new_role
    if company_id:
        profile_update["company_id"] = company_id
    for key in ("job_title", "department", "shift_id"):
        value = getattr(data, key)
        if value:
            profile_update[key] = value

    if profile_update:
        try:
            backend.update(PROFILES_TABLE, profile_update, [("user_id", "eq", user_id)])
        except BackendError as e:
            logger.error("Update profile error for %s: %s", user_id, e)

    return {
        "success": True,
        "user": AccountOut(
            id=user_id, email=user.get("email", email), role=new_role, company_id=company_id,
        ).model_dump(),
    }


def delete_user(backend: BackendClient, requesting_user_id: str, requesting_role: Optional[str],
                user_id: Optional[str]) -> dict:
    """Remove ``user_id`` from the identity store; the backend cascades to its rows."""
    if requesting_role not in PRIVILEGED_ROLES:
        raise FunctionError(403, "Forbidden: Only Admin/Developer can delete users")
    if not user_id:
        raise FunctionError(400, "User ID is required")
    if user_id == requesting_user_id:
        raise FunctionError(400, "Cannot delete yourself")

    try:
        backend.delete_user(user_id)
    except BackendError as e:
        logger.error("Delete user error for %s: %s", user_id, e)
        raise FunctionError(400, e.message)

    logger.info("User %s deleted by %s", user_id, requesting_user_id)
    return {"success": True, "message": "User deleted successfully"}
