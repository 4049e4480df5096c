import logging
from typing import Optional
from fastapi import Depends, Header

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError, FunctionError
from geoattend.models.user import PRIVILEGED_ROLES, USER_ROLES_TABLE

logger = logging.getLogger(__name__)


# Dependency for FastAPI routes
def get_backend() -> BackendClient:
    return BackendClient()


def _bearer_token(authorization: str) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return authorization.strip()


def _resolve_user(authorization: Optional[str], backend: BackendClient, missing_message: str) -> dict:
    if not authorization:
        raise FunctionError(401, missing_message, code="NO_AUTH")

    try:
        user = backend.get_user(_bearer_token(authorization))
    except BackendError as e:
        logger.warning("Token rejected: %s", e)
        raise FunctionError(401, "Unauthorized", code="INVALID_USER")

    if not user or not user.get("id"):
        raise FunctionError(401, "Unauthorized", code="INVALID_USER")
    return user


def get_current_user(
    authorization: Optional[str] = Header(None),
    backend: BackendClient = Depends(get_backend),
) -> dict:
    """Resolve the caller from the Authorization header via the identity API."""
    return _resolve_user(authorization, backend, "Missing authorization header")


def get_clock_user(
    authorization: Optional[str] = Header(None),
    backend: BackendClient = Depends(get_backend),
) -> dict:
    """Same as get_current_user; a missing header reads "Unauthorized" here."""
    return _resolve_user(authorization, backend, "Unauthorized")


def get_user_role(backend: BackendClient, user_id: str) -> Optional[str]:
    row = backend.select_one(USER_ROLES_TABLE, "role", [("user_id", "eq", user_id)])
    return row.get("role") if row else None


def require_admin(role: Optional[str], message: str = "Admin access required"):
    if role not in PRIVILEGED_ROLES:
        raise FunctionError(403, message)


def get_admin_user(
    current_user: dict = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
) -> dict:
    """Current user, enforced to be admin or developer. Adds ``role``."""
    try:
        role = get_user_role(backend, current_user["id"])
    except BackendError as e:
        logger.error("Role fetch failed for %s: %s", current_user["id"], e)
        raise FunctionError(500, "Failed to verify role")
    require_admin(role)
    return {**current_user, "role": role}
