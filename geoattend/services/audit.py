"""Audit trail: events are written through the backend's log RPC and read
back from ``audit_logs`` for the admin view."""
import logging
from typing import Optional

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError
from geoattend.models.attendance import AUDIT_EVENT_RPC, AUDIT_LOGS_TABLE, CLOCK_RECORD_TYPES

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def log_event(
    backend: BackendClient,
    user_id: str,
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
    user_email: Optional[str] = None,
    user_role: Optional[str] = None,
    company_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """Record an audit event. A failed write is logged, never raised."""
    try:
        backend.rpc(AUDIT_EVENT_RPC, {
            "p_user_id": user_id,
            "p_user_email": user_email,
            "p_user_role": user_role,
            "p_company_id": company_id,
            "p_action": action,
            "p_resource_type": resource_type,
            "p_resource_id": resource_id,
            "p_details": details or {},
            "p_ip_address": ip_address,
            "p_user_agent": user_agent,
        })
    except BackendError as e:
        logger.error("Audit log failed for %s on %s %s: %s", action, resource_type, resource_id, e)


def list_logs(backend: BackendClient, action: Optional[str] = None, search: Optional[str] = None,
              limit: int = DEFAULT_LIMIT) -> dict:
    """Latest audit entries, newest first, with the counters the admin view shows."""
    filters = [("action", "eq", action)] if action else []
    logs = backend.select(AUDIT_LOGS_TABLE, "*", filters, order="created_at", desc=True, limit=limit)

    if search:
        term = search.lower()
        logs = [
            log for log in logs
            if term in (log.get("user_email") or "").lower()
            or term in (log.get("action") or "").lower()
            or term in (log.get("resource_type") or "").lower()
        ]

    return {
        "logs": logs,
        "total": len(logs),
        "clock_events": sum(1 for log in logs if log.get("action") in CLOCK_RECORD_TYPES),
        "suspected_mock": sum(1 for log in logs if (log.get("details") or {}).get("suspected_mock")),
    }
