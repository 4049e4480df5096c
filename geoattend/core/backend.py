"""HTTP client for the backend-as-a-service.

Covers the two surfaces the app needs:

- identity admin API under ``/auth/v1`` (resolve a caller's token, create /
  list / delete users, generate recovery links)
- data API under ``/rest/v1`` (PostgREST-style select / insert / update /
  upsert on named tables, plus RPC calls)

Admin calls authenticate with the service-role key. Row-level security is
enforced by the backend itself; this client never re-implements it.
"""
import logging
import requests
from typing import Iterable, Optional
from geoattend.core.config import settings
from geoattend.core.errors import BackendError

logger = logging.getLogger(__name__)

# (column, operator, value); operator is a PostgREST operator: eq, neq, gte, lte, in, ilike, is
Filter = tuple


def _format_filter(op: str, value) -> str:
    if op == "in":
        return "in.(" + ",".join(str(v) for v in value) + ")"
    if op == "is":
        return f"is.{'null' if value is None else str(value).lower()}"
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"{op}.{value}"


def _error_message(resp: requests.Response) -> tuple[str, Optional[str]]:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:300] or f"HTTP {resp.status_code}", None
    if not isinstance(data, dict):
        return str(data)[:300], None
    message = (
        data.get("msg")
        or data.get("message")
        or data.get("error_description")
        or data.get("error")
        or f"HTTP {resp.status_code}"
    )
    return str(message), data.get("error_code") or data.get("code")


class BackendClient:
    """Client for the BaaS identity admin API and data API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.SUPABASE_SERVICE_ROLE_KEY
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.timeout = timeout or settings.BACKEND_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self, token: Optional[str] = None, extra: Optional[dict] = None) -> dict:
        key = self.service_key
        headers = {
            "apikey": self.anon_key if token else key,
            "Authorization": f"Bearer {token or key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, *, token: Optional[str] = None,
                 params=None, json=None, headers: Optional[dict] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(
                method,
                url,
                headers=self._headers(token, headers),
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Backend %s %s failed: %s", method, path, e)
            raise BackendError(502, f"Backend unreachable: {e}")

        if resp.status_code >= 400:
            message, error_code = _error_message(resp)
            logger.warning("Backend %s %s returned %s: %s", method, path, resp.status_code, message)
            raise BackendError(resp.status_code, message, error_code)
        return resp

    @staticmethod
    def _json(resp: requests.Response):
        if not resp.text or not resp.text.strip():
            return None
        return resp.json()

    # ── Identity API ─────────────────────────────────────────────────

    def get_user(self, access_token: str) -> dict:
        """Resolve the user owning ``access_token``."""
        resp = self._request("GET", "/auth/v1/user", token=access_token)
        return self._json(resp) or {}

    def create_user(self, email: str, password: str, user_metadata: Optional[dict] = None,
                    email_confirm: bool = True) -> dict:
        resp = self._request("POST", "/auth/v1/admin/users", json={
            "email": email,
            "password": password,
            "email_confirm": email_confirm,
            "user_metadata": user_metadata or {},
        })
        data = self._json(resp) or {}
        # Older identity servers wrap the user object
        return data.get("user", data) if isinstance(data, dict) else {}

    def list_users(self, page: int = 1, per_page: int = 50) -> list[dict]:
        resp = self._request("GET", "/auth/v1/admin/users", params={"page": page, "per_page": per_page})
        data = self._json(resp) or {}
        if isinstance(data, list):
            return data
        return data.get("users", [])

    def find_user_by_email(self, email: str, per_page: int = 100) -> Optional[dict]:
        """Page through the identity store looking for ``email``."""
        email = email.lower()
        page = 1
        while True:
            users = self.list_users(page=page, per_page=per_page)
            for u in users:
                if (u.get("email") or "").lower() == email:
                    return u
            if len(users) < per_page:
                return None
            page += 1

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/auth/v1/admin/users/{user_id}")

    def generate_recovery_link(self, email: str, redirect_to: Optional[str] = None) -> Optional[str]:
        payload = {"type": "recovery", "email": email}
        if redirect_to:
            payload["redirect_to"] = redirect_to
        resp = self._request("POST", "/auth/v1/admin/generate_link", json=payload)
        data = self._json(resp) or {}
        return data.get("action_link") or (data.get("properties") or {}).get("action_link")

    # ── Data API ─────────────────────────────────────────────────────

    @staticmethod
    def _filter_params(filters: Optional[Iterable[Filter]]) -> list[tuple[str, str]]:
        params = []
        for column, op, value in filters or ():
            params.append((column, _format_filter(op, value)))
        return params

    def select(self, table: str, columns: str = "*", filters: Optional[Iterable[Filter]] = None,
               order: Optional[str] = None, desc: bool = False, limit: Optional[int] = None) -> list[dict]:
        params = [("select", columns)] + self._filter_params(filters)
        if order:
            params.append(("order", f"{order}.{'desc' if desc else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        resp = self._request("GET", f"/rest/v1/{table}", params=params)
        return self._json(resp) or []

    def select_one(self, table: str, columns: str = "*", filters: Optional[Iterable[Filter]] = None,
                   order: Optional[str] = None, desc: bool = False) -> Optional[dict]:
        """First matching row or None."""
        rows = self.select(table, columns, filters, order=order, desc=desc, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, filters: Optional[Iterable[Filter]] = None) -> int:
        params = [("select", "*")] + self._filter_params(filters)
        resp = self._request(
            "HEAD", f"/rest/v1/{table}", params=params,
            headers={"Prefer": "count=exact", "Range": "0-0"},
        )
        content_range = resp.headers.get("Content-Range", "")
        total = content_range.rsplit("/", 1)[-1]
        return int(total) if total.isdigit() else 0

    def insert(self, table: str, row: dict) -> dict:
        resp = self._request(
            "POST", f"/rest/v1/{table}", json=row,
            headers={"Prefer": "return=representation"},
        )
        data = self._json(resp) or []
        return data[0] if isinstance(data, list) and data else (data or {})

    def update(self, table: str, values: dict, filters: Iterable[Filter]) -> list[dict]:
        resp = self._request(
            "PATCH", f"/rest/v1/{table}", json=values,
            params=self._filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return self._json(resp) or []

    def delete(self, table: str, filters: Iterable[Filter]) -> list[dict]:
        """Delete matching rows; returns the deleted rows."""
        resp = self._request(
            "DELETE", f"/rest/v1/{table}",
            params=self._filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return self._json(resp) or []

    def upsert(self, table: str, row: dict, on_conflict: str) -> dict:
        resp = self._request(
            "POST", f"/rest/v1/{table}", json=row,
            params={"on_conflict": on_conflict},
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        data = self._json(resp) or []
        return data[0] if isinstance(data, list) and data else (data or {})

    def rpc(self, function: str, params: Optional[dict] = None):
        resp = self._request("POST", f"/rest/v1/rpc/{function}", json=params or {})
        return self._json(resp)
