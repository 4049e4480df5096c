from __future__ import annotations

import itertools
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from geoattend.core.errors import BackendError
from geoattend.core.security import get_backend
from geoattend.core.timeutil import parse_timestamp
from geoattend.main import app


def _comparable(column, value):
    if column.endswith("_at") and isinstance(value, str):
        return parse_timestamp(value)
    return value


def _matches(row: dict, filters) -> bool:
    for column, op, value in filters or ():
        current = row.get(column)
        if op == "eq" and current != value:
            return False
        if op == "neq" and current == value:
            return False
        if op == "in" and current not in value:
            return False
        if op == "is" and current is not value:
            return False
        if op in ("gte", "lte"):
            if current is None:
                return False
            left, right = _comparable(column, current), _comparable(column, value)
            if op == "gte" and left < right:
                return False
            if op == "lte" and left > right:
                return False
    return True


class FakeBackend:
    """In-memory stand-in for BackendClient.

    ``fail[method] = BackendError(...)`` makes the next calls to that method
    raise. ``fail_tables[(method, table)]`` does the same for one table.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.tables: dict[str, list[dict]] = {}
        self.users: dict[str, dict] = {}
        self.tokens: dict[str, str] = {}
        self.rpc_calls: list[tuple] = []
        self.recovery_links: list[tuple] = []
        self.fail: dict[str, BackendError] = {}
        self.fail_tables: dict[tuple, BackendError] = {}

    def _maybe_fail(self, method: str, table: Optional[str] = None):
        if method in self.fail:
            raise self.fail[method]
        if (method, table) in self.fail_tables:
            raise self.fail_tables[(method, table)]

    def next_id(self) -> str:
        return f"id-{next(self._ids)}"

    # ── test helpers ─────────────────────────────────────────────────

    def add_user(self, role: str = "employee", token: Optional[str] = None, email: Optional[str] = None,
                 **profile) -> dict:
        user_id = self.next_id()
        email = email or f"{user_id}@example.com"
        user = {"id": user_id, "email": email}
        self.users[user_id] = user
        if token:
            self.tokens[token] = user_id
        self.tables.setdefault("user_roles", []).append({"id": self.next_id(), "user_id": user_id, "role": role})
        self.tables.setdefault("profiles", []).append({
            "id": self.next_id(), "user_id": user_id, "email": email,
            "full_name": profile.pop("full_name", f"User {user_id}"), "role": role,
            "requires_geofence": False, "company_id": None, **profile,
        })
        return user

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    # ── identity API ─────────────────────────────────────────────────

    def get_user(self, access_token: str) -> dict:
        self._maybe_fail("get_user")
        user_id = self.tokens.get(access_token)
        if not user_id:
            raise BackendError(401, "invalid JWT")
        return self.users[user_id]

    def create_user(self, email, password, user_metadata=None, email_confirm=True) -> dict:
        self._maybe_fail("create_user")
        if any(u["email"] == email for u in self.users.values()):
            raise BackendError(422, "A user with this email address has already been registered", "email_exists")
        user_id = self.next_id()
        user = {"id": user_id, "email": email, "user_metadata": user_metadata or {}}
        self.users[user_id] = user
        # backend trigger: default role + profile rows
        self.rows("user_roles").append({"id": self.next_id(), "user_id": user_id, "role": "employee"})
        self.rows("profiles").append({
            "id": self.next_id(), "user_id": user_id, "email": email,
            "full_name": (user_metadata or {}).get("full_name"), "role": "employee",
        })
        return user

    def list_users(self, page=1, per_page=50):
        users = list(self.users.values())
        return users[(page - 1) * per_page: page * per_page]

    def find_user_by_email(self, email, per_page=100):
        self._maybe_fail("find_user_by_email")
        return next((u for u in self.users.values() if u["email"] == email.lower()), None)

    def delete_user(self, user_id):
        self._maybe_fail("delete_user")
        if user_id not in self.users:
            raise BackendError(404, "User not found")
        del self.users[user_id]
        for table in ("user_roles", "profiles"):
            self.tables[table] = [r for r in self.rows(table) if r["user_id"] != user_id]

    def generate_recovery_link(self, email, redirect_to=None):
        self._maybe_fail("generate_recovery_link")
        self.recovery_links.append((email, redirect_to))
        return f"https://auth.example.com/verify?type=recovery&email={email}"

    # ── data API ─────────────────────────────────────────────────────

    def select(self, table, columns="*", filters=None, order=None, desc=False, limit=None):
        self._maybe_fail("select", table)
        rows = [dict(r) for r in self.rows(table) if _matches(r, filters)]
        if order:
            rows.sort(key=lambda r: _comparable(order, r.get(order)) or "", reverse=desc)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def select_one(self, table, columns="*", filters=None, order=None, desc=False):
        rows = self.select(table, columns, filters, order=order, desc=desc, limit=1)
        return rows[0] if rows else None

    def count(self, table, filters=None):
        return len(self.select(table, "*", filters))

    def insert(self, table, row):
        self._maybe_fail("insert", table)
        stored = {"id": self.next_id(), **row}
        self.rows(table).append(stored)
        return dict(stored)

    def update(self, table, values, filters):
        self._maybe_fail("update", table)
        updated = []
        for r in self.rows(table):
            if _matches(r, filters):
                r.update(values)
                updated.append(dict(r))
        return updated

    def delete(self, table, filters):
        self._maybe_fail("delete", table)
        removed = [dict(r) for r in self.rows(table) if _matches(r, filters)]
        self.tables[table] = [r for r in self.rows(table) if not _matches(r, filters)]
        return removed

    def upsert(self, table, row, on_conflict):
        self._maybe_fail("upsert", table)
        for r in self.rows(table):
            if r.get(on_conflict) == row.get(on_conflict):
                r.update(row)
                return dict(r)
        return self.insert(table, row)

    def rpc(self, function, params=None):
        self._maybe_fail("rpc")
        self.rpc_calls.append((function, params or {}))
        return self.next_id()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    app.dependency_overrides[get_backend] = lambda: backend
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def lenient_client(backend):
    """Client that returns 500 responses instead of re-raising server errors."""
    app.dependency_overrides[get_backend] = lambda: backend
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
