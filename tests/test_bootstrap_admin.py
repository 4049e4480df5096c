from geoattend.core.errors import BackendError

BODY = {"username": "  RootAdmin ", "password": "secret123", "fullName": " Root Admin "}


def test_creates_developer_with_default_company_and_shift(client, backend):
    backend.rows("companies").append({"id": "company-1"})
    backend.rows("shifts").extend([
        {"id": "shift-old", "is_active": False},
        {"id": "shift-1", "is_active": True},
    ])

    resp = client.post("/functions/v1/bootstrap-admin", json=BODY)

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["user"]["username"] == "rootadmin"
    assert data["user"]["role"] == "developer"

    user_id = data["user"]["id"]
    assert backend.users[user_id]["email"] == "rootadmin@internal.local"
    assert backend.users[user_id]["user_metadata"] == {"full_name": "Root Admin"}

    role = backend.select_one("user_roles", filters=[("user_id", "eq", user_id)])
    assert role["role"] == "developer"
    profile = backend.select_one("profiles", filters=[("user_id", "eq", user_id)])
    assert profile["username"] == "rootadmin"
    assert profile["company_id"] == "company-1"
    assert profile["shift_id"] == "shift-1"
    assert profile["job_title"] == "System Administrator"
    assert profile["requires_geofence"] is False
    assert profile["employee_type"] == "office"


def test_refuses_when_privileged_user_exists(client, backend):
    backend.add_user(role="admin")

    resp = client.post("/functions/v1/bootstrap-admin", json=BODY)

    assert resp.status_code == 403
    assert resp.json()["error"] == "Admin already exists. Use the app to create more users."


def test_refuses_before_reading_body_when_developer_exists(client, backend):
    backend.add_user(role="developer")
    resp = client.post("/functions/v1/bootstrap-admin")
    assert resp.status_code == 403


def test_missing_fields(client):
    resp = client.post("/functions/v1/bootstrap-admin", json={"username": "root"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields: username, password, fullName"


def test_length_limits(client):
    resp = client.post("/functions/v1/bootstrap-admin", json={**BODY, "username": "ab"})
    assert resp.status_code == 400
    assert "Username" in resp.json()["error"]

    resp = client.post("/functions/v1/bootstrap-admin", json={**BODY, "password": "12345"})
    assert resp.status_code == 400
    assert "Password" in resp.json()["error"]

    resp = client.post("/functions/v1/bootstrap-admin", json={**BODY, "fullName": "x"})
    assert resp.status_code == 400
    assert "Name" in resp.json()["error"]


def test_reuses_existing_identity(client, backend):
    existing = backend.add_user(role="employee", email="rootadmin@internal.local")

    resp = client.post("/functions/v1/bootstrap-admin", json=BODY)

    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == existing["id"]
    role = backend.select_one("user_roles", filters=[("user_id", "eq", existing["id"])])
    assert role["role"] == "developer"
    assert len(backend.select("user_roles", filters=[("user_id", "eq", existing["id"])])) == 1


def test_other_create_errors_are_returned(client, backend):
    backend.fail["create_user"] = BackendError(400, "Password is too weak")

    resp = client.post("/functions/v1/bootstrap-admin", json=BODY)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Password is too weak"


def test_failed_admin_check(client, backend):
    backend.fail_tables[("select", "user_roles")] = BackendError(500, "db down")

    resp = client.post("/functions/v1/bootstrap-admin", json=BODY)

    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to check existing admins"


def test_profile_upsert_failure_is_not_fatal(client, backend):
    backend.fail_tables[("upsert", "profiles")] = BackendError(500, "rls")
    resp = client.post("/functions/v1/bootstrap-admin", json=BODY)
    assert resp.status_code == 200


def test_cors_headers(client):
    resp = client.options("/functions/v1/bootstrap-admin")
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "apikey" in resp.headers["access-control-allow-headers"]

    resp = client.post("/functions/v1/bootstrap-admin", json={})
    assert resp.headers["access-control-allow-origin"] == "*"


def test_invalid_json_body(client):
    resp = client.post(
        "/functions/v1/bootstrap-admin",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}


def test_numeric_fields_are_stringified(client, backend):
    resp = client.post(
        "/functions/v1/bootstrap-admin",
        json={"username": 12345678, "password": 12345678, "fullName": "Root Admin"},
    )

    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["username"] == "12345678"
    assert backend.users[user["id"]]["email"] == "12345678@internal.local"


def test_existing_admin_wins_over_malformed_body(client, backend):
    backend.add_user(role="admin")

    resp = client.post(
        "/functions/v1/bootstrap-admin",
        content=b"{bad",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 403
    assert resp.headers["access-control-allow-origin"] == "*"


def test_non_object_body(client):
    resp = client.post("/functions/v1/bootstrap-admin", json=["root", "secret123"])
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}
