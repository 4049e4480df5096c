from datetime import datetime, timedelta

import pytest
import pytz
from conftest import auth

from geoattend.core.errors import BackendError

OFFICE_LAT, OFFICE_LNG = -6.2, 106.816666
METERS_PER_DEGREE_LAT = 111194.93

URL = "/functions/v1/clock-attendance"


def body(record_type="clock_in", meters_north=0.0, accuracy=10.0, **overrides):
    data = {
        "record_type": record_type,
        "latitude": OFFICE_LAT + meters_north / METERS_PER_DEGREE_LAT,
        "longitude": OFFICE_LNG,
        "accuracy_meters": accuracy,
        "photo_url": "https://storage.example.com/attendance-photos/p.jpg",
    }
    data.update(overrides)
    return data


@pytest.fixture
def employee(backend):
    backend.rows("companies").append({
        "id": "company-1",
        "office_latitude": OFFICE_LAT,
        "office_longitude": OFFICE_LNG,
        "radius_meters": 100,
    })
    return backend.add_user(role="employee", token="emp", company_id="company-1", requires_geofence=True)


def test_clock_in_records_server_timestamp(client, backend, employee):
    before = datetime.now(pytz.utc)
    resp = client.post(URL, json=body(), headers={**auth("emp"), "User-Agent": "pytest"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Clocked in!"

    record = backend.rows("attendance_records")[0]
    assert record["user_id"] == employee["id"]
    assert record["record_type"] == "clock_in"
    assert record["notes"] is None
    recorded = datetime.fromisoformat(record["recorded_at"])
    assert before - timedelta(seconds=1) <= recorded <= datetime.now(pytz.utc) + timedelta(seconds=1)


def test_clock_in_logs_audit_event(client, backend, employee):
    client.post(URL, json=body(), headers={**auth("emp"), "X-Forwarded-For": "10.0.0.7"})

    function, params = backend.rpc_calls[0]
    assert function == "log_audit_event"
    assert params["p_action"] == "clock_in"
    assert params["p_user_role"] == "employee"
    assert params["p_ip_address"] == "10.0.0.7"
    assert params["p_details"]["suspected_mock"] is False
    assert params["p_details"]["distance_to_office"] == pytest.approx(0, abs=1)


def test_audit_failure_does_not_fail_clock(client, backend, employee):
    backend.fail["rpc"] = BackendError(500, "rpc missing")
    resp = client.post(URL, json=body(), headers=auth("emp"))
    assert resp.status_code == 200


def test_double_clock_in_rejected(client, backend, employee):
    assert client.post(URL, json=body(), headers=auth("emp")).status_code == 200

    resp = client.post(URL, json=body(), headers=auth("emp"))

    assert resp.status_code == 400
    assert resp.json()["code"] == "ALREADY_CLOCKED_IN"
    assert len(backend.rows("attendance_records")) == 1


def test_clock_out_requires_clock_in(client, employee):
    resp = client.post(URL, json=body("clock_out"), headers=auth("emp"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "NOT_CLOCKED_IN"


def test_clock_in_then_out_then_in_again(client, employee):
    assert client.post(URL, json=body("clock_in"), headers=auth("emp")).status_code == 200
    resp = client.post(URL, json=body("clock_out"), headers=auth("emp"))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Clocked out!"
    assert client.post(URL, json=body("clock_in"), headers=auth("emp")).status_code == 200


def test_yesterdays_clock_in_does_not_count(client, backend, employee):
    yesterday = datetime.now(pytz.utc) - timedelta(days=2)
    backend.rows("attendance_records").append({
        "id": "old", "user_id": employee["id"], "record_type": "clock_in",
        "recorded_at": yesterday.isoformat(), "latitude": OFFICE_LAT, "longitude": OFFICE_LNG,
    })
    resp = client.post(URL, json=body("clock_out"), headers=auth("emp"))
    assert resp.json()["code"] == "NOT_CLOCKED_IN"


def test_low_accuracy_rejected(client, employee):
    resp = client.post(URL, json=body(accuracy=150), headers=auth("emp"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "LOW_ACCURACY"


def test_outside_geofence(client, backend, employee):
    resp = client.post(URL, json=body(meters_north=500), headers=auth("emp"))

    assert resp.status_code == 400
    data = resp.json()
    assert data["code"] == "OUTSIDE_GEOFENCE"
    assert data["distance"] == pytest.approx(500, abs=2)
    assert data["max_distance"] == 100
    assert backend.rows("attendance_records") == []


def test_geofence_skipped_when_not_required(client, backend):
    backend.add_user(role="employee", token="field", requires_geofence=False)
    resp = client.post(URL, json=body(meters_north=5000), headers=auth("field"))
    assert resp.status_code == 200


def test_precise_fix_on_fence_edge_is_flagged(client, backend, employee):
    resp = client.post(URL, json=body(meters_north=95, accuracy=3), headers=auth("emp"))

    assert resp.status_code == 200
    assert backend.rows("attendance_records")[0]["notes"] == "suspected_mock_location"


@pytest.mark.parametrize("overrides, code", [
    ({"record_type": "lunch"}, "INVALID_TYPE"),
    ({"record_type": "break_in"}, "INVALID_TYPE"),
    ({"latitude": None}, "INVALID_COORDS"),
    ({"photo_url": ""}, "NO_PHOTO"),
    ({"record_type": 1}, "INVALID_TYPE"),
    ({"latitude": "abc"}, "INVALID_COORDS"),
    ({"latitude": "-6.2"}, "INVALID_COORDS"),
    ({"longitude": True}, "INVALID_COORDS"),
    ({"photo_url": 42}, "NO_PHOTO"),
])
def test_invalid_requests(client, employee, overrides, code):
    resp = client.post(URL, json=body(**overrides), headers=auth("emp"))
    assert resp.status_code == 400
    assert resp.json()["code"] == code


def test_missing_profile(client, backend):
    user = backend.add_user(token="ghost")
    backend.tables["profiles"] = [p for p in backend.rows("profiles") if p["user_id"] != user["id"]]
    resp = client.post(URL, json=body(), headers=auth("ghost"))
    assert resp.status_code == 404
    assert resp.json()["code"] == "NO_PROFILE"


def test_insert_failure(client, backend, employee):
    backend.fail["insert"] = BackendError(500, "rls violation")
    resp = client.post(URL, json=body(), headers=auth("emp"))
    assert resp.status_code == 500
    assert resp.json()["code"] == "INSERT_FAILED"


def test_unauthenticated(client):
    resp = client.post(URL, json=body())
    assert resp.status_code == 401
    assert resp.json()["code"] == "NO_AUTH"
    assert resp.json()["error"] == "Unauthorized"
    assert resp.headers["access-control-allow-origin"] == "*"


def test_status_endpoint(client, employee):
    assert client.get("/api/attendance/status", headers=auth("emp")).json() == {"status": "not_clocked_in"}
    client.post(URL, json=body(), headers=auth("emp"))
    assert client.get("/api/attendance/status", headers=auth("emp")).json()["status"] == "clocked_in"


def test_integer_coordinates_are_accepted(client, backend):
    backend.add_user(token="field", requires_geofence=False)
    resp = client.post(URL, json=body(latitude=-6, longitude=107), headers=auth("field"))
    assert resp.status_code == 200


def test_unexpected_error_keeps_cors_and_code(lenient_client, backend, employee):
    backend.fail["insert"] = RuntimeError("connection pool exhausted")

    resp = lenient_client.post(URL, json=body(), headers=auth("emp"))

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}
    assert resp.headers["access-control-allow-origin"] == "*"
