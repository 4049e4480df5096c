import io

import pandas as pd
import pytest
from conftest import auth

from geoattend.core.errors import FunctionError
from geoattend.services.employee_import import find_shift_id, read_sheet

URL = "/api/admin/employees/import"

CSV = (
    "full_name*,email*,password*,job_title,department,shift,role\n"
    "Ana Putri,ana@example.com,secret1,Driver,Logistics,Morning,employee\n"
    "Budi,budi@example.com,123,,,,\n"
    ",nobody@example.com,secret1,,,,\n"
    "Citra,citra@example.com,secret1,,,,admin\n"
)


def upload(client, token, content, filename="employees.csv"):
    return client.post(URL, files={"file": (filename, content)}, headers=auth(token))


@pytest.fixture
def admin(backend):
    backend.rows("shifts").append({"id": "shift-1", "name": "Morning Shift", "is_active": True})
    return backend.add_user(role="admin", token="adm", company_id="company-1")


def test_import_reports_each_row(client, backend, admin):
    resp = upload(client, "adm", CSV.encode())

    assert resp.status_code == 200
    data = resp.json()
    assert (data["total"], data["success"], data["failed"]) == (4, 1, 3)
    by_row = {r["row"]: r for r in data["results"]}
    assert by_row[2]["status"] == "success"
    assert by_row[3]["message"] == "Password must be at least 6 characters"
    assert by_row[4]["message"] == "Name, email and password are required"
    assert by_row[5]["message"] == "Admins can only import employees"

    created = backend.find_user_by_email("ana@example.com")
    profile = backend.select_one("profiles", filters=[("user_id", "eq", created["id"])])
    assert profile["shift_id"] == "shift-1"
    assert profile["department"] == "Logistics"
    assert profile["company_id"] == "company-1"


def test_developer_may_import_admins(client, backend):
    backend.add_user(role="developer", token="dev")
    content = b"full_name,email,password,role\nCitra,citra@example.com,secret1,Admin\n"

    data = upload(client, "dev", content).json()

    assert data["success"] == 1
    user = backend.find_user_by_email("citra@example.com")
    assert backend.select_one("user_roles", filters=[("user_id", "eq", user["id"])])["role"] == "admin"


def test_duplicate_email_is_row_error(client, backend, admin):
    backend.add_user(email="ana@example.com")
    content = b"full_name,email,password\nAna,ana@example.com,secret1\n"

    result = upload(client, "adm", content).json()["results"][0]

    assert result["status"] == "error"
    assert "already been registered" in result["message"]


def test_xlsx_upload(client, backend, admin):
    buf = io.BytesIO()
    pd.DataFrame([{"full_name": "Dewi", "email": "dewi@example.com", "password": "secret1"}]).to_excel(
        buf, index=False,
    )

    data = upload(client, "adm", buf.getvalue(), filename="employees.xlsx").json()

    assert data["success"] == 1


def test_employee_cannot_import(client, backend):
    backend.add_user(role="employee", token="emp")
    assert upload(client, "emp", CSV.encode()).status_code == 403


def test_missing_columns():
    with pytest.raises(FunctionError) as exc:
        read_sheet("x.csv", b"name,email\nA,a@b.com\n")
    assert exc.value.status_code == 400
    assert "full_name" in exc.value.message
    assert "password" in exc.value.message


def test_unsupported_file_type():
    with pytest.raises(FunctionError) as exc:
        read_sheet("x.txt", b"anything")
    assert exc.value.status_code == 400


@pytest.mark.parametrize("name, expected", [
    ("morning", "s1"),
    ("Night Shift Long", "s2"),
    ("weekend", None),
    ("", None),
])
def test_find_shift_id(name, expected):
    shifts = [{"id": "s1", "name": "Morning Shift"}, {"id": "s2", "name": "Night Shift"}]
    assert find_shift_id(shifts, name) == expected


def test_blank_optional_cells_are_empty(client, backend, admin):
    content = b"full_name,email,password,job_title,department,shift,role\nAna,ana@example.com,secret1,,,,\n"

    data = upload(client, "adm", content).json()

    assert data["success"] == 1
    user = backend.find_user_by_email("ana@example.com")
    profile = backend.select_one("profiles", filters=[("user_id", "eq", user["id"])])
    assert "job_title" not in profile
    assert "department" not in profile
    assert backend.select_one("user_roles", filters=[("user_id", "eq", user["id"])])["role"] == "employee"


def test_read_sheet_blank_cells_are_none():
    df = read_sheet("x.csv", b"full_name,email,password,role\nAna,ana@example.com,secret1,\n")
    assert df.iloc[0]["role"] is None
    assert df.iloc[0]["shift"] is None


def _workbook(sheets):
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()


def test_xlsx_skips_instruction_sheet():
    content = _workbook({
        "Instructions": [{"Step": "Fill in the employee sheet"}],
        "Employees": [{"full_name*": "Dewi", "email*": "dewi@example.com", "password*": "secret1"}],
    })

    df = read_sheet("employees.xlsx", content)

    assert list(df["email"]) == ["dewi@example.com"]


def test_xlsx_prefers_named_data_sheet():
    content = _workbook({
        "Petunjuk": [{"Langkah": "Isi sheet data"}],
        "Contoh": [{"full_name": "Sample", "email": "sample@example.com", "password": "secret1"}],
        "Data Karyawan": [{"full_name": "Eka", "email": "eka@example.com", "password": "secret1"}],
    })

    df = read_sheet("employees.xlsx", content)

    assert list(df["full_name"]) == ["Eka"]


@pytest.mark.parametrize("filename, content", [
    ("x.csv", b""),
    ("x.csv", b"full_name,email,password\n"),
])
def test_empty_file(filename, content):
    with pytest.raises(FunctionError) as exc:
        read_sheet(filename, content)
    assert exc.value.status_code == 400
    assert exc.value.message == "File contains no data"
