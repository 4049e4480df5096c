"""Bulk employee import from a CSV or Excel sheet.

Expected columns (``*`` required)::

    full_name*, email*, password*, job_title, department, shift, role

Each row goes through the regular create-user operation, so the same role
rules apply: admins may only import employees, developers may also import
admins.
"""
import io
import logging
from typing import Optional

import pandas as pd

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError, FunctionError
from geoattend.models.user import AppRole, SHIFTS_TABLE
from geoattend.schemas.account import CreateUserRequest, ImportRowResult
from geoattend.services.accounts import create_user

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["full_name", "email", "password"]
OPTIONAL_COLUMNS = ["job_title", "department", "shift", "role"]
MIN_PASSWORD_LENGTH = 6
DATA_SHEET = "Data Karyawan"
INSTRUCTION_SHEETS = ("Petunjuk", "Instructions")


def _pick_sheet(sheets: dict) -> pd.DataFrame:
    """The template's data sheet, else the first sheet that is not instructions."""
    if DATA_SHEET in sheets:
        return sheets[DATA_SHEET]
    for name, df in sheets.items():
        if name not in INSTRUCTION_SHEETS:
            return df
    return next(iter(sheets.values()))


def read_sheet(filename: str, content: bytes) -> pd.DataFrame:
    """Load the upload into a DataFrame with normalized column names.

    Blank cells come back as None, never NaN.
    """
    name = (filename or "").lower()
    try:
        if name.endswith(".csv"):
            df = pd.read_csv(io.BytesIO(content), dtype=str)
        elif name.endswith((".xlsx", ".xls")):
            df = _pick_sheet(pd.read_excel(io.BytesIO(content), sheet_name=None, dtype=str))
        else:
            raise FunctionError(400, "Unsupported file type. Upload .csv or .xlsx")
    except FunctionError:
        raise
    except pd.errors.EmptyDataError:
        raise FunctionError(400, "File contains no data")
    except Exception as e:
        logger.error("Failed to parse import file %s: %s", filename, e)
        raise FunctionError(400, f"Could not read file: {e}")

    if df.empty:
        raise FunctionError(400, "File contains no data")

    # "full_name*" header from the template -> "full_name"
    df.columns = [str(c).strip().lower().replace("*", "").strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise FunctionError(400, f"Missing columns: {', '.join(missing)}")
    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = None
    # string dtype keeps NaN under where(); object columns take None
    df = df.astype(object)
    return df.where(df.notna(), None)


def find_shift_id(shifts: list[dict], shift_name: Optional[str]) -> Optional[str]:
    """Match a shift by case-insensitive containment in either direction."""
    if not shift_name:
        return None
    wanted = shift_name.lower().strip()
    for s in shifts:
        name = (s.get("name") or "").lower()
        if wanted in name or name in wanted:
            return s["id"]
    return None


def _cell(row, column: str) -> str:
    value = row.get(column)
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def import_employees(backend: BackendClient, requesting_user_id: str, requesting_role: str,
                     filename: str, content: bytes) -> dict:
    df = read_sheet(filename, content)
    try:
        shifts = backend.select(SHIFTS_TABLE, "id, name", [("is_active", "eq", True)])
    except BackendError as e:
        logger.error("Shift lookup failed: %s", e)
        shifts = []

    results: list[ImportRowResult] = []
    # Row numbers as the user sees them in the sheet (header is row 1)
    for offset, row in enumerate(df.to_dict("records")):
        row_number = offset + 2
        full_name = _cell(row, "full_name")
        email = _cell(row, "email")
        password = _cell(row, "password")

        def fail(message: str):
            results.append(ImportRowResult(row=row_number, name=full_name, email=email,
                                           status="error", message=message))

        if not full_name or not email or not password:
            fail("Name, email and password are required")
            continue
        if len(password) < MIN_PASSWORD_LENGTH:
            fail(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
            continue

        role = _cell(row, "role").lower() or AppRole.EMPLOYEE.value
        if role == AppRole.ADMIN.value and requesting_role != AppRole.DEVELOPER.value:
            fail("Admins can only import employees")
            continue
        if role not in (AppRole.ADMIN.value, AppRole.EMPLOYEE.value):
            fail("Role must be employee or admin")
            continue

        request = CreateUserRequest(
            email=email,
            password=password,
            full_name=full_name,
            role=role,
            job_title=_cell(row, "job_title") or None,
            department=_cell(row, "department") or None,
            shift_id=find_shift_id(shifts, _cell(row, "shift")),
        )
        try:
            create_user(backend, requesting_user_id, requesting_role, request)
        except FunctionError as e:
            fail(e.message)
            continue
        results.append(ImportRowResult(row=row_number, name=full_name, email=email,
                                       status="success", message="Created"))

    succeeded = sum(1 for r in results if r.status == "success")
    logger.info("Employee import by %s: %d ok, %d failed", requesting_user_id, succeeded, len(results) - succeeded)
    return {
        "total": len(results),
        "success": succeeded,
        "failed": len(results) - succeeded,
        "results": [r.model_dump() for r in results],
    }
