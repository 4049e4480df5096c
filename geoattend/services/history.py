"""Attendance history queries, daily roll-up and spreadsheet export."""
import io
import logging
from datetime import date, timedelta
from typing import Optional

import pandas as pd

from geoattend.core.backend import BackendClient
from geoattend.core.config import settings
from geoattend.core.timeutil import day_bounds, local_today, to_local
from geoattend.models.attendance import ATTENDANCE_TABLE, RecordType
from geoattend.models.user import LOCATIONS_TABLE, PROFILES_TABLE
from geoattend.schemas.attendance import DailyAttendance

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ("date", "Date"),
    ("name", "Name"),
    ("clock_in_time", "Clock In"),
    ("clock_in_photo", "Clock In Photo"),
    ("clock_in_location", "Clock In Location"),
    ("clock_out_time", "Clock Out"),
    ("clock_out_photo", "Clock Out Photo"),
    ("clock_out_location", "Clock Out Location"),
]


def resolve_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    """Fill in a missing range end; default is the last HISTORY_DEFAULT_DAYS days."""
    end = end or local_today()
    start = start or end - timedelta(days=settings.HISTORY_DEFAULT_DAYS - 1)
    if start > end:
        start, end = end, start
    return start, end


def fetch_records(backend: BackendClient, start: date, end: date, user_id: Optional[str] = None) -> list[dict]:
    """Records with ``recorded_at`` inside the local days ``start``..``end``, newest first."""
    start_ts, end_ts = day_bounds(start, end)
    filters = [("recorded_at", "gte", start_ts), ("recorded_at", "lte", end_ts)]
    if user_id:
        filters.insert(0, ("user_id", "eq", user_id))
    return backend.select(ATTENDANCE_TABLE, "*", filters, order="recorded_at", desc=True)


def attach_profiles(backend: BackendClient, records: list[dict]) -> list[dict]:
    """Add ``profile: {full_name, email}`` to each record (None when unknown)."""
    user_ids = sorted({r["user_id"] for r in records})
    profiles = {}
    if user_ids:
        rows = backend.select(PROFILES_TABLE, "user_id, full_name, email", [("user_id", "in", user_ids)])
        profiles = {p["user_id"]: {"full_name": p.get("full_name"), "email": p.get("email")} for p in rows}
    return [{**r, "profile": profiles.get(r["user_id"])} for r in records]


def search(records: list[dict], term: Optional[str]) -> list[dict]:
    if not term:
        return records
    term = term.lower()
    result = []
    for r in records:
        profile = r.get("profile") or {}
        if term in (profile.get("full_name") or "").lower() or term in (profile.get("email") or "").lower():
            result.append(r)
    return result


def _location(record: dict) -> str:
    return f"{float(record['latitude']):.6f},{float(record['longitude']):.6f}"


def to_daily(records: list[dict]) -> list[DailyAttendance]:
    """Collapse records into one row per (local day, user).

    The earliest clock-in and the latest clock-out of the day win. Break
    records are not part of the roll-up. Sorted by date desc, then name.
    """
    days: dict[tuple, DailyAttendance] = {}
    for record in sorted(records, key=lambda r: r["recorded_at"]):
        record_type = record.get("record_type")
        if record_type not in (RecordType.CLOCK_IN.value, RecordType.CLOCK_OUT.value):
            continue

        local = to_local(record["recorded_at"])
        key = (local.date().isoformat(), record["user_id"])
        profile = record.get("profile") or {}
        entry = days.get(key)
        if entry is None:
            entry = DailyAttendance(
                date=key[0],
                user_id=record["user_id"],
                name=profile.get("full_name") or "Unknown",
                email=profile.get("email") or "",
            )
            days[key] = entry

        time_str = local.strftime("%H:%M:%S")
        if record_type == RecordType.CLOCK_IN.value:
            if entry.clock_in_time is None:
                entry.clock_in_time = time_str
                entry.clock_in_photo = record.get("photo_url") or ""
                entry.clock_in_location = _location(record)
        else:
            entry.clock_out_time = time_str
            entry.clock_out_photo = record.get("photo_url") or ""
            entry.clock_out_location = _location(record)

    rows = sorted(days.values(), key=lambda d: d.name)
    rows.sort(key=lambda d: d.date, reverse=True)
    return rows


def group_by_date(records: list[dict]) -> dict[str, list[dict]]:
    """Records keyed by local date (YYYY-MM-DD), keeping input order."""
    grouped: dict[str, list[dict]] = {}
    for record in records:
        key = to_local(record["recorded_at"]).date().isoformat()
        grouped.setdefault(key, []).append(record)
    return grouped


def export_xlsx(daily: list[DailyAttendance]) -> bytes:
    """Render the daily roll-up as an .xlsx workbook."""
    data = [
        {label: (getattr(row, field) or "-") for field, label in EXPORT_COLUMNS}
        for row in daily
    ]
    df = pd.DataFrame(data, columns=[label for _, label in EXPORT_COLUMNS])
    if not df.empty:
        df["Date"] = pd.to_datetime(df["Date"]).dt.strftime("%d-%m-%Y")

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
        sheet = writer.sheets["Attendance"]
        for idx, (_, label) in enumerate(EXPORT_COLUMNS):
            width = 50 if "Photo" in label else 25 if "Location" in label or label == "Name" else 12
            sheet.column_dimensions[chr(ord("A") + idx)].width = width
    return buf.getvalue()


def admin_stats(backend: BackendClient) -> dict:
    start_ts, _ = day_bounds(local_today())
    return {
        "total_employees": backend.count(PROFILES_TABLE),
        "today_records": backend.count(ATTENDANCE_TABLE, [("recorded_at", "gte", start_ts)]),
        "total_locations": backend.count(LOCATIONS_TABLE, [("is_active", "eq", True)]),
    }
