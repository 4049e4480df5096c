"""Company holidays. A holiday marks every employee "holiday" in the daily monitor."""
import logging
from datetime import date
from typing import Optional

from geoattend.core.backend import BackendClient
from geoattend.core.errors import BackendError, FunctionError
from geoattend.models.leave import HOLIDAYS_TABLE
from geoattend.schemas.leave import HolidayIn, HolidayUpdate

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def list_holidays(backend: BackendClient) -> list[dict]:
    return backend.select(HOLIDAYS_TABLE, "*", order="date")


def _write_error(e: BackendError) -> FunctionError:
    if e.error_code == UNIQUE_VIOLATION:
        return FunctionError(400, "This date is already registered as a holiday")
    return FunctionError(500, e.message)


def create_holiday(backend: BackendClient, data: HolidayIn) -> dict:
    name = (data.name or "").strip()
    if not data.date or not name:
        raise FunctionError(400, "Date and name are required")

    row = {
        "date": data.date.isoformat(),
        "name": name,
        "description": (data.description or "").strip() or None,
        "end_date": data.end_date.isoformat() if data.end_date else None,
    }
    try:
        holiday = backend.insert(HOLIDAYS_TABLE, row)
    except BackendError as e:
        logger.error("Holiday insert failed for %s: %s", row["date"], e)
        raise _write_error(e)
    logger.info("Holiday %s added on %s", name, row["date"])
    return holiday


def update_holiday(backend: BackendClient, holiday_id: str, data: HolidayUpdate) -> dict:
    values = data.model_dump(exclude_unset=True)
    if "name" in values:
        values["name"] = (values["name"] or "").strip()
        if not values["name"]:
            raise FunctionError(400, "Date and name are required")
    if "date" in values:
        if not values["date"]:
            raise FunctionError(400, "Date and name are required")
        values["date"] = values["date"].isoformat()
    if "end_date" in values and values["end_date"]:
        values["end_date"] = values["end_date"].isoformat()
    if "description" in values:
        values["description"] = (values["description"] or "").strip() or None
    if not values:
        raise FunctionError(400, "Nothing to update")

    try:
        updated = backend.update(HOLIDAYS_TABLE, values, [("id", "eq", holiday_id)])
    except BackendError as e:
        logger.error("Holiday update failed for %s: %s", holiday_id, e)
        raise _write_error(e)
    if not updated:
        raise FunctionError(404, "Holiday not found")
    return updated[0]


def delete_holiday(backend: BackendClient, holiday_id: str) -> dict:
    removed = backend.delete(HOLIDAYS_TABLE, [("id", "eq", holiday_id)])
    if not removed:
        raise FunctionError(404, "Holiday not found")
    logger.info("Holiday %s deleted", holiday_id)
    return {"success": True}


def holiday_on(backend: BackendClient, day: date) -> Optional[dict]:
    """The active holiday on ``day``, if any. Lookup errors count as no holiday."""
    try:
        return backend.select_one(
            HOLIDAYS_TABLE, "id, date, name",
            [("date", "eq", day.isoformat()), ("is_active", "eq", True)],
        )
    except BackendError as e:
        logger.error("Holiday lookup failed for %s: %s", day, e)
        return None
