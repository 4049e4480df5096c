"""Company settings: office geofence (enforced by clock-attendance) and work start time."""
import logging
from datetime import datetime

from geoattend.core.backend import BackendClient
from geoattend.core.errors import FunctionError
from geoattend.models.user import COMPANIES_TABLE
from geoattend.schemas.company import CompanySettingsUpdate

logger = logging.getLogger(__name__)


def get_company(backend: BackendClient) -> dict:
    company = backend.select_one(COMPANIES_TABLE, "*")
    if not company:
        raise FunctionError(404, "Company not found")
    return company


def _normalize_time(value: str) -> str:
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value.strip(), fmt).strftime("%H:%M:%S")
        except ValueError:
            continue
    raise FunctionError(400, "work_start_time must be HH:MM")


def update_company(backend: BackendClient, data: CompanySettingsUpdate) -> dict:
    company = get_company(backend)
    values = data.model_dump(exclude_unset=True)

    if "name" in values:
        values["name"] = (values["name"] or "").strip()
        if not values["name"]:
            raise FunctionError(400, "Company name is required")
    lat, lng = values.get("office_latitude"), values.get("office_longitude")
    if lat is not None and not -90 <= lat <= 90:
        raise FunctionError(400, "office_latitude must be between -90 and 90")
    if lng is not None and not -180 <= lng <= 180:
        raise FunctionError(400, "office_longitude must be between -180 and 180")
    if "radius_meters" in values and (values["radius_meters"] is None or values["radius_meters"] <= 0):
        raise FunctionError(400, "radius_meters must be greater than 0")
    if values.get("work_start_time"):
        values["work_start_time"] = _normalize_time(values["work_start_time"])
    if not values:
        return company

    updated = backend.update(COMPANIES_TABLE, values, [("id", "eq", company["id"])])
    logger.info("Company %s settings updated: %s", company["id"], sorted(values))
    return updated[0] if updated else {**company, **values}
