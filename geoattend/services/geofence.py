"""Geofence math for server-side location checks."""
import math
from typing import Optional

EARTH_RADIUS_METERS = 6371000


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate distance in meters between two GPS coordinates."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def office_distance(latitude: float, longitude: float, company: Optional[dict]) -> Optional[float]:
    """Distance to the company office, or None when the office has no coordinates."""
    if not company:
        return None
    office_lat = company.get("office_latitude")
    office_lng = company.get("office_longitude")
    if office_lat is None or office_lng is None:
        return None
    return haversine_distance(latitude, longitude, float(office_lat), float(office_lng))


def looks_mocked(accuracy_meters: Optional[float], distance: float, radius: float,
                 max_accuracy: float = 5.0, edge_meters: float = 10.0) -> bool:
    # Very precise fix sitting right on the fence edge
    if accuracy_meters is None:
        return False
    return accuracy_meters < max_accuracy and abs(distance - radius) < edge_meters
