# tienda/utils/geo.py

import logging
import math
from typing import Optional

from domain.models import GeoPoint

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371

# Where the courier leaves from
STORE_ORIGIN = GeoPoint(lat=-11.993006368779662, lng=-77.04907178878786)
# Lima centre, used when the device location is unknown
DEFAULT_ORIGIN = GeoPoint(lat=-12.0892609, lng=-77.0248411)

# Streets don't run in straight lines
ROAD_FACTOR = 1.3


def haversine_km(origin: GeoPoint, destination: GeoPoint) -> float:
    """
    Great-circle distance between two points in kilometers.
    NaN coordinates give NaN; check with `is_valid_point` first.
    """
    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat))
        * math.cos(math.radians(destination.lat))
        * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_route_km(
        destination: GeoPoint,
        origin: GeoPoint = STORE_ORIGIN,
        road_factor: float = ROAD_FACTOR,
) -> float:
    """Approximate the courier's route length from the straight line."""
    return haversine_km(origin, destination) * road_factor


def is_valid_point(point: Optional[GeoPoint]) -> bool:
    """
    A pin is usable when both coordinates are finite numbers within range.
    (0, 0) is how an unset pin is stored, so it is rejected too.
    """
    if point is None:
        return False
    try:
        lat = float(point.lat)
        lng = float(point.lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng) or math.isinf(lat) or math.isinf(lng):
        return False
    if lat == 0 and lng == 0:
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def resolve_origin(device_position: Optional[GeoPoint]) -> GeoPoint:
    """
    Use the device position when geolocation worked, otherwise fall back
    to the default origin and keep going.
    """
    if is_valid_point(device_position):
        return device_position
    logger.warning(
        "Geolocation unavailable, using default origin (%s, %s)",
        DEFAULT_ORIGIN.lat,
        DEFAULT_ORIGIN.lng,
    )
    return DEFAULT_ORIGIN


def origin_notice(origin: GeoPoint) -> Optional[str]:
    """Message for the customer when the map starts from the default origin."""
    if origin == DEFAULT_ORIGIN:
        return "No pudimos obtener tu ubicación. El mapa parte del centro de Lima, ajusta las coordenadas de tu dirección."
    return None
