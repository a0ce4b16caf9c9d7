#Purpose: Great-circle distance between two coordinates.
#Used for delivery-charge pricing, so it must be cheap and deterministic:
#no OSRM, no I/O. Road distance for display lives in route_service.

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from orders.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance in kilometres.

    Symmetric, and 0.0 for identical points.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # clamp: float error can push a a hair above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(origin: "Coordinate", destination: "Coordinate") -> float:
    return distance_km(origin.lat, origin.lng, destination.lat, destination.lng)
