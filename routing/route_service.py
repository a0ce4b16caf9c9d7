#Purpose: Route computation for downstream use (map display between a
#supplier and a vendor).
#Uses OSRM /route when it is reachable. When it is not, the caller still gets
#a straight two-point line, so this module never raises.

import logging
from typing import List, Optional

import requests

from .osrm_client import LatLng, OSRMClient, OSRMError

logger = logging.getLogger(__name__)


def straight_line(origin: LatLng, destination: LatLng) -> List[LatLng]:
    return [tuple(origin), tuple(destination)]


def default_client() -> Optional[OSRMClient]:
    """
    OSRMClient built from the environment, or None when OSRM_BASE_URL is unset.
    """
    try:
        return OSRMClient()
    except ValueError:
        return None


def route_polyline(
    origin: LatLng,
    destination: LatLng,
    osrm: Optional[OSRMClient] = None,
) -> List[LatLng]:
    """
    Ordered list of (lat, lng) approximating the driving route.

    Falls back to [origin, destination] when OSRM is not configured,
    unreachable, refuses to route, or returns something unexpected.
    """
    osrm = osrm if osrm is not None else default_client()
    if osrm is None:
        return straight_line(origin, destination)

    try:
        points = osrm.compute_route_geometry(origin, destination)
    except (requests.RequestException, OSRMError, ValueError, KeyError, IndexError, TypeError) as exc:
        logger.warning("Routing unavailable, using straight line: %s", exc)
        return straight_line(origin, destination)

    if len(points) < 2:
        return straight_line(origin, destination)
    return points
