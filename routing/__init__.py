#Marks routing as a package.
#Re-exports the public APIs (distance_km, OSRMClient, route_polyline)
#so other modules import from routing without knowing internal file names.
#No business logic.

from .distance import distance_km, distance_between
from .osrm_client import OSRMClient, OSRMError
from .route_service import route_polyline, straight_line

__all__ = [
    "distance_km",
    "distance_between",
    "OSRMClient",
    "OSRMError",
    "route_polyline",
    "straight_line",
]
