#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route)
#timeouts and error handling
#parsing response JSON into our internal (lat, lng) shape
#It should not contain pricing or fallback rules (see route_service.py).


from dotenv import load_dotenv
import logging
import os
from typing import List, Tuple, Dict, Any
import requests

# Read OSRM base URL from environment
# Example in .env:
# OSRM_BASE_URL=http://router.project-osrm.org
load_dotenv()
BASE_URL = os.getenv("OSRM_BASE_URL")

logger = logging.getLogger(__name__)

# Internal coordinate type: (lat, lng)
LatLng = Tuple[float, float]


class OSRMError(Exception):
    """Raised when OSRM answers but cannot route (code != "Ok")."""
    pass


class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lng) -> OSRM (lng,lat)
    - Return normalized outputs

    """
    def __init__(self, profile: str = "driving", timeout: int = 5, base_url: str = None):
        self.base_url = base_url or BASE_URL
        self.timeout = timeout #seconds to wait for OSRM before giving up
        self.profile = profile #driving, walking, cycling

        if not self.base_url:
            raise ValueError("OSRM base URL not set. Please set OSRM_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def format_coordinates(self, coords: List[LatLng]) -> str:
        """Convert list of (lat, lng) to OSRM format 'lng,lat;lng,lat;...'"""
        return ';'.join([f"{lng},{lat}" for lat, lng in coords])

    def _get_route(self, coordinates: List[LatLng], params: Dict[str, Any]) -> Dict[str, Any]:
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"
        response = requests.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        if data.get("code") != "Ok":
            raise OSRMError(f"OSRM error: {data.get('message', 'Unknown error')}")

        #take the first route (OSRM may return alternatives)
        return data["routes"][0]

    #----------------
    # Public methods
    #----------------
    def compute_route(self, coordinates: List[LatLng]) -> Dict[str, float]:
        """
        Calls the OSRM /route endpoint and returns distance and duration.

        Returns:
            {
                "distance": float, # in meters
                "duration": float, # in seconds
            }
        """
        route = self._get_route(coordinates, {"overview": "false"})
        return {
            "distance": route["distance"],
            "duration": route["duration"],
        }

    def compute_route_geometry(self, origin: LatLng, destination: LatLng) -> List[LatLng]:
        """
        Driving polyline from origin to destination as an ordered list of (lat, lng).
        """
        route = self._get_route(
            [origin, destination],
            {"overview": "full", "geometries": "geojson"},
        )
        #GeoJSON LineString coordinates come back as [lng, lat]
        points = route["geometry"]["coordinates"]
        logger.debug("OSRM route with %d points", len(points))
        return [(float(lat), float(lng)) for lng, lat in points]
