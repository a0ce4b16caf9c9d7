"""
Purpose: Import/export boundary for the legacy location string.

Older records store the supplier location as one display string with an
embedded coordinate pair: "Crawford Market, Mumbai [18.9477,72.8342]".
Inside the system a Location(address, coordinate) is used instead; these two
functions are the only place the string format is known.
"""

import re
from typing import Optional

from .models import Coordinate, Location

_COORDINATE_PATTERN = re.compile(r"\[\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*\]")


def parse_location_string(raw: Optional[str]) -> Location:
    """
    Split a legacy location string into its readable prefix and coordinate.

    Strings without a bracketed pair keep their full text as the address and
    get no coordinate.
    """
    text = (raw or "").strip()
    match = _COORDINATE_PATTERN.search(text)
    if not match:
        return Location(address=text, coordinate=None)

    lat, lng = float(match.group(1)), float(match.group(2))
    address = (text[: match.start()] + text[match.end():]).strip()
    return Location(address=address, coordinate=Coordinate(lat=lat, lng=lng))


def format_location_string(location: Location) -> str:
    if location.coordinate is None:
        return location.address
    lat, lng = location.coordinate.as_tuple()
    return f"{location.address} [{lat},{lng}]".strip()
