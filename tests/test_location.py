from orders.location import format_location_string, parse_location_string
from orders.models import Coordinate, Location


def test_parse_extracts_coordinate_and_address():
    location = parse_location_string("Crawford Market, Mumbai [18.9477,72.8342]")
    assert location.address == "Crawford Market, Mumbai"
    assert location.coordinate == Coordinate(18.9477, 72.8342)


def test_parse_handles_negative_and_spaced_numbers():
    location = parse_location_string("Harare CBD [ -17.8248 , 31.0530 ]")
    assert location.coordinate == Coordinate(-17.8248, 31.053)
    assert location.address == "Harare CBD"


def test_parse_without_pair_keeps_text_and_no_coordinate():
    location = parse_location_string("Dadar flower market")
    assert location == Location("Dadar flower market", None)


def test_parse_empty_and_none():
    assert parse_location_string(None) == Location("", None)
    assert parse_location_string("   ") == Location("", None)


def test_parse_ignores_non_numeric_brackets():
    location = parse_location_string("Stall [north gate]")
    assert location.coordinate is None
    assert location.address == "Stall [north gate]"


def test_format_produces_legacy_string():
    location = Location("Crawford Market", Coordinate(18.9477, 72.8342))
    assert format_location_string(location) == "Crawford Market [18.9477,72.8342]"
    assert parse_location_string(format_location_string(location)) == location


def test_format_without_coordinate():
    assert format_location_string(Location("Somewhere", None)) == "Somewhere"
