import math
import random

import pytest

from orders.models import Coordinate
from routing.distance import EARTH_RADIUS_KM, distance_between, distance_km


def test_identical_points_are_zero():
    assert distance_km(18.9477, 72.8342, 18.9477, 72.8342) == pytest.approx(0.0, abs=1e-9)


def test_distance_is_symmetric():
    random.seed(7)
    for _ in range(50):
        a = (random.uniform(-90, 90), random.uniform(-180, 180))
        b = (random.uniform(-90, 90), random.uniform(-180, 180))
        assert distance_km(*a, *b) == pytest.approx(distance_km(*b, *a), abs=1e-9)


def test_one_degree_of_latitude():
    # 2 * pi * R / 360
    assert distance_km(0, 0, 1, 0) == pytest.approx(2 * math.pi * EARTH_RADIUS_KM / 360, rel=1e-9)


def test_mumbai_to_pune():
    km = distance_km(19.0760, 72.8777, 18.5204, 73.8567)
    assert 115 < km < 125


def test_antipodal_points_do_not_blow_up():
    assert distance_km(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)


def test_distance_between_coordinates():
    a, b = Coordinate(18.9477, 72.8342), Coordinate(19.0760, 72.8777)
    assert distance_between(a, b) == distance_km(a.lat, a.lng, b.lat, b.lng)
