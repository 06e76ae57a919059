import math

import pytest

from app.utils.geo import haversine_km, round_coordinate, round_coordinates


def test_haversine_zero_for_same_point():
    assert haversine_km(-23.561, -46.656, -23.561, -46.656) == 0.0


def test_haversine_known_distance():
    # São Paulo (Sé) to Rio de Janeiro (Centro), roughly 360 km
    d = haversine_km(-23.5505, -46.6333, -22.9068, -43.1729)
    assert 355 < d < 365


def test_haversine_is_symmetric():
    a = haversine_km(10.0, 20.0, -5.0, 100.0)
    b = haversine_km(-5.0, 100.0, 10.0, 20.0)
    assert a == pytest.approx(b)


def test_haversine_antipodes_do_not_raise():
    # Floating error can push the intermediate term slightly above 1
    d = haversine_km(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * 6371.0)


def test_round_coordinate_uses_configured_precision():
    assert round_coordinate(-23.56149) == -23.561
    assert round_coordinate(-46.65651) == -46.657


def test_round_coordinates_explicit_precision():
    assert round_coordinates(-23.56149, -46.65651, precision=2) == (-23.56, -46.66)
