import re

import pytest

from app.services.area_bucketer import AreaBucketer

CELL_PATTERN = re.compile(r"^-?\d+\.\d,-?\d+\.\d$")


def test_get_cell_snaps_to_nearest_multiple():
    assert AreaBucketer.get_cell(51.49, -0.12, 0.2) == "51.4,-0.2"


def test_get_cell_strips_float_noise():
    # 257 * 0.2 is 51.400000000000006 before cleanup
    assert AreaBucketer.quantize(51.49, 0.2) == 51.4


@pytest.mark.parametrize("value", [51.49, -0.12, 0.0, 89.99, -179.91, 16.0544, 108.2208, -33.87])
def test_quantize_is_idempotent(value):
    once = AreaBucketer.quantize(value, 0.2)
    assert AreaBucketer.quantize(once, 0.2) == once


@pytest.mark.parametrize("lat,lon", [(0.05, -0.05), (-0.09, 0.09), (0.0, -0.0)])
def test_get_cell_never_emits_negative_zero(lat, lon):
    assert AreaBucketer.get_cell(lat, lon, 0.2) == "0.0,0.0"


@pytest.mark.parametrize("lat,lon", [(39.8, -98.6), (-33.87, 151.21), (16.0544, 108.2208), (89.9, 179.9)])
def test_get_cell_format(lat, lon):
    assert CELL_PATTERN.match(AreaBucketer.get_cell(lat, lon, 0.2))


def test_nearby_points_share_a_cell():
    assert AreaBucketer.get_cell(51.41, -0.19, 0.2) == AreaBucketer.get_cell(51.45, -0.21, 0.2)


def test_parse_cell_round_trip():
    assert AreaBucketer.parse_cell("51.4,-0.2") == (51.4, -0.2)


@pytest.mark.parametrize("bad", ["", "51.4", "51.4,-0.2,3", "north,west", "nan,1.0"])
def test_parse_cell_rejects_bad(bad):
    assert AreaBucketer.parse_cell(bad) is None


@pytest.mark.parametrize("lat,lon,expected", [
    # Browser Math.round results for the same inputs
    (0.9, 0.5, "1.0,0.6"),
    (0.1, 2.5, "0.2,2.6"),
    (-0.1, -0.3, "0.0,-0.2"),
])
def test_exact_halves_round_up_like_the_browser(lat, lon, expected):
    assert AreaBucketer.get_cell(lat, lon, 0.2) == expected


@pytest.mark.parametrize("quotient,expected", [(2.5, 3), (-0.5, 0), (-2.5, -2), (1.49, 1), (-1.51, -2), (4.0, 4)])
def test_round_half_up(quotient, expected):
    assert AreaBucketer.round_half_up(quotient) == expected
