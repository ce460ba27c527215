import pytest

from app.modules.location.distance import (
    calculate_distance, format_location_string, get_distance_result, is_within_radius
)
from app.modules.location.schemas import Location

pytestmark = pytest.mark.unit


def test_same_point_is_zero():
    assert calculate_distance(0, 0, 0, 0) == 0.0
    assert calculate_distance(18.5204, 73.8567, 18.5204, 73.8567) == 0.0


def test_distance_is_symmetric():
    there = calculate_distance(18.5204, 73.8567, 19.0760, 72.8777)
    back = calculate_distance(19.0760, 72.8777, 18.5204, 73.8567)
    assert there == back


def test_one_degree_of_latitude():
    assert calculate_distance(0, 0, 1, 0) == 111.2


def test_rounded_to_one_decimal():
    distance = calculate_distance(18.5204, 73.8567, 18.6298, 73.7997)
    assert distance == round(distance, 1)
    assert 10 < distance < 20


def test_distance_grows_with_separation():
    near = calculate_distance(18.5, 73.8, 18.6, 73.8)
    far = calculate_distance(18.5, 73.8, 19.5, 73.8)
    assert 0 < near < far


def test_is_within_radius_is_inclusive():
    distance = calculate_distance(0, 0, 1, 0)
    assert is_within_radius(0, 0, 1, 0, distance)
    assert not is_within_radius(0, 0, 1, 0, distance - 0.1)


def test_distance_result_in_miles():
    result = get_distance_result(0, 0, 1, 0, unit="mi")
    assert result.unit == "mi"
    assert result.distance == 69.1


def test_distance_result_defaults_to_km():
    result = get_distance_result(0, 0, 1, 0)
    assert result.unit == "km"
    assert result.distance == 111.2


@pytest.mark.parametrize("location, expected", [
    (Location(city="Pune", state="Maharashtra"), "Pune, Maharashtra"),
    (Location(city="Pune"), "Pune"),
    (Location(address="12 MG Road"), "12 MG Road"),
    (Location(), "Unknown location"),
])
def test_format_location_string(location, expected):
    assert format_location_string(location) == expected


def test_location_accepts_postal_code_aliases():
    assert Location.model_validate({"postalCode": "411001"}).zip_code == "411001"
    assert Location.model_validate({"postal_code": "411001"}).zip_code == "411001"


def test_zero_coordinates_count_as_missing():
    assert not Location(lat=0, lng=0).has_coordinates()
    assert Location(lat=18.5, lng=73.8).has_coordinates()
