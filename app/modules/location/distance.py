"""Great-circle distance helpers."""
import math
from typing import Literal

from app.modules.location.schemas import DistanceResult, Location

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


def _round_one(value: float) -> float:
    # Half-up rounding to one decimal place (round() would use banker's rounding)
    return math.floor(value * 10 + 0.5) / 10


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance between two coordinates in kilometers,
    rounded to one decimal place.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return _round_one(EARTH_RADIUS_KM * c)


def is_within_radius(
    user_lat: float,
    user_lng: float,
    target_lat: float,
    target_lng: float,
    radius_km: float,
) -> bool:
    return calculate_distance(user_lat, user_lng, target_lat, target_lng) <= radius_km


def get_distance_result(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    unit: Literal["km", "mi"] = "km",
) -> DistanceResult:
    distance_km = calculate_distance(lat1, lng1, lat2, lng2)
    distance = distance_km * KM_TO_MILES if unit == "mi" else distance_km
    return DistanceResult(distance=_round_one(distance), unit=unit)


def format_location_string(location: Location) -> str:
    parts = [p for p in (location.city, location.state) if p]
    return ", ".join(parts) or location.address or "Unknown location"
