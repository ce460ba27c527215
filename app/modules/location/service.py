"""Address geocoding and IP-based location lookup."""
import ipaddress
import logging
import time
from typing import Dict, Optional, Tuple

import requests

from app.config import settings
from app.modules.location.schemas import Location

logger = logging.getLogger(__name__)

# query -> (expires_at, Location or None); failed lookups are cached too so a bad
# city name does not hit the geocoder once per provider
_GEOCODE_CACHE: Dict[str, Tuple[float, Optional[Location]]] = {}
_GEOCODE_CACHE_MAX_SIZE = 1000


def clear_geocode_cache() -> None:
    _GEOCODE_CACHE.clear()


class Geocoder:
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        country: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url or settings.geocoding_url
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.country = country if country is not None else settings.geocoding_country
        self.timeout = timeout or settings.geocoding_timeout_seconds
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.geocoding_cache_ttl_seconds
        self.session = session or requests.Session()

    def build_address_query(self, location: Optional[Location]) -> Optional[str]:
        """Zip code wins over city; state may be empty."""
        if location is None:
            return None
        place = location.zip_code or location.city
        if not place:
            return None
        return f"{place}, {location.state or ''}, {self.country}"

    def geocode_address(self, address: str) -> Optional[Location]:
        """Forward-geocode a free-form address. Returns None when nothing is found or the lookup fails."""
        now = time.monotonic()
        cached = _GEOCODE_CACHE.get(address)
        if cached and now < cached[0]:
            return cached[1]

        try:
            response = self.session.get(
                self.base_url,
                params={"q": address, "format": "json", "limit": "1"},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error geocoding address '{address}': {e}")
            return None

        location = None
        if isinstance(results, list) and results:
            first = results[0]
            try:
                location = Location(lat=float(first["lat"]), lng=float(first["lon"]), address=address)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Unexpected geocoder result for '{address}': {first}")

        if len(_GEOCODE_CACHE) >= _GEOCODE_CACHE_MAX_SIZE:
            _GEOCODE_CACHE.clear()
        _GEOCODE_CACHE[address] = (now + self.cache_ttl, location)
        return location

    def resolve_coordinates(self, location: Optional[Location]) -> Optional[Tuple[float, float]]:
        """Stored coordinates when present, else geocode city/zip."""
        if location is None:
            return None
        if location.has_coordinates():
            return location.lat, location.lng
        query = self.build_address_query(location)
        if not query:
            return None
        geocoded = self.geocode_address(query)
        if geocoded and geocoded.has_coordinates():
            return geocoded.lat, geocoded.lng
        return None


def is_valid_ip(value: Optional[str]) -> bool:
    try:
        ipaddress.ip_address((value or "").strip())
        return True
    except ValueError:
        return False


def get_ip_based_location(ip: Optional[str] = None, session: Optional[requests.Session] = None) -> Optional[Location]:
    """
    IP geolocation fallback for clients without device/browser location.
    Looks up the given IP (or the server's own when None) with a hard timeout.
    """
    ip = (ip or "").strip() or None
    if ip and not is_valid_ip(ip):
        logger.warning(f"Ignoring malformed IP for geolocation: {ip!r}")
        return None
    base = settings.ip_geolocation_url
    if ip:
        # ipapi.co style: https://ipapi.co/<ip>/json/
        root = base[: -len("json/")] if base.endswith("json/") else base.rstrip("/") + "/"
        url = f"{root}{ip}/json/"
    else:
        url = base
    http = session or requests
    try:
        response = http.get(url, timeout=settings.ip_geolocation_timeout_seconds)
        if not response.ok:
            return None
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"IP-based geolocation failed: {e}")
        return None

    if not isinstance(data, dict) or not data.get("latitude") or not data.get("longitude"):
        return None
    return Location(
        lat=data["latitude"],
        lng=data["longitude"],
        city=data.get("city") or None,
        state=data.get("region") or None,
        country=data.get("country_name") or None,
        zip_code=data.get("postal") or None,
    )
