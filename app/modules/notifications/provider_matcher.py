"""
Provider matching for new service requests.

A provider qualifies when the request's category is in their skills and,
for distance-limited categories, they are within the category's
max_distance_km of the request.
"""
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from app.modules.location.distance import calculate_distance
from app.modules.location.schemas import Location
from app.modules.location.service import Geocoder
from app.modules.notifications.schemas import MatchedProvider

logger = logging.getLogger(__name__)


def _as_location(value: Any) -> Optional[Location]:
    if isinstance(value, Location):
        return value
    if isinstance(value, dict) and value:
        return Location.model_validate(value)
    return None


def _full_name(provider: Dict[str, Any]) -> str:
    profile = provider.get("profiles") or {}
    return profile.get("full_name") or "Provider"


class ProviderMatcher:
    def __init__(self, supabase: Client, geocoder: Optional[Geocoder] = None):
        self.supabase = supabase
        self.geocoder = geocoder or Geocoder()

    def find_matching_providers(
        self,
        request_id: str,
        category_id: str,
        request_location: Optional[Any],
        buyer_id: str,
    ) -> List[MatchedProvider]:
        """Find providers matching a request's category and within its distance range. Never raises."""
        try:
            category = self._get_category(category_id)
            if not category:
                logger.error(f"Category {category_id} not found while matching request {request_id}")
                return []
            max_distance_km = category.get("max_distance_km")

            providers = self._get_skilled_providers(category_id)
            candidates = [
                p for p in providers
                if p.get("user_id") != buyer_id
                and not (p.get("profiles") or {}).get("is_blocked")
            ]
            if not candidates:
                return []

            # Online / unlimited services: every skilled provider qualifies
            if max_distance_km is None:
                return self._attach_push_tokens([
                    MatchedProvider(user_id=p["user_id"], full_name=_full_name(p))
                    for p in candidates
                ])

            request_coords = self.geocoder.resolve_coordinates(_as_location(request_location))
            if request_coords is None:
                # Permissive fallback: an unknown request location does not exclude anyone
                logger.warning(
                    f"No coordinates for request {request_id}; sending to all {len(candidates)} matching providers"
                )
                return self._attach_push_tokens([
                    MatchedProvider(user_id=p["user_id"], full_name=_full_name(p))
                    for p in candidates
                ])

            request_lat, request_lng = request_coords
            nearby: List[MatchedProvider] = []
            for provider in candidates:
                provider_location = _as_location((provider.get("profiles") or {}).get("location"))
                if provider_location is None:
                    continue
                provider_coords = self.geocoder.resolve_coordinates(provider_location)
                if provider_coords is None:
                    continue
                distance = calculate_distance(request_lat, request_lng, *provider_coords)
                if distance <= max_distance_km:
                    nearby.append(MatchedProvider(
                        user_id=provider["user_id"],
                        full_name=_full_name(provider),
                        distance=distance,
                    ))

            return self._attach_push_tokens(nearby)
        except Exception as e:
            logger.error(f"Error in find_matching_providers for request {request_id}: {e}")
            return []

    def _get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("service_categories")\
            .select("id, name, max_distance_km")\
            .eq("id", category_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def _get_skilled_providers(self, category_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("provider_profiles")\
            .select("user_id, skills, profiles!inner(id, full_name, location, is_blocked)")\
            .contains("skills", [category_id])\
            .execute()
        # contains() runs server-side; rows lacking the skill are still dropped here
        return [p for p in (result.data or []) if category_id in (p.get("skills") or [])]

    def _attach_push_tokens(self, providers: List[MatchedProvider]) -> List[MatchedProvider]:
        if not providers:
            return []
        user_ids = [p.user_id for p in providers]
        token_map: Dict[str, List[str]] = {}
        try:
            result = self.supabase.table("push_tokens")\
                .select("user_id, token")\
                .in_("user_id", user_ids)\
                .execute()
            for row in result.data or []:
                token_map.setdefault(row["user_id"], []).append(row["token"])
        except Exception as e:
            logger.error(f"Error fetching push tokens: {e}")
        for provider in providers:
            provider.push_tokens = token_map.get(provider.user_id, [])
        return providers
