from supabase import Client
from app.core.errors import handle_supabase_error, supabase_error_status
from app.modules.location.distance import calculate_distance
from app.modules.regions.schemas import (
    RegionCreate, RegionUpdate, RegionResponse, RegionCategoryResponse, DEFAULT_REGION_RADIUS_KM
)
from typing import List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    """Make user input match literally inside a LIKE / ILIKE pattern"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RegionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_regions(self, include_inactive: bool = False) -> List[RegionResponse]:
        try:
            query = self.supabase.table("service_regions").select("*")
            if not include_inactive:
                query = query.eq("is_active", True)
            result = query.order("name").execute()
            return [RegionResponse(**r) for r in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def create_region(self, region_data: RegionCreate) -> RegionResponse:
        try:
            result = self.supabase.table("service_regions").insert(region_data.model_dump()).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create region")
            return RegionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def update_region(self, region_id: str, region_data: RegionUpdate) -> RegionResponse:
        update_data = region_data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            result = self.supabase.table("service_regions")\
                .update(update_data)\
                .eq("id", region_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Region not found")
            return RegionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def delete_region(self, region_id: str) -> bool:
        try:
            result = self.supabase.table("service_regions")\
                .delete()\
                .eq("id", region_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def ensure_region_for_city(
        self,
        city: str,
        state: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> Tuple[RegionResponse, bool]:
        """
        Return the region for a city (case-insensitive), creating an inactive one
        for admins to review when none exists. Second element tells if it was created.
        """
        try:
            existing = self.supabase.table("service_regions")\
                .select("*")\
                .ilike("city", escape_like(city))\
                .limit(1)\
                .execute()
            if existing.data:
                return RegionResponse(**existing.data[0]), False

            result = self.supabase.table("service_regions").insert({
                "name": f"{city}, {state}" if state else city,
                "city": city,
                "state": state or None,
                "lat": lat or None,
                "lng": lng or None,
                "radius_km": DEFAULT_REGION_RADIUS_KM,
                "is_active": False,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create region")
            logger.info(f"Auto-created inactive region for {city}")
            return RegionResponse(**result.data[0]), True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def get_region_categories(self, region_id: str) -> List[RegionCategoryResponse]:
        try:
            result = self.supabase.table("region_categories")\
                .select("*, category:service_categories(*)")\
                .eq("region_id", region_id)\
                .execute()
            return [RegionCategoryResponse(**r) for r in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def set_region_categories(self, region_id: str, category_ids: List[str]) -> List[str]:
        """Replace the region's category set"""
        unique_ids = list(dict.fromkeys(category_ids))
        try:
            self.supabase.table("region_categories")\
                .delete()\
                .eq("region_id", region_id)\
                .execute()
            if unique_ids:
                self.supabase.table("region_categories").insert([
                    {"region_id": region_id, "category_id": category_id}
                    for category_id in unique_ids
                ]).execute()
            return unique_ids
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def find_regions_for_point(self, lat: float, lng: float) -> List[RegionResponse]:
        """Active regions whose radius covers the point, nearest first"""
        covering = []
        for region in self.list_regions():
            if region.lat is None or region.lng is None:
                continue
            distance = calculate_distance(lat, lng, region.lat, region.lng)
            if distance <= (region.radius_km or DEFAULT_REGION_RADIUS_KM):
                region.distance_km = distance
                covering.append(region)
        return sorted(covering, key=lambda r: r.distance_km)
