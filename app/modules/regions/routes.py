from fastapi import APIRouter, Depends, HTTPException, Query
from app.database.supabase_client import get_service_supabase
from app.modules.regions.schemas import (
    RegionCreate, RegionUpdate, RegionResponse, EnsureRegionRequest, EnsureRegionResponse,
    RegionCategoriesUpdate, RegionCategoryResponse
)
from app.modules.regions.service import RegionService
from app.core.dependencies import get_current_user_id, get_user_supabase, require_admin, is_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/regions", tags=["regions"])


def get_region_service(supabase: Client = Depends(get_user_supabase)) -> RegionService:
    return RegionService(supabase)


def get_admin_region_service(supabase: Client = Depends(get_service_supabase)) -> RegionService:
    return RegionService(supabase)


@router.get("", response_model=List[RegionResponse])
async def list_regions(
    include_inactive: bool = False,
    user_data: Dict = Depends(get_current_user_id),
    service: RegionService = Depends(get_region_service),
):
    """Active regions; admins may include inactive ones"""
    if include_inactive and not is_admin(user_data):
        raise HTTPException(status_code=403, detail="Admin access required")
    return service.list_regions(include_inactive=include_inactive)


@router.get("/covering", response_model=List[RegionResponse])
async def regions_covering_point(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    user_data: Dict = Depends(get_current_user_id),
    service: RegionService = Depends(get_region_service),
):
    """Active regions whose service radius contains the point"""
    return service.find_regions_for_point(lat, lng)


@router.post("/ensure", response_model=EnsureRegionResponse)
async def ensure_region(
    body: EnsureRegionRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: RegionService = Depends(get_admin_region_service),
):
    """Make sure a (possibly inactive) region exists for the user's city"""
    region, created = service.ensure_region_for_city(body.city, body.state, body.lat, body.lng)
    return EnsureRegionResponse(region=region, created=created)


@router.post("", response_model=RegionResponse, status_code=201)
async def create_region(
    region_data: RegionCreate,
    user_data: Dict = Depends(require_admin),
    service: RegionService = Depends(get_admin_region_service),
):
    return service.create_region(region_data)


@router.put("/{region_id}", response_model=RegionResponse)
async def update_region(
    region_id: str,
    region_data: RegionUpdate,
    user_data: Dict = Depends(require_admin),
    service: RegionService = Depends(get_admin_region_service),
):
    return service.update_region(region_id, region_data)


@router.delete("/{region_id}", status_code=204)
async def delete_region(
    region_id: str,
    user_data: Dict = Depends(require_admin),
    service: RegionService = Depends(get_admin_region_service),
):
    if not service.delete_region(region_id):
        raise HTTPException(status_code=404, detail="Region not found")
    return None


@router.get("/{region_id}/categories", response_model=List[RegionCategoryResponse])
async def get_region_categories(
    region_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RegionService = Depends(get_region_service),
):
    return service.get_region_categories(region_id)


@router.put("/{region_id}/categories")
async def set_region_categories(
    region_id: str,
    body: RegionCategoriesUpdate,
    user_data: Dict = Depends(require_admin),
    service: RegionService = Depends(get_admin_region_service),
):
    """Replace the categories offered in a region"""
    category_ids = service.set_region_categories(region_id, body.category_ids)
    return {"region_id": region_id, "category_ids": category_ids}
