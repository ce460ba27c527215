from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

DEFAULT_REGION_RADIUS_KM = 30


class RegionCreate(BaseModel):
    name: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    country: str = "India"
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: int = Field(DEFAULT_REGION_RADIUS_KM, gt=0)
    is_active: bool = True


class RegionUpdate(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class RegionResponse(BaseModel):
    id: str
    name: str
    city: str
    state: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[int] = DEFAULT_REGION_RADIUS_KM
    is_active: bool = True
    created_at: Optional[datetime] = None
    distance_km: Optional[float] = None

    class Config:
        from_attributes = True


class EnsureRegionRequest(BaseModel):
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class EnsureRegionResponse(BaseModel):
    region: RegionResponse
    created: bool


class RegionCategoriesUpdate(BaseModel):
    category_ids: List[str]


class RegionCategoryResponse(BaseModel):
    region_id: str
    category_id: str
    category: Optional[Dict[str, Any]] = None
