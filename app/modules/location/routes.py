from fastapi import APIRouter, HTTPException, Query, Request
from app.modules.location.distance import get_distance_result
from app.modules.location.schemas import DistanceResult, Location
from app.modules.location.service import get_ip_based_location, is_valid_ip
from typing import Literal, Optional

router = APIRouter(prefix="/location", tags=["location"])


def client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop when it is a real IP address, else the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if is_valid_ip(first_hop):
            return first_hop
    host = request.client.host if request.client else None
    return host if is_valid_ip(host) else None


@router.get("/distance", response_model=DistanceResult)
async def distance(
    lat1: float = Query(..., ge=-90, le=90),
    lng1: float = Query(..., ge=-180, le=180),
    lat2: float = Query(..., ge=-90, le=90),
    lng2: float = Query(..., ge=-180, le=180),
    unit: Literal["km", "mi"] = "km",
):
    """Great-circle distance between two points"""
    return get_distance_result(lat1, lng1, lat2, lng2, unit)


@router.get("/ip", response_model=Location)
def ip_location(request: Request):
    """Approximate location of the caller from their IP (fallback when device location is denied)"""
    location = get_ip_based_location(client_ip(request))
    if location is None:
        raise HTTPException(status_code=404, detail="Could not determine location")
    return location
