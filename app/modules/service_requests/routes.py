from fastapi import APIRouter, BackgroundTasks, Depends, Query
from app.database.supabase_client import get_service_supabase
from app.modules.location.schemas import Location
from app.modules.notifications.service import NotificationService
from app.modules.service_requests.schemas import ServiceRequestCreate, ServiceRequestResponse
from app.modules.service_requests.service import ServiceRequestService
from app.core.dependencies import get_current_user_id, get_user_supabase
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/requests", tags=["requests"])


def get_request_service(supabase: Client = Depends(get_user_supabase)) -> ServiceRequestService:
    return ServiceRequestService(supabase)


def get_notification_service(supabase: Client = Depends(get_service_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.post("", response_model=ServiceRequestResponse, status_code=201)
async def create_request(
    request_data: ServiceRequestCreate,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user_id),
    service: ServiceRequestService = Depends(get_request_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Post a new service request.
    Matching providers are notified after the response is sent.
    """
    created = service.create_request(request_data, user_data["id"])
    background_tasks.add_task(
        notifications.notify_matching_providers,
        created.id,
        created.category_id,
        created.title,
        created.location,
        created.buyer_id,
        created.budget_min or 0,
        created.budget_max or 0,
    )
    return created


@router.get("", response_model=List[ServiceRequestResponse])
async def list_requests(
    category_id: Optional[str] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: ServiceRequestService = Depends(get_request_service),
):
    """Browse open requests; pass lat/lng to get distance_km per request"""
    near = Location(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return service.list_open_requests(category_id=category_id, near=near, limit=limit, offset=offset)


@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def get_request(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ServiceRequestService = Depends(get_request_service),
):
    return service.get_request(request_id)
