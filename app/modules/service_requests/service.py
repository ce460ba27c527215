from supabase import Client
from app.core.errors import handle_supabase_error, supabase_error_status
from app.modules.location.distance import calculate_distance, format_location_string
from app.modules.location.schemas import Location
from app.modules.service_requests.schemas import ServiceRequestCreate, ServiceRequestResponse
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ServiceRequestService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_request(self, request_data: ServiceRequestCreate, buyer_id: str) -> ServiceRequestResponse:
        """Create an open service request owned by the buyer"""
        try:
            category = self.supabase.table("service_categories")\
                .select("id")\
                .eq("id", request_data.category_id)\
                .maybe_single()\
                .execute()
            if not category or not category.data:
                raise HTTPException(status_code=404, detail="Category not found")

            insert_data = {
                "buyer_id": buyer_id,
                "category_id": request_data.category_id,
                "title": request_data.title,
                "description": request_data.description,
                "budget_min": request_data.budget_min,
                "budget_max": request_data.budget_max,
                "timeline": request_data.timeline,
                "deadline": request_data.deadline.isoformat() if request_data.deadline else None,
                "location": request_data.location,
                "status": "open",
            }
            result = self.supabase.table("service_requests").insert(insert_data).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create service request")

            return ServiceRequestResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def get_request(self, request_id: str) -> ServiceRequestResponse:
        try:
            result = self.supabase.table("service_requests")\
                .select("*")\
                .eq("id", request_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Service request not found")
            return self._with_location(ServiceRequestResponse(**result.data), None)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def list_open_requests(
        self,
        category_id: Optional[str] = None,
        near: Optional[Location] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[ServiceRequestResponse]:
        """Open and in-progress requests, newest first; distance_km is set when both sides have coordinates"""
        try:
            query = self.supabase.table("service_requests")\
                .select("*")\
                .in_("status", ["open", "in_progress"])
            if category_id:
                query = query.eq("category_id", category_id)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [self._with_location(ServiceRequestResponse(**r), near) for r in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def _with_location(self, request: ServiceRequestResponse, near: Optional[Location]) -> ServiceRequestResponse:
        if not request.location:
            request.location_label = "Remote"
            return request
        location = Location.model_validate(request.location)
        request.location_label = format_location_string(location)
        if near is not None and near.has_coordinates() and location.has_coordinates():
            request.distance_km = calculate_distance(near.lat, near.lng, location.lat, location.lng)
        return request
