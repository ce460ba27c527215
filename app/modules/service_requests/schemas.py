from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime

RequestStatus = Literal["open", "in_progress", "completed", "cancelled"]


class ServiceRequestCreate(BaseModel):
    category_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=2000)
    budget_min: float = Field(0, ge=0)
    budget_max: float = Field(0, ge=0)
    timeline: Optional[str] = None
    deadline: Optional[datetime] = None
    location: Optional[Dict[str, Any]] = None  # {lat, lng, city, state, zip_code}

    @model_validator(mode="after")
    def budget_range(self):
        if self.budget_max < self.budget_min:
            raise ValueError("Maximum budget must be greater than or equal to minimum")
        return self


class ServiceRequestResponse(BaseModel):
    id: str
    buyer_id: str
    category_id: str
    title: str
    description: str
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    timeline: Optional[str] = None
    deadline: Optional[datetime] = None
    location: Optional[Dict[str, Any]] = None
    attachments: Optional[List[str]] = None
    status: RequestStatus = "open"
    created_at: datetime
    updated_at: Optional[datetime] = None
    distance_km: Optional[float] = None
    location_label: Optional[str] = None

    class Config:
        from_attributes = True
