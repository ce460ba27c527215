from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import Literal, Optional


class Location(BaseModel):
    """Location as stored in profiles.location / service_requests.location (JSONB)."""
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, validation_alias=AliasChoices("zip_code", "postal_code", "postalCode"))
    address: Optional[str] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def has_coordinates(self) -> bool:
        # 0.0 counts as missing, matching what the mobile client stores for "unknown"
        return bool(self.lat) and bool(self.lng)


class DistanceResult(BaseModel):
    distance: float
    unit: Literal["km", "mi"] = "km"
