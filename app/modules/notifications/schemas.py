from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime

EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


def is_expo_push_token(token: str) -> bool:
    return isinstance(token, str) and token.startswith(EXPO_TOKEN_PREFIXES)


class MatchedProvider(BaseModel):
    user_id: str
    full_name: str = "Provider"
    distance: Optional[float] = None  # None for online services or unknown request location
    push_tokens: List[str] = Field(default_factory=list)


class PushMessage(BaseModel):
    to: str
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    sound: Optional[Literal["default"]] = "default"
    channelId: str = "default"
    priority: Literal["default", "normal", "high"] = "high"


class PushSendResult(BaseModel):
    sent: int = 0
    failed: int = 0
    invalid_tokens: List[str] = Field(default_factory=list)
    tickets: List[Dict[str, Any]] = Field(default_factory=list)


class NotifyResult(BaseModel):
    notified_count: int = 0


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    body: str
    data: Optional[Dict[str, Any]] = None
    read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


class PushTokenRegister(BaseModel):
    token: str
    platform: Literal["ios", "android", "web", "unknown"] = "unknown"

    @field_validator("token")
    @classmethod
    def expo_token_shape(cls, value: str) -> str:
        if not is_expo_push_token(value):
            raise ValueError("Token must be an Expo push token (ExponentPushToken[...] or ExpoPushToken[...])")
        return value


class PushTokenResponse(BaseModel):
    user_id: str
    token: str
    platform: str
    updated_at: Optional[datetime] = None


class MessageNotificationRequest(BaseModel):
    message: str = Field("", max_length=5000)
    attachment_count: int = Field(0, ge=0, le=5)

    @model_validator(mode="after")
    def has_content(self):
        if not self.message.strip() and self.attachment_count == 0:
            raise ValueError("A message needs text or at least one attachment")
        return self


class ProposalEvent(BaseModel):
    event: Literal["submitted", "accepted", "rejected"]
