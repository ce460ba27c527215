from pydantic import BaseModel
from typing import Literal

AttachmentType = Literal["image", "video", "document"]


class UploadedAttachment(BaseModel):
    path: str
    type: AttachmentType
    name: str
    mime_type: str
    size: int
    size_label: str


class SignedUrlResponse(BaseModel):
    path: str
    signed_url: str
    expires_in: int
