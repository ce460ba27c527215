from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from app.database.supabase_client import get_service_supabase
from app.modules.attachments.schemas import UploadedAttachment, SignedUrlResponse
from app.modules.attachments.service import AttachmentService
from app.modules.attachments.s3_storage import S3_SCHEME
from app.modules.attachments.validator import AttachmentValidationError
from app.core.dependencies import get_current_user_id, check_conversation_participant
from app.config import settings
from supabase import Client
from typing import Dict, Tuple

router = APIRouter(prefix="/attachments", tags=["attachments"])


def get_attachment_service(supabase: Client = Depends(get_service_supabase)) -> AttachmentService:
    return AttachmentService(supabase)


def parse_attachment_path(path: str) -> Tuple[str, str]:
    """
    Split a stored attachment path into (uploader_id, conversation_id).
    Accepts only {user}/{conversation}/{file} or s3://{bucket}/{user}/{conversation}/{file};
    empty, "." and ".." segments are rejected because the storage URL would resolve them.
    """
    key = path or ""
    if key.startswith(S3_SCHEME):
        key = key[len(S3_SCHEME):]
        bucket, _, key = key.partition("/")
        if not bucket:
            raise HTTPException(status_code=400, detail="Invalid attachment path")
    parts = key.split("/")
    if len(parts) != 3 or any(p in ("", ".", "..") for p in parts):
        raise HTTPException(status_code=400, detail="Invalid attachment path")
    return parts[0], parts[1]


@router.post("/conversations/{conversation_id}", response_model=UploadedAttachment, status_code=201)
async def upload_attachment(
    conversation_id: str,
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user_id),
    service: AttachmentService = Depends(get_attachment_service),
    supabase: Client = Depends(get_service_supabase),
):
    """
    Upload an image, video or document to a conversation.
    Executables and scripts are rejected by extension; images and videos must
    carry a file signature matching their declared content type.
    """
    check_conversation_participant(conversation_id, user_data, supabase)
    if not file.filename:
        raise HTTPException(status_code=400, detail="File name is required")
    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    try:
        return service.upload_chat_attachment(content, file.filename, mime_type, user_data["id"], conversation_id)
    except AttachmentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/signed-url", response_model=SignedUrlResponse)
async def get_signed_url(
    path: str,
    user_data: Dict = Depends(get_current_user_id),
    service: AttachmentService = Depends(get_attachment_service),
    supabase: Client = Depends(get_service_supabase),
):
    """Short-lived download URL for an attachment of a conversation the user takes part in"""
    _, conversation_id = parse_attachment_path(path)
    check_conversation_participant(conversation_id, user_data, supabase)
    signed_url = service.get_signed_url(path)
    if not signed_url:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return SignedUrlResponse(path=path, signed_url=signed_url, expires_in=settings.signed_url_expiry_seconds)


@router.delete("", status_code=204)
async def delete_attachment(
    path: str,
    user_data: Dict = Depends(get_current_user_id),
    service: AttachmentService = Depends(get_attachment_service),
):
    """Delete an attachment; only its uploader may do so"""
    uploader_id, _ = parse_attachment_path(path)
    if uploader_id != user_data["id"]:
        raise HTTPException(status_code=403, detail="Only the uploader can delete this attachment")
    if not service.delete_attachment(path):
        raise HTTPException(status_code=404, detail="Attachment not found")
    return None
