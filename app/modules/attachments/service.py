from supabase import Client
from app.config import settings
from app.modules.attachments.schemas import UploadedAttachment
from app.modules.attachments.s3_storage import S3Storage, S3_SCHEME, s3_configured
from app.modules.attachments.validator import (
    build_storage_path, check_attachment, format_file_size
)
from typing import Optional
from fastapi import HTTPException
import time
import logging

logger = logging.getLogger(__name__)


class AttachmentService:
    def __init__(self, supabase: Client, s3_storage: Optional[S3Storage] = None):
        self.supabase = supabase
        self.bucket = settings.chat_attachments_bucket

        # S3 when credentials are available, otherwise Supabase Storage
        self.s3_storage = s3_storage
        if self.s3_storage is None and s3_configured():
            try:
                self.s3_storage = S3Storage()
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
                self.s3_storage = None

    def upload_chat_attachment(
        self,
        content: bytes,
        name: str,
        mime_type: str,
        user_id: str,
        conversation_id: str,
    ) -> UploadedAttachment:
        """
        Validate and store a chat attachment under {user}/{conversation}/{ts}_{name}.
        Validation problems raise AttachmentValidationError; storage problems raise a
        generic 500 so bucket details never reach the client.
        """
        attachment_type = check_attachment(name, mime_type, content)
        storage_path = build_storage_path(user_id, conversation_id, name, int(time.time() * 1000))

        try:
            if self.s3_storage:
                stored_path = self.s3_storage.upload_file(content, storage_path, mime_type)
            else:
                self.supabase.storage.from_(self.bucket).upload(
                    storage_path,
                    content,
                    file_options={"content-type": mime_type, "upsert": "false"}
                )
                stored_path = storage_path
            logger.info(f"Uploaded chat attachment {stored_path} ({format_file_size(len(content))})")
        except Exception as e:
            logger.error(f"Chat attachment upload failed for {storage_path}: {str(e)}")
            raise HTTPException(status_code=500, detail="Upload failed. Please try again.")

        return UploadedAttachment(
            path=stored_path,
            type=attachment_type,
            name=name,
            mime_type=mime_type,
            size=len(content),
            size_label=format_file_size(len(content)),
        )

    def get_signed_url(self, storage_path: str, expires_in: Optional[int] = None) -> Optional[str]:
        """Time-limited download URL; None when it cannot be created"""
        expires_in = expires_in or settings.signed_url_expiry_seconds
        if storage_path.startswith(S3_SCHEME):
            if not self.s3_storage:
                logger.error(f"S3 attachment requested but S3 is not configured: {storage_path}")
                return None
            return self.s3_storage.generate_presigned_url(self.s3_storage.key_from_url(storage_path), expires_in)
        try:
            result = self.supabase.storage.from_(self.bucket).create_signed_url(storage_path, expires_in)
        except Exception as e:
            logger.error(f"Error creating signed URL for {storage_path}: {str(e)}")
            return None
        if not result:
            return None
        return result.get("signedURL") or result.get("signedUrl")

    def delete_attachment(self, storage_path: str) -> bool:
        """Remove a stored attachment; False when nothing was deleted"""
        if storage_path.startswith(S3_SCHEME):
            if not self.s3_storage:
                logger.error(f"S3 attachment delete requested but S3 is not configured: {storage_path}")
                return False
            return self.s3_storage.delete_file(self.s3_storage.key_from_url(storage_path))
        try:
            removed = self.supabase.storage.from_(self.bucket).remove([storage_path])
        except Exception as e:
            logger.error(f"Error deleting attachment {storage_path}: {str(e)}")
            return False
        return bool(removed)
