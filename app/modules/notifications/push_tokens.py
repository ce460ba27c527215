from supabase import Client
from app.core.errors import handle_supabase_error, supabase_error_status
from app.modules.notifications.schemas import PushTokenResponse, is_expo_push_token
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class PushTokenService:
    """One Expo token per (user, platform); the unique constraint lives in push_tokens."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def save_push_token(self, user_id: str, token: str, platform: str = "unknown") -> PushTokenResponse:
        if not is_expo_push_token(token):
            raise HTTPException(status_code=400, detail="Invalid push token")
        try:
            result = self.supabase.table("push_tokens").upsert(
                {
                    "user_id": user_id,
                    "token": token,
                    "platform": platform,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="user_id,platform",
            ).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save push token")
            return PushTokenResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving push token for {user_id}: {e}")
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))

    def remove_push_token(self, user_id: str, platform: str) -> bool:
        """Called on logout; a missing token is not an error"""
        try:
            result = self.supabase.table("push_tokens")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("platform", platform)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            logger.error(f"Error removing push token for {user_id}: {e}")
            raise HTTPException(status_code=supabase_error_status(e), detail=handle_supabase_error(e))
