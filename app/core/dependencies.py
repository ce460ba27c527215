"""
Core dependencies for route protection and access checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_user_client
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_user_supabase(token: str = Depends(get_current_token)) -> Client:
    """Per-request client acting as the caller, for reads and writes guarded by RLS"""
    return get_user_client(token)


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def is_admin(user_data: Dict[str, Any]) -> bool:
    """Admin flag comes from profiles.is_admin, resolved at authentication time"""
    return user_data.get("is_admin") is True


def require_admin(user_data: dict = Depends(get_current_user_id)) -> dict:
    """Dependency that only lets admins through"""
    if not is_admin(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user_data


def check_conversation_participant(conversation_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """
    Return the conversation row if the user is its buyer or its provider.
    Expects the service client: this explicit check stands in for the participants-only RLS policy.
    """
    result = supabase.table("conversations")\
        .select("id, buyer_id, provider_id")\
        .eq("id", conversation_id)\
        .maybe_single()\
        .execute()
    conversation = result.data if result else None
    if not conversation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
    if user_data["id"] not in (conversation.get("buyer_id"), conversation.get("provider_id")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a participant of this conversation"
        )
    return conversation


def check_request_owner_or_admin(request_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Return the service request row if the user owns it or is an admin (service client expected)"""
    result = supabase.table("service_requests")\
        .select("*")\
        .eq("id", request_id)\
        .maybe_single()\
        .execute()
    request_row = result.data if result else None
    if not request_row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service request not found"
        )
    if is_admin(user_data) or request_row.get("buyer_id") == user_data["id"]:
        return request_row
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only the request owner or an admin can do this"
    )
