import hashlib
import time
import logging
from supabase import Client
from app.database.supabase_client import create_auth_client
from app.core.errors import handle_supabase_error, supabase_error_status
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Dict, Any, Callable, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client, auth_client_factory: Optional[Callable[[], Client]] = None):
        self.supabase = supabase
        # sign-up and sign-in run on a fresh client each time; see create_auth_client
        self.auth_client_factory = auth_client_factory or create_auth_client

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new buyer/provider with Supabase Auth. The profile row is created by a database trigger."""
        try:
            auth_response = self.auth_client_factory().auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {
                        "full_name": register_data.full_name,
                        "role": register_data.role,
                    }
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.warning(f"Registration failed for {register_data.email}: {e}")
            raise HTTPException(
                status_code=supabase_error_status(e, default=400),
                detail=handle_supabase_error(e)
            )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.auth_client_factory().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Incorrect email or password. Please try again.")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(
                status_code=supabase_error_status(e, default=401),
                detail=handle_supabase_error(e)
            )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a Supabase JWT to the user and their profile flags. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            user_data.update(self._get_profile_flags(user.id))
            if user_data["is_blocked"]:
                raise HTTPException(status_code=403, detail="Your account has been blocked")
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def _get_profile_flags(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("profiles")\
            .select("full_name, role, is_admin, is_blocked")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        profile = (result.data if result else None) or {}
        return {
            "full_name": profile.get("full_name"),
            "role": profile.get("role"),
            "is_admin": profile.get("is_admin") is True,
            "is_blocked": profile.get("is_blocked") is True,
        }

    def logout(self, token: str) -> bool:
        """Revoke the caller's refresh tokens; the shared client holds no session to sign out of"""
        # Drop our cached resolution so the token is re-checked next time
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Logout failed: {e}")
            return False
