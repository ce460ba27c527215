"""
Translation of Supabase / PostgREST errors into user-safe messages.

Raw database errors mention table names, constraint names and policy names.
None of that is returned to API clients; callers log the raw error and send
the mapped message instead.
"""

from typing import Any, Dict
import logging

from app.config import settings

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."

# Checked in order: the first pattern found in the message, or equal to the code, wins.
ERROR_MAP: Dict[str, str] = {
    # Auth errors
    "Invalid login credentials": "Incorrect email or password. Please try again.",
    "Email not confirmed": "Please verify your email address before signing in.",
    "User already registered": "An account with this email already exists.",
    "Password should be at least 6 characters": "Password must be at least 6 characters long.",
    # PostgREST errors
    "PGRST116": "The requested record was not found.",
    "23505": "This record already exists.",
    "23503": "This operation references data that does not exist.",
    "42501": "You do not have permission to perform this action.",
    "42P01": "A required resource was not found.",
    # RLS errors
    "new row violates row-level security policy": "You do not have permission to perform this action.",
}

ERROR_STATUS: Dict[str, int] = {
    "Invalid login credentials": 401,
    "Email not confirmed": 403,
    "User already registered": 400,
    "Password should be at least 6 characters": 400,
    "PGRST116": 404,
    "23505": 409,
    "23503": 400,
    "42501": 403,
    "42P01": 404,
    "new row violates row-level security policy": 403,
}


def _error_parts(error: Any) -> tuple:
    if isinstance(error, dict):
        return str(error.get("message") or ""), str(error.get("code") or "")
    message = getattr(error, "message", None) or str(error)
    code = getattr(error, "code", None) or ""
    return str(message), str(code)


def _match_pattern(error: Any):
    message, code = _error_parts(error)
    for pattern in ERROR_MAP:
        if pattern in message or code == pattern:
            return pattern
    return None


def handle_supabase_error(error: Any) -> str:
    """Return a generic, safe message for a Supabase error; never the raw text."""
    if not error:
        return "An unexpected error occurred."
    pattern = _match_pattern(error)
    if pattern:
        return ERROR_MAP[pattern]
    if not settings.is_production:
        logger.error(f"[Supabase Error] {error}")
    return GENERIC_ERROR_MESSAGE


def supabase_error_status(error: Any, default: int = 500) -> int:
    """HTTP status matching the mapped message of handle_supabase_error."""
    if not error:
        return default
    pattern = _match_pattern(error)
    return ERROR_STATUS.get(pattern, default) if pattern else default
