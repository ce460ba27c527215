from types import SimpleNamespace

import pytest

from app.core.errors import GENERIC_ERROR_MESSAGE, handle_supabase_error, supabase_error_status

pytestmark = pytest.mark.unit


def test_auth_message_is_translated():
    error = Exception("Invalid login credentials")
    assert handle_supabase_error(error) == "Incorrect email or password. Please try again."
    assert supabase_error_status(error) == 401


def test_postgrest_code_is_translated():
    error = {"message": 'duplicate key value violates unique constraint "push_tokens_user_id_platform_key"',
             "code": "23505"}
    assert handle_supabase_error(error) == "This record already exists."
    assert supabase_error_status(error) == 409


def test_code_attribute_is_used():
    error = SimpleNamespace(message="JSON object requested, multiple (or no) rows returned", code="PGRST116")
    assert handle_supabase_error(error) == "The requested record was not found."
    assert supabase_error_status(error) == 404


def test_rls_violation():
    error = Exception('new row violates row-level security policy for table "notifications"')
    message = handle_supabase_error(error)
    assert message == "You do not have permission to perform this action."
    assert "notifications" not in message
    assert supabase_error_status(error) == 403


def test_unknown_error_is_generic():
    error = Exception('relation "public.secret_table" column "ssn" does not exist')
    assert handle_supabase_error(error) == GENERIC_ERROR_MESSAGE
    assert supabase_error_status(error) == 500
    assert supabase_error_status(error, default=502) == 502


def test_empty_error():
    assert handle_supabase_error(None) == "An unexpected error occurred."
    assert supabase_error_status(None) == 500
