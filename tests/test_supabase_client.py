from unittest.mock import Mock

import pytest

from app.database import supabase_client

pytestmark = pytest.mark.unit


@pytest.fixture
def create_client(monkeypatch):
    factory = Mock(side_effect=lambda url, key: Mock())
    monkeypatch.setattr(supabase_client, "create_client", factory)
    supabase_client.SupabaseClient.reset_client()
    yield factory
    supabase_client.SupabaseClient.reset_client()


def test_user_client_carries_caller_token(create_client):
    client = supabase_client.get_user_client("buyer-jwt")

    client.postgrest.auth.assert_called_once_with("buyer-jwt")
    assert client is not supabase_client.get_supabase()


def test_user_clients_are_not_shared(create_client):
    first = supabase_client.get_user_client("buyer-jwt")
    second = supabase_client.get_user_client("provider-jwt")

    assert first is not second
    second.postgrest.auth.assert_called_once_with("provider-jwt")


def test_auth_client_is_fresh_each_time(create_client):
    shared = supabase_client.get_supabase()

    assert supabase_client.create_auth_client() is not shared
    assert supabase_client.create_auth_client() is not supabase_client.create_auth_client()
    assert supabase_client.get_supabase() is shared
