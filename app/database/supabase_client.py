from supabase import create_client, Client
from app.config import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Shared anon client. Never signed in, so RLS always sees the anon role."""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Used for cross-user writes (notifications, matching)."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def create_auth_client() -> Client:
    """
    Throwaway anon client for sign-up / sign-in.
    A sign-in stores the session on the client it runs on and rewrites its
    Authorization header, so it must never run on the shared client.
    """
    return create_client(settings.supabase_url, settings.supabase_key)


def get_user_client(access_token: str) -> Client:
    """Anon client whose database calls carry the caller's JWT, so RLS sees auth.uid()"""
    client = create_client(settings.supabase_url, settings.supabase_key)
    client.postgrest.auth(access_token)
    return client
