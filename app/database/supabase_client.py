import logging
from typing import Optional

from supabase import create_client, Client
from app.config import settings

logger = logging.getLogger(__name__)


class SupabaseNotConfiguredError(RuntimeError):
    pass


def _connect(key: Optional[str], purpose: str) -> Client:
    if not settings.supabase_url or not key:
        raise SupabaseNotConfiguredError(f"Supabase URL or key missing for the {purpose} client")
    return create_client(settings.supabase_url, key)


class SupabaseClient:
    """Process-wide clients: one bound to the anon key (RLS applies), one to the service role."""
    _client: Optional[Client] = None
    _service_client: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = _connect(settings.supabase_key, "request")
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Service-role client for rule side effects. Falls back to the anon client when no role key is set."""
        if cls._service_client is None:
            if not settings.supabase_service_role_key:
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; automation writes go through the anon client")
                return cls.get_client()
            cls._service_client = _connect(settings.supabase_service_role_key, "service")
        return cls._service_client

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()
