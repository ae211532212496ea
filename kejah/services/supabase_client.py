"""Supabase client wrapper with async context manager support."""

from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from kejah.config import Settings, get_settings
from kejah.utils.errors import BackendUnavailable
from kejah.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client(settings: Optional[Settings] = None) -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        settings = settings or get_settings()
        if not settings.supabase_configured:
            raise BackendUnavailable("SUPABASE_URL and SUPABASE_KEY must be set")

        # Auth session stays in this client instance only
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        try:
            _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, options)
        except Exception as e:
            raise BackendUnavailable(f"Failed to initialize Supabase client: {e}")
        logger.info("Supabase client initialized", supabase_url=settings.SUPABASE_URL)

    return _client


def close_supabase_client() -> None:
    """Drop the client singleton."""
    global _client
    if _client:
        # Supabase-py doesn't have explicit close
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                error_type=exc_type.__name__,
            )
        return False
