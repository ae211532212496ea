"""Resolve the process-wide backend once, at startup.

``KEJAH_BACKEND=auto`` tries each backend in ``BACKEND_PRIORITY`` order and
falls back to the seeded in-memory backend. Naming a backend explicitly makes
it mandatory: if it cannot be built, startup fails with BackendUnavailable.
The choice is never revisited for the life of the process.
"""

from typing import Callable, Optional

from kejah.config import Settings, get_settings
from kejah.services.backend import Backend
from kejah.services.memory_backend import build_memory_backend
from kejah.services.supabase_backend import build_supabase_backend
from kejah.services.supabase_client import close_supabase_client
from kejah.utils.errors import BackendUnavailable
from kejah.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BackendFactory = Callable[[Settings], Backend]

BACKEND_FACTORIES: dict[str, BackendFactory] = {
    "supabase": build_supabase_backend,
    "memory": build_memory_backend,
}

BACKEND_PRIORITY = ("supabase", "memory")

# Global backend instance (singleton pattern)
_backend: Optional[Backend] = None


def _is_configured(name: str, settings: Settings) -> bool:
    if name == "supabase":
        return settings.supabase_configured
    return True


def select_backend(settings: Optional[Settings] = None) -> Backend:
    """Build the backend the settings call for. Does not cache."""
    settings = settings or get_settings()
    requested = settings.BACKEND

    if requested != "auto":
        factory = BACKEND_FACTORIES.get(requested)
        if factory is None:
            raise BackendUnavailable(f"Unknown backend: {requested}")
        if not _is_configured(requested, settings):
            raise BackendUnavailable(f"Backend '{requested}' requested but not configured")
        backend = factory(settings)
        logger.info("Backend selected", backend=backend.name, mode="explicit")
        return backend

    for name in BACKEND_PRIORITY:
        if not _is_configured(name, settings):
            logger.debug("Backend not configured, skipping", backend=name)
            continue
        try:
            backend = BACKEND_FACTORIES[name](settings)
        except BackendUnavailable as e:
            logger.warning("Backend failed to initialize, trying next", backend=name, error=str(e))
            continue
        if name == "memory":
            logger.warning("Running in demo mode with mock data", backend=name)
        else:
            logger.info("Backend selected", backend=name, mode="auto")
        return backend

    raise BackendUnavailable("No backend could be initialized")


def get_backend() -> Backend:
    """Get or resolve the process-wide backend."""
    global _backend
    if _backend is None:
        _backend = select_backend()
    return _backend


def set_backend(backend: Backend) -> None:
    """Install an already-built backend (tests, embedding applications)."""
    global _backend
    _backend = backend


def reset_backend() -> None:
    """Forget the resolved backend so the next get_backend() resolves again."""
    global _backend
    _backend = None
    close_supabase_client()
