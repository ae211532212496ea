"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import AsyncMock, MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("KEJAH_BACKEND", "memory")
os.environ.setdefault("REPORT_SUSPENSION_THRESHOLD", "3")
os.environ.setdefault("MOCK_OTP_CODE", "123456")
os.environ.setdefault("LOG_FORMAT", "text")

from kejah.config import get_settings
from kejah.models.user import AuthSubject
from kejah.services import backend_selector
from kejah.services.memory_backend import (
    MemoryAuthGateway,
    MemoryListingStore,
    MemoryUserStore,
    build_memory_backend,
)
from kejah.services.user_directory import UserDirectory


@pytest.fixture(autouse=True)
def reset_backend_singleton():
    """Each test resolves its own backend."""
    backend_selector.reset_backend()
    yield
    backend_selector.reset_backend()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def memory_backend(settings):
    """Empty in-memory backend."""
    return build_memory_backend(settings, seed=False)


@pytest.fixture
def seeded_backend(settings):
    """In-memory backend with the demo dataset."""
    return build_memory_backend(settings, seed=True)


@pytest.fixture
def installed_backend(memory_backend):
    """Empty in-memory backend installed as the process backend."""
    backend_selector.set_backend(memory_backend)
    return memory_backend


@pytest.fixture
def listing_store():
    return MemoryListingStore(suspension_threshold=3)


@pytest.fixture
def user_store():
    return MemoryUserStore()


@pytest.fixture
def memory_auth():
    return MemoryAuthGateway(otp_code="123456")


@pytest.fixture
def directory(user_store, memory_auth):
    return UserDirectory(user_store, memory_auth)


@pytest.fixture
def stub_auth():
    """Auth gateway double whose sign-ins all succeed for the same subject."""
    subject = AuthSubject(
        uid="uid_shared_identity",
        display_name="Jane Wanjiku",
        email="jane@example.com",
        email_verified=True,
        photo_url=None,
    )
    auth = MagicMock()
    auth.sign_up_with_password = AsyncMock(return_value=subject)
    auth.sign_in_with_password = AsyncMock(return_value=subject)
    auth.sign_in_with_google = AsyncMock(return_value=subject)
    auth.sign_out = AsyncMock(return_value=None)
    auth.send_phone_code = AsyncMock(return_value="verif_1")
    auth.confirm_phone_code = AsyncMock(side_effect=lambda vid, phone, code: phone)
    return auth


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builders chain onto themselves."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "neq", "gte", "lte", "ilike", "order", "limit", "insert", "upsert", "update"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client.rpc.return_value.execute.return_value = MagicMock(data=[])
    client.query = query
    return client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
