"""Capability interfaces every backend implements.

Call sites only ever see a ``Backend`` bundle; they never branch on which
concrete provider sits behind it.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from kejah.models.filters import ListingFilters
from kejah.models.listing import Listing, NewListing
from kejah.models.report import Report
from kejah.models.submission import ContactMessage, Feedback
from kejah.models.user import AuthSubject, User, UserRole

ProgressCallback = Callable[[float], None]


class ListingStore(Protocol):
    """Listings and their moderation reports."""

    async def list(self, filters: ListingFilters) -> list[Listing]:
        ...

    async def get_by_id(self, listing_id: str) -> Optional[Listing]:
        ...

    async def increment_views(self, listing_id: str) -> None:
        ...

    async def insert(self, new_listing: NewListing) -> Listing:
        ...

    async def report(self, listing_id: str, reason: str, reporter_id: str) -> Report:
        ...


class UserStore(Protocol):
    """User/agent profiles keyed by uid."""

    async def get_by_id(self, uid: str) -> Optional[User]:
        ...

    async def upsert(self, uid: str, changes: dict[str, Any]) -> User:
        """Merge ``changes`` into the profile, creating it if missing."""
        ...

    async def list_by_role(self, role: UserRole) -> list[User]:
        ...


class AuthGateway(Protocol):
    """External authentication provider."""

    async def sign_up_with_password(self, display_name: str, email: str, password: str) -> AuthSubject:
        ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSubject:
        ...

    async def sign_in_with_google(self, id_token: str) -> AuthSubject:
        ...

    async def sign_out(self) -> None:
        ...

    async def send_phone_code(self, phone_number: str) -> str:
        """Issue an OTP to the phone; returns a verification ID."""
        ...

    async def confirm_phone_code(self, verification_id: str, phone_number: str, code: str) -> str:
        """Check the OTP; returns the verified phone number."""
        ...


class ObjectStorage(Protocol):
    """External object storage for listing images."""

    async def upload_image(
        self,
        filename: str,
        data: bytes,
        content_type: str = "image/jpeg",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        ...


class SubmissionSink(Protocol):
    """Write-only sink for feedback and contact messages."""

    async def add_feedback(self, feedback: Feedback) -> None:
        ...

    async def add_contact_message(self, message: ContactMessage) -> None:
        ...


@dataclass(frozen=True)
class Backend:
    """The one resolved set of capabilities for this process."""

    name: str
    listings: ListingStore
    users: UserStore
    auth: AuthGateway
    storage: ObjectStorage
    submissions: SubmissionSink


def build_object_key(filename: str, now_ms: int) -> str:
    """Storage key for an uploaded file: ``<epoch ms>_<sanitised name>``."""
    safe_name = re.sub(r"[^a-zA-Z0-9.]", "_", filename or "upload")
    return f"{now_ms}_{safe_name}"


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)
