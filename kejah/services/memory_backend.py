"""In-memory backend used when no remote backend is configured.

Each store owns its collection and serialises mutations with an
``asyncio.Lock``: a report's increment and the suspension it may trigger
happen inside one critical section.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Any, Optional

from ulid import ULID

from kejah.config import Settings
from kejah.models.filters import ListingFilters
from kejah.models.listing import Listing, ListingStatus, NewListing, validate_new_listing
from kejah.models.report import Report
from kejah.models.submission import ContactMessage, Feedback
from kejah.models.user import AuthSubject, User, UserRole
from kejah.services.backend import Backend, ProgressCallback, build_object_key, now_ms
from kejah.services.listing_query import query_listings
from kejah.services.seed_data import seed_listings, seed_users
from kejah.utils.errors import AuthenticationError, NotFoundError
from kejah.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

UPLOAD_CHUNK_SIZE = 64 * 1024


def generate_id() -> str:
    """Generate a text-based record ID (ULID format)."""
    return str(ULID())


class MemoryListingStore:
    """Listings and reports held in process memory."""

    def __init__(self, listings: Optional[list[Listing]] = None, suspension_threshold: int = 3):
        # dict keeps insertion order, which is the tie-break for sorting
        self._listings: dict[str, Listing] = {listing.id: listing for listing in listings or []}
        self._reports: list[Report] = []
        self._lock = asyncio.Lock()
        self.suspension_threshold = suspension_threshold

    async def list(self, filters: ListingFilters) -> list[Listing]:
        snapshot = list(self._listings.values())
        return [listing.model_copy(deep=True) for listing in query_listings(snapshot, filters)]

    async def get_by_id(self, listing_id: str) -> Optional[Listing]:
        listing = self._listings.get(listing_id)
        return listing.model_copy(deep=True) if listing else None

    async def increment_views(self, listing_id: str) -> None:
        async with self._lock:
            listing = self._listings.get(listing_id)
            if listing is None:
                logger.debug("View increment for unknown listing ignored", listing_id=listing_id)
                return
            self._listings[listing_id] = listing.model_copy(update={"views": listing.views + 1})

    async def insert(self, new_listing: NewListing) -> Listing:
        new_listing = validate_new_listing(new_listing)
        async with self._lock:
            listing_id = generate_id()
            while listing_id in self._listings:
                listing_id = generate_id()
            listing = Listing(
                id=listing_id,
                created_at=now_ms(),
                status=ListingStatus.ACTIVE,
                report_count=0,
                views=0,
                **new_listing.model_dump(),
            )
            self._listings[listing_id] = listing

        logger.info(
            "Listing created",
            listing_id=listing.id,
            creator_id=mask_user_id(listing.creator_id),
            featured=listing.featured,
        )
        return listing.model_copy(deep=True)

    async def report(self, listing_id: str, reason: str, reporter_id: str) -> Report:
        async with self._lock:
            listing = self._listings.get(listing_id)
            if listing is None:
                raise NotFoundError(f"Listing not found: {listing_id}")

            report = Report(
                id=generate_id(),
                listing_id=listing_id,
                reporter_id=reporter_id,
                reason=reason,
                created_at=now_ms(),
            )
            self._reports.append(report)

            report_count = listing.report_count + 1
            updates: dict[str, Any] = {"report_count": report_count}
            if report_count >= self.suspension_threshold:
                updates["status"] = ListingStatus.SUSPENDED
            self._listings[listing_id] = listing.model_copy(update=updates)

        if updates.get("status") == ListingStatus.SUSPENDED and not listing.is_suspended:
            logger.warning(
                "Listing suspended after reports",
                listing_id=listing_id,
                report_count=report_count,
                threshold=self.suspension_threshold,
            )
        else:
            logger.info("Listing reported", listing_id=listing_id, report_count=report_count)
        return report

    @property
    def reports(self) -> list[Report]:
        return list(self._reports)


class MemoryUserStore:
    """User profiles held in process memory."""

    def __init__(self, users: Optional[list[User]] = None):
        self._users: dict[str, User] = {user.uid: user for user in users or []}
        self._lock = asyncio.Lock()

    async def get_by_id(self, uid: str) -> Optional[User]:
        user = self._users.get(uid)
        return user.model_copy(deep=True) if user else None

    async def upsert(self, uid: str, changes: dict[str, Any]) -> User:
        async with self._lock:
            existing = self._users.get(uid)
            data = existing.model_dump() if existing else {}
            data.update(changes)
            data["uid"] = uid
            user = User.model_validate(data)
            self._users[uid] = user
        return user.model_copy(deep=True)

    async def list_by_role(self, role: UserRole) -> list[User]:
        return [user.model_copy(deep=True) for user in self._users.values() if user.role == role]


@dataclass
class _Account:
    uid: str
    email: str
    display_name: str
    password_hash: Optional[str] = None
    photo_url: Optional[str] = None
    email_verified: bool = False


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000).hex()


class MemoryAuthGateway:
    """Stand-in authentication provider.

    Google sign-in accepts the Google account's email address as the ID
    token, so the same identity always maps to the same uid. OTP codes are
    the configured ``MOCK_OTP_CODE``.
    """

    def __init__(self, otp_code: str = "123456"):
        self._accounts: dict[str, _Account] = {}
        self._salt = secrets.token_hex(8)
        self._verifications: dict[str, str] = {}
        self._otp_code = otp_code
        self.active_uid: Optional[str] = None

    def _subject(self, account: _Account) -> AuthSubject:
        return AuthSubject(
            uid=account.uid,
            display_name=account.display_name,
            email=account.email,
            email_verified=account.email_verified,
            photo_url=account.photo_url,
        )

    async def sign_up_with_password(self, display_name: str, email: str, password: str) -> AuthSubject:
        key = email.strip().lower()
        if not key or not password:
            raise AuthenticationError("Email and password are required")
        if key in self._accounts:
            raise AuthenticationError("Email already registered")

        account = _Account(
            uid=generate_id(),
            email=key,
            display_name=display_name,
            password_hash=_hash_password(password, self._salt),
        )
        self._accounts[key] = account
        self.active_uid = account.uid
        return self._subject(account)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSubject:
        account = self._accounts.get(email.strip().lower())
        if account is None or account.password_hash is None:
            raise AuthenticationError("Invalid email or password")
        if not hmac.compare_digest(account.password_hash, _hash_password(password, self._salt)):
            raise AuthenticationError("Invalid email or password")
        self.active_uid = account.uid
        return self._subject(account)

    async def sign_in_with_google(self, id_token: str) -> AuthSubject:
        key = id_token.strip().lower()
        if "@" not in key:
            raise AuthenticationError("Invalid Google credential")

        account = self._accounts.get(key)
        if account is None:
            account = _Account(
                uid=generate_id(),
                email=key,
                display_name=key.split("@")[0].replace(".", " ").title(),
                email_verified=True,
            )
            self._accounts[key] = account
        self.active_uid = account.uid
        return self._subject(account)

    async def sign_out(self) -> None:
        self.active_uid = None

    async def send_phone_code(self, phone_number: str) -> str:
        if self.active_uid is None:
            raise AuthenticationError("No user signed in")
        verification_id = generate_id()
        self._verifications[verification_id] = phone_number
        logger.info("Phone verification code issued", verification_id=verification_id)
        return verification_id

    async def confirm_phone_code(self, verification_id: str, phone_number: str, code: str) -> str:
        issued_to = self._verifications.get(verification_id)
        if issued_to is None or issued_to != phone_number:
            raise AuthenticationError("Unknown verification")
        if not hmac.compare_digest(code, self._otp_code):
            raise AuthenticationError("Invalid verification code")
        del self._verifications[verification_id]
        return phone_number


class MemoryObjectStorage:
    """Keeps uploaded bytes in memory and hands out stable URLs."""

    def __init__(self, base_url: str = "https://storage.kejah.local/listings"):
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, bytes] = {}

    async def upload_image(
        self,
        filename: str,
        data: bytes,
        content_type: str = "image/jpeg",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        key = build_object_key(filename, now_ms())
        total = len(data)
        sent = 0
        buffer = bytearray()
        while sent < total:
            chunk = data[sent:sent + UPLOAD_CHUNK_SIZE]
            buffer.extend(chunk)
            sent += len(chunk)
            if on_progress:
                on_progress(sent / total)
            await asyncio.sleep(0)
        if on_progress and total == 0:
            on_progress(1.0)

        self.objects[key] = bytes(buffer)
        logger.info("Image stored", object_key=key, size_bytes=total, content_type=content_type)
        return f"{self.base_url}/{key}"


class MemorySubmissionSink:
    """Collects feedback and contact messages."""

    def __init__(self):
        self.feedback: list[Feedback] = []
        self.contact_messages: list[ContactMessage] = []

    async def add_feedback(self, feedback: Feedback) -> None:
        self.feedback.append(feedback)
        logger.info("Feedback received", feedback_type=feedback.type.value, rating=feedback.rating)

    async def add_contact_message(self, message: ContactMessage) -> None:
        self.contact_messages.append(message)
        logger.info("Contact message received", listing_id=message.listing_id)


def build_memory_backend(settings: Settings, seed: bool = True) -> Backend:
    """Assemble the in-memory backend, optionally with the seed dataset."""
    return Backend(
        name="memory",
        listings=MemoryListingStore(
            seed_listings() if seed else [],
            suspension_threshold=settings.REPORT_SUSPENSION_THRESHOLD,
        ),
        users=MemoryUserStore(seed_users() if seed else []),
        auth=MemoryAuthGateway(otp_code=settings.MOCK_OTP_CODE),
        storage=MemoryObjectStorage(base_url=settings.MOCK_STORAGE_BASE_URL),
        submissions=MemorySubmissionSink(),
    )
