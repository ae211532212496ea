"""Supabase-backed implementation of the backend capabilities.

Tables: ``listings``, ``users``, ``reports``, ``feedback``,
``contact_messages``. Atomic counters go through database functions:

- ``increment_views(row_id)``
- ``report_listing(p_listing_id, p_reporter_id, p_reason, p_threshold)``
  inserts the report, bumps ``report_count`` and suspends at the threshold
  in one statement; returns the report row, or no rows for a missing listing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from kejah.config import Settings
from kejah.models.filters import ListingFilters
from kejah.models.listing import Listing, NewListing, validate_new_listing
from kejah.models.report import Report
from kejah.models.submission import ContactMessage, Feedback
from kejah.models.user import AuthSubject, User, UserRole
from kejah.services.backend import Backend, ProgressCallback, build_object_key, now_ms
from kejah.services.supabase_client import SupabaseClient, get_supabase_client
from kejah.utils.errors import AuthenticationError, BackendUnavailable, NotFoundError
from kejah.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

# gotrue answers bad credentials / bad OTP with these HTTP statuses
AUTH_REJECTION_STATUSES = {400, 401, 403, 422}


def _iso_to_ms(value: Union[str, int, float, None]) -> int:
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _ms_to_iso(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()


def listing_to_row(new_listing: NewListing, created_at_ms: int) -> dict[str, Any]:
    """Flatten a new listing into a ``listings`` row."""
    location = new_listing.location
    return {
        "creator_id": new_listing.creator_id,
        "title": new_listing.title,
        "description": new_listing.description,
        "price": new_listing.price,
        "type": new_listing.type.value,
        "bedrooms": new_listing.bedrooms,
        "bathrooms": new_listing.bathrooms,
        "sqft": new_listing.sqft,
        "amenities": list(new_listing.amenities),
        "image_urls": list(new_listing.image_urls),
        "lat": location.lat,
        "lng": location.lng,
        "address": location.address,
        "city": location.city,
        "state": location.state,
        "zip": location.zip,
        "featured": new_listing.featured,
        "amount_paid": new_listing.amount_paid,
        "created_at": _ms_to_iso(created_at_ms),
        "status": "active",
        "report_count": 0,
        "views": 0,
    }


def row_to_listing(row: dict[str, Any]) -> Listing:
    """Build a Listing from a ``listings`` row."""
    return Listing(
        id=str(row["id"]),
        creator_id=row.get("creator_id") or "",
        title=row.get("title") or "",
        description=row.get("description") or "",
        price=row.get("price") or 0,
        type=row.get("type"),
        bedrooms=row.get("bedrooms") or 0,
        bathrooms=row.get("bathrooms") or 0,
        sqft=row.get("sqft"),
        amenities=row.get("amenities") or [],
        image_urls=row.get("image_urls") or [],
        location={
            "lat": row.get("lat") or 0.0,
            "lng": row.get("lng") or 0.0,
            "address": row.get("address") or "",
            "city": row.get("city") or "",
            "state": row.get("state") or "",
            "zip": row.get("zip") or "",
        },
        featured=bool(row.get("featured")),
        amount_paid=row.get("amount_paid"),
        created_at=_iso_to_ms(row.get("created_at")),
        status=row.get("status") or "active",
        report_count=row.get("report_count") or 0,
        views=row.get("views") or 0,
    )


def row_to_report(row: dict[str, Any]) -> Report:
    return Report(
        id=str(row["id"]),
        listing_id=str(row["listing_id"]),
        reporter_id=row.get("reporter_id") or "",
        reason=row.get("reason") or "",
        created_at=_iso_to_ms(row.get("created_at")),
        status=row.get("status") or "pending",
    )


def user_to_row(changes: dict[str, Any]) -> dict[str, Any]:
    row = {}
    for key, value in changes.items():
        if key == "uid":
            continue
        row[key] = value.value if hasattr(value, "value") else value
    return row


def row_to_user(row: dict[str, Any]) -> User:
    return User(
        uid=str(row["id"]),
        display_name=row.get("display_name") or "User",
        email=row.get("email") or "",
        role=row.get("role") or UserRole.BUYER,
        photo_url=row.get("photo_url"),
        is_verified=bool(row.get("is_verified")),
        phone_number=row.get("phone_number"),
        auth_provider=row.get("auth_provider"),
        last_login_iso=row.get("last_login_iso"),
        created_at_iso=row.get("created_at_iso"),
    )


class SupabaseListingStore:
    """Listings table operations."""

    def __init__(self, suspension_threshold: int = 3):
        self.suspension_threshold = suspension_threshold

    async def list(self, filters: ListingFilters) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                query = client.table("listings").select("*").neq("status", "suspended")

                if filters.type is not None:
                    query = query.eq("type", filters.type.value)
                if filters.min_price is not None:
                    query = query.gte("price", filters.min_price)
                if filters.max_price is not None:
                    query = query.lte("price", filters.max_price)
                if filters.city is not None:
                    query = query.ilike("city", f"%{filters.city}%")
                if filters.exact_bedrooms is not None:
                    query = query.eq("bedrooms", filters.exact_bedrooms)
                if filters.bedroom_floor is not None:
                    query = query.gte("bedrooms", filters.bedroom_floor)

                # Featured first, then newest
                result = query.order("featured", desc=True).order("created_at", desc=True).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to list listings: {e}")

        return [row_to_listing(row) for row in result.data or []]

    async def get_by_id(self, listing_id: str) -> Optional[Listing]:
        async with SupabaseClient() as client:
            try:
                result = client.table("listings").select("*").eq("id", listing_id).limit(1).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to get listing: {e}")

        return row_to_listing(result.data[0]) if result.data else None

    async def increment_views(self, listing_id: str) -> None:
        async with SupabaseClient() as client:
            try:
                client.rpc("increment_views", {"row_id": listing_id}).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to increment views: {e}")

    async def insert(self, new_listing: NewListing) -> Listing:
        new_listing = validate_new_listing(new_listing)
        async with SupabaseClient() as client:
            try:
                result = client.table("listings").insert(listing_to_row(new_listing, now_ms())).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to create listing: {e}")

        if not result.data:
            raise BackendUnavailable("Failed to create listing: no data returned")
        listing = row_to_listing(result.data[0])
        logger.info("Listing created", listing_id=listing.id, creator_id=mask_user_id(listing.creator_id))
        return listing

    async def report(self, listing_id: str, reason: str, reporter_id: str) -> Report:
        async with SupabaseClient() as client:
            try:
                result = client.rpc("report_listing", {
                    "p_listing_id": listing_id,
                    "p_reporter_id": reporter_id,
                    "p_reason": reason,
                    "p_threshold": self.suspension_threshold,
                }).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to report listing: {e}")

        if not result.data:
            raise NotFoundError(f"Listing not found: {listing_id}")
        row = result.data[0] if isinstance(result.data, list) else result.data
        logger.info("Listing reported", listing_id=listing_id)
        return row_to_report(row)


class SupabaseUserStore:
    """Users table operations (primary people table)."""

    async def get_by_id(self, uid: str) -> Optional[User]:
        async with SupabaseClient() as client:
            try:
                result = client.table("users").select("*").eq("id", uid).limit(1).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to get user: {e}")

        return row_to_user(result.data[0]) if result.data else None

    async def upsert(self, uid: str, changes: dict[str, Any]) -> User:
        row = {"id": uid, **user_to_row(changes)}
        async with SupabaseClient() as client:
            try:
                result = client.table("users").upsert(row).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to update user: {e}")

        if not result.data:
            raise BackendUnavailable(f"Failed to update user: {uid}")
        return row_to_user(result.data[0])

    async def list_by_role(self, role: UserRole) -> list[User]:
        async with SupabaseClient() as client:
            try:
                result = client.table("users").select("*").eq("role", role.value).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to get users by role: {e}")

        return [row_to_user(row) for row in result.data or []]


def _auth_failure(action: str, error: Exception) -> Exception:
    """Classify a gotrue error as a rejection or an outage."""
    if getattr(error, "status", None) in AUTH_REJECTION_STATUSES:
        return AuthenticationError(f"{action} rejected: {error}")
    return BackendUnavailable(f"Failed to {action.lower()}: {error}")


def _subject_from_response(response: Any) -> AuthSubject:
    user = getattr(response, "user", None)
    if user is None:
        raise AuthenticationError("Authentication provider returned no user")
    metadata = getattr(user, "user_metadata", None) or {}
    return AuthSubject(
        uid=str(user.id),
        display_name=metadata.get("full_name") or metadata.get("name"),
        email=user.email or "",
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
        photo_url=metadata.get("avatar_url") or metadata.get("picture"),
    )


class SupabaseAuthGateway:
    """Supabase Auth (gotrue) operations."""

    async def sign_up_with_password(self, display_name: str, email: str, password: str) -> AuthSubject:
        async with SupabaseClient() as client:
            try:
                response = client.auth.sign_up({
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": display_name}},
                })
            except Exception as e:
                raise _auth_failure("Sign up", e)
        subject = _subject_from_response(response)
        return subject.model_copy(update={"display_name": subject.display_name or display_name})

    async def sign_in_with_password(self, email: str, password: str) -> AuthSubject:
        async with SupabaseClient() as client:
            try:
                response = client.auth.sign_in_with_password({"email": email, "password": password})
            except Exception as e:
                raise _auth_failure("Sign in", e)
        return _subject_from_response(response)

    async def sign_in_with_google(self, id_token: str) -> AuthSubject:
        async with SupabaseClient() as client:
            try:
                response = client.auth.sign_in_with_id_token({"provider": "google", "token": id_token})
            except Exception as e:
                raise _auth_failure("Google sign in", e)
        return _subject_from_response(response)

    async def sign_out(self) -> None:
        async with SupabaseClient() as client:
            try:
                client.auth.sign_out()
            except Exception as e:
                raise BackendUnavailable(f"Failed to sign out: {e}")

    async def send_phone_code(self, phone_number: str) -> str:
        # Phone change OTP is keyed by the phone number itself
        async with SupabaseClient() as client:
            try:
                client.auth.update_user({"phone": phone_number})
            except Exception as e:
                raise _auth_failure("Phone verification", e)
        return phone_number

    async def confirm_phone_code(self, verification_id: str, phone_number: str, code: str) -> str:
        async with SupabaseClient() as client:
            try:
                client.auth.verify_otp({"phone": phone_number, "token": code, "type": "phone_change"})
            except Exception as e:
                raise _auth_failure("Phone verification", e)
        return phone_number


class SupabaseObjectStorage:
    """Supabase Storage bucket for listing images."""

    def __init__(self, bucket: str = "listings"):
        self.bucket = bucket

    async def upload_image(
        self,
        filename: str,
        data: bytes,
        content_type: str = "image/jpeg",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        key = build_object_key(filename, now_ms())
        if on_progress:
            on_progress(0.0)
        async with SupabaseClient() as client:
            try:
                bucket = client.storage.from_(self.bucket)
                bucket.upload(path=key, file=data, file_options={"content-type": content_type})
                url = bucket.get_public_url(key)
            except Exception as e:
                raise BackendUnavailable(f"Failed to upload image: {e}")
        if on_progress:
            on_progress(1.0)
        logger.info("Image uploaded", object_key=key, bucket=self.bucket, size_bytes=len(data))
        return url


class SupabaseSubmissionSink:
    """Feedback and contact_messages tables."""

    async def add_feedback(self, feedback: Feedback) -> None:
        async with SupabaseClient() as client:
            try:
                client.table("feedback").insert(feedback.model_dump(mode="json")).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to add feedback: {e}")

    async def add_contact_message(self, message: ContactMessage) -> None:
        async with SupabaseClient() as client:
            try:
                client.table("contact_messages").insert(message.model_dump(mode="json")).execute()
            except Exception as e:
                raise BackendUnavailable(f"Failed to submit contact message: {e}")


def build_supabase_backend(settings: Settings) -> Backend:
    """Assemble the Supabase backend; raises BackendUnavailable if it cannot connect."""
    get_supabase_client(settings)
    return Backend(
        name="supabase",
        listings=SupabaseListingStore(suspension_threshold=settings.REPORT_SUSPENSION_THRESHOLD),
        users=SupabaseUserStore(),
        auth=SupabaseAuthGateway(),
        storage=SupabaseObjectStorage(bucket=settings.SUPABASE_STORAGE_BUCKET),
        submissions=SupabaseSubmissionSink(),
    )
