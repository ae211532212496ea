"""User directory: profile lookups and sign-in provider binding.

An account is bound to the provider it was first signed in with and stays
bound. Signing in through the other provider signs the fresh provider
session out again before ProviderMismatch is raised, so no session survives
a rejected sign-in.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from kejah.models.user import (
    AuthProviderName,
    AuthSubject,
    PhoneVerification,
    PhoneVerificationStatus,
    Session,
    User,
    UserRole,
)
from kejah.services.backend import AuthGateway, Backend, UserStore
from kejah.utils.errors import AuthenticationError, ProviderMismatch, ValidationError
from kejah.utils.logging import get_structured_logger, mask_user_id, mask_sensitive_data

logger = get_structured_logger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[\d\s().-]{7,20}$")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserDirectory:
    """Profiles plus the sign-in flows that create and bind them."""

    def __init__(self, users: UserStore, auth: AuthGateway):
        self.users = users
        self.auth = auth

    @classmethod
    def from_backend(cls, backend: Backend) -> "UserDirectory":
        return cls(backend.users, backend.auth)

    # Profiles

    async def get_user(self, uid: str) -> Optional[User]:
        return await self.users.get_by_id(uid)

    async def update_user(self, uid: str, changes: dict[str, Any]) -> User:
        """Merge profile changes. The bound provider cannot be changed here."""
        if "auth_provider" in changes or "uid" in changes:
            raise ValidationError("uid and auth_provider cannot be updated")
        return await self.users.upsert(uid, changes)

    async def get_agents(self) -> list[User]:
        return await self.users.list_by_role(UserRole.AGENT)

    # Sign-in flows

    async def sign_up_with_email(self, display_name: str, email: str, password: str) -> Session:
        subject = await self.auth.sign_up_with_password(display_name, email, password)
        return await self._open_session(subject, AuthProviderName.EMAIL, display_name)

    async def sign_in_with_email(self, email: str, password: str) -> Session:
        subject = await self.auth.sign_in_with_password(email, password)
        return await self._open_session(subject, AuthProviderName.EMAIL)

    async def sign_in_with_google(self, id_token: str) -> Session:
        subject = await self.auth.sign_in_with_google(id_token)
        return await self._open_session(subject, AuthProviderName.GOOGLE)

    async def sign_out(self, session: Optional[Session] = None) -> None:
        await self.auth.sign_out()
        if session is not None:
            logger.info("User signed out", user_id=mask_user_id(session.user.uid))

    async def _open_session(
        self,
        subject: AuthSubject,
        provider: AuthProviderName,
        display_name: Optional[str] = None,
    ) -> Session:
        profile = await self.users.get_by_id(subject.uid)
        bound = profile.auth_provider if profile else None

        if bound is not None and bound != provider:
            await self.auth.sign_out()
            logger.warning(
                "Sign-in rejected: provider mismatch",
                user_id=mask_user_id(subject.uid),
                bound_provider=bound.value,
                attempted_provider=provider.value,
            )
            raise ProviderMismatch(bound.value, provider.value)

        now = _now_iso()
        changes: dict[str, Any] = {"last_login_iso": now}
        if profile is None:
            name = subject.display_name or display_name or "User"
            changes.update(
                display_name=name,
                email=subject.email,
                photo_url=subject.photo_url,
                is_verified=subject.email_verified,
                role=UserRole.BUYER,
                auth_provider=provider,
                created_at_iso=now,
            )
        else:
            if bound is None:
                changes["auth_provider"] = provider
            # Claims only fill gaps; stored profile data wins
            if not profile.email and subject.email:
                changes["email"] = subject.email

        user = await self.users.upsert(subject.uid, changes)
        logger.info(
            "User signed in",
            user_id=mask_user_id(user.uid),
            provider=provider.value,
            new_account=profile is None,
        )
        return Session(user=user, provider=provider)

    # Phone verification: pending -> verified

    async def start_phone_verification(self, session: Session, phone_number: str) -> PhoneVerification:
        phone_number = phone_number.strip()
        if not PHONE_PATTERN.match(phone_number):
            raise ValidationError(f"Invalid phone number: {mask_sensitive_data(phone_number)}")
        verification_id = await self.auth.send_phone_code(phone_number)
        logger.info("Phone verification started", user_id=mask_user_id(session.user.uid))
        return PhoneVerification(verification_id=verification_id, phone_number=phone_number)

    async def confirm_phone_verification(
        self,
        session: Session,
        verification: PhoneVerification,
        code: str,
    ) -> Session:
        if verification.status == PhoneVerificationStatus.VERIFIED:
            raise AuthenticationError("Verification already used")

        phone_number = await self.auth.confirm_phone_code(
            verification.verification_id, verification.phone_number, code.strip()
        )
        user = await self.users.upsert(session.user.uid, {"phone_number": phone_number, "is_verified": True})
        verification.status = PhoneVerificationStatus.VERIFIED
        logger.info("Phone verified", user_id=mask_user_id(user.uid))
        return Session(user=user, provider=session.provider)
