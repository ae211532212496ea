"""User profile and session models."""

from enum import Enum
from typing import Optional
from urllib.parse import quote_plus
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    """Account roles."""
    BUYER = "buyer"
    AGENT = "agent"


class AuthProviderName(str, Enum):
    """Authentication method an account is bound to."""
    EMAIL = "email"
    GOOGLE = "google"


def placeholder_photo_url(display_name: str) -> str:
    """Generated avatar URL keyed by display name."""
    return f"https://ui-avatars.com/api/?name={quote_plus(display_name or 'User')}&background=0D8ABC&color=fff"


class User(BaseModel):
    """User or agent profile - the people table."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uid: str = Field(..., description="Auth provider subject ID")
    display_name: str = Field("User", description="Display name")
    email: str = Field("", description="Email address")
    role: UserRole = Field(default=UserRole.BUYER)
    photo_url: Optional[str] = Field(None, alias="photoURL", description="Avatar URL")
    is_verified: bool = Field(False, description="Phone verified")
    phone_number: Optional[str] = Field(None, description="Verified phone number")
    auth_provider: Optional[AuthProviderName] = Field(None, description="Bound provider, permanent once set")
    last_login_iso: Optional[str] = None
    created_at_iso: Optional[str] = None

    @model_validator(mode="after")
    def _default_photo(self) -> "User":
        if not self.photo_url:
            self.photo_url = placeholder_photo_url(self.display_name)
        return self


class AuthSubject(BaseModel):
    """Identity claims returned by the authentication provider."""
    uid: str
    display_name: Optional[str] = None
    email: str = ""
    email_verified: bool = False
    photo_url: Optional[str] = None


class Session(BaseModel):
    """Explicit session context returned by every sign-in."""
    user: User
    provider: AuthProviderName


class PhoneVerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"


class PhoneVerification(BaseModel):
    """An OTP challenge issued for a phone number."""
    verification_id: str
    phone_number: str
    status: PhoneVerificationStatus = PhoneVerificationStatus.PENDING
