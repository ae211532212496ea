"""Feedback and contact-form submissions."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FeedbackType(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    GENERAL = "general"


class Feedback(BaseModel):
    """In-app feedback."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    user_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    type: FeedbackType = FeedbackType.GENERAL
    rating: Optional[int] = Field(None, ge=1, le=5)
    message: str = Field(..., min_length=1)


class ContactMessage(BaseModel):
    """Contact-form message, optionally about a specific listing."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    message: str = Field(..., min_length=1)
    phone: Optional[str] = None
    listing_id: Optional[str] = None
