"""Moderation report model."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportStatus(str, Enum):
    """Review state of a report."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"


class Report(BaseModel):
    """A user-submitted report against a listing."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Report ID")
    listing_id: str = Field(..., description="Reported listing")
    reporter_id: str = Field(..., description="Reporting user")
    reason: str = Field("", description="Reason text")
    created_at: int = Field(..., description="Epoch milliseconds")
    status: ReportStatus = Field(default=ReportStatus.PENDING)
