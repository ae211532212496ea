"""Listing models."""

from enum import Enum
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from kejah.utils.errors import ValidationError


class ListingType(str, Enum):
    """Listing type values."""
    SALE = "SALE"
    RENT = "RENT"


class ListingStatus(str, Enum):
    """Moderation status; suspended listings are hidden from browsing."""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class ListingPackage(str, Enum):
    """Paid tier chosen when an agent publishes a listing."""
    STANDARD = "standard"
    PREMIUM = "premium"


class Location(BaseModel):
    """Where the property is."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    lat: float = Field(0.0, description="Latitude")
    lng: float = Field(0.0, description="Longitude")
    address: str = Field("", description="Street address")
    city: str = Field(..., description="City")
    state: str = Field("", description="State or region")
    zip: str = Field("", description="Postal code")


class NewListing(BaseModel):
    """Listing data supplied by the creator; the store fills in the rest."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    creator_id: str = Field(..., description="User ID of the creating agent")
    title: str = Field(..., min_length=1, description="Listing title")
    description: str = Field("", description="Free-form description")
    price: float = Field(..., ge=0, description="Asking price or monthly rent")
    type: ListingType = Field(..., description="SALE or RENT")
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    sqft: Optional[float] = Field(None, ge=0, description="Floor area")
    amenities: list[str] = Field(default_factory=list, description="Amenity tags, in display order")
    image_urls: list[str] = Field(default_factory=list, description="Public image URLs")
    location: Location
    featured: bool = Field(False, description="Premium tier, sorted first")
    amount_paid: Optional[float] = Field(None, ge=0, description="Package price paid at publication")


class Listing(NewListing):
    """A stored listing."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Store-assigned listing ID")
    created_at: int = Field(..., description="Creation time, epoch milliseconds")
    status: ListingStatus = Field(default=ListingStatus.ACTIVE)
    report_count: int = Field(0, ge=0)
    views: int = Field(0, ge=0)

    @property
    def is_suspended(self) -> bool:
        return self.status == ListingStatus.SUSPENDED


def validate_new_listing(data: Union[NewListing, dict[str, Any]]) -> NewListing:
    """Coerce insert input into a NewListing or raise ValidationError."""
    if isinstance(data, NewListing):
        # Re-validate: model_copy(update=...) and attribute assignment skip validation
        data = data.model_dump()
    try:
        return NewListing.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid listing: {e}") from e
