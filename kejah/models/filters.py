"""Browse filters for listing queries."""

from typing import Any, Literal, Mapping, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from kejah.models.listing import ListingType
from kejah.utils.errors import ValidationError

FOUR_PLUS = "4+"


class ListingFilters(BaseModel):
    """Closed set of browse filters; unknown keys are rejected.

    All fields are optional and ``None`` means "no constraint". ``bedrooms``
    takes precedence over ``min_beds`` when both are given.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    type: Optional[ListingType] = Field(None, description="Exact listing type")
    min_price: Optional[float] = Field(None, ge=0, description="Inclusive lower price bound")
    max_price: Optional[float] = Field(None, ge=0, description="Inclusive upper price bound")
    city: Optional[str] = Field(None, description="Case-insensitive substring of the city")
    bedrooms: Optional[Union[Literal["4+"], int]] = Field(None, description="Exact count or '4+'")
    min_beds: Optional[int] = Field(None, ge=0, description="Inclusive lower bedroom bound")

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        # Query strings send empty params for unset form fields
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data

    @model_validator(mode="after")
    def _check_bedrooms(self) -> "ListingFilters":
        if isinstance(self.bedrooms, int) and self.bedrooms < 0:
            raise ValueError("bedrooms must be non-negative")
        return self

    @property
    def bedroom_floor(self) -> Optional[int]:
        """Lower bedroom bound implied by '4+' or min_beds, if any."""
        if self.bedrooms == FOUR_PLUS:
            return 4
        if self.bedrooms is None:
            return self.min_beds
        return None

    @property
    def exact_bedrooms(self) -> Optional[int]:
        return self.bedrooms if isinstance(self.bedrooms, int) else None


def parse_filters(filters: Union[ListingFilters, Mapping[str, Any], None]) -> ListingFilters:
    """Coerce a mapping (e.g. query params) into ListingFilters or raise ValidationError."""
    if filters is None:
        return ListingFilters()
    if isinstance(filters, ListingFilters):
        return filters
    try:
        return ListingFilters.model_validate(dict(filters))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid listing filters: {e}") from e
