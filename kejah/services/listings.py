"""Listing workflows built on the resolved backend."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from kejah.config import Settings, get_settings
from kejah.models.filters import ListingFilters, parse_filters
from kejah.models.listing import Listing, ListingPackage, validate_new_listing
from kejah.models.report import Report
from kejah.models.user import Session
from kejah.services.backend import Backend, ProgressCallback
from kejah.utils.errors import AuthenticationError, ValidationError
from kejah.utils.logging import get_structured_logger, log_timing, mask_user_id

logger = get_structured_logger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """A listing image waiting to be uploaded."""
    filename: str
    data: bytes
    content_type: str = "image/jpeg"


async def browse_listings(
    backend: Backend,
    filters: Union[ListingFilters, Mapping[str, Any], None] = None,
) -> list[Listing]:
    """Browse active listings, featured first then newest."""
    return await backend.listings.list(parse_filters(filters))


async def view_listing(backend: Backend, listing_id: str) -> Optional[Listing]:
    """Fetch a listing for its detail page and count the view."""
    listing = await backend.listings.get_by_id(listing_id)
    if listing is None:
        return None
    await backend.listings.increment_views(listing_id)
    return listing


async def report_listing(backend: Backend, listing_id: str, reason: str, reporter_id: str) -> Report:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required to report a listing")
    return await backend.listings.report(listing_id, reason, reporter_id)


async def publish_listing(
    backend: Backend,
    session: Session,
    draft: Mapping[str, Any],
    package: Union[ListingPackage, str] = ListingPackage.STANDARD,
    images: Sequence[ImageUpload] = (),
    on_progress: Optional[ProgressCallback] = None,
    settings: Optional[Settings] = None,
) -> Listing:
    """Publish an agent's listing under a paid package.

    The creator must have a verified phone number. The draft is validated
    before anything is uploaded; ``on_progress`` receives the overall upload
    fraction across all images.
    """
    settings = settings or get_settings()
    try:
        package = ListingPackage(package)
    except ValueError as e:
        raise ValidationError(f"Unknown listing package: {package}") from e

    if not session.user.phone_number:
        raise AuthenticationError("Phone verification is required before publishing")
    if not images:
        raise ValidationError("At least one image is required")

    data = dict(draft)
    data.update(
        creator_id=session.user.uid,
        featured=package == ListingPackage.PREMIUM,
        amount_paid=settings.package_price(package),
    )
    # Fail before uploading anything
    new_listing = validate_new_listing(data)

    image_urls = []
    total = len(images)
    with log_timing("upload_listing_images", logger=logger, image_count=total):
        for index, image in enumerate(images):
            def report_progress(fraction: float, index: int = index) -> None:
                if on_progress:
                    on_progress((index + fraction) / total)

            url = await backend.storage.upload_image(
                image.filename, image.data, image.content_type, report_progress
            )
            image_urls.append(url)

    listing = await backend.listings.insert(
        new_listing.model_copy(update={"image_urls": list(new_listing.image_urls) + image_urls})
    )
    logger.info(
        "Listing published",
        listing_id=listing.id,
        creator_id=mask_user_id(session.user.uid),
        package=package.value,
        amount_paid=listing.amount_paid,
    )
    return listing
