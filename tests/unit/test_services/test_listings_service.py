"""Tests for the listing workflows: browse, view, report and publish."""

import pytest

from kejah.models.listing import ListingStatus
from kejah.models.user import AuthProviderName, Session, User, UserRole
from kejah.services.listings import (
    ImageUpload,
    browse_listings,
    publish_listing,
    report_listing,
    view_listing,
)
from kejah.utils.errors import AuthenticationError, NotFoundError, ValidationError
from tests.utils.assertions import assert_browse_order
from tests.utils.factories import create_new_listing_data


def agent_session(phone_number="+254712345678"):
    user = User(
        uid="agent_9",
        display_name="Agent Nine",
        email="nine@kejah.com",
        role=UserRole.AGENT,
        phone_number=phone_number,
        is_verified=phone_number is not None,
        auth_provider=AuthProviderName.EMAIL,
    )
    return Session(user=user, provider=AuthProviderName.EMAIL)


def draft():
    data = create_new_listing_data(image_urls=[])
    data.pop("creator_id")
    data.pop("featured")
    return data


IMAGES = [
    ImageUpload(filename="front.jpg", data=b"a" * 100_000),
    ImageUpload(filename="kitchen.png", data=b"b" * 10, content_type="image/png"),
]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_premium_is_featured(memory_backend):
    listing = await publish_listing(memory_backend, agent_session(), draft(), "premium", IMAGES)

    assert listing.featured is True
    assert listing.amount_paid == 1000
    assert listing.creator_id == "agent_9"
    assert listing.status == ListingStatus.ACTIVE
    assert len(listing.image_urls) == 2
    assert listing.image_urls[1].endswith("_kitchen.png")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_standard_is_not_featured(memory_backend):
    data = draft()
    data["featured"] = True

    listing = await publish_listing(memory_backend, agent_session(), data, "standard", IMAGES[:1])

    assert listing.featured is False
    assert listing.amount_paid == 500


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_package_prices_follow_settings(memory_backend, monkeypatch):
    monkeypatch.setenv("PREMIUM_PACKAGE_PRICE", "2500")
    from kejah.config import get_settings

    listing = await publish_listing(
        memory_backend, agent_session(), draft(), "premium", IMAGES[:1], settings=get_settings()
    )

    assert listing.amount_paid == 2500


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_reports_overall_progress(memory_backend):
    progress = []

    await publish_listing(memory_backend, agent_session(), draft(), "standard", IMAGES, progress.append)

    assert progress == sorted(progress)
    assert progress[-1] == 1.0
    assert any(p <= 0.5 for p in progress)
    assert all(0.0 <= p <= 1.0 for p in progress)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_requires_verified_phone(memory_backend):
    with pytest.raises(AuthenticationError):
        await publish_listing(memory_backend, agent_session(phone_number=None), draft(), "standard", IMAGES)

    assert memory_backend.storage.objects == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_requires_an_image(memory_backend):
    with pytest.raises(ValidationError):
        await publish_listing(memory_backend, agent_session(), draft(), "standard", [])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_unknown_package(memory_backend):
    with pytest.raises(ValidationError):
        await publish_listing(memory_backend, agent_session(), draft(), "platinum", IMAGES)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_invalid_draft_uploads_nothing(memory_backend):
    data = draft()
    data["price"] = -5

    with pytest.raises(ValidationError):
        await publish_listing(memory_backend, agent_session(), data, "standard", IMAGES)

    assert memory_backend.storage.objects == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_browse_accepts_raw_query_values(seeded_backend):
    """Test empty strings are ignored and featured listings lead."""
    listings = await browse_listings(seeded_backend, {"type": "", "city": "", "minPrice": None})
    rentals = await browse_listings(seeded_backend, {"type": "RENT"})

    assert len(listings) == 5
    assert_browse_order(listings)
    assert rentals
    assert all(listing.type.value == "RENT" for listing in rentals)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_browse_rejects_bad_filters(seeded_backend):
    with pytest.raises(ValidationError):
        await browse_listings(seeded_backend, {"minPrice": "cheap"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_view_listing_counts_views(seeded_backend):
    first = await view_listing(seeded_backend, "bs1")
    await view_listing(seeded_backend, "bs1")

    stored = await seeded_backend.listings.get_by_id("bs1")
    assert first.id == "bs1"
    assert stored.views == first.views + 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_view_missing_listing(seeded_backend):
    assert await view_listing(seeded_backend, "missing") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_report_requires_reason(seeded_backend):
    with pytest.raises(ValidationError):
        await report_listing(seeded_backend, "bs1", "   ", "user1")

    assert (await seeded_backend.listings.get_by_id("bs1")).report_count == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_report_unknown_listing(seeded_backend):
    with pytest.raises(NotFoundError):
        await report_listing(seeded_backend, "missing", "Scam", "user1")
