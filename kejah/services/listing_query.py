"""Filter and sort engine for listing collections held in memory."""

from typing import Iterable

from kejah.models.filters import ListingFilters
from kejah.models.listing import Listing


def listing_matches(listing: Listing, filters: ListingFilters) -> bool:
    """True when the listing is browsable and satisfies every filter."""
    if listing.is_suspended:
        return False

    if filters.type is not None and listing.type != filters.type:
        return False

    if filters.min_price is not None and listing.price < filters.min_price:
        return False

    if filters.max_price is not None and listing.price > filters.max_price:
        return False

    if filters.city is not None and filters.city.lower() not in listing.location.city.lower():
        return False

    exact = filters.exact_bedrooms
    if exact is not None and listing.bedrooms != exact:
        return False

    floor = filters.bedroom_floor
    if floor is not None and listing.bedrooms < floor:
        return False

    return True


def sort_key(listing: Listing) -> tuple:
    # Featured first, then newest
    return (not listing.featured, -listing.created_at)


def query_listings(listings: Iterable[Listing], filters: ListingFilters) -> list[Listing]:
    """Filter then sort.

    ``listings`` must be in insertion order; ``sorted`` is stable, so ties
    keep that order.
    """
    return sorted(
        (listing for listing in listings if listing_matches(listing, filters)),
        key=sort_key,
    )
