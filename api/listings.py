"""Listing browse and detail endpoint.

GET /api/listings?type=RENT&city=nai&bedrooms=4%2B  -> matching listings
GET /api/listings?id=<listing id>                   -> one listing, counts a view
"""

from http.server import BaseHTTPRequestHandler

from api._shared import query_params, respond
from kejah.services.backend_selector import get_backend
from kejah.services.listings import browse_listings, view_listing
from kejah.utils.errors import NotFoundError


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for listings."""

    def do_GET(self):
        params = query_params(self.path)

        async def operation():
            backend = get_backend()
            listing_id = params.pop("id", None)
            if listing_id:
                listing = await view_listing(backend, listing_id)
                if listing is None:
                    raise NotFoundError(f"Listing not found: {listing_id}")
                return 200, listing.model_dump(mode="json", by_alias=True)

            listings = await browse_listings(backend, params)
            return 200, {
                "count": len(listings),
                "listings": [listing.model_dump(mode="json", by_alias=True) for listing in listings],
            }

        respond(self, operation)
