"""Listing report endpoint."""

from http.server import BaseHTTPRequestHandler

from api._shared import read_json_body, respond
from kejah.services.backend_selector import get_backend
from kejah.services.listings import report_listing
from kejah.utils.errors import ValidationError


class handler(BaseHTTPRequestHandler):
    """POST {"listingId", "reason", "reporterId"} -> 201 with the report."""

    def do_POST(self):
        async def operation():
            body = read_json_body(self)
            listing_id = body.get("listingId") or body.get("listing_id")
            reporter_id = body.get("reporterId") or body.get("reporter_id")
            if not listing_id or not reporter_id:
                raise ValidationError("listingId and reporterId are required")

            report = await report_listing(get_backend(), listing_id, body.get("reason", ""), reporter_id)
            return 201, report.model_dump(mode="json", by_alias=True)

        respond(self, operation)
