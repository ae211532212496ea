"""Custom assertion helpers."""

from typing import Any, Dict, Sequence
import json

from kejah.models.listing import Listing


def assert_valid_listing(listing: Dict[str, Any]) -> None:
    """Assert that a serialized listing (camelCase wire form) is valid."""
    for key in ("id", "creatorId", "type", "price", "location", "createdAt", "status", "reportCount", "views"):
        assert key in listing, f"missing {key}"
    assert listing['type'] in ['SALE', 'RENT']
    assert listing['status'] in ['active', 'suspended']
    assert listing['views'] >= 0
    assert listing['reportCount'] >= 0


def assert_browse_order(listings: Sequence[Listing]) -> None:
    """Assert featured listings come first and each group is newest first."""
    keys = [(not listing.featured, -listing.created_at) for listing in listings]
    assert keys == sorted(keys)


def assert_json_response(handler: Any, expected_status: int) -> Any:
    """Assert a captured handler response and return its decoded body."""
    assert handler.send_response.called
    assert handler.send_response.call_args[0][0] == expected_status
    handler.send_header.assert_any_call('Content-Type', 'application/json')
    handler.wfile.seek(0)
    try:
        return json.loads(handler.wfile.read().decode('utf-8'))
    except json.JSONDecodeError:
        assert False, "Response body is not valid JSON"
