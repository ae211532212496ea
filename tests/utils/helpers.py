"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional
from unittest.mock import Mock


def build_handler(
    handler_class: type,
    method: str = "GET",
    path: str = "/",
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    """Create a serverless handler instance without a socket.

    Response methods are mocked and the body is captured in ``wfile``.
    """
    raw_body = json.dumps(body).encode('utf-8') if body is not None else b""

    h = handler_class.__new__(handler_class)
    h.command = method
    h.path = path
    h.headers = {"Content-Length": str(len(raw_body)), **(headers or {})}
    h.rfile = BytesIO(raw_body)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h
