"""Helpers shared by the serverless handlers (not a route)."""

import asyncio
import json
import logging
from http.server import BaseHTTPRequestHandler
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qs, urlparse

from kejah.utils.errors import (
    AuthenticationError,
    BackendUnavailable,
    NotFoundError,
    ProviderMismatch,
    ValidationError,
)
from kejah.utils.logging import correlation_context, get_structured_logger
from kejah.utils.logging_config import LoggingConfig

CORRELATION_ID_HEADER = "X-Correlation-ID"

logger = get_structured_logger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (ProviderMismatch, 409),
    (BackendUnavailable, 503),
)

_logging_ready = False


def ensure_logging() -> None:
    global _logging_ready
    if not _logging_ready and not logging.getLogger().handlers:
        LoggingConfig.setup_logging()
    _logging_ready = True


def query_params(path: str) -> dict[str, str]:
    """First value of each query parameter."""
    parsed = parse_qs(urlparse(path).query, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items()}


def read_json_body(handler: BaseHTTPRequestHandler) -> dict[str, Any]:
    content_length = int(handler.headers.get('Content-Length', 0) or 0)
    raw_body = handler.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
    try:
        body = json.loads(raw_body) if raw_body else {}
    except json.JSONDecodeError as e:
        raise ValidationError(f"Request body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def send_json(handler: BaseHTTPRequestHandler, status: int, payload: Any) -> None:
    handler.send_response(status)
    handler.send_header('Content-Type', 'application/json')
    handler.end_headers()
    handler.wfile.write(json.dumps(payload).encode('utf-8'))


def respond(
    handler: BaseHTTPRequestHandler,
    operation: Callable[[], Awaitable[tuple[int, Any]]],
) -> None:
    """Run an async operation and translate its outcome into a JSON response."""
    ensure_logging()
    correlation_id: Optional[str] = handler.headers.get(CORRELATION_ID_HEADER) if handler.headers else None
    with correlation_context(correlation_id):
        try:
            status, payload = asyncio.run(operation())
        except Exception as e:
            for error_type, error_status in ERROR_STATUS:
                if isinstance(e, error_type):
                    logger.warning("Request failed", status=error_status, error=str(e), path=handler.path)
                    send_json(handler, error_status, {"error": str(e)})
                    return
            logger.error(f"Unhandled error: {e}", exc_info=True, path=handler.path)
            send_json(handler, 500, {"error": "Internal server error"})
            return
        send_json(handler, status, payload)
