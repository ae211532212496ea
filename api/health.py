"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json

from kejah.config import get_settings
from kejah.services.backend_selector import get_backend
from kejah.utils.errors import BackendUnavailable


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Report liveness and which backend this process resolved."""
        settings = get_settings()
        try:
            backend_name = get_backend().name
            status, code = "ok", 200
        except BackendUnavailable:
            backend_name, status, code = None, "degraded", 503

        self.send_response(code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps({"status": status, "service": settings.SERVICE_NAME, "backend": backend_name})
        self.wfile.write(response.encode('utf-8'))

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
