"""Feedback and contact-form endpoint."""

from http.server import BaseHTTPRequestHandler

from pydantic import ValidationError as PydanticValidationError

from api._shared import read_json_body, respond
from kejah.models.submission import ContactMessage, Feedback
from kejah.services.backend_selector import get_backend
from kejah.utils.errors import ValidationError


class handler(BaseHTTPRequestHandler):
    """POST {"kind": "feedback" | "contact", ...} -> 201."""

    def do_POST(self):
        async def operation():
            body = read_json_body(self)
            kind = body.pop("kind", "feedback")
            submissions = get_backend().submissions
            try:
                if kind == "feedback":
                    await submissions.add_feedback(Feedback.model_validate(body))
                elif kind == "contact":
                    await submissions.add_contact_message(ContactMessage.model_validate(body))
                else:
                    raise ValidationError(f"Unknown submission kind: {kind}")
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid {kind} submission: {e}") from e
            return 201, {"success": True}

        respond(self, operation)
