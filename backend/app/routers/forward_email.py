"""
Forward-email router.

Accepts an arbitrary form submission and relays it as an HTML notification
to the configured recipient.

Pipeline (strictly sequential, no retries):
  decode body -> normalize fields -> render notification -> dispatch

Request body:
  Content-Type: application/json   a JSON object
  anything else                    key=value&key=value form encoding

The ``text`` field is shown as the primary message; every other field is
listed under "Additional Information".

Responses:
  204  message accepted by the SMTP server (empty body)
  500  generic HTML error page, whatever the cause

Both carry Content-Type: text/html and Cache-Control: no-store. Failure
causes (malformed body, transport rejection, missing configuration) are
only distinguishable in the server log.

Endpoints:
  POST /api/forward-email
"""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import HTMLResponse

from app.mail import get_mail_channel, html_escape_enabled
from app.services.body_decoder import decode_body
from app.services.email_template import render_error_page, render_notification
from app.services.errors import ForwardingError
from app.services.field_normalizer import normalize_submission
from app.services.mail_dispatcher import send_document
from app.services.timestamp import current_timestamp

logger = logging.getLogger(__name__)

router = APIRouter()

_NO_STORE_HEADERS = {"Cache-Control": "no-store"}


def _error_response(error: Exception) -> HTMLResponse:
    """Build the generic 500 page with a fresh timestamp."""
    return HTMLResponse(
        content=render_error_page(str(error), current_timestamp()),
        status_code=500,
        headers=_NO_STORE_HEADERS,
    )


@router.post("")
async def forward_email(request: Request) -> Response:
    """
    Relay one form submission by email.

    Every failure is logged and answered with the same error page; nothing
    about the cause is returned to the caller.
    """
    try:
        submission = decode_body(
            request.headers.get("content-type"), await request.body()
        )
        content = normalize_submission(submission)
        document = render_notification(
            content.primary_text,
            content.additional_fields,
            current_timestamp(),
            escape=html_escape_enabled(),
        )
        await send_document(get_mail_channel(), document)
    except ForwardingError as exc:
        logger.error("Forwarding failed at %s stage: %s", exc.stage, exc, exc_info=True)
        return _error_response(exc)
    except Exception as exc:
        logger.exception("Unexpected error while forwarding submission")
        return _error_response(exc)

    logger.info("Forwarded submission with %d field(s)", len(submission))
    return Response(
        status_code=204,
        media_type="text/html",
        headers=_NO_STORE_HEADERS,
    )
