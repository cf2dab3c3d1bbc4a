"""
Request body decoding service.

Turns a raw POST body into a Submission: a flat, insertion-ordered
``dict[str, str]`` of field name to value.

Two encodings are supported:
  - application/json: a JSON object; every top-level key becomes a field.
  - anything else, or no content type: application/x-www-form-urlencoded
    key=value&key=value pairs.

Non-string JSON values are stringified as compact JSON so that numbers,
booleans, null and nested structures all have one canonical text form:

  42         -> "42"
  true       -> "true"
  null       -> "null"
  {"a": 1}   -> '{"a":1}'
  [1, "x"]   -> '[1,"x"]'

The one exception is the primary ``text`` field: a null or false ``text``
decodes to the empty string, so the notification omits its primary block.
Other falsy values keep their JSON form (``0`` -> ``"0"``).

Public API:
  decode_body(content_type, body) -> dict[str, str]
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import parse_qsl

from app.services.errors import MalformedBodyError
from app.services.field_normalizer import PRIMARY_TEXT_FIELD

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def _media_type(content_type: Optional[str]) -> str:
    """Return the bare, lower-cased media type of a Content-Type header value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_content_type(content_type: Optional[str]) -> bool:
    """Return True if the Content-Type header declares a JSON body."""
    return _media_type(content_type) == JSON_MEDIA_TYPE


def stringify_value(value: Any) -> str:
    """Return the canonical text form of a decoded JSON value."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _decode_json(body: bytes) -> dict[str, str]:
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedBodyError(f"Invalid JSON body: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedBodyError(
            f"JSON body must be an object, got {type(payload).__name__}"
        )

    submission = {str(key): stringify_value(value) for key, value in payload.items()}

    # A null or false primary text means "no text", not the literal word.
    text = payload.get(PRIMARY_TEXT_FIELD, "")
    if text is None or text is False:
        submission[PRIMARY_TEXT_FIELD] = ""
    return submission


def _decode_form(body: bytes) -> dict[str, str]:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedBodyError(f"Form body is not valid UTF-8: {exc}") from exc

    try:
        pairs = parse_qsl(text, keep_blank_values=True, errors="strict")
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedBodyError(f"Invalid form-encoded body: {exc}") from exc

    # dict() keeps the last value for a repeated key
    return dict(pairs)


def decode_body(content_type: Optional[str], body: bytes) -> dict[str, str]:
    """
    Decode a raw request body into a Submission.

    Args:
        content_type: The request's Content-Type header value (may be None).
        body:         The raw request body.

    Returns:
        Insertion-ordered mapping of field name to string value.

    Raises:
        MalformedBodyError: the body cannot be parsed under the encoding
            selected by content_type (invalid JSON, a non-object JSON value,
            or a form body that is not valid UTF-8).
    """
    if is_json_content_type(content_type):
        encoding, submission = "JSON", _decode_json(body)
    else:
        encoding, submission = "form", _decode_form(body)

    logger.debug("Decoded %d field(s) from %s body", len(submission), encoding)
    return submission
