"""
Field normalization service.

Separates the primary ``text`` field from the rest of a Submission and
serializes the remaining fields into newline-separated ``"<name>: <value>"``
lines. No validation is applied: names and values containing ``:`` or
newlines are passed through as-is.
"""

from typing import Mapping

from app.models.submission import NormalizedContent

PRIMARY_TEXT_FIELD = "text"


def format_additional_fields(fields: Mapping[str, str]) -> str:
    """Render fields as ``"<name>: <value>"`` lines joined by a single newline."""
    return "\n".join(f"{name}: {value}" for name, value in fields.items())


def normalize_submission(submission: Mapping[str, str]) -> NormalizedContent:
    """
    Split a Submission into its primary text and serialized additional fields.

    Examples:
        {"text": "Hello", "user": "alice"}  -> ("Hello", "user: alice")
        {"user": "alice", "plan": ""}       -> ("", "user: alice\\nplan: ")
        {}                                  -> ("", "")
    """
    rest = {name: value for name, value in submission.items() if name != PRIMARY_TEXT_FIELD}
    return NormalizedContent(
        primary_text=submission.get(PRIMARY_TEXT_FIELD, ""),
        additional_fields=format_additional_fields(rest),
    )
