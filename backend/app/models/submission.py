"""
Pydantic models for a forwarded form submission.

A Submission itself is a plain insertion-ordered ``dict[str, str]`` produced
by the body decoder; only the derived, normalized form gets a model.
"""

from pydantic import BaseModel


class NormalizedContent(BaseModel):
    """
    Submission split into the primary text and the remaining fields.

    additional_fields holds one ``"<name>: <value>"`` line per non-primary
    field, in submission order, joined by ``\\n``. Values are verbatim and
    unescaped.
    """

    model_config = {"frozen": True}

    primary_text: str = ""
    additional_fields: str = ""
