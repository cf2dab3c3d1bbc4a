"""
Error taxonomy for the forwarding pipeline.

Every failure the request handler expects is a ForwardingError tagged with
the pipeline stage it came from. The tag is read for operator logging only;
the HTTP response is the same generic error page for every stage.
"""


class ForwardingError(Exception):
    """Base class for expected failures while forwarding a submission."""

    stage = "unknown"


class MalformedBodyError(ForwardingError):
    """The request body could not be decoded under its inferred encoding."""

    stage = "decode"


class DispatchError(ForwardingError):
    """The mail transport rejected the connection, login, or message."""

    stage = "dispatch"
