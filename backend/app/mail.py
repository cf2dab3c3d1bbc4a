"""
Mail client configuration.
Builds the process-wide pooled SMTP channel from environment variables.

The channel is created lazily on first use and shared by every request;
construction is guarded by a lock so concurrent first requests still get a
single pool.
"""

import logging
import os
import threading
from typing import Optional

from dotenv import load_dotenv

from app.services.mail_dispatcher import DEFAULT_MAX_CONNECTIONS, MailChannel, MailConfig

load_dotenv()

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465

_channel: Optional[MailChannel] = None
_channel_lock = threading.Lock()


def _require(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise ValueError(f"Environment variable {name} is required.")
    return value.strip()


def _optional(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def load_mail_config() -> MailConfig:
    """
    Read SMTP and addressing settings from the environment.

    Required: SMTP_HOST, SMTP_USER, SMTP_PASSWORD, MAIL_TO.
    SMTP_USE_TLS defaults to true only for the implicit-TLS port (465).

    Raises:
        ValueError: a required variable is missing, a number is malformed,
            or SMTP_MAX_CONNECTIONS is below 1.
    """
    port = int(_optional("SMTP_PORT", str(IMPLICIT_TLS_PORT)))
    max_connections = int(_optional("SMTP_MAX_CONNECTIONS", str(DEFAULT_MAX_CONNECTIONS)))
    if max_connections < 1:
        raise ValueError(
            f"SMTP_MAX_CONNECTIONS must be at least 1, got {max_connections}."
        )
    username = _require("SMTP_USER")
    return MailConfig(
        host=_require("SMTP_HOST"),
        port=port,
        username=username,
        password=_require("SMTP_PASSWORD"),
        from_email=_optional("MAIL_FROM", username),
        from_name=_optional("MAIL_FROM_NAME", "Notification Relay"),
        to_email=_require("MAIL_TO"),
        subject=_optional("MAIL_SUBJECT", "New Notification"),
        use_tls=_flag(_optional("SMTP_USE_TLS", str(port == IMPLICIT_TLS_PORT))),
        timeout=float(_optional("SMTP_TIMEOUT", "60")),
        max_connections=max_connections,
    )


def html_escape_enabled() -> bool:
    """Return True when HTML_ESCAPE_FIELDS asks for submitted values to be escaped."""
    return _flag(_optional("HTML_ESCAPE_FIELDS", "false"))


def get_mail_channel() -> MailChannel:
    """Return the shared MailChannel, creating it on first call."""
    global _channel
    if _channel is None:
        with _channel_lock:
            if _channel is None:
                config = load_mail_config()
                _channel = MailChannel(config)
                logger.info(
                    "Mail channel ready: %s:%s (max %d connections)",
                    config.host,
                    config.port,
                    _channel.max_connections,
                )
    return _channel


async def close_mail_channel() -> None:
    """Close idle connections of the shared channel, if it was ever created."""
    global _channel
    with _channel_lock:
        channel, _channel = _channel, None
    if channel is not None:
        await channel.close()
