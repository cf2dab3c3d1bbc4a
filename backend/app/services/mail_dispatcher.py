"""
Mail dispatch service.

Owns the pooled SMTP channel used to relay rendered notifications and builds
the outgoing message.

MailChannel
-----------
A pool of authenticated aiosmtplib connections to one SMTP server:
  - at most ``max_connections`` connections are checked out at once; further
    senders wait on the pool's semaphore rather than failing.
  - connections are reused for any number of messages. An idle connection is
    probed with NOOP before reuse and replaced if the server dropped it.
  - implicit TLS on port 465, otherwise STARTTLS when the server offers it.
    Certificates are not validated.
  - delivery-status notifications are never requested: recipients carry
    NOTIFY=NEVER when the server advertises DSN.

Every transport failure (connect, login, send) surfaces as DispatchError.
Sends are never retried.

Public API:
  MailConfig
  MailChannel(config, *, max_connections=5, connect=None)
  build_message(document, config) -> MIMEText
  send_document(channel, document) -> None
"""

import asyncio
import logging
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from typing import Awaitable, Callable, Optional

import aiosmtplib

from app.services.errors import DispatchError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONNECTIONS = 5

# Headers that mark the message as machine-generated bulk mail so that
# recipient autoresponders stay quiet.
BULK_HEADERS = {
    "Precedence": "bulk",
    "X-Auto-Response-Suppress": "All",
    "Auto-Submitted": "auto-generated",
}

_DSN_RCPT_OPTIONS = ["NOTIFY=NEVER"]


@dataclass(frozen=True)
class MailConfig:
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str
    to_email: str
    subject: str
    use_tls: bool = True
    timeout: float = 60.0
    max_connections: int = DEFAULT_MAX_CONNECTIONS


ConnectionFactory = Callable[[], Awaitable[aiosmtplib.SMTP]]


class MailChannel:
    """Connection-pooled SMTP channel shared by every request in the process."""

    def __init__(
        self,
        config: MailConfig,
        *,
        max_connections: Optional[int] = None,
        connect: Optional[ConnectionFactory] = None,
    ) -> None:
        self._config = config
        self.max_connections = max_connections or config.max_connections
        if self.max_connections < 1:
            raise ValueError(
                f"max_connections must be at least 1, got {self.max_connections}"
            )
        self._slots = asyncio.Semaphore(self.max_connections)
        self._idle: list[aiosmtplib.SMTP] = []
        self._connect = connect or self._open_connection

    @property
    def config(self) -> MailConfig:
        return self._config

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    async def _open_connection(self) -> aiosmtplib.SMTP:
        smtp = aiosmtplib.SMTP(
            hostname=self._config.host,
            port=self._config.port,
            use_tls=self._config.use_tls,
            start_tls=False if self._config.use_tls else None,
            validate_certs=False,
            timeout=self._config.timeout,
        )
        await smtp.connect()
        try:
            await smtp.login(self._config.username, self._config.password)
        except BaseException:
            smtp.close()
            raise
        logger.info(
            "Opened SMTP connection to %s:%s", self._config.host, self._config.port
        )
        return smtp

    async def _checkout(self) -> aiosmtplib.SMTP:
        """Return a live idle connection, or open a new one."""
        while self._idle:
            smtp = self._idle.pop()
            if not smtp.is_connected:
                continue
            try:
                await smtp.noop()
            except (aiosmtplib.SMTPException, OSError):
                logger.info("Discarding stale SMTP connection")
                smtp.close()
                continue
            except BaseException:
                smtp.close()
                raise
            return smtp
        return await self._connect()

    async def send(self, message: MIMEText) -> None:
        """
        Send one message over a pooled connection.

        Raises:
            DispatchError: the connection, login, or send was rejected.
        """
        async with self._slots:
            try:
                smtp = await self._checkout()
            except (aiosmtplib.SMTPException, OSError) as exc:
                raise DispatchError(f"Could not open SMTP connection: {exc}") from exc

            try:
                rcpt_options = _DSN_RCPT_OPTIONS if smtp.supports_extension("dsn") else None
                await smtp.send_message(message, rcpt_options=rcpt_options)
            except BaseException as exc:
                smtp.close()
                if isinstance(exc, (aiosmtplib.SMTPException, OSError)):
                    raise DispatchError(f"SMTP send failed: {exc}") from exc
                raise

            self._idle.append(smtp)

    async def close(self) -> None:
        """Quit every idle connection. Checked-out connections are left alone."""
        idle, self._idle = self._idle, []
        for smtp in idle:
            try:
                await smtp.quit()
            except (aiosmtplib.SMTPException, OSError):
                smtp.close()


def build_message(document: str, config: MailConfig) -> MIMEText:
    """Wrap a rendered HTML document in a message addressed per config."""
    message = MIMEText(document, "html", "utf-8")
    message["From"] = formataddr((config.from_name, config.from_email))
    message["To"] = config.to_email
    message["Subject"] = config.subject
    message["Date"] = formatdate(localtime=True)
    message["Message-ID"] = make_msgid(domain=config.from_email.rpartition("@")[2] or None)
    for name, value in BULK_HEADERS.items():
        message[name] = value
    return message


async def send_document(channel: MailChannel, document: str) -> None:
    """
    Relay one rendered document to the configured recipient.

    Returns once the SMTP server has accepted the message; final delivery is
    not awaited.

    Raises:
        DispatchError: the transport rejected the message.
    """
    await channel.send(build_message(document, channel.config))
    logger.info("Notification accepted by SMTP server for %s", channel.config.to_email)
