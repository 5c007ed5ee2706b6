"""Mail transports that deliver rendered notifications."""
from __future__ import annotations

import logging
import smtplib
import ssl
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import make_msgid
from typing import NamedTuple, Protocol, runtime_checkable

from atom_mailer.exceptions import InvalidConfiguration, TransportFailure
from atom_mailer.models.messages import DeliveryReceipt, OutboundMessage


logger = logging.getLogger(__name__)


class SMTPEndpoint(NamedTuple):
    host: str
    port: int
    use_ssl: bool


# Submission endpoints for the services senders usually hold app passwords for.
SERVICE_ENDPOINTS: dict[str, SMTPEndpoint] = {
    "gmail": SMTPEndpoint("smtp.gmail.com", 465, True),
    "outlook": SMTPEndpoint("smtp.office365.com", 587, False),
    "yahoo": SMTPEndpoint("smtp.mail.yahoo.com", 465, True),
}


@runtime_checkable
class MailTransport(Protocol):
    """Anything that can deliver one rendered message."""

    def send(self, message: OutboundMessage) -> DeliveryReceipt:
        ...


def resolve_endpoint(
    service: str | None,
    host: str | None = None,
    port: int | None = None,
    use_ssl: bool | None = None,
) -> SMTPEndpoint:
    """
    Pick the SMTP endpoint from a service name, letting explicit values win.

    Raises:
        InvalidConfiguration: If neither a known service nor a host is given
    """
    base = SERVICE_ENDPOINTS.get((service or "").lower())
    if base is None and not host:
        known = ", ".join(sorted(SERVICE_ENDPOINTS))
        raise InvalidConfiguration(
            f"Unknown email service {service!r}; use one of {known} or set an SMTP host."
        )
    if base is None:
        ssl_default = port == 465 if use_ssl is None else use_ssl
        return SMTPEndpoint(host, port or (465 if ssl_default else 587), ssl_default)
    return SMTPEndpoint(
        host or base.host,
        port or base.port,
        base.use_ssl if use_ssl is None else use_ssl,
    )


class SMTPMailTransport:
    """Authenticated SMTP submission, one connection per message."""

    def __init__(
        self,
        username: str,
        password: str,
        service: str | None = "gmail",
        host: str | None = None,
        port: int | None = None,
        use_ssl: bool | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not username or not password:
            raise InvalidConfiguration("SMTP username and password are required")
        self._username = username
        self._password = password
        self._endpoint = resolve_endpoint(service, host, port, use_ssl)
        self._timeout = timeout

    @property
    def endpoint(self) -> SMTPEndpoint:
        return self._endpoint

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        host, port, use_ssl = self._endpoint
        if use_ssl:
            server = smtplib.SMTP_SSL(host, port, context=context, timeout=self._timeout)
        else:
            server = smtplib.SMTP(host, port, timeout=self._timeout)
        try:
            if not use_ssl:
                server.starttls(context=context)
            server.login(self._username, self._password)
        except BaseException:
            server.close()
            raise
        return server

    def verify(self) -> None:
        """Connect and authenticate without sending anything."""

        try:
            server = self._connect()
            try:
                server.noop()
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as err:
            logger.error("SMTP connection check failed for %s:%d: %s", self._endpoint.host, self._endpoint.port, err)
            raise TransportFailure(f"SMTP connection check failed: {err}") from err
        logger.info("SMTP server %s is ready to send messages", self._endpoint.host)

    def _to_email_message(self, message: OutboundMessage) -> EmailMessage:
        email_message = EmailMessage()
        email_message["From"] = message.from_address
        email_message["To"] = message.recipient
        email_message["Subject"] = message.subject
        domain = message.from_address.rpartition("@")[2] or None
        email_message["Message-ID"] = make_msgid(domain=domain)
        email_message.set_content(message.body_html, subtype="html")
        return email_message

    def send(self, message: OutboundMessage) -> DeliveryReceipt:
        """
        Submit one message to the mail service.

        Returns:
            DeliveryReceipt with the assigned Message-ID

        Raises:
            TransportFailure: If the connection, login or submission fails
        """
        email_message = self._to_email_message(message)
        try:
            server = self._connect()
            try:
                refused = server.send_message(email_message)
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as err:
            raise TransportFailure(
                f"Failed to send '{message.subject}' to {message.recipient}: {err}",
                recipient=message.recipient,
            ) from err

        refused = {
            address: f"{code} {reply.decode('utf-8', errors='replace') if isinstance(reply, bytes) else reply}"
            for address, (code, reply) in (refused or {}).items()
        }
        accepted = [message.recipient] if message.recipient not in refused else []
        return DeliveryReceipt(
            message_id=email_message["Message-ID"],
            recipient=message.recipient,
            accepted=accepted,
            refused=refused,
            sent_at=datetime.now(timezone.utc),
        )
