"""Notification dispatching helpers."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from atom_mailer.config import MailerConfig, Settings, get_settings
from atom_mailer.exceptions import DispatchError, InvalidConfiguration, TransportFailure
from atom_mailer.models.messages import (
    DeliveryReceipt,
    LoginWarningNotice,
    MessageKind,
    TwoFactorSetupNotice,
    VerificationRequest,
)
from atom_mailer.services.mail_transport import MailTransport, SMTPMailTransport
from atom_mailer.services.templates import render_message


logger = logging.getLogger(__name__)


def _coerce_config(config: MailerConfig | Mapping[str, Any] | None) -> MailerConfig:
    if isinstance(config, MailerConfig):
        return config
    if config is None:
        raise InvalidConfiguration("Mailer configuration is required")
    try:
        return MailerConfig.model_validate(dict(config))
    except ValidationError as err:
        fields = ", ".join(str(e["loc"][0]) for e in err.errors() if e.get("loc"))
        raise InvalidConfiguration(f"Invalid mailer configuration ({fields}): {err}") from err


class NotificationDispatcher:
    """Render canned notifications and hand each one to a mail transport."""

    def __init__(
        self,
        config: MailerConfig | Mapping[str, Any] | None,
        transport: MailTransport,
    ) -> None:
        self._config = _coerce_config(config)
        if transport is None:
            raise InvalidConfiguration("A mail transport is required")
        self._transport = transport

    @property
    def config(self) -> MailerConfig:
        return self._config

    @property
    def transport(self) -> MailTransport:
        return self._transport

    def dispatch(self, kind: MessageKind) -> DeliveryReceipt:
        """
        Render ``kind`` and make exactly one delivery attempt.

        Args:
            kind: The notification to send

        Returns:
            DeliveryReceipt from the transport

        Raises:
            TransportFailure: If the transport rejects the message or cannot reach the mail service
        """
        message = render_message(kind, self._config)
        logger.info("Sending '%s' to %s", message.subject, message.recipient)
        try:
            receipt = self._transport.send(message)
        except DispatchError:
            logger.exception("Failed to send '%s' to %s", message.subject, message.recipient)
            raise
        except Exception as err:
            logger.exception("Failed to send '%s' to %s", message.subject, message.recipient)
            raise TransportFailure(
                f"Failed to send '{message.subject}' to {message.recipient}: {err}",
                recipient=message.recipient,
            ) from err
        logger.info("Email sent to %s, message ID: %s", message.recipient, receipt.message_id)
        return receipt

    def send_verification_email(self, recipient_email: str, verification_token: str) -> DeliveryReceipt:
        """Send the account verification link for ``verification_token``."""

        return self.dispatch(
            VerificationRequest(
                recipient_email=recipient_email,
                verification_token=verification_token,
            )
        )

    def send_two_factor_email(self, recipient_email: str, message: str) -> DeliveryReceipt:
        """Send a two-factor setup notice embedding ``message`` verbatim."""

        return self.dispatch(
            TwoFactorSetupNotice(recipient_email=recipient_email, free_text_message=message)
        )

    def send_login_warning_email(
        self,
        recipient_email: str,
        attempts: int,
        is_locked: bool,
        occurred_at: datetime | None = None,
    ) -> DeliveryReceipt:
        """Warn about failed login attempts, noting whether the account is now locked."""

        if not recipient_email:
            logger.error("No email address provided for warning email")
            raise ValueError("No email address provided")
        logger.info(
            "Preparing login warning email to %s (Attempts: %d, Locked: %s)",
            recipient_email,
            attempts,
            is_locked,
        )
        return self.dispatch(
            LoginWarningNotice(
                recipient_email=recipient_email,
                attempts=attempts,
                is_locked=is_locked,
                occurred_at=occurred_at or datetime.now(),
            )
        )


def build_dispatcher(settings: Settings | None = None) -> NotificationDispatcher:
    """
    Wire a dispatcher to the SMTP transport described by the settings.

    Raises:
        InvalidConfiguration: If the environment lacks sender credentials or base URL
    """
    if settings is None:
        try:
            settings = get_settings()
        except ValidationError as err:
            raise InvalidConfiguration(f"Mailer settings are incomplete: {err}") from err
    try:
        config = settings.to_mailer_config()
    except ValidationError as err:
        raise InvalidConfiguration(f"Invalid mailer configuration: {err}") from err

    transport = SMTPMailTransport(
        username=config.sender_identity,
        password=config.sender_secret,
        service=settings.email_service,
        host=settings.smtp_host,
        port=settings.smtp_port,
        use_ssl=settings.smtp_use_ssl,
        timeout=settings.smtp_timeout,
    )
    return NotificationDispatcher(config, transport)
