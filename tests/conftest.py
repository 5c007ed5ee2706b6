"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

os.environ["EMAIL_USER"] = os.environ.get("EMAIL_USER") or "sender@example.com"
os.environ["EMAIL_APP_PASSWORD"] = os.environ.get("EMAIL_APP_PASSWORD") or "abcd efgh ijkl mnop"
os.environ["PUBLIC_BASE_URL"] = os.environ.get("PUBLIC_BASE_URL") or "https://example.com"

from atom_mailer.config import MailerConfig
from atom_mailer.exceptions import TransportFailure
from atom_mailer.logging_config import configure_logging
from atom_mailer.models.messages import DeliveryReceipt, OutboundMessage

configure_logging()


class RecordingTransport:
    """Transport double that keeps every message it is asked to send."""

    def __init__(self) -> None:
        self.sent: list[OutboundMessage] = []

    def send(self, message: OutboundMessage) -> DeliveryReceipt:
        self.sent.append(message)
        return DeliveryReceipt(
            message_id=f"<{len(self.sent)}@test>",
            recipient=message.recipient,
            accepted=[message.recipient],
            sent_at=datetime.now(timezone.utc),
        )


class FailingTransport:
    """Transport double whose every send fails."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls = 0
        self._error = error or TransportFailure("connection refused")

    def send(self, message: OutboundMessage) -> DeliveryReceipt:
        self.calls += 1
        raise self._error


@pytest.fixture()
def mailer_config() -> MailerConfig:
    return MailerConfig(
        sender_identity="sender@example.com",
        sender_secret="app-password",
        base_url="https://example.com",
    )


@pytest.fixture()
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def failing_transport() -> FailingTransport:
    return FailingTransport()
