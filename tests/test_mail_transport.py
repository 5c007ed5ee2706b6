"""Tests for the SMTP mail transport (smtplib is mocked)."""
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from atom_mailer.exceptions import InvalidConfiguration, TransportFailure
from atom_mailer.models.messages import OutboundMessage
from atom_mailer.services.mail_transport import (
    MailTransport,
    SMTPEndpoint,
    SMTPMailTransport,
    resolve_endpoint,
)


@pytest.fixture()
def outbound() -> OutboundMessage:
    return OutboundMessage(
        recipient="user@example.com",
        subject="Email Verification - Atom Jujitsu",
        body_html="<p>hello</p>",
        from_address="sender@example.com",
    )


class TestResolveEndpoint:
    """Service names map to SMTP endpoints, explicit values win."""

    def test_gmail(self):
        assert resolve_endpoint("gmail") == SMTPEndpoint("smtp.gmail.com", 465, True)

    def test_service_name_is_case_insensitive(self):
        assert resolve_endpoint("Outlook") == SMTPEndpoint("smtp.office365.com", 587, False)

    def test_host_override(self):
        assert resolve_endpoint("gmail", host="relay.local", port=2525, use_ssl=False) == SMTPEndpoint(
            "relay.local", 2525, False
        )

    def test_custom_host_without_service(self):
        assert resolve_endpoint(None, host="relay.local") == SMTPEndpoint("relay.local", 587, False)

    def test_unknown_service_raises(self):
        with pytest.raises(InvalidConfiguration):
            resolve_endpoint("carrier-pigeon")


def test_missing_credentials_raise():
    with pytest.raises(InvalidConfiguration):
        SMTPMailTransport(username="", password="secret")


def test_smtp_transport_satisfies_protocol():
    assert isinstance(SMTPMailTransport("sender@example.com", "secret"), MailTransport)


@patch("atom_mailer.services.mail_transport.smtplib.SMTP_SSL")
def test_send_over_ssl(mock_smtp_ssl, outbound):
    server = MagicMock()
    server.send_message.return_value = {}
    mock_smtp_ssl.return_value = server
    transport = SMTPMailTransport("sender@example.com", "secret", timeout=5)

    receipt = transport.send(outbound)

    assert mock_smtp_ssl.call_args.args[:2] == ("smtp.gmail.com", 465)
    server.login.assert_called_once_with("sender@example.com", "secret")
    sent = server.send_message.call_args.args[0]
    assert sent["To"] == "user@example.com"
    assert sent["From"] == "sender@example.com"
    assert sent["Subject"] == "Email Verification - Atom Jujitsu"
    assert sent.get_content_type() == "text/html"
    assert receipt.message_id == sent["Message-ID"]
    assert receipt.accepted == ["user@example.com"]
    server.quit.assert_called_once()


@patch("atom_mailer.services.mail_transport.smtplib.SMTP")
def test_send_with_starttls(mock_smtp, outbound):
    server = MagicMock()
    server.send_message.return_value = {}
    mock_smtp.return_value = server
    transport = SMTPMailTransport("sender@example.com", "secret", service="outlook")

    transport.send(outbound)

    server.starttls.assert_called_once()
    server.send_message.assert_called_once()


@patch("atom_mailer.services.mail_transport.smtplib.SMTP_SSL")
def test_authentication_error_becomes_transport_failure(mock_smtp_ssl, outbound):
    server = MagicMock()
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")
    mock_smtp_ssl.return_value = server
    transport = SMTPMailTransport("sender@example.com", "wrong")

    with pytest.raises(TransportFailure) as excinfo:
        transport.send(outbound)

    assert excinfo.value.recipient == "user@example.com"
    server.send_message.assert_not_called()
    server.close.assert_called_once()


@patch("atom_mailer.services.mail_transport.smtplib.SMTP")
def test_starttls_failure_closes_connection(mock_smtp):
    server = MagicMock()
    server.starttls.side_effect = smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")
    mock_smtp.return_value = server
    transport = SMTPMailTransport("sender@example.com", "secret", service="outlook")

    with pytest.raises(TransportFailure):
        transport.verify()

    server.login.assert_not_called()
    server.close.assert_called_once()


@patch("atom_mailer.services.mail_transport.smtplib.SMTP_SSL")
def test_verify_authentication_error_closes_connection(mock_smtp_ssl):
    server = MagicMock()
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"Bad credentials")
    mock_smtp_ssl.return_value = server
    transport = SMTPMailTransport("sender@example.com", "wrong")

    with pytest.raises(TransportFailure):
        transport.verify()

    server.close.assert_called_once()
    server.noop.assert_not_called()


@patch("atom_mailer.services.mail_transport.smtplib.SMTP_SSL")
def test_unreachable_server_becomes_transport_failure(mock_smtp_ssl, outbound):
    mock_smtp_ssl.side_effect = OSError("Network is unreachable")
    transport = SMTPMailTransport("sender@example.com", "secret")

    with pytest.raises(TransportFailure):
        transport.send(outbound)

    assert mock_smtp_ssl.call_count == 1


@patch("atom_mailer.services.mail_transport.smtplib.SMTP_SSL")
def test_verify_logs_in_without_sending(mock_smtp_ssl):
    server = MagicMock()
    mock_smtp_ssl.return_value = server
    transport = SMTPMailTransport("sender@example.com", "secret")

    transport.verify()

    server.login.assert_called_once()
    server.send_message.assert_not_called()
    server.quit.assert_called_once()


@patch("atom_mailer.services.mail_transport.smtplib.SMTP_SSL")
def test_verify_failure_raises(mock_smtp_ssl):
    mock_smtp_ssl.side_effect = smtplib.SMTPConnectError(421, b"Service not available")
    transport = SMTPMailTransport("sender@example.com", "secret")

    with pytest.raises(TransportFailure):
        transport.verify()
