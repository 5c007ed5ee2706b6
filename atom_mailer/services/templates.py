"""Canned HTML templates for each notification kind."""

from __future__ import annotations

import logging

from atom_mailer.config import MailerConfig
from atom_mailer.models.messages import (
    LoginWarningNotice,
    MessageKind,
    OutboundMessage,
    TwoFactorSetupNotice,
    VerificationRequest,
)


logger = logging.getLogger(__name__)

BRAND_NAME = "Atom Jujitsu"
VERIFY_EMAIL_PATH = "/verify-email/"
LOCKOUT_MINUTES = 15
LOCKOUT_THRESHOLD = 5

VERIFICATION_SUBJECT = f"Email Verification - {BRAND_NAME}"
TWO_FACTOR_SUBJECT = f"2FA Setup - {BRAND_NAME}"
LOGIN_WARNING_SUBJECT = f"Account Security Alert - {BRAND_NAME}"


def build_verification_url(base_url: str, token: str) -> str:
    """
    Join the public base URL and a verification token into a link.

    The token is appended as-is; callers are expected to issue URL-safe tokens.

    Example:
        >>> build_verification_url("https://example.com", "tok123")
        'https://example.com/verify-email/tok123'
    """
    return f"{base_url}{VERIFY_EMAIL_PATH}{token}"


def render_verification_request(kind: VerificationRequest, config: MailerConfig) -> OutboundMessage:
    url = build_verification_url(config.base_url, kind.verification_token)
    body = (
        "<h1>Verify Your Email</h1>"
        "<p>Please confirm your email address by opening the link below:</p>"
        f'<p><a href="{url}">{url}</a></p>'
        "<p>This link will expire in 10 minutes.</p>"
        "<p>If you didn't create an account, please ignore this email.</p>"
    )
    return OutboundMessage(
        recipient=kind.recipient_email,
        subject=VERIFICATION_SUBJECT,
        body_html=body,
        from_address=config.sender_identity,
    )


def render_two_factor_notice(kind: TwoFactorSetupNotice, config: MailerConfig) -> OutboundMessage:
    # The free text is embedded unescaped; callers only pass server-authored text.
    body = (
        "<h1>Two-Factor Authentication Setup</h1>"
        f"<p>{kind.free_text_message}</p>"
        "<p>If you didn't request this, please secure your account immediately.</p>"
    )
    return OutboundMessage(
        recipient=kind.recipient_email,
        subject=TWO_FACTOR_SUBJECT,
        body_html=body,
        from_address=config.sender_identity,
    )


def render_login_warning(kind: LoginWarningNotice, config: MailerConfig) -> OutboundMessage:
    if kind.is_locked:
        status = (
            "<p><strong>Your account has been temporarily locked for "
            f"{LOCKOUT_MINUTES} minutes for security purposes.</strong></p>"
        )
    else:
        status = (
            f"<p>If you reach {LOCKOUT_THRESHOLD} failed attempts, "
            "your account will be temporarily locked.</p>"
        )
    body = (
        "<h1>Security Alert</h1>"
        f"<p>There have been {kind.attempts} failed login attempts on your account.</p>"
        f"{status}"
        "<p>If this wasn't you, please consider changing your password immediately.</p>"
        f"<p>Time of alert: {kind.occurred_at.strftime('%Y-%m-%d %H:%M:%S')}</p>"
    )
    return OutboundMessage(
        recipient=kind.recipient_email,
        subject=LOGIN_WARNING_SUBJECT,
        body_html=body,
        from_address=config.sender_identity,
    )


_RENDERERS = {
    VerificationRequest: render_verification_request,
    TwoFactorSetupNotice: render_two_factor_notice,
    LoginWarningNotice: render_login_warning,
}


def render_message(kind: MessageKind, config: MailerConfig) -> OutboundMessage:
    """
    Render a message kind into the outbound message it always maps to.

    Args:
        kind: One of the supported message kinds
        config: Validated mailer configuration (sender address, base URL)

    Returns:
        OutboundMessage addressed to the kind's recipient

    Raises:
        TypeError: If ``kind`` is not a supported message kind
    """
    renderer = _RENDERERS.get(type(kind))
    if renderer is None:
        raise TypeError(f"Unsupported message kind: {type(kind).__name__}")
    logger.debug("Rendering %s for %s", type(kind).__name__, kind.recipient_email)
    return renderer(kind, config)
