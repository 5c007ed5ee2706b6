"""Pydantic models describing outbound notifications."""
from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class OutboundMessage(BaseModel):
    """A fully rendered message ready to hand to a mail transport."""

    model_config = ConfigDict(frozen=True)

    recipient: str
    subject: str
    body_html: str
    from_address: str


class DeliveryReceipt(BaseModel):
    """Result of a single accepted submission to the mail service."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    recipient: str
    accepted: list[str] = []
    refused: dict[str, str] = {}
    sent_at: datetime


# Message kinds
class VerificationRequest(BaseModel):
    """Ask a new account holder to confirm their address."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["verification_request"] = "verification_request"
    recipient_email: str
    verification_token: str


class TwoFactorSetupNotice(BaseModel):
    """Tell an account holder that two-factor authentication changed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["two_factor_setup_notice"] = "two_factor_setup_notice"
    recipient_email: str
    free_text_message: str


class LoginWarningNotice(BaseModel):
    """Warn an account holder about repeated failed logins."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["login_warning_notice"] = "login_warning_notice"
    recipient_email: str
    attempts: int = Field(ge=0)
    is_locked: bool = False
    occurred_at: datetime


MessageKind = Union[VerificationRequest, TwoFactorSetupNotice, LoginWarningNotice]
