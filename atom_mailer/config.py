"""Mailer configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_SECRETS = {"", "change-me", "changeme"}


class MailerConfig(BaseModel):
    """Validated construction parameters for the notification dispatcher."""

    model_config = ConfigDict(frozen=True)

    sender_identity: str = Field(description="Address messages are sent from.")
    sender_secret: str = Field(repr=False, description="App-specific password for the sender account.")
    base_url: str = Field(description="Public base URL used to build verification links.")

    @field_validator("sender_identity")
    @classmethod
    def validate_sender_identity(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("sender identity must be an email address")
        return value

    @field_validator("sender_secret")
    @classmethod
    def validate_sender_secret(cls, value: str) -> str:
        if value.strip().lower() in _PLACEHOLDER_SECRETS:
            raise ValueError("sender secret is required")
        return value

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        """Require an absolute http(s) URL and drop trailing slashes."""

        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("base URL must start with http:// or https://")
        return value.rstrip("/")


class Settings(BaseSettings):
    """Centralised mailer settings derived from environment variables."""

    email_user: str
    email_app_password: str
    public_base_url: str

    email_service: str = Field(
        default="gmail",
        description="Well-known mail service used to pick the SMTP endpoint.",
    )
    smtp_host: str | None = Field(default=None, description="Overrides the service endpoint host.")
    smtp_port: int | None = Field(default=None, ge=1, le=65535)
    smtp_use_ssl: bool | None = Field(default=None)
    smtp_timeout: float = Field(default=30.0, gt=0)

    log_level: str = Field(default="INFO")
    transport_log_level: str = Field(
        default="WARNING",
        description="Level for SMTP transport records, which name every recipient.",
    )
    log_to_file: bool = Field(default=True)
    log_dir: Path = Field(default=Path("logs"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("email_app_password")
    @classmethod
    def validate_app_password(cls, value: str) -> str:
        """Ensure the app password is not left as a placeholder."""

        if value.strip().lower() in _PLACEHOLDER_SECRETS:
            raise ValueError(
                "EMAIL_APP_PASSWORD is required. Update your .env file with the sender's app password."
            )
        return value

    @field_validator("email_service")
    @classmethod
    def normalize_email_service(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("log_level", "transport_log_level")
    @classmethod
    def normalize_log_level(cls, value: str, info: ValidationInfo) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"{info.field_name.upper()} must be one of {', '.join(sorted(valid))}")
        return upper

    def to_mailer_config(self) -> MailerConfig:
        """Build the explicit dispatcher configuration from these settings."""

        return MailerConfig(
            sender_identity=self.email_user,
            sender_secret=self.email_app_password,
            base_url=self.public_base_url,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the process."""

    settings = Settings()
    if settings.log_to_file:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
