"""Logging setup for the mailer's own loggers."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from pydantic import ValidationError

from atom_mailer.config import Settings, get_settings

PACKAGE_LOGGER = "atom_mailer"
TRANSPORT_LOGGER = "atom_mailer.services.mail_transport"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def build_logging_config(
    level: str = "INFO",
    transport_level: str = "WARNING",
    log_file: str | None = None,
) -> dict:
    """
    Describe handlers for the ``atom_mailer`` logger tree.

    Only the package's loggers are configured, so a host application keeps
    control of the root logger. Records stop at ``atom_mailer`` and do not
    propagate further.

    Args:
        level: Level for the package logger and its handlers
        transport_level: Level for the SMTP transport logger
        log_file: Path of an extra file handler, or None for console only
    """
    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "encoding": "utf-8",
            "formatter": "standard",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "level": level,
                "handlers": list(handlers),
                "propagate": False,
            },
            TRANSPORT_LOGGER: {"level": transport_level},
        },
    }


def configure_logging(settings: Settings | None = None, force: bool = False) -> None:
    """Configure mailer logging once per process."""

    global _configured
    if _configured and not force:
        return

    if settings is None:
        try:
            settings = get_settings()
        except ValidationError:
            # Sender credentials may be injected after logging is set up (tests, scripts).
            settings = None

    if settings is None:
        config = build_logging_config()
    else:
        log_file = None
        if settings.log_to_file:
            settings.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = str(settings.log_dir / "mailer.log")
        config = build_logging_config(settings.log_level, settings.transport_log_level, log_file)

    dictConfig(config)
    _configured = True
    logging.getLogger(PACKAGE_LOGGER).debug("Logging configured")
