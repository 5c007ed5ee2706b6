"""Errors raised while composing or delivering notifications."""


class DispatchError(Exception):
    """Base class for notification dispatch failures."""


class InvalidConfiguration(DispatchError):
    """Sender credentials, base URL or transport endpoint are missing or malformed."""


class TransportFailure(DispatchError):
    """The mail service rejected the message or could not be reached."""

    def __init__(self, message: str, recipient: str | None = None) -> None:
        super().__init__(message)
        self.recipient = recipient
