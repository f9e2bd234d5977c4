"""
Client Exceptions

Exception hierarchy for the chat client. Startup errors (configuration and
dial failures) are fatal; protocol errors are recovered by discarding the
offending frame; transport errors and user aborts end the session.
"""


class ChatClientError(Exception):
    """Base class for all exceptions in the chat_client package."""


class ConfigError(ChatClientError):
    """Raised when a configuration value is invalid."""


class ConfigMissingError(ConfigError):
    """Raised when a required configuration value is absent."""

    def __init__(self, key: str):
        super().__init__(
            f"{key} is not set in the .env file or environment variables"
        )
        self.key = key


class DialFailedError(ChatClientError):
    """Raised when the WebSocket connection cannot be established."""


class ProtocolError(ChatClientError):
    """Raised for a malformed or unexpected frame."""


class TransportError(ChatClientError):
    """Raised when a read or write on an open connection fails."""


class UserAbort(ChatClientError):
    """Raised when the cancellation event fires during a wait."""
