"""Error taxonomy shared by every evichat module.

Only ConfigurationError is meant to reach the caller of a running session.
Transport and decode failures are degraded locally into "no result"
values or an UnknownEvent and logged.
"""


class EviChatError(Exception):
    """Base class for evichat errors."""

    def is_retryable(self) -> bool:
        """Override in subclasses to control retry behavior."""
        return False


class ConfigurationError(EviChatError):
    """Invalid or missing configuration (non-retryable).

    Raised before any connection is attempted, e.g. when both or neither
    of the API key and access token are set.
    """

    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")


class TransportError(EviChatError):
    """Network or connection error (retryable)."""

    def __init__(self, message: str):
        super().__init__(f"Transport error: {message}")

    def is_retryable(self) -> bool:
        return True


class DecodeError(EviChatError):
    """Malformed inbound frame or response body (non-retryable)."""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(f"Decode error: {message}")
        self.raw = raw
