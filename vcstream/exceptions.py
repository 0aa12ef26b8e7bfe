"""Exceptions raised while streaming an upstream location."""

from typing import Any


class StreamError(Exception):
    """Base exception for all stream-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RequestConstructionError(StreamError):
    """Raised when the outbound request cannot be built from the location."""

    pass


class TransportError(StreamError):
    """Raised when the upstream cannot be reached or the connection fails."""

    pass


class ContextCancelledError(TransportError):
    """Raised when the caller's execution context is cancelled."""

    pass


class DeadlineExceededError(ContextCancelledError):
    """Raised when the caller's execution context deadline passes."""

    pass


class RedirectRejectedError(StreamError):
    """Raised when the redirect policy declines a redirect hop."""

    pass


class ValidationRejectedError(StreamError):
    """Raised when the response validator declines the upstream response."""

    pass


class UpstreamStatusError(ValidationRejectedError):
    """Raised when the upstream answers with a non-success status code."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class ConfigurationLookupError(StreamError):
    """Raised by configuration lookups when a record cannot be fetched."""

    pass
