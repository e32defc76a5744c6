"""
Exception hierarchy for the API builder.

Configuration errors are raised synchronously while routes and metadata are
registered. Routing, normalization and formatting errors are raised during
dispatch and end up as the completion error of a single invocation.
"""

from typing import Any, Optional


class ApiBuilderError(Exception):
    """Base exception class for API builder errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ApiBuilderError):
    """Raised when a route, CORS setting or metadata registration is invalid."""


class RoutingError(ApiBuilderError):
    """Raised when an event cannot be routed to a handler."""

    def __init__(self, message: str, method: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.method = method
        self.path = path


class RequestNormalizationError(ApiBuilderError):
    """Raised when a gateway event cannot be converted into an ApiRequest."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class ResponseFormattingError(ApiBuilderError):
    """Raised when a handler result cannot be serialized into a response body."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.value = value


class CircularReferenceError(ResponseFormattingError):
    """Raised when a JSON success body contains a self-referential structure."""


class PromptError(ApiBuilderError):
    """Raised when an interactive prompt does not receive a value."""
