"""
Custom exception types for the SendPulse API client.

Only construction-time and connectivity failures are raised by the
client itself.  Failures reported by the SendPulse API are returned
as error results (dictionaries carrying ``is_error``) so callers can
inspect them without exception handling; :class:`ValidationError` and
:class:`ApiError` exist for callers that prefer to turn those results
into exceptions via :func:`sendpulse_api_client.client.raise_for_result`.
"""

from typing import Optional


class SendPulseError(Exception):
    """Base exception for all SendPulse client errors."""


class ConfigurationError(SendPulseError):
    """Raised when the client is constructed with missing or invalid settings."""


class AuthenticationError(SendPulseError):
    """Raised when the initial access token cannot be obtained."""


class TransportError(SendPulseError):
    """Raised when a request could not be delivered (DNS, TCP, TLS or timeout)."""


class ValidationError(SendPulseError):
    """Caller-supplied arguments were rejected before any request was sent."""


class ApiError(SendPulseError):
    """The SendPulse API answered with a non-200 status code."""

    def __init__(self, message: str, http_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.http_code = http_code
