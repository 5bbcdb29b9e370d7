"""Exception hierarchy for the M-Pesa client.

All exceptions inherit from :class:`MpesaError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`mpesa.exit_codes`.
Library callers catch the specific subclasses; the ``mpesa`` CLI catches
``MpesaError`` in :func:`mpesa.app.main` and exits with the matching code.

Subclass hierarchy::

    MpesaError                  (exit 1)
    +-- ConfigError             (exit 1)
    +-- AuthenticationError     (exit 3)
    +-- HttpError               (exit 4)
    +-- UnexpectedResponseError (exit 5)
    +-- NetworkError            (exit 6)
    +-- RequestCancelledError   (exit 130)

:class:`HttpError` is an intermediate signal raised by the request executor
for non-retryable statuses. The operation services convert it into an
:class:`UnexpectedResponseError` with a domain :class:`ErrorCode` before it
reaches application code.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import ValidationError

from mpesa.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_NETWORK_ERROR,
    EXIT_UNEXPECTED_RESPONSE,
)
from mpesa.models import ErrorResponse


class ErrorCode(str, enum.Enum):
    """Domain error codes attached to :class:`UnexpectedResponseError`.

    Not exhaustive: the provider documents few of its error bodies, so
    services map only the ones they can recognise and fall back to
    :attr:`UNKNOWN_ERROR`.
    """

    SHORT_CODE_REGISTERED = "SHORT_CODE_REGISTERED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_INITIATOR = "INVALID_INITIATOR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class MpesaError(Exception):
    """Base exception for all M-Pesa client errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(MpesaError):
    """Raised for configuration problems (invalid JSON, unresolvable credential sources)."""


class AuthenticationError(MpesaError):
    """Raised when the provider rejects the credentials.

    Either the token endpoint answered 401, or a resource call answered 401
    again after the token had just been refreshed. Never retried.

    Args:
        response_body: Raw body of the rejecting response (may be empty).
        message: Human-readable error description.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, response_body: str, message: str):
        super().__init__(message)
        self.response_body = response_body


class NetworkError(MpesaError):
    """Raised when the provider could not be reached.

    Covers transport failures (timeouts, refused connections, DNS) that
    persisted after all retries, retryable statuses that exhausted the retry
    budget, and any I/O failure while fetching a token.
    """

    exit_code = EXIT_NETWORK_ERROR


class HttpError(MpesaError):
    """Raised for a non-2xx status that is neither 401 nor retryable.

    Args:
        status_code: The HTTP status returned by the provider.
        response_body: The raw response body.
        message: Optional description; defaults to ``"HTTP error: <status>"``.
    """

    exit_code = EXIT_HTTP_ERROR

    def __init__(self, status_code: int, response_body: str, message: Optional[str] = None):
        super().__init__(message or f"HTTP error: {status_code}")
        self.status_code = status_code
        self.response_body = response_body


class UnexpectedResponseError(MpesaError):
    """Raised when a response cannot be used by the calling operation.

    The raw body is kept for diagnostics. When it matches the provider's
    error shape (``requestId`` / ``errorCode`` / ``errorMessage``) the parsed
    payload is exposed as :attr:`error_response`; otherwise that attribute
    is ``None``.

    Args:
        error_code: Domain classification of the failure.
        response_body: Raw response body, or ``None`` when there was none.
        message: Human-readable error description.
    """

    exit_code = EXIT_UNEXPECTED_RESPONSE

    def __init__(
        self,
        error_code: ErrorCode,
        response_body: Optional[str],
        message: str,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.response_body = response_body
        self.error_response = _parse_error_response(response_body)


class RequestCancelledError(MpesaError):
    """Raised when the caller cancels a request between attempts."""

    exit_code = EXIT_CANCELLED


def _parse_error_response(body: Optional[str]) -> Optional[ErrorResponse]:
    """Best-effort parse of the provider's error payload."""
    if not body:
        return None
    try:
        return ErrorResponse.model_validate_json(body)
    except ValidationError:
        return None
