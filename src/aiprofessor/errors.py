from abc import ABC
from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    """Business classification of a failure, decided once where it originates."""

    AUTHENTICATION = "authentication"
    SESSION_POLICY = "session_policy"
    INPUT_VALIDATION = "input_validation"
    PROVIDER_FAILURE = "provider_failure"
    CONVERSION_FAILURE = "conversion_failure"


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """

    kind: ClassVar[ErrorKind]
    default_message: ClassVar[str] = "Request failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.default_message)
        self.details = details


# === Authentication ===
class AuthenticationError(UserError):
    """Raised when a bearer token is absent, invalid, expired or revoked."""

    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication required"


class InvalidCredentialsError(UserError):
    """Raised when username or password is wrong. Never says which one."""

    kind = ErrorKind.AUTHENTICATION
    default_message = "Invalid username or password"


# === Session policy ===
class MaxSessionsExceededError(UserError):
    """Raised when a login from a new device would exceed the concurrent session limit."""

    kind = ErrorKind.SESSION_POLICY
    default_message = "Already logged in on another device. Log out there and try again."

    def __init__(self, max_sessions: int) -> None:
        super().__init__(details={"maxSessions": max_sessions, "reason": "concurrent session limit"})


# === Input validation ===
class ValidationError(UserError):
    """Raised when user input fails validation."""

    kind = ErrorKind.INPUT_VALIDATION
    default_message = "Invalid input"


class EmptyContentError(UserError):
    kind = ErrorKind.INPUT_VALIDATION
    default_message = "Content is empty"


class InvalidBase64Error(UserError):
    kind = ErrorKind.INPUT_VALIDATION
    default_message = "Invalid Base64 payload"


class NotAPdfError(UserError):
    kind = ErrorKind.INPUT_VALIDATION
    default_message = "Not a valid PDF file: missing PDF header"


class OversizedPayloadError(UserError):
    kind = ErrorKind.INPUT_VALIDATION

    def __init__(self, max_size_bytes: int) -> None:
        max_mb = max_size_bytes / (1024 * 1024)
        super().__init__(
            f"PDF file exceeds the maximum allowed size ({max_mb:g}MB)",
            details={"maxSizeBytes": max_size_bytes},
        )


# === LLM provider ===
class RateLimitedError(UserError):
    kind = ErrorKind.PROVIDER_FAILURE
    default_message = "LLM provider rate limit exceeded. Try again later."


class ProviderTimeoutError(UserError):
    kind = ErrorKind.PROVIDER_FAILURE
    default_message = "LLM provider request timed out. Try again."


class ProviderError(UserError):
    kind = ErrorKind.PROVIDER_FAILURE
    default_message = "LLM provider request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, details={"providerStatus": status_code} if status_code is not None else None)
        self.status_code = status_code


class InvalidResponseError(UserError):
    kind = ErrorKind.PROVIDER_FAILURE
    default_message = "LLM provider returned an invalid response"


# === Conversion ===
class ConversionError(UserError):
    """Raised when Markdown cannot be rendered to PDF."""

    kind = ErrorKind.CONVERSION_FAILURE
    default_message = "Failed to convert Markdown to PDF"


class PdfProcessingError(UserError):
    """Raised when a PDF that passed header validation cannot be read."""

    kind = ErrorKind.CONVERSION_FAILURE
    default_message = "Failed to read PDF content"
