"""Exception hierarchy for gitwhisper."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class GitWhisperError(Exception):
    """Base exception for all gitwhisper errors."""


class GitError(GitWhisperError):
    """Raised when a Git operation fails."""


class CommitError(GitError):
    """Raised when creating a commit fails."""


class PushError(GitError):
    """Raised when pushing to the remote fails.

    ``reason`` is one of ``"authentication"``, ``"connectivity"`` or
    ``"other"`` and is derived from git's stderr.
    """

    def __init__(self, message: str, reason: str = "other") -> None:
        super().__init__(message)
        self.reason = reason


class LLMError(GitWhisperError):
    """Raised when a provider call fails or returns unusable output."""


class ConfigError(GitWhisperError):
    """Raised for invalid or incomplete configuration."""


class ValidationError(GitWhisperError):
    """Raised when input validation fails."""


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_REQUEST = "invalid_request"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.RATE_LIMIT,
        ErrorKind.SERVER_ERROR,
        ErrorKind.NETWORK_ERROR,
        ErrorKind.TIMEOUT,
    }
)

_USER_MESSAGES = {
    ErrorKind.AUTHENTICATION: "Invalid API key for {provider}. Please check your API key.",
    ErrorKind.RATE_LIMIT: "Rate limit exceeded for {provider}. Please try again later.",
    ErrorKind.QUOTA_EXCEEDED: "API quota exceeded for {provider}. Please check your billing.",
    ErrorKind.INVALID_REQUEST: "Invalid request to {provider} API: {message}",
    ErrorKind.SERVER_ERROR: "{provider} API is experiencing issues. Please try again later.",
    ErrorKind.NETWORK_ERROR: (
        "Network error connecting to {provider} API. Please check your connection."
    ),
    ErrorKind.TIMEOUT: "Request to {provider} API timed out. Please try again.",
    ErrorKind.UNKNOWN: "Unknown error with {provider} API: {message}",
}


class ApiError(LLMError):
    """A classified provider failure.

    Instances are created once, by :func:`gitwhisper.error_handler.classify`,
    at the boundary between transport and the generator facade.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        provider_name: str = "",
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.provider_name = provider_name
        self.status_code = status_code
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def retryable(self) -> bool:
        return is_retryable_kind(self.kind)

    def user_message(self) -> str:
        """Return the user-facing message for this error kind."""
        return _USER_MESSAGES[self.kind].format(
            provider=self.provider_name or "provider", message=self.message
        )

    def __repr__(self) -> str:
        return (
            f"ApiError(kind={self.kind.value!r}, provider={self.provider_name!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


def is_retryable_kind(kind: ErrorKind) -> bool:
    return kind in _RETRYABLE_KINDS
