"""Classification of provider failures into :class:`ApiError` kinds.

The classifier only labels failures. It never retries; callers decide
whether to re-trigger an operation using :func:`is_retryable` and
:func:`retry_delay`.
"""

from __future__ import annotations

import re
import socket
from typing import Optional

import httpx

from .exceptions import ApiError, ErrorKind

_STATUS_CODE_RE = re.compile(r"\b(\d{3})\b")

_HOST_RESOLUTION_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
    "name resolution",
)


def extract_status_code(message: Optional[str]) -> Optional[int]:
    """Return the first standalone 3-digit token in ``message``."""
    if not message:
        return None
    match = _STATUS_CODE_RE.search(message)
    if match is None:
        return None
    return int(match.group(1))


def _kind_for_status(status_code: Optional[int]) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (402, 413):
        return ErrorKind.QUOTA_EXCEEDED
    if status_code in (400, 422):
        return ErrorKind.INVALID_REQUEST
    if status_code is not None and 500 <= status_code <= 599:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def _is_timeout(error: BaseException) -> bool:
    return isinstance(error, (httpx.TimeoutException, TimeoutError, socket.timeout))


def _is_host_resolution(error: BaseException) -> bool:
    if isinstance(error, socket.gaierror):
        return True
    if isinstance(error, httpx.ConnectError):
        text = str(error).lower()
        return any(hint in text for hint in _HOST_RESOLUTION_HINTS)
    return False


def _is_transport(error: BaseException) -> bool:
    return isinstance(error, (httpx.TransportError, OSError))


def classify(error: BaseException, provider_name: str) -> ApiError:
    """Map ``error`` into an :class:`ApiError` for ``provider_name``.

    First match wins: timeout, host resolution, generic transport,
    already-classified passthrough, then a status code scan of the message.
    """
    if _is_timeout(error):
        return ApiError(
            "Request timed out",
            kind=ErrorKind.TIMEOUT,
            provider_name=provider_name,
            cause=error,
        )
    if _is_host_resolution(error):
        return ApiError(
            "Cannot connect to API server",
            kind=ErrorKind.NETWORK_ERROR,
            provider_name=provider_name,
            cause=error,
        )
    if _is_transport(error):
        return ApiError(
            f"Network error: {error}",
            kind=ErrorKind.NETWORK_ERROR,
            provider_name=provider_name,
            cause=error,
        )
    if isinstance(error, ApiError):
        return error

    message = str(error) or "Unknown error"
    status_code = extract_status_code(message)
    return ApiError(
        message,
        kind=_kind_for_status(status_code),
        provider_name=provider_name,
        status_code=status_code,
        cause=error,
    )


def is_retryable(error: BaseException) -> bool:
    """Return True if re-triggering the failed operation may succeed."""
    if isinstance(error, ApiError):
        return error.retryable
    return _is_timeout(error) or _is_transport(error)


def retry_delay(attempt: int) -> float:
    """Exponential backoff in seconds for a 1-based ``attempt``, capped at 16s."""
    if attempt < 1:
        attempt = 1
    return float(min(2 ** (attempt - 1), 16))


def should_suggest_model_switch(error: ApiError) -> bool:
    return error.kind in (
        ErrorKind.AUTHENTICATION,
        ErrorKind.QUOTA_EXCEEDED,
        ErrorKind.RATE_LIMIT,
    )


def model_switch_suggestions(error: ApiError) -> list[str]:
    current = error.provider_name or "current model"
    if error.kind is ErrorKind.AUTHENTICATION:
        return [
            "Try using a different AI model",
            "Check if you have API keys for other models",
            "Consider using Ollama for local AI",
        ]
    if error.kind is ErrorKind.QUOTA_EXCEEDED:
        return [
            "Switch to a different AI model",
            "Try using Ollama for unlimited local usage",
            "Consider upgrading your API plan",
        ]
    if error.kind is ErrorKind.RATE_LIMIT:
        return [
            "Switch to a different AI model temporarily",
            "Try using Ollama for local processing",
            f"Wait and retry with {current} later",
        ]
    return [
        "Try using a different AI model",
        "Consider using Ollama for local AI",
    ]
