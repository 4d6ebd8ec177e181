from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..error_handler import classify
from ..exceptions import LLMError
from ..variants import ModelSpec, PROVIDERS

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0
USER_AGENT = "gitwhisper/0.1.0"

_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]")


def sanitize_api_key(api_key: Optional[str]) -> str:
    """Strip characters providers reject in header values."""
    if not api_key:
        return ""
    return _NON_PRINTABLE_ASCII.sub("", api_key.strip())


class BaseDriver(ABC):
    """Abstract base for provider-specific HTTP calls.

    Each driver encapsulates one provider's request body, authentication
    and response envelope. Prompt construction and output cleanup stay in
    the generator facade so every provider is handled the same way.
    """

    provider_name: str = ""

    def __init__(self, spec: ModelSpec) -> None:
        self.spec = spec
        self.variant = spec.actual_variant
        self._api_key = sanitize_api_key(spec.api_key)
        self._timeout = httpx.Timeout(REQUEST_TIMEOUT_SECONDS)
        endpoint = spec.base_url or PROVIDERS[self.provider_name]["endpoint"] or ""
        self.base_url = endpoint.rstrip("/")

    @property
    def default_variant(self) -> str:
        return PROVIDERS[self.provider_name]["default_variant"] or ""

    def send(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Send ``prompt`` and return the provider's raw text.

        Every failure leaves as a classified :class:`ApiError`.
        """
        try:
            return self._send(prompt, max_tokens, temperature)
        except Exception as e:  # noqa: BLE001 - classified and re-raised
            api_error = classify(e, self.provider_name)
            logger.warning(
                "%s request failed (%s): %s",
                self.provider_name,
                api_error.kind.value,
                api_error.message,
            )
            if api_error is e:
                raise
            raise api_error from e

    @abstractmethod
    def _send(self, prompt: str, max_tokens: int, temperature: float) -> str:
        raise NotImplementedError

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        logger.debug(
            "POST %s provider=%s variant=%s", url, self.provider_name, self.variant
        )
        response = httpx.post(
            url,
            headers=self._headers(),
            json=payload,
            params=params,
            timeout=self._timeout,
        )
        status = response.status_code
        if status < 200 or status >= 300:
            raise LLMError(
                "HTTP {}: {} {}".format(
                    status, response.reason_phrase, response.text[:500]
                ).strip()
            )
        if not response.text.strip():
            raise LLMError("Empty response body")
        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"Invalid JSON in {self.provider_name} response") from e
        if not isinstance(data, dict):
            raise LLMError(f"Unexpected {self.provider_name} response envelope")
        return data
