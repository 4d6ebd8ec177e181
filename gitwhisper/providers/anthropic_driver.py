from __future__ import annotations

from ..exceptions import LLMError
from .base import BaseDriver

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeDriver(BaseDriver):
    """Driver handling Anthropic API calls (messages endpoint)."""

    provider_name = "claude"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["x-api-key"] = self._api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

    def _send(self, prompt: str, max_tokens: int, temperature: float) -> str:
        payload = {
            "model": self.variant,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        data = self._post_json(f"{self.base_url}/messages", payload)
        content = data.get("content")
        if not isinstance(content, list) or not content:
            raise LLMError("No content in response")
        first = content[0]
        text = first.get("text") if isinstance(first, dict) else None
        if not isinstance(text, str):
            raise LLMError("No text in response")
        return text
