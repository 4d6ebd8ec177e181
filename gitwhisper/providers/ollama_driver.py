from __future__ import annotations

import logging

import httpx

from ..exceptions import LLMError
from .base import BaseDriver

logger = logging.getLogger(__name__)


class OllamaDriver(BaseDriver):
    """Driver for a local or self-hosted Ollama server (no API key)."""

    provider_name = "ollama"

    def _send(self, prompt: str, max_tokens: int, temperature: float) -> str:
        if not self.variant:
            raise LLMError("No model variant specified for Ollama")
        payload = {
            "model": self.variant,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "top_p": 0.9,
                "num_predict": max_tokens,
            },
        }
        data = self._post_json(f"{self.base_url}/api/generate", payload)
        if data.get("error"):
            raise LLMError(f"Ollama error: {data['error']}")
        text = data.get("response")
        if not isinstance(text, str):
            raise LLMError("No response text from Ollama")
        return text

    def is_available(self) -> bool:
        """Liveness probe; any failure reads as unavailable."""
        try:
            response = httpx.get(f"{self.base_url}/api/tags", timeout=self._timeout)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.debug("Ollama not reachable at %s: %s", self.base_url, e)
            return False
        return 200 <= response.status_code < 300

    def list_models(self) -> list[str]:
        """Names of locally installed models; empty on any failure."""
        try:
            response = httpx.get(f"{self.base_url}/api/tags", timeout=self._timeout)
            if not 200 <= response.status_code < 300:
                return []
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.debug("Ollama model listing failed: %s", e)
            return []
        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            return []
        names: list[str] = []
        for item in models:
            if isinstance(item, dict) and item.get("name"):
                names.append(str(item["name"]))
        return names
