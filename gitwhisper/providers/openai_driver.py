from __future__ import annotations

from ..exceptions import LLMError
from .base import BaseDriver


class OpenAIDriver(BaseDriver):
    """Driver for OpenAI and OpenAI-compatible chat completions endpoints."""

    provider_name = "openai"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _send(self, prompt: str, max_tokens: int, temperature: float) -> str:
        payload = {
            "model": self.variant,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "top_p": 0.9,
        }
        data = self._post_json(f"{self.base_url}/chat/completions", payload)
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise LLMError("No choices in response")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise LLMError("No content in response")
        return content


class GrokDriver(OpenAIDriver):
    """xAI Grok (OpenAI-compatible)."""

    provider_name = "grok"


class LlamaDriver(OpenAIDriver):
    provider_name = "llama"


class DeepSeekDriver(OpenAIDriver):
    provider_name = "deepseek"


class GitHubDriver(OpenAIDriver):
    """GitHub Models, which also selects the deployment via header."""

    provider_name = "github"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["azureml-model-deployment"] = self.variant
        return headers
