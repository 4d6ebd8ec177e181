from __future__ import annotations

from ..exceptions import LLMError
from .base import BaseDriver


class GeminiDriver(BaseDriver):
    """Driver for Google's generateContent API.

    The key travels in the ``key`` query parameter rather than a header.
    """

    provider_name = "gemini"

    def _send(self, prompt: str, max_tokens: int, temperature: float) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": temperature,
                "topP": 0.9,
            },
        }
        url = f"{self.base_url}/models/{self.variant}:generateContent"
        data = self._post_json(url, payload, params={"key": self._api_key})
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise LLMError("No candidates in response")
        try:
            text = candidates[0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise LLMError("No text in response") from None
        if not isinstance(text, str):
            raise LLMError("No text in response")
        return text
