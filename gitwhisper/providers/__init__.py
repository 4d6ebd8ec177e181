"""Provider drivers keyed by provider name."""

from __future__ import annotations

from typing import Dict, Type

from ..exceptions import ConfigError
from ..variants import ModelSpec
from .anthropic_driver import ClaudeDriver
from .base import BaseDriver, sanitize_api_key
from .gemini_driver import GeminiDriver
from .ollama_driver import OllamaDriver
from .openai_driver import (
    DeepSeekDriver,
    GitHubDriver,
    GrokDriver,
    LlamaDriver,
    OpenAIDriver,
)

DRIVERS: Dict[str, Type[BaseDriver]] = {
    "openai": OpenAIDriver,
    "claude": ClaudeDriver,
    "gemini": GeminiDriver,
    "grok": GrokDriver,
    "llama": LlamaDriver,
    "deepseek": DeepSeekDriver,
    "github": GitHubDriver,
    "ollama": OllamaDriver,
}


def create_driver(spec: ModelSpec) -> BaseDriver:
    try:
        driver_cls = DRIVERS[spec.provider_name]
    except KeyError:
        raise ConfigError(f"Unsupported provider: {spec.provider_name}") from None
    return driver_cls(spec)


__all__ = [
    "BaseDriver",
    "ClaudeDriver",
    "DRIVERS",
    "DeepSeekDriver",
    "GeminiDriver",
    "GitHubDriver",
    "GrokDriver",
    "LlamaDriver",
    "OllamaDriver",
    "OpenAIDriver",
    "create_driver",
    "sanitize_api_key",
]
