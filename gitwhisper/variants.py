"""Supported providers, their model variants and credential requirements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ModelVariant:
    name: str
    display_name: str
    description: str


@dataclass(frozen=True)
class ModelRequirements:
    requires_api_key: bool
    supports_custom_base_url: bool = False


@dataclass(frozen=True)
class ModelSpec:
    """Which provider and model variant to call, with its credentials.

    Providers that need no key (``ollama``) never carry one, even if a
    value was supplied.
    """

    provider_name: str
    variant: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "provider_name", (self.provider_name or "").lower())
        if not get_requirements(self.provider_name).requires_api_key:
            object.__setattr__(self, "api_key", None)

    @property
    def actual_variant(self) -> str:
        """The configured variant, or the provider default when blank."""
        if self.variant and self.variant.strip():
            return self.variant.strip()
        return get_default_variant(self.provider_name)

    def __repr__(self) -> str:
        key = "***" if self.api_key else None
        return (
            f"ModelSpec(provider_name={self.provider_name!r}, "
            f"variant={self.variant!r}, api_key={key!r}, base_url={self.base_url!r})"
        )


PROVIDER_NAMES: tuple[str, ...] = (
    "openai",
    "claude",
    "gemini",
    "grok",
    "llama",
    "deepseek",
    "github",
    "ollama",
)

# Provider metadata. ``api_key_env`` is the single environment variable
# consulted when no key is stored; ``None`` means the provider needs none.
PROVIDERS: Dict[str, Dict[str, Optional[str]]] = {
    "openai": {
        "default_variant": "gpt-4o",
        "endpoint": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
    },
    "claude": {
        "default_variant": "claude-3-5-sonnet-20241022",
        "endpoint": "https://api.anthropic.com/v1",
        "api_key_env": "ANTHROPIC_API_KEY",
    },
    "gemini": {
        "default_variant": "gemini-1.5-pro",
        "endpoint": "https://generativelanguage.googleapis.com/v1beta",
        "api_key_env": "GOOGLE_API_KEY",
    },
    "grok": {
        "default_variant": "grok-beta",
        "endpoint": "https://api.x.ai/v1",
        "api_key_env": "XAI_API_KEY",
    },
    "llama": {
        "default_variant": "llama-3.2-11b-text-preview",
        "endpoint": "https://api.llama-api.com",
        "api_key_env": "LLAMA_API_KEY",
    },
    "deepseek": {
        "default_variant": "deepseek-chat",
        "endpoint": "https://api.deepseek.com/v1",
        "api_key_env": "DEEPSEEK_API_KEY",
    },
    "github": {
        "default_variant": "gpt-4o",
        "endpoint": "https://models.inference.ai.azure.com",
        "api_key_env": "GITHUB_TOKEN",
    },
    "ollama": {
        "default_variant": "llama3.2:3b",
        "endpoint": "http://localhost:11434",
        "api_key_env": None,
    },
}

_VARIANTS: Dict[str, List[ModelVariant]] = {
    "openai": [
        ModelVariant("gpt-4o", "GPT-4o", "Latest GPT-4 Omni model"),
        ModelVariant("gpt-4o-mini", "GPT-4o Mini", "Faster, cost-effective GPT-4o"),
        ModelVariant("gpt-4-turbo", "GPT-4 Turbo", "High-performance GPT-4"),
        ModelVariant("gpt-4", "GPT-4", "Standard GPT-4 model"),
        ModelVariant("gpt-3.5-turbo", "GPT-3.5 Turbo", "Fast and efficient model"),
    ],
    "claude": [
        ModelVariant(
            "claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", "Latest Claude 3.5 Sonnet"
        ),
        ModelVariant(
            "claude-3-5-haiku-20241022", "Claude 3.5 Haiku", "Fast Claude 3.5 Haiku"
        ),
        ModelVariant(
            "claude-3-opus-20240229", "Claude 3 Opus", "Most capable Claude 3 model"
        ),
        ModelVariant(
            "claude-3-sonnet-20240229", "Claude 3 Sonnet", "Balanced Claude 3 model"
        ),
        ModelVariant("claude-3-haiku-20240307", "Claude 3 Haiku", "Fast Claude 3 model"),
    ],
    "gemini": [
        ModelVariant("gemini-1.5-pro", "Gemini 1.5 Pro", "Advanced Gemini model"),
        ModelVariant("gemini-1.5-flash", "Gemini 1.5 Flash", "Fast Gemini model"),
        ModelVariant("gemini-pro", "Gemini Pro", "Standard Gemini model"),
    ],
    "grok": [
        ModelVariant("grok-beta", "Grok Beta", "Latest Grok model"),
        ModelVariant(
            "grok-vision-beta", "Grok Vision Beta", "Grok with vision capabilities"
        ),
    ],
    "llama": [
        ModelVariant(
            "llama-3.2-90b-text-preview", "Llama 3.2 90B", "Large Llama 3.2 model"
        ),
        ModelVariant(
            "llama-3.2-11b-text-preview", "Llama 3.2 11B", "Medium Llama 3.2 model"
        ),
        ModelVariant("llama-3.1-70b-instruct", "Llama 3.1 70B", "Llama 3.1 70B Instruct"),
        ModelVariant("llama-3.1-8b-instruct", "Llama 3.1 8B", "Llama 3.1 8B Instruct"),
    ],
    "deepseek": [
        ModelVariant("deepseek-chat", "DeepSeek Chat", "DeepSeek conversational model"),
        ModelVariant("deepseek-coder", "DeepSeek Coder", "DeepSeek coding model"),
    ],
    "github": [
        ModelVariant("gpt-4o", "GPT-4o", "GitHub's GPT-4o model"),
        ModelVariant("gpt-4o-mini", "GPT-4o Mini", "GitHub's GPT-4o Mini"),
        ModelVariant("claude-3-5-sonnet", "Claude 3.5 Sonnet", "GitHub's Claude 3.5 Sonnet"),
        ModelVariant("claude-3-haiku", "Claude 3 Haiku", "GitHub's Claude 3 Haiku"),
    ],
    "ollama": [
        ModelVariant("llama3.2:3b", "Llama 3.2 3B", "Llama 3.2 3B model"),
        ModelVariant("llama3.2:1b", "Llama 3.2 1B", "Llama 3.2 1B model"),
        ModelVariant("qwen2.5:7b", "Qwen 2.5 7B", "Qwen 2.5 7B model"),
        ModelVariant("qwen2.5:3b", "Qwen 2.5 3B", "Qwen 2.5 3B model"),
        ModelVariant("qwen2.5:1.5b", "Qwen 2.5 1.5B", "Qwen 2.5 1.5B model"),
        ModelVariant("deepseek-r1:1.5b", "DeepSeek R1 1.5B", "DeepSeek R1 1.5B model"),
        ModelVariant("deepseek-r1:7b", "DeepSeek R1 7B", "DeepSeek R1 7B model"),
        ModelVariant("deepseek-r1:8b", "DeepSeek R1 8B", "DeepSeek R1 8B model"),
        ModelVariant("deepseek-r1:14b", "DeepSeek R1 14B", "DeepSeek R1 14B model"),
        ModelVariant("deepseek-r1:32b", "DeepSeek R1 32B", "DeepSeek R1 32B model"),
        ModelVariant("deepseek-r1:70b", "DeepSeek R1 70B", "DeepSeek R1 70B model"),
    ],
}


def is_provider_supported(provider_name: str) -> bool:
    return (provider_name or "").lower() in PROVIDERS


def get_variants(provider_name: str) -> List[ModelVariant]:
    return list(_VARIANTS.get((provider_name or "").lower(), []))


def get_variants_with_custom(
    provider_name: str, custom_ollama_variant: Optional[str]
) -> List[ModelVariant]:
    """Return variants, with a custom Ollama model listed first when set."""
    variants = get_variants(provider_name)
    custom = (custom_ollama_variant or "").strip()
    if provider_name.lower() == "ollama" and custom:
        variants.insert(
            0, ModelVariant(custom, f"Custom: {custom}", "Custom Ollama model variant")
        )
    return variants


def get_default_variant(provider_name: str) -> str:
    meta = PROVIDERS.get((provider_name or "").lower())
    if not meta:
        return ""
    return meta["default_variant"] or ""


def get_requirements(provider_name: str) -> ModelRequirements:
    if (provider_name or "").lower() == "ollama":
        return ModelRequirements(requires_api_key=False, supports_custom_base_url=True)
    return ModelRequirements(requires_api_key=True)


def api_key_env_for(provider_name: str) -> Optional[str]:
    meta = PROVIDERS.get((provider_name or "").lower())
    if not meta:
        return None
    return meta["api_key_env"]


def describe_provider(provider_name: str) -> str:
    default = get_default_variant(provider_name)
    if not default:
        return provider_name
    return f"{provider_name} (default variant: {default})"
