"""Configuration management for gitwhisper."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from .credentials import SecretStore
from .exceptions import ConfigError
from .language import Language, language_to_string, parse_language_string
from .variants import (
    PROVIDERS,
    api_key_env_for,
    get_default_variant,
    is_provider_supported,
)

CONFIG_HOME_ENV = "GITWHISPER_CONFIG_HOME"
CONFIG_FILE_NAME = "config.json"

DEFAULT_IGNORED_FILES = [
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "*.log",
    "*.tmp",
    "*.temp",
    ".DS_Store",
    "Thumbs.db",
]

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Runtime configuration for gitwhisper.

    Built once per process by :func:`load_config` and passed explicitly to
    the workflow; only user-initiated commands write it back.
    """

    default_provider: str = "openai"
    default_variant: str = "gpt-4o"
    language: str = "en;US"
    always_add: bool = False
    auto_push: bool = False
    ollama_base_url: str = "http://localhost:11434"
    custom_ollama_variant: str = ""
    ignored_files: List[str] = field(
        default_factory=lambda: list(DEFAULT_IGNORED_FILES)
    )

    def get_language(self) -> Language:
        return parse_language_string(self.language)

    def set_language(self, language: Language) -> None:
        self.language = language_to_string(language)

    def set_defaults(self, provider: str, variant: Optional[str] = None) -> None:
        if not is_provider_supported(provider):
            raise ConfigError(f"Unsupported provider: {provider}")
        self.default_provider = provider.lower()
        self.default_variant = variant or get_default_variant(provider)

    def add_ignore_pattern(self, pattern: str) -> None:
        if pattern and pattern not in self.ignored_files:
            self.ignored_files.append(pattern)

    def remove_ignore_pattern(self, pattern: str) -> None:
        if pattern in self.ignored_files:
            self.ignored_files.remove(pattern)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self, secrets: Optional[SecretStore] = None) -> Dict[str, Any]:
        """Describe the configuration for display; never includes secrets."""
        data: Dict[str, Any] = self.to_dict()
        data["language"] = self.get_language().display_name
        if secrets is not None:
            data["has_api_keys"] = {
                name: bool(secrets.get(name)) for name in PROVIDERS
            }
        return data


def config_home() -> Path:
    override = os.environ.get(CONFIG_HOME_ENV)
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "gitwhisper"


def config_file_path() -> Path:
    return config_home() / CONFIG_FILE_NAME


def save_config(config: Config, path: Optional[Path] = None) -> Path:
    """Persist configuration as JSON and return the file written."""
    cfg_path = path or config_file_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(json.dumps(config.to_dict(), indent=2, ensure_ascii=False))
    return cfg_path


def load_persisted_config(path: Optional[Path] = None) -> Optional[Config]:
    cfg_path = path or config_file_path()
    if not cfg_path.exists():
        return None
    try:
        data = json.loads(cfg_path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid configuration file {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration file {cfg_path}: expected object")
    known = {f.name for f in fields(Config)}
    return Config(**{k: v for k, v in data.items() if k in known})


def load_config(
    *,
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """Build configuration from the config file, environment and overrides."""
    overrides = overrides or {}
    config = load_persisted_config(path) or Config()

    provider = (
        overrides.get("provider")
        or os.environ.get("GITWHISPER_PROVIDER")
        or config.default_provider
    )
    provider = str(provider).lower()
    if not is_provider_supported(provider):
        provider = "openai"
    if provider != config.default_provider:
        # Variant of the previous provider makes no sense for the new one.
        config.default_variant = get_default_variant(provider)
    config.default_provider = provider

    variant = overrides.get("variant") or os.environ.get("GITWHISPER_VARIANT")
    if variant:
        config.default_variant = str(variant)
    if not config.default_variant:
        config.default_variant = get_default_variant(provider)

    if overrides.get("language"):
        config.language = str(overrides["language"])
    if overrides.get("ollama_base_url"):
        config.ollama_base_url = str(overrides["ollama_base_url"])
    for flag in ("always_add", "auto_push"):
        value = overrides.get(flag)
        if value is not None:
            setattr(config, flag, str(value).lower() in _TRUTHY)
    return config


def environment_api_key(provider: str) -> Optional[str]:
    """Return the provider's key from its fixed environment variable."""
    env_name = api_key_env_for(provider)
    if not env_name:
        return None
    return os.environ.get(env_name) or None


def resolve_api_key(provider: str, secrets: Optional[SecretStore]) -> Optional[str]:
    """Stored key first, environment variable second."""
    if secrets is not None:
        stored = secrets.get(provider)
        if stored:
            return stored
    return environment_api_key(provider)
