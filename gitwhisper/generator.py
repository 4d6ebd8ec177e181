"""Commit message generation and change analysis facade."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .error_handler import classify
from .exceptions import ConfigError, LLMError
from .language import ENGLISH, Language
from .prompts import analysis_prompt, commit_prompt
from .providers import BaseDriver, create_driver
from .variants import ModelSpec, get_requirements, is_provider_supported

logger = logging.getLogger(__name__)

COMMIT_MAX_TOKENS = 300
COMMIT_TEMPERATURE = 0.1
ANALYSIS_MAX_TOKENS = 8000
ANALYSIS_TEMPERATURE = 0.2
SUBJECT_BUDGET = 72

_FENCE_RE = re.compile(r"^```(\w+)?\n?|```$", re.MULTILINE)

_COMMIT_TYPES = "feat|fix|docs|style|refactor|test|chore|perf|ci|build|revert"
# type, optional scope, then an emoji (any non-space, non-word run) and text
_CONVENTIONAL_RE = re.compile(
    rf"^(\*\*.+\*\*\s*(->)?\s*)?({_COMMIT_TYPES})(\([a-zA-Z0-9_-]+\))?!?:"
    r"\s+[^\w\s]+\s+\S.*$"
)
_PREFIX_ONLY_RE = re.compile(r"^\*\*[^*]+\*\*$")


class FailureKind(str, Enum):
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    CREDENTIAL_MISSING = "credential_missing"


@dataclass(frozen=True)
class GeneratorResult:
    """Either a ready generator or the reason one could not be built."""

    generator: Optional["CommitGenerator"] = None
    failure: Optional[FailureKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.generator is not None


@dataclass(frozen=True)
class GeneratedMessage:
    raw: str
    text: str
    warnings: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return self.text


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences and surrounding whitespace."""
    previous = None
    cleaned = text or ""
    # Stripping can expose a fence that was hidden behind whitespace.
    while cleaned != previous:
        previous = cleaned
        cleaned = _FENCE_RE.sub("", cleaned).strip()
    return cleaned


def validate_commit_message(message: str) -> List[str]:
    """Check a commit message against the header budget and format.

    Args:
        message: Cleaned commit message text.

    Returns:
        A list of human-readable problems; empty when the message passes.
        Problems are advisory and never block a commit.
    """
    problems: List[str] = []
    lines = message.strip().splitlines()
    first = lines[0].strip() if lines else ""
    if len(first) > SUBJECT_BUDGET:
        problems.append(
            f"First line is {len(first)} characters (budget {SUBJECT_BUDGET})"
        )
    for line in (ln.strip() for ln in lines):
        if not line or _PREFIX_ONLY_RE.match(line):
            continue
        if not _CONVENTIONAL_RE.match(line):
            problems.append(f"Not a conventional commit with emoji: {line[:80]}")
    for problem in problems:
        logger.warning("Commit message validation: %s", problem)
    return problems


class CommitGenerator:
    """Runs the commit and analysis prompts against one provider driver."""

    def __init__(self, driver: BaseDriver) -> None:
        self.driver = driver

    @property
    def provider_name(self) -> str:
        return self.driver.provider_name

    @property
    def variant(self) -> str:
        return self.driver.variant

    def generate(
        self,
        diff: str,
        language: Language = ENGLISH,
        prefix: Optional[str] = None,
    ) -> GeneratedMessage:
        """Generate a commit message for ``diff``.

        Raises:
            ApiError: When the provider call fails or yields no usable text.
        """
        prompt = commit_prompt(diff, language, prefix)
        raw = self.driver.send(prompt, COMMIT_MAX_TOKENS, COMMIT_TEMPERATURE)
        text = strip_code_fences(raw)
        if not text:
            raise classify(
                LLMError("Provider returned an empty commit message"),
                self.provider_name,
            )
        warnings = validate_commit_message(text)
        return GeneratedMessage(raw=raw, text=text, warnings=warnings)

    def analyze(self, diff: str, language: Language = ENGLISH) -> str:
        prompt = analysis_prompt(diff, language)
        raw = self.driver.send(prompt, ANALYSIS_MAX_TOKENS, ANALYSIS_TEMPERATURE)
        return raw.strip()


def build_generator(
    provider_name: str,
    api_key: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> GeneratorResult:
    """Validate provider and credentials, then build a generator.

    Nothing here touches the network.

    Args:
        provider_name: One of the supported provider names.
        api_key: Credential for the provider; ignored for key-less providers.
        options: Optional ``variant`` and ``base_url``.
    """
    options = options or {}
    name = (provider_name or "").lower()
    if not is_provider_supported(name):
        return GeneratorResult(
            failure=FailureKind.UNSUPPORTED_PROVIDER,
            message=f"Unsupported model: {provider_name}",
        )
    requirements = get_requirements(name)
    if requirements.requires_api_key and not (api_key and api_key.strip()):
        return GeneratorResult(
            failure=FailureKind.CREDENTIAL_MISSING,
            message=f"API key is required for {name}",
        )
    base_url = None
    if requirements.supports_custom_base_url:
        base_url = options.get("base_url")
    spec = ModelSpec(
        provider_name=name,
        variant=options.get("variant"),
        api_key=api_key,
        base_url=base_url or None,
    )
    driver = create_driver(spec)
    logger.debug("Built generator for %s variant=%s", name, driver.variant)
    return GeneratorResult(generator=CommitGenerator(driver))


def create_generator(
    provider_name: str,
    api_key: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> CommitGenerator:
    """Like :func:`build_generator` but raises :class:`ConfigError` on failure."""
    result = build_generator(provider_name, api_key, options)
    if result.generator is None:
        raise ConfigError(result.message)
    return result.generator


__all__ = [
    "ANALYSIS_MAX_TOKENS",
    "COMMIT_MAX_TOKENS",
    "CommitGenerator",
    "FailureKind",
    "GeneratedMessage",
    "GeneratorResult",
    "ModelSpec",
    "build_generator",
    "create_generator",
    "strip_code_fences",
    "validate_commit_message",
]
