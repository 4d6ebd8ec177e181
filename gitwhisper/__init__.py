"""gitwhisper - AI commit messages and change analysis for staged Git changes."""

from importlib import import_module
from typing import TYPE_CHECKING

__version__ = "0.1.0"

# Public API (lazy-exported so importing the package does not pull in
# httpx or keyring until something is used)
__all__ = [
    # Config
    "Config", "load_config",
    # Git and diffs
    "GitRepo", "DiffExtractor", "filter_files",
    # Generation
    "CommitGenerator", "GeneratedMessage", "ModelSpec",
    "build_generator", "create_generator",
    # Workflow
    "CommitWorkflow", "WorkflowOutcome",
    # Languages
    "Language", "LANGUAGES",
    # Errors
    "GitWhisperError", "GitError", "LLMError", "ConfigError", "ValidationError",
    "ApiError", "ErrorKind", "classify",
]


def __getattr__(name: str):
    """Resolve public names on first access and cache them on the module."""
    mapping = {
        "Config": ("gitwhisper.config", "Config"),
        "load_config": ("gitwhisper.config", "load_config"),
        "GitRepo": ("gitwhisper.git", "GitRepo"),
        "DiffExtractor": ("gitwhisper.diff", "DiffExtractor"),
        "filter_files": ("gitwhisper.diff", "filter_files"),
        "CommitGenerator": ("gitwhisper.generator", "CommitGenerator"),
        "GeneratedMessage": ("gitwhisper.generator", "GeneratedMessage"),
        "ModelSpec": ("gitwhisper.variants", "ModelSpec"),
        "build_generator": ("gitwhisper.generator", "build_generator"),
        "create_generator": ("gitwhisper.generator", "create_generator"),
        "CommitWorkflow": ("gitwhisper.workflow", "CommitWorkflow"),
        "WorkflowOutcome": ("gitwhisper.workflow", "WorkflowOutcome"),
        "Language": ("gitwhisper.language", "Language"),
        "LANGUAGES": ("gitwhisper.language", "LANGUAGES"),
        "GitWhisperError": ("gitwhisper.exceptions", "GitWhisperError"),
        "GitError": ("gitwhisper.exceptions", "GitError"),
        "LLMError": ("gitwhisper.exceptions", "LLMError"),
        "ConfigError": ("gitwhisper.exceptions", "ConfigError"),
        "ValidationError": ("gitwhisper.exceptions", "ValidationError"),
        "ApiError": ("gitwhisper.exceptions", "ApiError"),
        "ErrorKind": ("gitwhisper.exceptions", "ErrorKind"),
        "classify": ("gitwhisper.error_handler", "classify"),
    }
    if name in mapping:
        mod_name, attr = mapping[name]
        mod = import_module(mod_name)
        value = getattr(mod, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'gitwhisper' has no attribute {name!r}")


if TYPE_CHECKING:
    from .config import Config, load_config
    from .diff import DiffExtractor, filter_files
    from .error_handler import classify
    from .exceptions import (
        ApiError,
        ConfigError,
        ErrorKind,
        GitError,
        GitWhisperError,
        LLMError,
        ValidationError,
    )
    from .generator import (
        CommitGenerator,
        GeneratedMessage,
        build_generator,
        create_generator,
    )
    from .git import GitRepo
    from .language import LANGUAGES, Language
    from .variants import ModelSpec
    from .workflow import CommitWorkflow, WorkflowOutcome
