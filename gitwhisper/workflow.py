"""Commit workflow: staged-change checks, generation, confirmation, apply."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from .config import Config, resolve_api_key
from .credentials import GITHUB_PAT_KEY, SecretStore
from .diff import DiffExtractor, DiffResult
from .error_handler import (
    is_retryable,
    model_switch_suggestions,
    should_suggest_model_switch,
)
from .exceptions import (
    ApiError,
    CommitError,
    ConfigError,
    GitError,
    LLMError,
    PushError,
)
from .generator import CommitGenerator, build_generator
from .git import GitRepo, find_git_repo_root
from .variants import ModelSpec, get_default_variant, get_requirements

logger = logging.getLogger(__name__)

IGNORED_NOTICE_LIMIT = 3


class NoStagedChoice(str, Enum):
    STAGE_ALL = "Stage all changes and continue"
    OPEN_TOOL_WINDOW = "Open commit tool window"
    CANCEL = "Cancel"


class ConfirmChoice(str, Enum):
    COMMIT = "commit"
    COMMIT_AND_PUSH = "commit_and_push"
    CANCEL = "cancel"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


class UserInteraction(Protocol):
    def choose_one(self, title: str, options: Sequence[str]) -> Optional[str]: ...

    def prompt_text(self, label: str) -> Optional[str]: ...

    def prompt_secret(self, label: str) -> Optional[str]: ...

    def confirm_editable(self, initial_text: str) -> Tuple[ConfirmChoice, str]: ...


class Progress(Protocol):
    def set_status_text(self, text: str) -> None: ...

    def is_cancelled(self) -> bool: ...


class NullProgress:
    def set_status_text(self, text: str) -> None:
        logger.debug("status: %s", text)

    def is_cancelled(self) -> bool:
        return False


@dataclass(frozen=True)
class WorkflowOutcome:
    """Terminal state of a workflow run.

    ``fatal`` is True when re-triggering the same operation is not expected
    to help (e.g. bad credentials, nothing to commit).
    """

    status: OutcomeStatus
    message: str = ""
    error: Optional[BaseException] = None
    fatal: bool = False
    text: str = ""
    commit_hash: str = ""
    pushed: bool = False
    ignored_files: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


def _failed(
    message: str, error: Optional[BaseException] = None, **kwargs
) -> WorkflowOutcome:
    kwargs.setdefault("fatal", True)
    return WorkflowOutcome(OutcomeStatus.FAILED, message, error=error, **kwargs)


def _cancelled(message: str = "Operation cancelled", **kwargs) -> WorkflowOutcome:
    return WorkflowOutcome(OutcomeStatus.CANCELLED, message, **kwargs)


def format_ignored_notice(
    files: Sequence[str], limit: int = IGNORED_NOTICE_LIMIT
) -> str:
    """``Ignored N file(s): a, b, c and K more``."""
    shown = ", ".join(files[:limit])
    extra = len(files) - limit
    more = f" and {extra} more" if extra > 0 else ""
    return f"Ignored {len(files)} file(s): {shown}{more}"


def push_failure_hint(error: PushError) -> str:
    if error.reason == "authentication":
        return (
            "Push failed: authentication rejected by the remote. Set a GitHub "
            "token with 'gitwhisper config set-github-token' or check your "
            "SSH keys."
        )
    if error.reason == "connectivity":
        return (
            "Push failed: the remote could not be reached. Check your network "
            "connection and the remote URL."
        )
    return f"Push failed: {error}"


class CommitWorkflow:
    """Produce a commit message for the staged changes and apply it.

    Collaborators (configuration, secret store, user interaction and
    progress) are passed in explicitly; the workflow itself keeps no
    global state and never retries a failed provider call.
    """

    def __init__(
        self,
        config: Config,
        secrets: SecretStore,
        ui: UserInteraction,
        progress: Optional[Progress] = None,
        repo_path: Optional[str] = None,
        repo: Optional[GitRepo] = None,
        assume_yes: bool = False,
        prefix: Optional[str] = None,
    ) -> None:
        self.config = config
        self.secrets = secrets
        self.ui = ui
        self.progress = progress or NullProgress()
        self.repo_path = repo_path
        self._repo = repo
        self.assume_yes = assume_yes
        self.prefix = prefix

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _open_repo(self) -> Optional[GitRepo]:
        if self._repo is not None:
            return self._repo
        root = find_git_repo_root(Path(self.repo_path) if self.repo_path else None)
        if root is None:
            return None
        try:
            self._repo = GitRepo(str(root))
        except GitError as e:
            logger.warning("Unable to open repository at %s: %s", root, e)
            return None
        return self._repo

    def _ensure_staged(self, repo: GitRepo) -> Optional[WorkflowOutcome]:
        """Return a terminal outcome, or None when staged changes exist."""
        if repo.has_staged_changes():
            return None
        if not repo.has_unstaged_changes():
            return _failed("Nothing to commit: no staged or unstaged changes")

        if self.config.always_add:
            choice = NoStagedChoice.STAGE_ALL
        else:
            picked = self.ui.choose_one(
                "No staged changes found. What would you like to do?",
                [c.value for c in NoStagedChoice],
            )
            choice = NoStagedChoice(picked) if picked else NoStagedChoice.CANCEL

        if choice is NoStagedChoice.OPEN_TOOL_WINDOW:
            return _cancelled("Stage changes manually, then run gitwhisper again")
        if choice is NoStagedChoice.CANCEL:
            return _cancelled()

        self.progress.set_status_text("Staging all changes...")
        count = repo.stage_all()
        logger.info("Staged %d file(s)", count)
        if count == 0:
            return _failed("Nothing to commit: staging produced no changes")
        return None

    def _filtered_diff(self, repo: GitRepo) -> DiffResult:
        self.progress.set_status_text("Getting staged changes...")
        result = DiffExtractor(repo).filtered_staged_diff(self.config.ignored_files)
        if result.ignored_files:
            self.progress.set_status_text(format_ignored_notice(result.ignored_files))
        return result

    def resolve_model_spec(self) -> ModelSpec:
        """Build the model spec from configuration and stored credentials.

        A missing key is requested from the user and saved; if the user
        gives none the spec carries no key and generator construction
        reports it.
        """
        provider = self.config.default_provider
        variant = self.config.default_variant or get_default_variant(provider)
        base_url = None
        if provider == "ollama":
            variant = self.config.custom_ollama_variant or variant
            base_url = self.config.ollama_base_url

        api_key = None
        if get_requirements(provider).requires_api_key:
            api_key = resolve_api_key(provider, self.secrets)
            if not api_key:
                entered = self.ui.prompt_secret(f"Enter API key for {provider}")
                if entered and entered.strip():
                    api_key = entered.strip()
                    try:
                        self.secrets.set(provider, api_key)
                    except ConfigError as e:
                        logger.warning("API key not saved: %s", e)
        return ModelSpec(provider, variant, api_key, base_url)

    def _build(
        self, spec: ModelSpec
    ) -> Tuple[Optional[CommitGenerator], Optional[WorkflowOutcome]]:
        result = build_generator(
            spec.provider_name,
            spec.api_key,
            {"variant": spec.variant, "base_url": spec.base_url},
        )
        if result.generator is None:
            return None, _failed(result.message, ConfigError(result.message))
        return result.generator, None

    def _provider_failure(
        self, error: LLMError, ignored: List[str]
    ) -> WorkflowOutcome:
        if isinstance(error, ApiError):
            suggestions = (
                model_switch_suggestions(error)
                if should_suggest_model_switch(error)
                else []
            )
            return _failed(
                error.user_message(),
                error,
                fatal=not is_retryable(error),
                ignored_files=ignored,
                suggestions=suggestions,
            )
        return _failed(str(error), error, ignored_files=ignored)

    def _prepare(
        self,
    ) -> Tuple[Optional[GitRepo], Optional[DiffResult], Optional[WorkflowOutcome]]:
        self.progress.set_status_text("Checking repository...")
        repo = self._open_repo()
        if repo is None:
            return None, None, _failed("No Git repository found")
        try:
            outcome = self._ensure_staged(repo)
            if outcome is not None:
                return repo, None, outcome
            if self.progress.is_cancelled():
                return repo, None, _cancelled()
            diff = self._filtered_diff(repo)
        except GitError as e:
            return repo, None, _failed(f"Git error: {e}", e)
        if diff.is_blank:
            message = "No changes detected"
            if diff.ignored_files:
                message += " (all staged files are ignored)"
            return repo, diff, _failed(message, ignored_files=diff.ignored_files)
        return repo, diff, None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def run(self) -> WorkflowOutcome:
        """Run CheckRepo through Apply and return the terminal outcome."""
        repo, diff, outcome = self._prepare()
        if outcome is not None:
            return outcome
        assert repo is not None and diff is not None
        ignored = diff.ignored_files

        prefix = self.prefix
        if prefix is None and not self.assume_yes:
            prefix = self.ui.prompt_text("Commit prefix (optional, e.g. JIRA-123)")
        prefix = (prefix or "").strip() or None

        generator, outcome = self._build(self.resolve_model_spec())
        if outcome is not None:
            return outcome
        assert generator is not None

        if self.progress.is_cancelled():
            return _cancelled(ignored_files=ignored)
        self.progress.set_status_text(
            f"Generating commit message with {generator.provider_name} "
            f"({generator.variant})..."
        )
        try:
            generated = generator.generate(
                diff.diff, self.config.get_language(), prefix
            )
        except LLMError as e:
            return self._provider_failure(e, ignored)

        if self.progress.is_cancelled():
            return _cancelled(ignored_files=ignored)

        if self.assume_yes:
            choice = (
                ConfirmChoice.COMMIT_AND_PUSH
                if self.config.auto_push
                else ConfirmChoice.COMMIT
            )
            message = generated.text
        else:
            choice, message = self.ui.confirm_editable(generated.text)
        if choice is ConfirmChoice.CANCEL:
            return _cancelled(text=generated.text, ignored_files=ignored)
        message = (message or "").strip()
        if not message:
            return _failed("Commit message is empty", ignored_files=ignored)

        return self._apply(repo, message, choice, ignored)

    def _apply(
        self,
        repo: GitRepo,
        message: str,
        choice: ConfirmChoice,
        ignored: List[str],
    ) -> WorkflowOutcome:
        self.progress.set_status_text("Committing changes...")
        try:
            commit_hash = repo.commit(message)
        except CommitError as e:
            return _failed(f"Commit failed: {e}", e, ignored_files=ignored)
        logger.info("Committed %s", commit_hash)

        if choice is not ConfirmChoice.COMMIT_AND_PUSH:
            return WorkflowOutcome(
                OutcomeStatus.SUCCESS,
                f"Committed {commit_hash}".strip(),
                text=message,
                commit_hash=commit_hash,
                ignored_files=ignored,
            )

        self.progress.set_status_text("Pushing to remote...")
        token = (
            self.secrets.get(GITHUB_PAT_KEY) if repo.is_github_repository() else None
        )
        try:
            repo.push(github_token=token)
        except PushError as e:
            return _failed(
                push_failure_hint(e),
                e,
                fatal=e.reason == "authentication",
                text=message,
                commit_hash=commit_hash,
                ignored_files=ignored,
            )
        except GitError as e:
            return _failed(
                f"Push failed: {e}", e, text=message, commit_hash=commit_hash
            )
        return WorkflowOutcome(
            OutcomeStatus.SUCCESS,
            f"Committed and pushed {commit_hash}".strip(),
            text=message,
            commit_hash=commit_hash,
            pushed=True,
            ignored_files=ignored,
        )

    def analyze(self) -> WorkflowOutcome:
        """Analyse the staged changes; nothing is committed."""
        _repo, diff, outcome = self._prepare()
        if outcome is not None:
            return outcome
        assert diff is not None

        generator, outcome = self._build(self.resolve_model_spec())
        if outcome is not None:
            return outcome
        assert generator is not None

        if self.progress.is_cancelled():
            return _cancelled(ignored_files=diff.ignored_files)
        self.progress.set_status_text(
            f"Analyzing changes with {generator.provider_name}..."
        )
        try:
            text = generator.analyze(diff.diff, self.config.get_language())
        except LLMError as e:
            return self._provider_failure(e, diff.ignored_files)
        return WorkflowOutcome(
            OutcomeStatus.SUCCESS,
            "Analysis complete",
            text=text,
            ignored_files=diff.ignored_files,
        )
