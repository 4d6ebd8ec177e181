"""Staged diff extraction and ignore-pattern filtering."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Sequence

from .exceptions import GitError
from .git import GitRepo

logger = logging.getLogger(__name__)

BINARY_PLACEHOLDER = "[Binary file or unable to read content]"
_BINARY_SNIFF_BYTES = 8000


@dataclass(frozen=True)
class FilterResult:
    included: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DiffResult:
    """Unified diff text plus the staged paths excluded by ignore patterns."""

    diff: str
    ignored_files: list[str] = field(default_factory=list)

    @property
    def is_blank(self) -> bool:
        return not self.diff.strip()


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def matches_pattern(path: str, pattern: str) -> bool:
    """Glob match against the base name or the full relative path.

    ``*`` matches any run of characters including ``/``; ``?`` matches one
    character; everything else is literal.
    """
    regex = _compile_pattern(pattern)
    basename = os.path.basename(path)
    return regex.fullmatch(basename) is not None or regex.fullmatch(path) is not None


def filter_files(paths: Iterable[str], patterns: Sequence[str]) -> FilterResult:
    included: list[str] = []
    excluded: list[str] = []
    for path in paths:
        if any(matches_pattern(path, pattern) for pattern in patterns):
            excluded.append(path)
        else:
            included.append(path)
    return FilterResult(included=included, excluded=excluded)


def _decode_text(data: bytes) -> str | None:
    if b"\0" in data[:_BINARY_SNIFF_BYTES]:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def fallback_listing(paths: Sequence[str]) -> str:
    """Plain description used when a literal diff cannot be produced."""
    listing = "\n".join(f"  {p}" for p in paths)
    return (
        "Staged changes detected but unable to generate diff.\n\n"
        f"Files to be committed:\n{listing}\n\n"
        "This is normal for new repositories with no previous commits."
    )


class DiffExtractor:
    """Builds the diff representation of a repository's staged changes."""

    def __init__(self, repo: GitRepo) -> None:
        self.repo = repo

    def staged_diff(self, paths: Sequence[str] | None = None) -> str:
        """Return the staged diff, synthesising one when there is no history.

        Any failure of the literal diff is retried once through the
        no-history path; if that fails too a :class:`GitError` is raised.
        """
        try:
            if not self.repo.has_head():
                return self.new_repository_diff(paths)
            return self.repo.get_staged_diff(list(paths) if paths else None)
        except Exception as e:  # noqa: BLE001 - retried via the no-history path
            logger.warning("Staged diff failed, using new-repository path: %s", e)
            try:
                return self.new_repository_diff(paths)
            except Exception as fallback_error:  # noqa: BLE001
                raise GitError(f"Failed to get staged diff: {e}") from fallback_error

    def new_repository_diff(self, paths: Sequence[str] | None = None) -> str:
        """Describe each staged file as a brand-new addition."""
        targets = list(paths) if paths else self.repo.staged_files()
        chunks: list[str] = []
        for path in targets:
            chunks.append(self._new_file_chunk(path))
        return "".join(chunks)

    def _staged_content(self, path: str) -> bytes:
        try:
            return self.repo.read_staged_file(path)
        except GitError as e:
            logger.debug("No index blob for %s, reading worktree: %s", path, e)
            return self.repo.read_worktree_file(path)

    def _new_file_chunk(self, path: str) -> str:
        header = (
            f"diff --git a/{path} b/{path}\n"
            "new file mode 100644\n"
            "--- /dev/null\n"
            f"+++ b/{path}\n"
        )
        try:
            text = _decode_text(self._staged_content(path))
        except OSError as e:
            logger.debug("Unable to read %s for new-repository diff: %s", path, e)
            text = None
        if text is None:
            return header + f"@@ -0,0 +1,1 @@\n+{BINARY_PLACEHOLDER}\n\n"
        lines = text.splitlines()
        if not lines:
            return header + "\n"
        body = "".join(f"+{line}\n" for line in lines)
        return header + f"@@ -0,0 +1,{len(lines)} @@\n" + body + "\n"

    def filtered_staged_diff(self, ignore_patterns: Sequence[str]) -> DiffResult:
        """Filter staged files by ``ignore_patterns`` and diff the remainder.

        An empty ``included`` set yields an empty diff carrying the ignored
        list; callers treat that as "nothing to generate from", not as an
        error.
        """
        staged = self.repo.staged_files()
        if not staged:
            return DiffResult("", [])
        result = filter_files(staged, ignore_patterns)
        if result.excluded:
            logger.debug("Ignoring %d staged file(s)", len(result.excluded))
        if not result.included:
            return DiffResult("", result.excluded)
        diff = self.staged_diff(result.included)
        if not diff.strip():
            diff = fallback_listing(result.included)
        return DiffResult(diff, result.excluded)
