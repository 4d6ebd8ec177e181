"""Git operations for gitwhisper."""

import base64
import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from .exceptions import CommitError, GitError, PushError

logger = logging.getLogger(__name__)

_AUTH_HINTS = (
    "authentication",
    "permission denied",
    "could not read username",
    "invalid username or password",
    "403",
    "401",
)
_CONNECTIVITY_HINTS = (
    "remote hung up",
    "could not resolve host",
    "connection refused",
    "connection timed out",
    "network is unreachable",
    "unable to access",
    "could not read from remote repository",
)


def find_git_repo_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Return the top-level Git repository directory for ``start_path``.

    Attempts ``git rev-parse --show-toplevel`` first so worktrees and
    submodules are handled correctly. Falls back to walking parent
    directories looking for a ``.git`` directory or file. Returns ``None``
    when no Git repository can be found starting from ``start_path``.
    """

    path = Path(start_path or Path.cwd()).expanduser().resolve(strict=False)
    if path.is_file():
        path = path.parent

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
        top = result.stdout.strip()
        if top:
            return Path(top)
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        pass

    for candidate in (path, *path.parents):
        git_meta = candidate / ".git"
        if git_meta.exists():
            return candidate

    return None


def classify_push_failure(stderr: str) -> str:
    """Return ``authentication``, ``connectivity`` or ``other`` for push stderr."""
    text = (stderr or "").lower()
    if any(hint in text for hint in _AUTH_HINTS):
        return "authentication"
    if any(hint in text for hint in _CONNECTIVITY_HINTS):
        return "connectivity"
    return "other"


class GitRepo:
    """Handles Git repository operations."""

    def __init__(self, repo_path: Optional[str] = None) -> None:
        """Initialize Git repository handler."""

        self.repo_path = Path(repo_path or ".").expanduser().resolve(strict=False)
        if not self._is_git_repo():
            raise GitError(f"Not a Git repository: {self.repo_path}")

    def _is_git_repo(self) -> bool:
        """Check if the current directory is a Git repository."""
        try:
            self._run_git_command(["rev-parse", "--git-dir"])
            return True
        except GitError:
            return False

    def _run_git_command(
        self,
        args: list[str],
        env: Optional[dict[str, str]] = None,
        strip: bool = True,
    ) -> str:
        """Run a Git command and return its output."""
        try:
            result = subprocess.run(
                ["git"] + args,
                cwd=self.repo_path,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=True,
                env=env,
            )
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            raise GitError(f"Git command failed: {cmd}\n{e.stderr}") from e
        except UnicodeError as e:
            raise GitError(f"Undecodable output from git {args[0]}: {e}") from e
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        return result.stdout.strip() if strip else result.stdout

    def _run_git_bytes(self, args: list[str]) -> bytes:
        """Run a Git command and return its raw stdout."""
        try:
            result = subprocess.run(
                ["git"] + args, cwd=self.repo_path, capture_output=True, check=True
            )
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            stderr = e.stderr.decode("utf-8", errors="replace")
            raise GitError(f"Git command failed: {cmd}\n{stderr}") from e
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        return result.stdout

    def has_head(self) -> bool:
        """Return True once the repository has at least one commit."""
        try:
            self._run_git_command(["rev-parse", "--verify", "--quiet", "HEAD"])
            return True
        except GitError:
            return False

    def status_entries(self) -> list[tuple[str, str]]:
        """Return porcelain status entries as (XY status, path)."""
        output = self._run_git_command(
            ["status", "--porcelain", "-z", "--untracked-files=all"], strip=False
        )
        entries: list[tuple[str, str]] = []
        records = output.split("\0")
        i = 0
        while i < len(records):
            record = records[i]
            i += 1
            if len(record) < 4:
                continue
            status, path = record[:2], record[3:]
            if status[0] in "RC":
                # -z emits the rename source as a separate record
                i += 1
            entries.append((status, path))
        return entries

    def staged_files(self) -> list[str]:
        """Return repository-relative paths with staged changes."""
        if self.has_head():
            output = self._run_git_command(
                ["diff", "--cached", "--no-renames", "--name-only", "-z"], strip=False
            )
        else:
            # Without a HEAD every index entry is a staged addition.
            output = self._run_git_command(["ls-files", "-z"], strip=False)
        return [p for p in output.split("\0") if p]

    def has_staged_changes(self) -> bool:
        return bool(self.staged_files())

    def has_unstaged_changes(self) -> bool:
        """True for modified, deleted or untracked files in the worktree."""
        for status, _path in self.status_entries():
            if status == "??" or status[1] != " ":
                return True
        return False

    def get_staged_diff(self, paths: Optional[list[str]] = None) -> str:
        """Get the unified diff of staged changes, optionally for ``paths``."""
        args = [
            "--literal-pathspecs",
            "diff",
            "--cached",
            "--no-renames",
            "--no-color",
            "--no-ext-diff",
        ]
        if paths:
            args += ["--"] + list(paths)
        return self._run_git_command(args, strip=False)

    def read_staged_file(self, rel_path: str) -> bytes:
        """Return the blob recorded in the index for ``rel_path``."""
        return self._run_git_bytes(["show", f":{rel_path}"])

    def read_worktree_file(self, rel_path: str) -> bytes:
        return (self.repo_path / rel_path).read_bytes()

    def stage_all(self) -> int:
        """Stage all changes (including new and deleted files)."""
        self._run_git_command(["add", "-A"])
        return len(self.staged_files())

    def commit(self, message: str) -> str:
        """Create a commit with the given message and return its short hash."""
        try:
            self._run_git_command(["commit", "-m", message])
        except GitError as e:
            raise CommitError(f"Failed to commit: {e}") from e
        try:
            return self._run_git_command(["rev-parse", "--short", "HEAD"])
        except GitError:
            return ""

    def remote_urls(self) -> list[str]:
        try:
            output = self._run_git_command(["remote", "-v"])
        except GitError:
            return []
        urls: list[str] = []
        for line in output.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[1] not in urls:
                urls.append(parts[1])
        return urls

    def is_github_repository(self) -> bool:
        return any("github.com" in url for url in self.remote_urls())

    def _push_setup(
        self, github_token: Optional[str]
    ) -> tuple[list[str], dict[str, str]]:
        """Credential and SSH policy for one push; safe to repeat per call."""
        env = dict(os.environ)
        env.setdefault("GIT_TERMINAL_PROMPT", "0")
        env.setdefault(
            "GIT_SSH_COMMAND", "ssh -o StrictHostKeyChecking=accept-new"
        )
        config_args: list[str] = []
        if github_token:
            basic = base64.b64encode(f"{github_token}:".encode()).decode("ascii")
            config_args = [
                "-c",
                f"http.https://github.com/.extraheader=AUTHORIZATION: basic {basic}",
            ]
        return config_args, env

    def push(
        self,
        remote: str = "origin",
        branch: Optional[str] = None,
        github_token: Optional[str] = None,
    ) -> str:
        """Push current branch to remote.

        If branch is None, determine it via 'git rev-parse --abbrev-ref HEAD'.
        Returns the stdout from git push. Failures raise :class:`PushError`
        tagged as authentication or connectivity shaped.
        """
        if branch is None:
            branch = self._run_git_command(["rev-parse", "--abbrev-ref", "HEAD"])
        config_args, env = self._push_setup(github_token)
        try:
            return self._run_git_command(
                config_args + ["push", remote, branch], env=env
            )
        except GitError as e:
            reason = classify_push_failure(str(e))
            logger.warning("Push to %s failed (%s)", remote, reason)
            raise PushError(f"Failed to push: {e}", reason=reason) from e
