import subprocess
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

PROVIDER_ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "GITHUB_TOKEN",
    "XAI_API_KEY",
    "LLAMA_API_KEY",
    "DEEPSEEK_API_KEY",
    "GITWHISPER_PROVIDER",
    "GITWHISPER_VARIANT",
)


@pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITWHISPER_CONFIG_HOME", str(tmp_path / ".gitwhisper"))

    # Keep the user's git config (signing, hooks, default branch) out of tests
    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    yield


# No test talks to a real provider unless it patches httpx itself.
@pytest.fixture(autouse=True)
def _block_network(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(url, *args, **kwargs):  # noqa: ARG001
        raise RuntimeError(f"unexpected network call to {url}")

    monkeypatch.setattr(httpx, "post", refuse)
    monkeypatch.setattr(httpx, "get", refuse)


@pytest.fixture
def git() -> Callable[..., str]:
    def run(path: Path, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    return run


@pytest.fixture
def repo_dir(tmp_path: Path, git: Callable[..., str]) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    git(path, "init", "-q")
    return path


@pytest.fixture
def committed_repo(repo_dir: Path, git: Callable[..., str]) -> Path:
    (repo_dir / "README.md").write_text("hello\n")
    git(repo_dir, "add", "README.md")
    git(repo_dir, "commit", "-q", "-m", "chore: 🔧 Initial commit")
    return repo_dir


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    def build(
        status_code: int = 200,
        json_body: Optional[Any] = None,
        text: Optional[str] = None,
        url: str = "https://provider.test/v1",
        method: str = "POST",
    ) -> httpx.Response:
        request = httpx.Request(method, url)
        if json_body is not None:
            return httpx.Response(status_code, json=json_body, request=request)
        return httpx.Response(status_code, text=text or "", request=request)

    return build
