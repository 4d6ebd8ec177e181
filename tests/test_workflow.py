import httpx
import pytest

import gitwhisper.workflow as workflow_module
from gitwhisper.config import Config
from gitwhisper.credentials import GITHUB_PAT_KEY, MemorySecretStore
from gitwhisper.exceptions import ConfigError, PushError
from gitwhisper.git import GitRepo
from gitwhisper.workflow import (
    CommitWorkflow,
    ConfirmChoice,
    NoStagedChoice,
    OutcomeStatus,
    format_ignored_notice,
    push_failure_hint,
)


class ScriptedUI:
    def __init__(
        self,
        choice=None,
        prefix=None,
        secret=None,
        confirm=ConfirmChoice.COMMIT,
        edited=None,
    ):
        self.choice = choice
        self.prefix = prefix
        self.secret = secret
        self.confirm = confirm
        self.edited = edited
        self.asked = []

    def choose_one(self, title, options):
        self.asked.append(("choose_one", tuple(options)))
        return self.choice.value if self.choice else None

    def prompt_text(self, label):
        self.asked.append(("prompt_text", label))
        return self.prefix

    def prompt_secret(self, label):
        self.asked.append(("prompt_secret", label))
        return self.secret

    def confirm_editable(self, initial_text):
        self.asked.append(("confirm_editable", initial_text))
        return self.confirm, self.edited or initial_text


class RecordingProgress:
    def __init__(self, cancelled=False):
        self.statuses = []
        self.cancelled = cancelled

    def set_status_text(self, text):
        self.statuses.append(text)

    def is_cancelled(self):
        return self.cancelled


@pytest.fixture
def provider_reply(monkeypatch, make_response):
    requests = []

    def install(content="feat: ✨ Add generated change", status=200):
        def fake_post(url, headers=None, json=None, params=None, timeout=None):
            requests.append({"url": url, "headers": headers, "json": json})
            if status != 200:
                return make_response(status, text="error")
            if url.endswith("/api/generate"):
                return make_response(json_body={"response": content})
            return make_response(
                json_body={"choices": [{"message": {"content": content}}]}
            )

        monkeypatch.setattr(httpx, "post", fake_post)
        return requests

    return install


def _head(git, path):
    return git(path, "rev-parse", "HEAD").strip()


def _workflow(path, ui=None, secrets=None, config=None, **kwargs):
    return CommitWorkflow(
        config or Config(),
        secrets if secrets is not None else MemorySecretStore({"openai": "sk-test"}),
        ui or ScriptedUI(),
        progress=kwargs.pop("progress", RecordingProgress()),
        repo_path=str(path),
        **kwargs,
    )


def test_nothing_to_commit_fails_without_mutation(committed_repo, git):
    before = _head(git, committed_repo)
    ui = ScriptedUI(choice=NoStagedChoice.STAGE_ALL)

    outcome = _workflow(committed_repo, ui=ui).run()

    assert outcome.status is OutcomeStatus.FAILED
    assert "Nothing to commit" in outcome.message
    assert outcome.fatal
    assert ui.asked == []
    assert _head(git, committed_repo) == before


def test_missing_repository_fails(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    outcome = _workflow(plain).run()
    assert outcome.status is OutcomeStatus.FAILED
    assert "No Git repository" in outcome.message


def test_staged_change_is_committed(committed_repo, git, provider_reply):
    requests = provider_reply("feat: ✨ Add notes")
    (committed_repo / "notes.txt").write_text("remember\n")
    git(committed_repo, "add", "notes.txt")

    outcome = _workflow(committed_repo).run()

    assert outcome.ok
    assert outcome.commit_hash
    assert not outcome.pushed
    subject = git(committed_repo, "log", "-1", "--pretty=%s").strip()
    assert subject == "feat: ✨ Add notes"
    body = requests[0]["json"]
    assert body["max_tokens"] == 300
    assert "+remember" in body["messages"][0]["content"]


def test_first_commit_in_new_repository(repo_dir, git, provider_reply):
    provider_reply("feat: ✨ Add hello")
    (repo_dir / "hello.txt").write_text("hi")
    git(repo_dir, "add", "hello.txt")

    outcome = _workflow(repo_dir).run()

    assert outcome.ok
    assert git(repo_dir, "log", "-1", "--pretty=%s").strip() == "feat: ✨ Add hello"


@pytest.mark.parametrize(
    "choice", [NoStagedChoice.CANCEL, NoStagedChoice.OPEN_TOOL_WINDOW, None]
)
def test_unstaged_changes_cancel_paths(committed_repo, git, choice):
    (committed_repo / "README.md").write_text("edited\n")
    ui = ScriptedUI(choice=choice)

    outcome = _workflow(committed_repo, ui=ui).run()

    assert outcome.status is OutcomeStatus.CANCELLED
    assert ui.asked[0][0] == "choose_one"
    assert GitRepo(str(committed_repo)).staged_files() == []


def test_unstaged_changes_stage_all(committed_repo, git, provider_reply):
    provider_reply("docs: 📚 Update readme")
    (committed_repo / "README.md").write_text("edited\n")
    ui = ScriptedUI(choice=NoStagedChoice.STAGE_ALL)

    outcome = _workflow(committed_repo, ui=ui).run()

    assert outcome.ok
    assert git(committed_repo, "status", "--porcelain").strip() == ""


def test_always_add_skips_the_choice(committed_repo, provider_reply):
    provider_reply()
    (committed_repo / "README.md").write_text("edited\n")
    ui = ScriptedUI()

    outcome = _workflow(committed_repo, ui=ui, config=Config(always_add=True)).run()

    assert outcome.ok
    assert all(kind != "choose_one" for kind, _ in ui.asked)


def test_ignored_files_are_reported(committed_repo, git, provider_reply):
    provider_reply()
    for name in ("a.log", "b.log", "c.log", "d.log", "keep.py"):
        (committed_repo / name).write_text("x\n")
    git(committed_repo, "add", ".")
    progress = RecordingProgress()

    outcome = _workflow(committed_repo, progress=progress).run()

    assert outcome.ok
    assert outcome.ignored_files == ["a.log", "b.log", "c.log", "d.log"]
    assert "Ignored 4 file(s): a.log, b.log, c.log and 1 more" in progress.statuses


def test_everything_ignored_is_no_changes(committed_repo, git):
    before = _head(git, committed_repo)
    (committed_repo / "debug.log").write_text("x\n")
    git(committed_repo, "add", "debug.log")

    outcome = _workflow(committed_repo).run()

    assert outcome.status is OutcomeStatus.FAILED
    assert "No changes detected" in outcome.message
    assert outcome.ignored_files == ["debug.log"]
    assert _head(git, committed_repo) == before


def test_prefix_is_sent_to_provider(committed_repo, git, provider_reply):
    requests = provider_reply("fix: 🐛 **ABC-7** -> Fix thing")
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")

    outcome = _workflow(committed_repo, ui=ScriptedUI(prefix="ABC-7")).run()

    assert outcome.ok
    assert "ABC-7" in requests[0]["json"]["messages"][0]["content"]


def test_missing_key_is_prompted_and_saved(committed_repo, git, provider_reply):
    provider_reply()
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")
    secrets = MemorySecretStore()
    ui = ScriptedUI(secret="sk-entered")

    outcome = _workflow(committed_repo, ui=ui, secrets=secrets).run()

    assert outcome.ok
    assert secrets.get("openai") == "sk-entered"


def test_missing_key_without_answer_is_credential_failure(committed_repo, git):
    before = _head(git, committed_repo)
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")

    outcome = _workflow(committed_repo, secrets=MemorySecretStore()).run()

    assert outcome.status is OutcomeStatus.FAILED
    assert isinstance(outcome.error, ConfigError)
    assert "API key is required" in outcome.message
    assert _head(git, committed_repo) == before


def test_environment_key_is_used_without_prompt(
    committed_repo, git, provider_reply, monkeypatch
):
    requests = provider_reply()
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")
    ui = ScriptedUI()

    outcome = _workflow(committed_repo, ui=ui, secrets=MemorySecretStore()).run()

    assert outcome.ok
    assert requests[0]["headers"]["Authorization"] == "Bearer sk-env"
    assert all(kind != "prompt_secret" for kind, _ in ui.asked)


def test_ollama_runs_without_any_key(committed_repo, git, provider_reply):
    requests = provider_reply("chore: 🔧 Tidy")
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")
    config = Config(
        default_provider="ollama",
        default_variant="llama3.2:3b",
        ollama_base_url="http://gpu:11434",
        custom_ollama_variant="mistral:7b",
    )
    ui = ScriptedUI()

    outcome = _workflow(
        committed_repo, ui=ui, secrets=MemorySecretStore(), config=config
    ).run()

    assert outcome.ok
    assert requests[0]["url"] == "http://gpu:11434/api/generate"
    assert requests[0]["json"]["model"] == "mistral:7b"
    assert all(kind != "prompt_secret" for kind, _ in ui.asked)


def test_rate_limit_is_surfaced_not_retried(committed_repo, git, provider_reply):
    requests = provider_reply(status=429)
    before = _head(git, committed_repo)
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")

    outcome = _workflow(committed_repo).run()

    assert outcome.status is OutcomeStatus.FAILED
    assert "Rate limit exceeded for openai" in outcome.message
    assert not outcome.fatal
    assert outcome.suggestions
    assert len(requests) == 1
    assert _head(git, committed_repo) == before


def test_confirm_cancel_makes_no_commit(committed_repo, git, provider_reply):
    provider_reply()
    before = _head(git, committed_repo)
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")

    outcome = _workflow(
        committed_repo, ui=ScriptedUI(confirm=ConfirmChoice.CANCEL)
    ).run()

    assert outcome.status is OutcomeStatus.CANCELLED
    assert _head(git, committed_repo) == before


def test_edited_message_is_committed(committed_repo, git, provider_reply):
    provider_reply()
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")
    ui = ScriptedUI(edited="fix: 🐛 Hand written")

    outcome = _workflow(committed_repo, ui=ui).run()

    assert outcome.ok
    assert git(committed_repo, "log", "-1", "--pretty=%s").strip() == (
        "fix: 🐛 Hand written"
    )


def test_commit_and_push_uses_github_token(
    committed_repo, git, provider_reply, monkeypatch
):
    provider_reply()
    git(committed_repo, "remote", "add", "origin", "https://github.com/acme/app.git")
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")
    pushed = []
    monkeypatch.setattr(
        GitRepo,
        "push",
        lambda self, remote="origin", branch=None, github_token=None: pushed.append(
            github_token
        ),
    )
    secrets = MemorySecretStore({"openai": "sk", GITHUB_PAT_KEY: "ghp_token"})
    ui = ScriptedUI(confirm=ConfirmChoice.COMMIT_AND_PUSH)

    outcome = _workflow(committed_repo, ui=ui, secrets=secrets).run()

    assert outcome.ok
    assert outcome.pushed
    assert pushed == ["ghp_token"]


def test_push_failure_is_reported_separately(
    committed_repo, git, provider_reply, monkeypatch
):
    provider_reply()
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")

    def failing_push(self, remote="origin", branch=None, github_token=None):
        raise PushError("Failed to push: auth", reason="authentication")

    monkeypatch.setattr(GitRepo, "push", failing_push)
    ui = ScriptedUI(confirm=ConfirmChoice.COMMIT_AND_PUSH)

    outcome = _workflow(committed_repo, ui=ui).run()

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.commit_hash
    assert not outcome.pushed
    assert "authentication" in outcome.message
    assert isinstance(outcome.error, PushError)


def test_assume_yes_with_auto_push(committed_repo, git, provider_reply, monkeypatch):
    provider_reply()
    (committed_repo / "README.md").write_text("edited\n")
    pushed = []
    monkeypatch.setattr(
        GitRepo, "push", lambda self, **kwargs: pushed.append(kwargs) or ""
    )
    ui = ScriptedUI()

    outcome = _workflow(
        committed_repo,
        ui=ui,
        config=Config(always_add=True, auto_push=True),
        assume_yes=True,
    ).run()

    assert outcome.ok
    assert outcome.pushed
    assert len(pushed) == 1
    assert ui.asked == []


def test_cancellation_stops_before_generation(committed_repo, git):
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")

    progress = RecordingProgress(cancelled=True)
    outcome = _workflow(committed_repo, progress=progress).run()

    assert outcome.status is OutcomeStatus.CANCELLED


def test_analyze_returns_text_and_does_not_commit(committed_repo, git, provider_reply):
    requests = provider_reply("OVERVIEW\n-------------\nAll good")
    before = _head(git, committed_repo)
    (committed_repo / "x.py").write_text("print(1)\n")
    git(committed_repo, "add", "x.py")
    ui = ScriptedUI()

    outcome = _workflow(committed_repo, ui=ui).analyze()

    assert outcome.ok
    assert outcome.text.startswith("OVERVIEW")
    assert requests[0]["json"]["max_tokens"] == 8000
    assert _head(git, committed_repo) == before
    assert all(kind != "confirm_editable" for kind, _ in ui.asked)


def test_resolve_model_spec_prefers_stored_key(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
    config = Config(default_provider="claude", default_variant="")
    wf = CommitWorkflow(config, MemorySecretStore({"claude": "stored"}), ScriptedUI())

    spec = wf.resolve_model_spec()

    assert spec.provider_name == "claude"
    assert spec.api_key == "stored"
    assert spec.actual_variant == "claude-3-5-sonnet-20241022"


def test_format_ignored_notice():
    assert format_ignored_notice(["a"]) == "Ignored 1 file(s): a"
    assert format_ignored_notice(["a", "b", "c"]) == "Ignored 3 file(s): a, b, c"
    assert (
        format_ignored_notice(["a", "b", "c", "d", "e"])
        == "Ignored 5 file(s): a, b, c and 2 more"
    )


def test_push_failure_hints():
    assert "token" in push_failure_hint(PushError("x", reason="authentication"))
    assert "network" in push_failure_hint(PushError("x", reason="connectivity"))
    assert "boom" in push_failure_hint(PushError("boom"))


def test_workflow_module_exposes_null_progress():
    progress = workflow_module.NullProgress()
    progress.set_status_text("ignored")
    assert progress.is_cancelled() is False
