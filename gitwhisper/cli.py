"""Terminal CLI for gitwhisper."""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from typing import Optional, Sequence, Tuple

from .config import Config, load_config, load_persisted_config, save_config
from .credentials import GITHUB_PAT_KEY, KeyringSecretStore, SecretStore
from .error_handler import is_retryable, retry_delay
from .exceptions import ConfigError, GitWhisperError
from .language import LANGUAGES, find_language
from .providers.ollama_driver import OllamaDriver
from .variants import (
    PROVIDER_NAMES,
    ModelSpec,
    describe_provider,
    get_variants_with_custom,
    is_provider_supported,
)
from .workflow import CommitWorkflow, ConfirmChoice, OutcomeStatus, WorkflowOutcome

RESET = "\033[0m"
BOLD = "\033[1m"
CYAN = "\033[96m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
DIM = "\033[2m"
RED = "\033[91m"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130

_ON_OFF = {"on": True, "off": False}


class TerminalInteraction:
    """Blocking prompts on stdin/stdout."""

    def choose_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        print(f"{BOLD}{title}{RESET}")
        for index, option in enumerate(options, start=1):
            print(f"  {index}. {option}")
        answer = self._input("Choice: ")
        if answer is None:
            return None
        try:
            picked = int(answer) - 1
        except ValueError:
            return None
        if 0 <= picked < len(options):
            return options[picked]
        return None

    def prompt_text(self, label: str) -> Optional[str]:
        answer = self._input(f"{label}: ")
        return answer or None

    def prompt_secret(self, label: str) -> Optional[str]:
        try:
            return getpass.getpass(f"{label}: ") or None
        except EOFError:
            return None

    def confirm_editable(self, initial_text: str) -> Tuple[ConfirmChoice, str]:
        text = initial_text
        while True:
            print(f"\n{CYAN}Generated commit message:{RESET}")
            print(f"{GREEN}{text}{RESET}\n")
            answer = self._input(
                "[c]ommit, commit and [p]ush, [e]dit, or cancel [x]: "
            )
            if answer is None:
                return ConfirmChoice.CANCEL, text
            key = answer.strip().lower()[:1]
            if key == "c":
                return ConfirmChoice.COMMIT, text
            if key == "p":
                return ConfirmChoice.COMMIT_AND_PUSH, text
            if key == "e":
                edited = self._input("New message: ")
                if edited:
                    text = edited
                continue
            if key == "x":
                return ConfirmChoice.CANCEL, text

    @staticmethod
    def _input(prompt: str) -> Optional[str]:
        try:
            return input(prompt).strip()
        except EOFError:
            return None


class NonInteractive(TerminalInteraction):
    """Answers every prompt without asking; used with ``--yes``."""

    def choose_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        return options[0] if options else None

    def prompt_text(self, label: str) -> Optional[str]:
        return None

    def prompt_secret(self, label: str) -> Optional[str]:
        return None

    def confirm_editable(self, initial_text: str) -> Tuple[ConfirmChoice, str]:
        return ConfirmChoice.COMMIT, initial_text


class TerminalProgress:
    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def set_status_text(self, text: str) -> None:
        if not self.quiet:
            print(f"{DIM}{text}{RESET}", file=sys.stderr)

    def is_cancelled(self) -> bool:
        return False


class CLI:
    """Command-line interface for gitwhisper."""

    def __init__(self) -> None:
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="gitwhisper",
            description="Generate commit messages and change analyses from staged "
            "changes using AI providers.",
        )
        parser.add_argument("--provider", choices=PROVIDER_NAMES, help="Provider")
        parser.add_argument("--variant", help="Model variant for the provider")
        parser.add_argument("--repo-path", help="Path to the Git repository")
        parser.add_argument("--prefix", help="Commit prefix (e.g. a ticket id)")
        parser.add_argument(
            "-y",
            "--yes",
            action="store_true",
            help="Skip prompts; stage all if needed and commit (push if auto-push)",
        )
        parser.add_argument("--quiet", action="store_true", help="No status output")
        parser.add_argument("--debug", action="store_true", help="Debug logging")

        sub = parser.add_subparsers(dest="command")
        sub.add_parser("commit", help="Generate a commit message and commit (default)")
        sub.add_parser("analyze", help="Analyze staged changes")

        models = sub.add_parser("models", help="List model variants")
        models.add_argument("name", nargs="?", help="Provider to list")
        models.add_argument(
            "--installed",
            action="store_true",
            help="List models installed on the Ollama server",
        )

        config = sub.add_parser("config", help="Show or change configuration")
        csub = config.add_subparsers(dest="config_command")
        csub.add_parser("show", help="Show configuration")
        set_key = csub.add_parser("set-key", help="Store an API key")
        set_key.add_argument("name", choices=PROVIDER_NAMES)
        set_key.add_argument("key", nargs="?")
        delete_key = csub.add_parser("delete-key", help="Delete a stored API key")
        delete_key.add_argument("name", choices=PROVIDER_NAMES)
        token = csub.add_parser("set-github-token", help="Store a GitHub token")
        token.add_argument("token", nargs="?")
        csub.add_parser("delete-github-token", help="Delete the GitHub token")
        defaults = csub.add_parser("set-defaults", help="Default provider/variant")
        defaults.add_argument("name", choices=PROVIDER_NAMES)
        defaults.add_argument("variant", nargs="?")
        language = csub.add_parser("language", help="Show or set the language")
        language.add_argument(
            "code", nargs="?", help="e.g. de, de;DE or a display name"
        )
        ignore = csub.add_parser("ignore", help="Manage ignored file patterns")
        ignore.add_argument("action", choices=["list", "add", "remove"])
        ignore.add_argument("pattern", nargs="?")
        for flag in ("always-add", "auto-push"):
            toggle = csub.add_parser(flag, help=f"Turn {flag} on or off")
            toggle.add_argument("state", choices=sorted(_ON_OFF))
        ollama_url = csub.add_parser("ollama-url", help="Set the Ollama base URL")
        ollama_url.add_argument("url")
        ollama_variant = csub.add_parser(
            "ollama-variant", help="Set a custom Ollama model"
        )
        ollama_variant.add_argument("variant", nargs="?", default="")
        return parser

    def run(self, args: Optional[list[str]] = None) -> int:
        try:
            parsed = self.parser.parse_args(args)
        except SystemExit as e:
            return int(e.code or 0)

        logging.basicConfig(
            level=logging.DEBUG if parsed.debug else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        command = parsed.command or "commit"
        try:
            if command == "config":
                # Edits start from the file so env overrides are not persisted.
                return self._run_config(parsed, load_persisted_config() or Config())
            config = load_config(
                overrides={"provider": parsed.provider, "variant": parsed.variant}
            )
            if command == "models":
                return self._run_models(parsed, config)
            return self._run_workflow(parsed, config, command)
        except KeyboardInterrupt:
            print(f"\n{YELLOW}Interrupted{RESET}", file=sys.stderr)
            return EXIT_INTERRUPTED
        except ConfigError as e:
            self._print_error(str(e))
            return EXIT_CONFIG
        except GitWhisperError as e:
            self._print_error(str(e))
            return EXIT_FAILED

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def _run_workflow(
        self, parsed: argparse.Namespace, config: Config, command: str
    ) -> int:
        secrets = KeyringSecretStore()
        ui = NonInteractive() if parsed.yes else TerminalInteraction()
        workflow = CommitWorkflow(
            config,
            secrets,
            ui,
            progress=TerminalProgress(quiet=parsed.quiet),
            repo_path=parsed.repo_path,
            assume_yes=parsed.yes,
            prefix=parsed.prefix,
        )
        outcome = workflow.analyze() if command == "analyze" else workflow.run()
        return self._report(outcome, command)

    def _report(self, outcome: WorkflowOutcome, command: str) -> int:
        if outcome.status is OutcomeStatus.SUCCESS:
            if command == "analyze":
                print(outcome.text)
            else:
                print(f"{GREEN}{outcome.message}{RESET}")
                print(outcome.text)
            return EXIT_OK
        if outcome.status is OutcomeStatus.CANCELLED:
            print(f"{YELLOW}{outcome.message}{RESET}")
            return EXIT_OK
        self._print_error(outcome.message)
        for suggestion in outcome.suggestions:
            print(f"  {DIM}- {suggestion}{RESET}", file=sys.stderr)
        if outcome.error is not None and is_retryable(outcome.error):
            print(
                f"  {DIM}Temporary failure, try again in "
                f"{retry_delay(1):.0f}s{RESET}",
                file=sys.stderr,
            )
        if isinstance(outcome.error, ConfigError):
            return EXIT_CONFIG
        return EXIT_FAILED

    def _run_models(self, parsed: argparse.Namespace, config: Config) -> int:
        if parsed.installed:
            driver = OllamaDriver(
                ModelSpec("ollama", base_url=config.ollama_base_url)
            )
            if not driver.is_available():
                self._print_error(f"Ollama is not reachable at {driver.base_url}")
                return EXIT_FAILED
            for name in driver.list_models():
                print(name)
            return EXIT_OK
        names = [parsed.name] if parsed.name else list(PROVIDER_NAMES)
        for name in names:
            if not is_provider_supported(name):
                raise ConfigError(f"Unsupported provider: {name}")
            print(f"{BOLD}{describe_provider(name)}{RESET}")
            for variant in get_variants_with_custom(
                name, config.custom_ollama_variant
            ):
                print(f"  {variant.name:32} {variant.description}")
        return EXIT_OK

    def _run_config(self, parsed: argparse.Namespace, config: Config) -> int:
        action = parsed.config_command or "show"
        secrets: SecretStore = KeyringSecretStore()

        if action == "show":
            print(json.dumps(config.summary(secrets), indent=2, ensure_ascii=False))
            return EXIT_OK
        if action == "set-key":
            key = parsed.key or TerminalInteraction().prompt_secret(
                f"API key for {parsed.name}"
            )
            if not key:
                raise ConfigError("No API key given")
            secrets.set(parsed.name, key)
            print(f"Stored API key for {parsed.name}")
            return EXIT_OK
        if action == "delete-key":
            secrets.delete(parsed.name)
            print(f"Deleted API key for {parsed.name}")
            return EXIT_OK
        if action == "set-github-token":
            token = parsed.token or TerminalInteraction().prompt_secret(
                "GitHub personal access token"
            )
            if not token:
                raise ConfigError("No token given")
            secrets.set(GITHUB_PAT_KEY, token)
            print("Stored GitHub token")
            return EXIT_OK
        if action == "delete-github-token":
            secrets.delete(GITHUB_PAT_KEY)
            print("Deleted GitHub token")
            return EXIT_OK
        if action == "language" and not parsed.code:
            current = config.get_language()
            for lang in LANGUAGES:
                marker = "*" if lang == current else " "
                print(f"{marker} {lang.code};{lang.country_code}  {lang.display_name}")
            return EXIT_OK
        if action == "ignore" and parsed.action == "list":
            for pattern in config.ignored_files:
                print(pattern)
            return EXIT_OK

        self._apply_config_change(parsed, config, action)
        path = save_config(config)
        print(f"Configuration saved to {path}")
        return EXIT_OK

    def _apply_config_change(
        self, parsed: argparse.Namespace, config: Config, action: str
    ) -> None:
        if action == "set-defaults":
            config.set_defaults(parsed.name, parsed.variant)
        elif action == "language":
            language = find_language(parsed.code)
            if language is None:
                raise ConfigError(f"Unknown language: {parsed.code}")
            config.set_language(language)
        elif action == "ignore":
            if not parsed.pattern:
                raise ConfigError("A pattern is required")
            if parsed.action == "add":
                config.add_ignore_pattern(parsed.pattern)
            else:
                config.remove_ignore_pattern(parsed.pattern)
        elif action == "always-add":
            config.always_add = _ON_OFF[parsed.state]
        elif action == "auto-push":
            config.auto_push = _ON_OFF[parsed.state]
        elif action == "ollama-url":
            config.ollama_base_url = parsed.url.rstrip("/")
        elif action == "ollama-variant":
            config.custom_ollama_variant = parsed.variant.strip()

    @staticmethod
    def _print_error(message: str) -> None:
        print(f"{RED}Error: {message}{RESET}", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> int:
    return CLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
