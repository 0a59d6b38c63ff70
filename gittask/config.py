"""Settings loaded from environment variables.

Built once at process start by the CLI or the MCP server and passed to every
component that needs it.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from gittask.enums import BulkCommitStrategy

ENV_PREFIX = "GITTASK"

DEFAULT_REPO = Path("~/.gittask")
TASK_FORMATS = ("md", "yml")


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default.expanduser()
    return Path(raw).expanduser()


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = _env(name).strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Repository ----
    repo: Path
    state_file: Path
    ids_file: Path
    task_format: str

    # ---- Behaviour ----
    context_override: str | None
    interactive: bool
    bulk_commit: BulkCommitStrategy
    sync_after_modify: bool
    editor: str

    # ---- Logging ----
    log_level: str
    log_file: Path | None

    @staticmethod
    def for_repo(repo: Path, **overrides) -> Settings:
        """Defaults for a given repository path; used by tests and embedding code."""
        repo = Path(repo).expanduser()
        state_dir = repo / ".git" / "gittask"
        settings = Settings(
            repo=repo,
            state_file=state_dir / "state.json",
            ids_file=state_dir / "ids.json",
            task_format="md",
            context_override=None,
            interactive=False,
            bulk_commit=BulkCommitStrategy.SINGLE,
            sync_after_modify=False,
            editor="vi",
            log_level="WARNING",
            log_file=None,
        )
        return replace(settings, **overrides)

    @staticmethod
    def from_env() -> Settings:
        repo = _env_path(_k("GIT_REPO"), DEFAULT_REPO)

        context_override = os.getenv(_k("CONTEXT"))

        interactive = _env_bool(_k("FAKE_PTY"), False) or sys.stdout.isatty()

        bulk_commit = BulkCommitStrategy(
            _env_choice(_k("BULK_COMMIT"), tuple(s.value for s in BulkCommitStrategy), BulkCommitStrategy.SINGLE.value)
        )

        log_file_raw = _env(_k("LOG_FILE")).strip()

        return Settings.for_repo(
            repo,
            task_format=_env_choice(_k("TASK_FORMAT"), TASK_FORMATS, "md"),
            context_override=context_override,
            interactive=interactive,
            bulk_commit=bulk_commit,
            sync_after_modify=_env_bool(_k("SYNC_AFTER_MODIFY"), False),
            editor=_env(_k("EDITOR")).strip() or _env("EDITOR").strip() or "vi",
            log_level=_env(_k("LOG_LEVEL"), "WARNING").upper(),
            log_file=Path(log_file_raw).expanduser() if log_file_raw else None,
        )
