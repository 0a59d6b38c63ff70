"""Pytest configuration and fixtures for gittask tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from gittask.commands import Runtime
from gittask.config import Settings
from gittask.local_state import LocalState
from gittask.models.task import Task
from gittask.store import TaskStore
from gittask.taskset import TaskSet

UUID_A = "11111111-1111-4111-8111-111111111111"
UUID_B = "22222222-2222-4222-8222-222222222222"
UUID_C = "33333333-3333-4333-8333-333333333333"


class FakeVCS:
    """In-memory stand-in for GitBackend that records what was asked of it."""

    def __init__(self) -> None:
        self.commits: list[str] = []
        self.resets = 0
        self.pulls = 0
        self.pushes = 0
        self.ran: list[list[str]] = []

    def ensure_repo(self) -> bool:
        return False

    def commit(self, message: str) -> str:
        self.commits.append(message)
        return message

    def pull(self) -> str:
        self.pulls += 1
        return "Pulled"

    def push(self) -> str:
        self.pushes += 1
        return "Pushed"

    def reset_last_commit(self) -> None:
        self.resets += 1

    def run(self, args: list[str]) -> str:
        self.ran.append(list(args))
        return "ok"


class FakeEditor:
    """Editor double: returns ``response(text)`` and remembers what it was shown."""

    def __init__(self) -> None:
        self.shown: list[str] = []
        self.response = lambda text: text

    def __call__(self, text: str, filename_hint: str) -> str:
        self.shown.append(text)
        return self.response(text)


@pytest.fixture
def repo(tmp_path):
    """Empty task repository directory."""
    path = tmp_path / "tasks"
    path.mkdir()
    return path


@pytest.fixture
def settings(repo):
    return Settings.for_repo(repo)


@pytest.fixture
def store(repo):
    return TaskStore(repo)


@pytest.fixture
def taskset(store, tmp_path):
    return TaskSet(store, tmp_path / "ids.json")


@pytest.fixture
def vcs():
    return FakeVCS()


@pytest.fixture
def editor():
    return FakeEditor()


@pytest.fixture
def make_runtime(repo, vcs, editor):
    """Factory building a Runtime over the temp repository with setting overrides."""

    def _make(confirm=None, **overrides) -> Runtime:
        settings = Settings.for_repo(repo, **overrides)
        return Runtime(
            settings=settings,
            store=TaskStore(settings.repo, settings.task_format),
            vcs=vcs,
            state=LocalState.load(settings.state_file),
            editor=editor,
            confirm=confirm or (lambda message: True),
        )

    return _make


@pytest.fixture
def runtime(make_runtime):
    return make_runtime()


@pytest.fixture
def sample_task():
    """A fully populated pending task."""
    return Task(
        uuid=UUID_A,
        status="pending",
        summary="Call accountant",
        notes="Ask about receipts\n- [x] gather invoices",
        tags=["tax", "phone"],
        project="finance",
        priority="P1",
        created=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        due=datetime(2024, 4, 15, tzinfo=timezone.utc),
    )


@pytest.fixture
def mock_subprocess_success():
    """Mock subprocess.run to return successful output."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock_run


@pytest.fixture
def mock_subprocess_failure():
    """Mock subprocess.run to return a failed command."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="fatal: something broke")
        yield mock_run
