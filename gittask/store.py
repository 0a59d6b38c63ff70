"""File-per-task store: ``<repo>/<status>/<uuid>.md`` or legacy ``<uuid>.yml``."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NamedTuple

import frontmatter
import pydantic
import yaml

from gittask.constants import ALL_STATUSES, ZERO_DATE_STR
from gittask.errors import StoreError
from gittask.models.task import SubTask, Task, is_valid_uuid
from gittask.utils.dates import parse_date

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"
YAML_SUFFIX = ".yml"

# Richer format first: TaskSet keeps the first copy of a UUID it sees.
SUFFIX_ORDER = (MARKDOWN_SUFFIX, YAML_SUFFIX)

_FORMAT_SUFFIXES = {"md": MARKDOWN_SUFFIX, "yml": YAML_SUFFIX}

_FRACTION = re.compile(r"\.(\d+)")


class StoreEntry(NamedTuple):
    """Raw record as found on disk. Bytes are decoded by ``TaskStore.decode``."""

    uuid: str
    status: str
    suffix: str
    raw: bytes


# ============================================================================
# Instants
# ============================================================================


def _format_instant(value: datetime | None) -> str:
    if value is None:
        return ZERO_DATE_STR
    return value.isoformat()


def _parse_instant(value: Any) -> datetime | None:
    """Accept YAML timestamps or RFC 3339 strings; the zero sentinel means unset."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        # fromisoformat only takes up to microseconds
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise StoreError(f"Invalid timestamp: {value}") from e

    if parsed.year == 1:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ============================================================================
# Codecs
# ============================================================================


def _metadata(task: Task) -> dict[str, Any]:
    """Persisted fields except notes. Status and UUID live in the path."""
    return {
        "summary": task.summary,
        "tags": list(task.tags),
        "project": task.project,
        "priority": task.priority,
        "delegatedto": task.delegated_to,
        "subtasks": [subtask.model_dump() for subtask in task.subtasks],
        "dependencies": list(task.dependencies),
        "created": _format_instant(task.created),
        "resolved": _format_instant(task.resolved),
        "due": _format_instant(task.due),
    }


def _list_field(uuid: str, metadata: dict[str, Any], key: str) -> list[Any]:
    value = metadata.get(key)
    if value is None or value == "":
        return []
    if not isinstance(value, list):
        raise StoreError(f"Malformed task {uuid}: {key} must be a list, got {type(value).__name__}")
    return value


def _task_from_metadata(uuid: str, status: str, metadata: dict[str, Any], notes: str) -> Task:
    tags = [str(tag) for tag in _list_field(uuid, metadata, "tags")]
    subtasks = _list_field(uuid, metadata, "subtasks")
    dependencies = [str(d) for d in _list_field(uuid, metadata, "dependencies")]
    try:
        return Task(
            uuid=uuid,
            status=status,
            summary=str(metadata.get("summary") or ""),
            notes=notes,
            tags=tags,
            project=str(metadata.get("project") or ""),
            priority=str(metadata.get("priority") or ""),
            delegated_to=str(metadata.get("delegatedto") or ""),
            subtasks=subtasks,
            dependencies=dependencies,
            created=_parse_instant(metadata.get("created")),
            resolved=_parse_instant(metadata.get("resolved")),
            due=_parse_instant(metadata.get("due")),
        )
    except pydantic.ValidationError as e:
        raise StoreError(f"Malformed task {uuid}: {e}") from e


def encode_yaml(task: Task) -> str:
    data = _metadata(task)
    data["notes"] = task.notes
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def decode_yaml(uuid: str, status: str, text: str) -> Task:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise StoreError(f"Invalid YAML in task {uuid}: {e}") from e
    if not isinstance(data, dict):
        raise StoreError(f"Task {uuid} is not a mapping")
    return _task_from_metadata(uuid, status, data, str(data.get("notes") or ""))


def encode_markdown(task: Task) -> str:
    post = frontmatter.Post(task.notes, **_metadata(task))
    return frontmatter.dumps(post, sort_keys=False) + "\n"


def decode_markdown(uuid: str, status: str, text: str) -> Task:
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        raise StoreError(f"Invalid frontmatter in task {uuid}: {e}") from e
    return _task_from_metadata(uuid, status, dict(post.metadata), post.content)


# ============================================================================
# Editor round trip
# ============================================================================


def task_to_editor_text(task: Task) -> str:
    """Markdown document for interactive editing. Unlike the stored form it carries the status."""
    metadata: dict[str, Any] = {
        "summary": task.summary,
        "status": task.status,
        "tags": list(task.tags),
        "project": task.project,
        "priority": task.priority,
        "due": f"{task.due.astimezone():%Y-%m-%d}" if task.due else "",
        "delegatedto": task.delegated_to,
        "dependencies": list(task.dependencies),
        "subtasks": [subtask.model_dump() for subtask in task.subtasks],
    }
    return frontmatter.dumps(frontmatter.Post(task.notes, **metadata), sort_keys=False) + "\n"


def task_from_editor_text(original: Task, text: str) -> Task:
    """
    Apply an edited document onto a copy of ``original``.

    UUID, ID and creation time are never taken from the document.

    Raises:
        StoreError: when the document cannot be parsed
    """
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        raise StoreError(f"Could not parse edited task: {e}") from e

    metadata = post.metadata
    edited = original.model_copy(deep=True)
    edited.summary = str(metadata.get("summary") or "")
    edited.status = str(metadata.get("status") or original.status)
    edited.tags = [str(tag) for tag in _list_field(original.uuid, metadata, "tags")]
    edited.project = str(metadata.get("project") or "")
    edited.priority = str(metadata.get("priority") or "")
    edited.delegated_to = str(metadata.get("delegatedto") or "")
    edited.dependencies = [str(d) for d in _list_field(original.uuid, metadata, "dependencies")]
    edited.notes = post.content

    try:
        edited.subtasks = [SubTask.model_validate(s) for s in _list_field(original.uuid, metadata, "subtasks")]
    except (TypeError, pydantic.ValidationError) as e:
        raise StoreError(f"Malformed subtasks: {e}") from e

    due = metadata.get("due")
    if due:
        edited.due = parse_date(str(due))
    else:
        edited.due = None

    return edited


# ============================================================================
# Store
# ============================================================================


class TaskStore:
    """Key-value store of task files keyed by status and UUID."""

    def __init__(self, repo: Path, task_format: str = "md") -> None:
        if task_format not in _FORMAT_SUFFIXES:
            raise StoreError(f"Unknown task format: {task_format}")
        self.repo = Path(repo)
        self.suffix = _FORMAT_SUFFIXES[task_format]

    def _path(self, status: str, uuid: str, suffix: str) -> Path:
        return self.repo / str(status) / f"{uuid}{suffix}"

    def list(self, status: str) -> list[StoreEntry]:
        """Every task file under a status directory, Markdown before YAML, dotfiles skipped."""
        directory = self.repo / str(status)
        if not directory.is_dir():
            return []

        entries = []
        try:
            for suffix in SUFFIX_ORDER:
                for path in sorted(directory.glob(f"*{suffix}")):
                    if path.name.startswith(".") or not path.is_file():
                        continue
                    entries.append(StoreEntry(path.stem, str(status), suffix, path.read_bytes()))
        except OSError as e:
            raise StoreError(f"Failed to read {directory}: {e}") from e
        return entries

    def read(self, status: str, uuid: str) -> StoreEntry:
        for suffix in SUFFIX_ORDER:
            path = self._path(status, uuid, suffix)
            if path.is_file():
                try:
                    return StoreEntry(uuid, str(status), suffix, path.read_bytes())
                except OSError as e:
                    raise StoreError(f"Failed to read {path}: {e}") from e
        raise StoreError(f"No task file for {uuid} in {status}")

    def decode(self, entry: StoreEntry) -> Task:
        """
        Parse a raw entry into a Task.

        Raises:
            StoreError: when the file name is not a UUID or the content is malformed
        """
        if not is_valid_uuid(entry.uuid):
            raise StoreError(f"Filename does not encode UUID: {entry.uuid}{entry.suffix}")
        try:
            text = entry.raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StoreError(f"Task {entry.uuid} is not valid UTF-8: {e}") from e
        if entry.suffix == MARKDOWN_SUFFIX:
            return decode_markdown(entry.uuid, entry.status, text)
        return decode_yaml(entry.uuid, entry.status, text)

    def encode(self, task: Task) -> str:
        if self.suffix == MARKDOWN_SUFFIX:
            return encode_markdown(task)
        return encode_yaml(task)

    def write(self, task: Task) -> Path:
        """Write the task in the configured format and drop any stale copy elsewhere."""
        path = self._path(task.status, task.uuid, self.suffix)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.encode(task), encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Failed to write {path}: {e}") from e

        self._remove_copies(task.uuid, keep=path)
        logger.debug("Wrote task %s to %s", task.uuid, path)
        return path

    def delete(self, uuid: str) -> None:
        """Remove every copy of a task, whatever its status directory or format."""
        self._remove_copies(uuid, keep=None)
        logger.debug("Deleted task %s", uuid)

    def _remove_copies(self, uuid: str, keep: Path | None) -> None:
        for status in ALL_STATUSES:
            for suffix in SUFFIX_ORDER:
                path = self._path(status.value, uuid, suffix)
                if path == keep or not path.exists():
                    continue
                try:
                    path.unlink()
                except OSError as e:
                    raise StoreError(f"Failed to remove {path}: {e}") from e
