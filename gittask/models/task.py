"""Core task model for gittask."""

from __future__ import annotations

import re
import uuid as uuid_lib
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from gittask.constants import NOTE_MODE_KEYWORD, ZERO_DATE_STR, is_valid_priority, is_valid_status
from gittask.enums import DateFilter, Priority, TaskStatus
from gittask.errors import InvalidPriorityError, InvalidStatusError, InvalidUuidError
from gittask.models.query import Query
from gittask.utils.dates import format_due_date

_UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

# An unchecked Markdown checklist item: "- [ ] ..."
_OPEN_CHECKLIST = re.compile(r"^\s*[-*+] \[ \]", re.MULTILINE)


def is_valid_uuid(value: str) -> bool:
    return bool(_UUID_PATTERN.match(value))


def new_uuid() -> str:
    return str(uuid_lib.uuid4())


class SubTask(BaseModel):
    """Checklist entry kept alongside the notes."""

    summary: str = ""
    resolved: bool = False


class Task(BaseModel):
    """A single task record.

    ``uuid`` and ``status`` are implied by the file name and directory on disk;
    ``id``, ``write_pending`` and ``filtered`` only live in memory.
    """

    uuid: str = ""
    status: str = TaskStatus.PENDING.value
    id: int = 0
    summary: str = ""
    notes: str = ""
    tags: list[str] = Field(default_factory=list)
    project: str = ""
    priority: str = ""
    delegated_to: str = ""
    subtasks: list[SubTask] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    created: datetime | None = None
    resolved: datetime | None = None
    due: datetime | None = None

    write_pending: bool = Field(default=False, exclude=True)
    filtered: bool = Field(default=False, exclude=True)

    @field_validator("status", "priority", mode="before")
    @classmethod
    def _enum_to_value(cls, v: Any) -> Any:
        return v.value if isinstance(v, Enum) else v

    # ---- entity operations ----

    def normalise(self) -> None:
        """Lowercase project and tags, sort and dedupe tags, apply defaults. Idempotent."""
        self.project = self.project.lower()
        self.tags = sorted({tag.lower() for tag in self.tags})

        if self.status == TaskStatus.RESOLVED:
            self.id = 0

        if not self.priority:
            self.priority = Priority.NORMAL.value

    def validate_fields(self) -> None:
        """
        Check identity, status, priority and dependency references.

        Raises:
            InvalidUuidError, InvalidStatusError, InvalidPriorityError
        """
        if not is_valid_uuid(self.uuid):
            raise InvalidUuidError(self.uuid)

        if not is_valid_status(self.status):
            raise InvalidStatusError(self.status)

        if not is_valid_priority(self.priority):
            raise InvalidPriorityError(self.priority)

        for dependency in self.dependencies:
            if not is_valid_uuid(dependency):
                raise InvalidUuidError(dependency)

    def matches_filter(self, query: Query) -> bool:
        """Pure predicate: every operator in the query must hold for this task."""
        if query.ids and self.id not in query.ids:
            return False

        for tag in query.tags:
            if tag not in self.tags:
                return False

        for tag in query.anti_tags:
            if tag in self.tags:
                return False

        if self.project in query.anti_projects:
            return False

        if query.project and self.project != query.project:
            return False

        if query.due is not None:
            if self.due is None:
                return False
            if query.date_filter == DateFilter.AFTER:
                if not self.due > query.due:
                    return False
            elif query.date_filter == DateFilter.BEFORE:
                if not self.due < query.due:
                    return False
            elif self.due.astimezone().date() != query.due.astimezone().date():
                return False

        if query.priority and self.priority != query.priority:
            return False

        if query.text:
            needle = query.text.lower()
            if needle not in self.summary.lower() and needle not in self.notes.lower():
                return False

        return True

    def modify(self, query: Query) -> None:
        """Apply the query's operators to this task and mark it for writing."""
        for tag in query.tags:
            if tag not in self.tags:
                self.tags.append(tag)

        self.tags = [tag for tag in self.tags if tag not in query.anti_tags]

        if query.project:
            self.project = query.project

        if self.project in query.anti_projects:
            self.project = ""

        if query.priority:
            self.priority = query.priority

        if query.due is not None:
            self.due = query.due

        if query.note:
            if self.notes:
                self.notes += "\n"
            self.notes += query.note

        self.write_pending = True

    def has_open_checklist(self) -> bool:
        return bool(_OPEN_CHECKLIST.search(self.notes))

    # ---- presentation helpers ----

    def long_summary(self) -> str:
        """Summary followed by the last line of the notes, if any."""
        lines = self.notes.strip().splitlines()
        if lines and lines[-1]:
            return f"{self.summary} {NOTE_MODE_KEYWORD} {lines[-1]}"
        return self.summary

    def due_display(self) -> str:
        return format_due_date(self.due) if self.due else ""

    def to_json(self) -> dict[str, Any]:
        """Machine-readable representation used for non-interactive output."""

        def _instant(value: datetime | None) -> str:
            return value.isoformat() if value else ZERO_DATE_STR

        return {
            "uuid": self.uuid,
            "status": self.status,
            "id": self.id,
            "summary": self.summary,
            "notes": self.notes,
            "tags": list(self.tags),
            "project": self.project,
            "priority": self.priority,
            "created": _instant(self.created),
            "resolved": _instant(self.resolved),
            "due": _instant(self.due),
        }

    def __str__(self) -> str:
        if self.id > 0:
            return f"{self.id}: {self.summary}"
        return self.summary
