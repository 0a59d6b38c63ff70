"""Project summary model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from gittask.enums import Priority


class Project(BaseModel):
    """Aggregate over every task sharing a project name."""

    name: str
    tasks: int = 0
    tasks_resolved: int = 0
    active: bool = False
    created: datetime | None = None
    resolved: datetime | None = None
    priority: str = Priority.LOW.value

    @property
    def tasks_open(self) -> int:
        return self.tasks - self.tasks_resolved
