"""TaskSet: the loaded task collection with ID and UUID indices."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from gittask.constants import HIDDEN_STATUSES, MAX_TASKS_OPEN, NON_RESOLVED_STATUSES, is_valid_status_transition
from gittask.enums import Priority, TaskStatus
from gittask.errors import (
    BusinessRuleError,
    InvalidStatusTransitionError,
    StoreError,
    TaskNotFoundError,
)
from gittask.local_state import load_ids, save_ids
from gittask.models.project import Project
from gittask.models.query import Query
from gittask.models.task import Task, new_uuid
from gittask.store import TaskStore

logger = logging.getLogger(__name__)


class TaskSet:
    """
    Ordered list of tasks plus ``id -> position`` and ``uuid -> position`` maps.

    Any operation that moves tasks around in the list rebuilds both maps.
    ``get_by_id``/``get_by_uuid`` return the stored object: copy it before
    changing fields and hand the copy to ``update_task``.
    """

    def __init__(self, store: TaskStore, ids_file: Path) -> None:
        self.store = store
        self.ids_file = Path(ids_file)
        self._tasks: list[Task] = []
        self._by_id: dict[int, int] = {}
        self._by_uuid: dict[str, int] = {}

    @classmethod
    def load(
        cls,
        store: TaskStore,
        ids_file: Path,
        statuses: Iterable[str] = NON_RESOLVED_STATUSES,
    ) -> TaskSet:
        """
        Read every task file under the given status directories.

        Unparseable files are logged and skipped. Tasks with a hidden status
        (recurring, resolved, template) start out filtered.
        """
        ts = cls(store, ids_file)
        ids = load_ids(ids_file)

        for status in statuses:
            status_name = TaskStatus(status).value
            for entry in store.list(status_name):
                try:
                    task = store.decode(entry)
                except StoreError as e:
                    logger.warning("Error loading task %s%s: %s", entry.uuid, entry.suffix, e)
                    continue

                task.id = ids.get(task.uuid, 0)
                ts.load_task(task)

        for task in ts._tasks:
            if task.status in HIDDEN_STATUSES:
                task.filtered = True

        logger.debug("Loaded %d tasks from %s", len(ts._tasks), store.repo)
        return ts

    # ---- indices ----

    def _allocate_id(self) -> int:
        """Lowest unused ID, or 0 once the ceiling is reached."""
        for candidate in range(1, MAX_TASKS_OPEN + 1):
            if candidate not in self._by_id:
                return candidate
        return 0

    def _rebuild_indices(self) -> None:
        self._by_id.clear()
        self._by_uuid.clear()
        for position, task in enumerate(self._tasks):
            self._by_uuid[task.uuid] = position
            if task.id > 0:
                self._by_id[task.id] = position

    # ---- mutation ----

    def load_task(self, task: Task) -> Task:
        """
        Insert a task, assigning a UUID, an ID and a creation time as needed.

        Loading a UUID that is already present is a no-op and returns the
        existing task. A colliding ID is dropped and a fresh one allocated.

        Raises:
            ValidationError: if the task is malformed
        """
        task.normalise()

        if not task.uuid:
            task.uuid = new_uuid()

        task.validate_fields()

        if task.uuid in self._by_uuid:
            return self._tasks[self._by_uuid[task.uuid]]

        if task.id > 0 and task.id in self._by_id:
            task.id = 0

        if task.id == 0 and task.status != TaskStatus.RESOLVED:
            task.id = self._allocate_id()

        if task.created is None:
            task.created = datetime.now().astimezone()
            task.write_pending = True

        position = len(self._tasks)
        self._tasks.append(task)
        self._by_uuid[task.uuid] = position
        if task.id > 0:
            self._by_id[task.id] = position

        return task

    def update_task(self, task: Task, strict: bool = True) -> Task:
        """
        Replace the stored record that has the same UUID.

        With ``strict`` the status change must be an edge of the transition
        table. The editor path passes ``strict=False``, which is the only way
        a resolved task is reopened.

        Raises:
            TaskNotFoundError: no task with this UUID
            InvalidStatusTransitionError: status change not allowed
            BusinessRuleError: resolving a task with open checklist items
        """
        task.normalise()
        task.validate_fields()

        position = self._by_uuid.get(task.uuid)
        if position is None:
            raise TaskNotFoundError(task.uuid)

        old = self._tasks[position]

        if old.status != task.status:
            if strict and not is_valid_status_transition(old.status, task.status):
                raise InvalidStatusTransitionError(old.status, task.status)

            if task.status == TaskStatus.RESOLVED and task.has_open_checklist():
                raise BusinessRuleError("Refusing to resolve task with incomplete checklist")

        reopened = old.status == TaskStatus.RESOLVED and task.status != TaskStatus.RESOLVED

        if task.status == TaskStatus.RESOLVED:
            task.id = 0
            if task.resolved is None:
                task.resolved = datetime.now().astimezone()

        if old.id > 0 and old.id != task.id and self._by_id.get(old.id) == position:
            del self._by_id[old.id]

        if reopened:
            task.resolved = None
            if task.id == 0:
                task.id = self._allocate_id()

        if task.id > 0:
            self._by_id[task.id] = position

        task.write_pending = True
        self._tasks[position] = task
        return task

    def delete_task(self, uuid: str) -> None:
        """
        Remove a task from the store and from memory.

        Raises:
            TaskNotFoundError: no task with this UUID
        """
        position = self._by_uuid.get(uuid)
        if position is None:
            raise TaskNotFoundError(uuid)

        self.store.delete(uuid)
        del self._tasks[position]
        self._rebuild_indices()

    def save_pending_changes(self) -> None:
        """Persist every write-pending task, then the UUID -> ID map."""
        ids: dict[str, int] = {}

        for task in self._tasks:
            if task.write_pending:
                self.store.write(task)
                task.write_pending = False

            if task.id > 0:
                ids[task.uuid] = task.id

        save_ids(self.ids_file, ids)

    # ---- lookup ----

    def get_by_id(self, task_id: int) -> Task | None:
        position = self._by_id.get(task_id)
        return None if position is None else self._tasks[position]

    def get_by_uuid(self, uuid: str) -> Task | None:
        position = self._by_uuid.get(uuid)
        return None if position is None else self._tasks[position]

    def must_get_by_id(self, task_id: int) -> Task:
        task = self.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def tasks(self) -> list[Task]:
        """Tasks not excluded by any filter pass, in current order."""
        return [task for task in self._tasks if not task.filtered]

    def all_tasks(self) -> list[Task]:
        return list(self._tasks)

    def num_total(self) -> int:
        return len(self._tasks)

    # ---- filtering (monotonic: only ever sets the filtered flag) ----

    def filter(self, query: Query) -> None:
        for task in self._tasks:
            if not task.matches_filter(query):
                task.filtered = True

    def filter_by_status(self, status: str) -> None:
        for task in self._tasks:
            if task.status != status:
                task.filtered = True

    def filter_organised(self) -> None:
        for task in self._tasks:
            if not task.tags and not task.project:
                task.filtered = True

    def filter_unorganised(self) -> None:
        for task in self._tasks:
            if task.tags or task.project:
                task.filtered = True

    def unhide(self) -> None:
        """Clear the filtered flag on hidden-by-default statuses."""
        for task in self._tasks:
            if task.status in HIDDEN_STATUSES:
                task.filtered = False

    # ---- sorting (stable, so successive sorts compose) ----

    def _sort(self, key, reverse: bool = False) -> None:
        self._tasks.sort(key=key, reverse=reverse)
        self._rebuild_indices()

    def sort_by_created_ascending(self) -> None:
        self._sort(key=lambda t: (_instant_key(t.created), t.id))

    def sort_by_created_descending(self) -> None:
        self._sort(key=lambda t: (_instant_key(t.created), t.id), reverse=True)

    def sort_by_priority_ascending(self) -> None:
        self._sort(key=lambda t: t.priority)

    def sort_by_priority_descending(self) -> None:
        self._sort(key=lambda t: t.priority, reverse=True)

    def sort_by_resolved_ascending(self) -> None:
        # unset resolved sorts last
        self._sort(key=lambda t: (t.resolved is None, _instant_key(t.resolved)))

    def sort_by_resolved_descending(self) -> None:
        # unset resolved sorts first
        self._sort(key=lambda t: (t.resolved is None, _instant_key(t.resolved)), reverse=True)

    # ---- aggregates ----

    def get_tags(self) -> list[str]:
        """Sorted tags used by unfiltered tasks."""
        return sorted({tag for task in self.tasks() for tag in task.tags})

    def get_projects(self) -> list[Project]:
        """Per-project statistics over unfiltered tasks, sorted by name."""
        projects: dict[str, Project] = {}

        for task in self.tasks():
            if not task.project:
                continue

            project = projects.setdefault(task.project, Project(name=task.project, priority=Priority.LOW.value))
            project.tasks += 1

            if task.created is not None and (project.created is None or task.created < project.created):
                project.created = task.created

            if task.resolved is not None and (project.resolved is None or task.resolved > project.resolved):
                project.resolved = task.resolved

            if task.status == TaskStatus.RESOLVED:
                project.tasks_resolved += 1
            else:
                if task.priority < project.priority:
                    project.priority = task.priority

            if task.status == TaskStatus.ACTIVE:
                project.active = True

        return [projects[name] for name in sorted(projects)]


def _instant_key(value: datetime | None) -> float:
    return value.timestamp() if value is not None else 0.0
