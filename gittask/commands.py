"""Command implementations shared by the CLI and the MCP tools.

Each ``cmd_*`` function takes the runtime, the active context and the parsed
query, performs the load/mutate/save/commit cycle and returns plain data.
Rendering is left to the caller.
"""

from __future__ import annotations

import logging
import re
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from gittask.config import Settings
from gittask.constants import (
    ALL_STATUSES,
    CMD_ADD,
    CMD_CONTEXT,
    CMD_DONE,
    CMD_EDIT,
    CMD_LOG,
    CMD_MODIFY,
    CMD_NEXT,
    CMD_NOTE,
    CMD_NOTES,
    CMD_OPEN,
    CMD_REMOVE,
    CMD_RESOLVE,
    CMD_RM,
    CMD_SHOW,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_NEXT,
    CMD_SHOW_OPEN,
    CMD_SHOW_PAUSED,
    CMD_SHOW_PROJECTS,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TAGS,
    CMD_SHOW_TEMPLATES,
    CMD_SHOW_UNORGANISED,
    CMD_START,
    CMD_STOP,
    CMD_SYNC,
    CMD_TEMPLATE,
    CMD_UNDO,
    NON_RESOLVED_STATUSES,
)
from gittask.enums import BulkCommitStrategy, DateFilter, TaskStatus
from gittask.errors import (
    BusinessRuleError,
    GittaskError,
    InvalidStatusTransitionError,
    ParseError,
    TaskNotFoundError,
)
from gittask.local_state import LocalState
from gittask.models.project import Project
from gittask.models.query import Query, parse_query_string
from gittask.models.task import Task, is_valid_uuid
from gittask.store import TaskStore, task_from_editor_text, task_to_editor_text
from gittask.taskset import TaskSet
from gittask.utils.editor import edit_text
from gittask.utils.git import GitBackend

logger = logging.getLogger(__name__)

_URL_PATTERN = re.compile(r"https?://[^\s<>\"')\]]+")


class VersionControl(Protocol):
    def ensure_repo(self) -> bool: ...

    def commit(self, message: str) -> str: ...

    def pull(self) -> str: ...

    def push(self) -> str: ...

    def reset_last_commit(self) -> None: ...

    def run(self, args: list[str]) -> str: ...


def _never_confirm(message: str) -> bool:
    return False


@dataclass
class Runtime:
    """Everything a command needs, wired once at process start."""

    settings: Settings
    store: TaskStore
    vcs: VersionControl
    state: LocalState
    editor: Callable[[str, str], str]
    confirm: Callable[[str], bool] = field(default=_never_confirm)

    @classmethod
    def build(cls, settings: Settings, confirm: Callable[[str], bool] | None = None) -> Runtime:
        def _edit(text: str, filename_hint: str) -> str:
            return edit_text(text, editor=settings.editor, filename_hint=filename_hint)

        return cls(
            settings=settings,
            store=TaskStore(settings.repo, settings.task_format),
            vcs=GitBackend(settings.repo),
            state=LocalState.load(settings.state_file),
            editor=_edit,
            confirm=confirm or _never_confirm,
        )

    def context(self) -> tuple[Query, bool]:
        """
        The active context and whether it came from the environment override.

        Raises:
            ParseError: if the override string does not parse
        """
        if self.settings.context_override:
            return parse_query_string(self.settings.context_override), True
        return self.state.context, False

    def load(self, statuses=NON_RESOLVED_STATUSES) -> TaskSet:
        return TaskSet.load(self.store, self.settings.ids_file, statuses)


def _plural(count: int) -> str:
    return "task" if count == 1 else "tasks"


def _require_ids(query: Query) -> None:
    if not query.ids:
        raise ParseError("At least one task ID required")


def _after_mutation(rt: Runtime) -> None:
    if rt.settings.sync_after_modify:
        cmd_sync(rt)


def _sort_for_next(ts: TaskSet) -> None:
    ts.sort_by_created_ascending()
    ts.sort_by_priority_ascending()


def resolve_task_ref(ts: TaskSet, ref: str | int) -> Task:
    """
    Look a task up by numeric ID or by UUID.

    Raises:
        TaskNotFoundError: when neither matches
    """
    text = str(ref).strip()
    if text.isdigit():
        return ts.must_get_by_id(int(text))
    if is_valid_uuid(text):
        task = ts.get_by_uuid(text.lower())
        if task is not None:
            return task
    raise TaskNotFoundError(text)


def _new_task(query: Query, status: TaskStatus, **fields: Any) -> Task:
    return Task(
        status=status.value,
        summary=query.text,
        tags=list(query.tags),
        project=query.project,
        priority=query.priority,
        due=query.due,
        notes=query.note,
        write_pending=True,
        **fields,
    )


# ============================================================================
# Creating tasks
# ============================================================================


def cmd_add(rt: Runtime, ctx: Query, query: Query) -> Task:
    """Create a pending task from the query text or from a template."""
    if not query.text and query.template == 0:
        raise ParseError("Task description or template required")

    if query.date_filter not in (DateFilter.NONE, DateFilter.ON, DateFilter.IN):
        raise ParseError("Cannot use date filter with add command")

    ts = rt.load()
    merged = query.merge(ctx)

    if query.template > 0:
        template = ts.must_get_by_id(query.template)
        if template.status != TaskStatus.TEMPLATE:
            logger.warning("Task %d is not a template, copying an open task", template.id)

        task = Task(
            status=TaskStatus.PENDING.value,
            summary=query.text or template.summary,
            tags=list(template.tags),
            project=template.project,
            priority=template.priority,
            due=template.due,
            notes=template.notes,
            write_pending=True,
        )
        task.modify(merged)
    else:
        task = _new_task(merged, TaskStatus.PENDING)

    task = ts.load_task(task)
    ts.save_pending_changes()
    rt.vcs.commit(f"Added {task.id}: {task.summary}")
    _after_mutation(rt)
    return task


def cmd_log(rt: Runtime, ctx: Query, query: Query) -> Task:
    """Record a task that is already done."""
    if not query.text:
        raise ParseError("Task description required")

    ts = rt.load()
    merged = query.merge(ctx)

    task = _new_task(merged, TaskStatus.RESOLVED, resolved=datetime.now().astimezone())
    task = ts.load_task(task)
    ts.save_pending_changes()
    rt.vcs.commit(f"Added {task.summary}")
    _after_mutation(rt)
    return task


def cmd_template(rt: Runtime, ctx: Query, query: Query) -> list[Task]:
    """Turn tasks into templates, or create a new template from text."""
    ts = rt.load()

    if query.ids:
        changed = []
        for task_id in query.ids:
            task = ts.must_get_by_id(task_id).model_copy(deep=True)
            task.status = TaskStatus.TEMPLATE.value
            changed.append(ts.update_task(task))

            if rt.settings.bulk_commit is BulkCommitStrategy.PER_TASK:
                ts.save_pending_changes()
                rt.vcs.commit(f"Changed {task.summary} to Template")

        ts.save_pending_changes()
        if rt.settings.bulk_commit is BulkCommitStrategy.SINGLE:
            rt.vcs.commit(f"Changed {len(changed)} {_plural(len(changed))} to Template")
    elif query.text:
        merged = query.merge(ctx)
        task = ts.load_task(_new_task(merged, TaskStatus.TEMPLATE))
        ts.save_pending_changes()
        rt.vcs.commit(f"Created template: {task.summary}")
        changed = [task]
    else:
        raise ParseError("Task ID or description required for template")

    _after_mutation(rt)
    return changed


# ============================================================================
# Status changes
# ============================================================================


def _transition(rt: Runtime, query: Query, to_status: TaskStatus, allowed_from: tuple[TaskStatus, ...], verb: str) -> list[Task]:
    _require_ids(query)
    ts = rt.load()

    changed = []
    for task_id in query.ids:
        task = ts.must_get_by_id(task_id).model_copy(deep=True)

        if task.status not in allowed_from:
            if task.status == TaskStatus.RESOLVED:
                raise BusinessRuleError(f"Task {task_id} is already resolved")
            raise InvalidStatusTransitionError(task.status, to_status.value)

        task.status = to_status.value
        changed.append(ts.update_task(task))

    ts.save_pending_changes()
    rt.vcs.commit(f"{verb} {len(changed)} {_plural(len(changed))}")
    _after_mutation(rt)
    return changed


def cmd_done(rt: Runtime, ctx: Query, query: Query) -> list[Task]:
    """Resolve tasks by ID. The context is not applied."""
    open_statuses = tuple(s for s in ALL_STATUSES if s != TaskStatus.RESOLVED)
    return _transition(rt, query, TaskStatus.RESOLVED, open_statuses, "Resolved")


def cmd_start(rt: Runtime, ctx: Query, query: Query) -> list[Task]:
    return _transition(rt, query, TaskStatus.ACTIVE, (TaskStatus.PENDING, TaskStatus.PAUSED), "Started")


def cmd_stop(rt: Runtime, ctx: Query, query: Query) -> list[Task]:
    return _transition(rt, query, TaskStatus.PAUSED, (TaskStatus.ACTIVE,), "Stopped")


# ============================================================================
# Editing
# ============================================================================


def cmd_modify(rt: Runtime, ctx: Query, query: Query) -> list[Task]:
    """
    Apply the query's operators to the addressed tasks.

    Without IDs every task visible in the context is modified, after
    confirmation when running interactively. Returns an empty list when the
    user declines.
    """
    if not query.has_operators():
        raise ParseError("No operations specified")

    ts = rt.load()

    if query.ids:
        targets = [ts.must_get_by_id(task_id) for task_id in query.ids]
    else:
        ts.filter(ctx)
        targets = ts.tasks()
        if rt.settings.interactive and not rt.confirm(
            f"No IDs specified. Apply to all {len(targets)} tasks in current context?"
        ):
            return []

    modified = []
    for target in targets:
        task = target.model_copy(deep=True)
        task.modify(query)
        modified.append(ts.update_task(task))
        ts.save_pending_changes()

        if rt.settings.bulk_commit is BulkCommitStrategy.PER_TASK:
            rt.vcs.commit(f"Modified {task.summary}")

    if rt.settings.bulk_commit is BulkCommitStrategy.SINGLE and modified:
        rt.vcs.commit(f"Modified {len(modified)} {_plural(len(modified))}")

    _after_mutation(rt)
    return modified


def cmd_remove(rt: Runtime, ctx: Query, query: Query) -> list[Task]:
    """Delete tasks by ID. Returns an empty list when the user declines."""
    _require_ids(query)
    ts = rt.load()

    targets = [ts.must_get_by_id(task_id) for task_id in query.ids]

    if rt.settings.interactive:
        listing = "\n".join(str(task) for task in targets)
        if not rt.confirm(f"{listing}\n\nThe above {len(targets)} task(s) will be deleted. Continue?"):
            return []

    for task in targets:
        ts.delete_task(task.uuid)

    ts.save_pending_changes()
    rt.vcs.commit(f"Removed {len(targets)} {_plural(len(targets))}")
    _after_mutation(rt)
    return targets


def cmd_edit(rt: Runtime, ctx: Query, query: Query) -> Task:
    """
    Edit one task as a Markdown document in the editor.

    Addressed by ID, or by UUID for tasks without an ID. Changing the status
    here bypasses the transition table, which is how resolved tasks reopen.
    """
    ts = rt.load(ALL_STATUSES)

    if len(query.ids) == 1:
        original = ts.must_get_by_id(query.ids[0])
    elif not query.ids and is_valid_uuid(query.text):
        original = resolve_task_ref(ts, query.text)
    else:
        raise ParseError("Exactly one task ID required")

    edited_text = rt.editor(task_to_editor_text(original), f"{original.uuid}.md")
    edited = task_from_editor_text(original, edited_text)

    task = ts.update_task(edited, strict=False)
    ts.save_pending_changes()
    rt.vcs.commit("Edited task")
    _after_mutation(rt)
    return task


def cmd_note(rt: Runtime, ctx: Query, query: Query) -> Task:
    """Append the ``/ text`` note to a task, or edit its notes in the editor."""
    if len(query.ids) != 1:
        raise ParseError("Exactly one task ID required")

    ts = rt.load()
    task = ts.must_get_by_id(query.ids[0]).model_copy(deep=True)

    if query.note:
        task.modify(Query(note=query.note))
    else:
        task.notes = rt.editor(task.notes, f"{task.uuid}-notes.md")

    task = ts.update_task(task)
    ts.save_pending_changes()
    rt.vcs.commit("Updated task notes")
    _after_mutation(rt)
    return task


# ============================================================================
# Views
# ============================================================================


def cmd_next(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    """Open tasks, most important first. Addressing by ID bypasses the context."""
    ts = rt.load()

    if query.ids:
        if query.has_operators():
            raise ParseError("Operators not valid when addressing task by ID")
        filter_query = query
    else:
        filter_query = query.merge(ctx)

    ts.filter(filter_query)
    _sort_for_next(ts)
    return ts


def cmd_show_open(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    ts = rt.load()
    ts.filter(query.merge(ctx))
    _sort_for_next(ts)
    return ts


def _show_status(rt: Runtime, ctx: Query, query: Query, status: TaskStatus) -> TaskSet:
    ts = rt.load(ALL_STATUSES)
    ts.filter(query.merge(ctx))
    ts.filter_by_status(status.value)
    _sort_for_next(ts)
    return ts


def cmd_show_active(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    return _show_status(rt, ctx, query, TaskStatus.ACTIVE)


def cmd_show_paused(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    return _show_status(rt, ctx, query, TaskStatus.PAUSED)


def cmd_show_resolved(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    ts = rt.load(ALL_STATUSES)
    ts.unhide()
    ts.filter(query.merge(ctx))
    ts.filter_by_status(TaskStatus.RESOLVED.value)
    ts.sort_by_resolved_ascending()
    return ts


def cmd_show_templates(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    ts = rt.load()
    ts.unhide()
    ts.filter_by_status(TaskStatus.TEMPLATE.value)
    ts.filter(query.merge(ctx))
    _sort_for_next(ts)
    return ts


def cmd_show_unorganised(rt: Runtime, ctx: Query, query: Query) -> TaskSet:
    """Open tasks with neither tags nor project. Query and context are not used."""
    if query.ids or query.has_operators():
        raise ParseError("Query/context not used for show-unorganised")

    ts = rt.load()
    ts.filter_unorganised()
    _sort_for_next(ts)
    return ts


def cmd_show_projects(rt: Runtime, ctx: Query, query: Query) -> list[Project]:
    ts = rt.load(ALL_STATUSES)
    ts.unhide()
    ts.filter(query.merge(ctx))
    return ts.get_projects()


def cmd_show_tags(rt: Runtime, ctx: Query, query: Query) -> list[str]:
    ts = rt.load(ALL_STATUSES)
    ts.filter(query.merge(ctx))
    return ts.get_tags()


def cmd_show(rt: Runtime, ctx: Query, query: Query) -> Task:
    """A single task, by ID or UUID, including resolved ones."""
    ts = rt.load(ALL_STATUSES)
    if query.ids:
        return ts.must_get_by_id(query.ids[0])
    if query.text:
        return resolve_task_ref(ts, query.text)
    raise ParseError("Show command requires a task ID")


# ============================================================================
# Context, history and sync
# ============================================================================


def cmd_context(rt: Runtime, ctx: Query, query: Query) -> Query:
    """
    Show, clear (``context none``) or set the persisted context.

    Raises:
        GittaskError: when the environment override is set
        ParseError: when the new context addresses IDs or carries text
    """
    if query.is_empty():
        return ctx

    if rt.settings.context_override:
        raise GittaskError("Setting context not allowed while GITTASK_CONTEXT is set")

    if query.text == "none" and not query.ids and not query.has_operators():
        rt.state.set_context(Query())
    else:
        rt.state.set_context(query.model_copy(update={"cmd": "", "ignore_context": False, "note": ""}))

    rt.state.save()
    return rt.state.context


def cmd_undo(rt: Runtime, count: int = 1) -> int:
    """Reset the last ``count`` commits."""
    if count < 1:
        raise ParseError("Undo count must be positive")
    for _ in range(count):
        rt.vcs.reset_last_commit()
    _after_mutation(rt)
    return count


def cmd_sync(rt: Runtime) -> str:
    """Pull then push."""
    pulled = rt.vcs.pull()
    pushed = rt.vcs.push()
    return f"{pulled}, {pushed}"


def cmd_git(rt: Runtime, args: list[str]) -> str:
    return rt.vcs.run(args)


def cmd_open(rt: Runtime, ctx: Query, query: Query, opener: Callable[[str], Any] = webbrowser.open) -> list[str]:
    """Open every URL found in the summary or notes of the addressed tasks."""
    _require_ids(query)
    if query.has_operators():
        raise ParseError("Operators not valid in this context")

    ts = rt.load()
    opened = []
    for task_id in query.ids:
        task = ts.must_get_by_id(task_id)
        urls = _URL_PATTERN.findall(f"{task.summary} {task.notes}")
        if not urls:
            raise BusinessRuleError(f"No URLs found in task {task_id}")
        for url in urls:
            opener(url)
            opened.append(url)
    return opened


def cmd_completions(rt: Runtime, kind: str) -> list[str]:
    """Candidate words for shell completion: ``projects``, ``tags`` or ``ids``."""
    ts = rt.load()
    if kind == "projects":
        return [project.name for project in ts.get_projects()]
    if kind == "tags":
        return ts.get_tags()
    if kind == "ids":
        return [str(task_id) for task_id in sorted(task.id for task in ts.tasks() if task.id > 0)]
    return []


# ============================================================================
# Dispatch
# ============================================================================

QUERY_COMMANDS: dict[str, Callable[[Runtime, Query, Query], Any]] = {
    "": cmd_next,
    CMD_NEXT: cmd_next,
    CMD_SHOW_NEXT: cmd_next,
    CMD_SHOW_OPEN: cmd_show_open,
    CMD_ADD: cmd_add,
    CMD_RM: cmd_remove,
    CMD_REMOVE: cmd_remove,
    CMD_TEMPLATE: cmd_template,
    CMD_LOG: cmd_log,
    CMD_START: cmd_start,
    CMD_STOP: cmd_stop,
    CMD_DONE: cmd_done,
    CMD_RESOLVE: cmd_done,
    CMD_CONTEXT: cmd_context,
    CMD_MODIFY: cmd_modify,
    CMD_EDIT: cmd_edit,
    CMD_NOTE: cmd_note,
    CMD_NOTES: cmd_note,
    CMD_OPEN: cmd_open,
    CMD_SHOW: cmd_show,
    CMD_SHOW_ACTIVE: cmd_show_active,
    CMD_SHOW_PAUSED: cmd_show_paused,
    CMD_SHOW_RESOLVED: cmd_show_resolved,
    CMD_SHOW_TEMPLATES: cmd_show_templates,
    CMD_SHOW_UNORGANISED: cmd_show_unorganised,
    CMD_SHOW_PROJECTS: cmd_show_projects,
    CMD_SHOW_TAGS: cmd_show_tags,
}


def run_query(rt: Runtime, query: Query) -> Any:
    """
    Resolve the context for a parsed query and run its command.

    ``undo`` and ``sync`` are dispatched here too so callers only need the query.
    """
    if query.cmd == CMD_UNDO:
        return cmd_undo(rt, query.ids[0] if query.ids else 1)
    if query.cmd == CMD_SYNC:
        return cmd_sync(rt)

    handler = QUERY_COMMANDS.get(query.cmd)
    if handler is None:
        raise ParseError(f"Unknown command: {query.cmd}")

    ctx, _ = rt.context()
    if query.ignore_context:
        ctx = Query()

    return handler(rt, ctx, query)
