"""Formatting utilities for task output."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gittask.models.project import Project
    from gittask.models.task import Task

PRIORITY_NAMES = {"P0": "Critical", "P1": "High", "P2": "Normal", "P3": "Low"}


def _format_task_concise(task: Task) -> str:
    """
    Format a single task in concise format for token efficiency.

    Output: "#5: Summary (P1, due:2024-12-31, proj:work)"
    """
    task_id = task.id if task.id else task.uuid[:8]
    summary = task.summary[:50] if task.summary else "No summary"

    meta = []
    if task.priority:
        meta.append(task.priority)
    if task.due:
        meta.append(f"due:{task.due.astimezone():%Y-%m-%d}")
    if task.project:
        meta.append(f"proj:{task.project}")
    if task.status not in ("pending", ""):
        meta.append(task.status)

    if meta:
        return f"#{task_id}: {summary} ({', '.join(meta)})"
    return f"#{task_id}: {summary}"


def _format_tasks_concise(tasks: list[Task], title: str | None = None) -> str:
    """
    Format a list of tasks in concise format for token efficiency.

    Output:
    2 task(s) | project:work
    #1: Task one (P1, due:2024-12-31)
    #2: Task two (P2)
    """
    if not tasks:
        return "0 tasks"

    header = f"{len(tasks)} task(s)"
    if title:
        header = f"{len(tasks)} task(s) | {title}"

    return "\n".join([header] + [_format_task_concise(task) for task in tasks])


def _format_task_markdown(task: Task) -> str:
    """Format a single task as markdown."""
    lines = []

    task_id = task.id if task.id else task.uuid[:8]
    lines.append(f"### [{task_id}] {task.summary or 'No summary'}")

    details = [f"**Status**: {task.status}"]
    if task.project:
        details.append(f"**Project**: {task.project}")
    if task.priority:
        details.append(f"**Priority**: {PRIORITY_NAMES.get(task.priority, task.priority)}")
    if task.due:
        details.append(f"**Due**: {task.due_display()}")
    if task.tags:
        details.append(f"**Tags**: {', '.join(task.tags)}")
    lines.append(" | ".join(details))

    if task.notes:
        lines.append("**Notes:**")
        for line in task.notes.splitlines():
            lines.append(f"  {line}")

    return "\n".join(lines)


def _format_tasks_markdown(tasks: list[Task], title: str = "Tasks") -> str:
    """Format a list of tasks as markdown."""
    if not tasks:
        return f"# {title}\n\nNo tasks found."

    lines = [f"# {title}", f"*{len(tasks)} task(s)*", ""]

    for task in tasks:
        lines.append(_format_task_markdown(task))
        lines.append("")

    return "\n".join(lines)


def _format_projects_markdown(projects: list[Project]) -> str:
    if not projects:
        return "# Projects\n\nNo projects found."

    lines = ["# Projects", ""]
    for project in projects:
        active = " (active)" if project.active else ""
        lines.append(
            f"- **{project.name}**{active}: {project.tasks_resolved}/{project.tasks} resolved, "
            f"top priority {project.priority}"
        )
    return "\n".join(lines)
