"""Terminal rendering: rich tables when interactive, JSON when piped."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.rule import Rule
from rich.table import Table

from gittask.constants import HIDDEN_STATUSES
from gittask.enums import Priority, TaskStatus
from gittask.errors import GittaskError
from gittask.models.project import Project
from gittask.models.task import Task
from gittask.taskset import TaskSet


def _row_style(task: Task) -> str:
    styles = []
    if task.priority == Priority.CRITICAL:
        styles.append("bold red")
    elif task.priority == Priority.HIGH or (task.status != TaskStatus.RESOLVED and _overdue(task)):
        styles.append("yellow")
    elif task.priority == Priority.LOW:
        styles.append("dim")

    if task.status == TaskStatus.ACTIVE:
        styles.append("on dark_blue")
    elif task.status == TaskStatus.PAUSED:
        styles.append("on grey23")
    return " ".join(styles)


def _overdue(task: Task) -> bool:
    return task.due is not None and task.due < datetime.now().astimezone()


def _day(value: datetime) -> str:
    local = value.astimezone()
    return f"{local:%a} {local.day} {local:%b %Y}"


def _long_date(value: datetime) -> str:
    return f"{_day(value)} {value.astimezone():%H:%M}"


def _task_table(truncate: bool) -> Table:
    overflow = "ellipsis" if truncate else "fold"
    table = Table(show_edge=False, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Priority")
    table.add_column("Tags")
    table.add_column("Due")
    table.add_column("Project")
    table.add_column("Summary", overflow=overflow, no_wrap=truncate)
    return table


def render_json(console: Console, data: Any) -> None:
    console.out(json.dumps(data, indent=2), highlight=False)


def display_task(console: Console, task: Task) -> None:
    """Key/value detail view, followed by the notes rendered as Markdown."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("ID", str(task.id))
    table.add_row("Priority", task.priority)
    table.add_row("Summary", task.summary)
    table.add_row("Status", task.status)
    table.add_row("Project", task.project)
    table.add_row("Tags", ", ".join(task.tags))
    table.add_row("UUID", task.uuid)
    if task.created:
        table.add_row("Created", _long_date(task.created))
    if task.resolved:
        table.add_row("Resolved", _long_date(task.resolved))
    if task.due:
        table.add_row("Due", task.due_display())
    console.print(table)

    if task.notes:
        console.print()
        console.print(Rule("Notes"))
        console.print(Markdown(task.notes))
        console.print(Rule())


def render_table(console: Console, ts: TaskSet, truncate: bool = True) -> None:
    tasks = ts.tasks()

    if ts.num_total() == 0:
        console.print("No tasks found. Run `gittask help` for instructions.")
        return

    if not tasks:
        raise GittaskError("No matching tasks in given context or filter.")

    if len(tasks) == 1:
        display_task(console, tasks[0])
        return

    table = _task_table(truncate)
    for task in tasks:
        table.add_row(
            str(task.id) if task.id else "",
            task.priority,
            " ".join(task.tags),
            task.due_display(),
            task.project,
            task.long_summary(),
            style=_row_style(task),
        )
    console.print(table)
    console.print(f"{len(tasks)} tasks.", style="dim")


def display_by_next(
    console: Console,
    ts: TaskSet,
    interactive: bool,
    context_banner: str = "",
    truncate: bool = True,
) -> None:
    """The default view. Tasks are expected to be sorted already."""
    if not interactive:
        render_json(console, [task.to_json() for task in ts.tasks()])
        return

    if context_banner:
        console.print(context_banner, style="bold yellow")

    render_table(console, ts, truncate)

    critical_in_view = sum(1 for task in ts.tasks() if task.priority == Priority.CRITICAL)
    critical_total = sum(
        1 for task in ts.all_tasks() if task.priority == Priority.CRITICAL and task.status not in HIDDEN_STATUSES
    )
    if critical_in_view < critical_total:
        console.print(
            f"{critical_total - critical_in_view} critical task(s) outside this context! "
            "Use `gittask -- P0` to see them.",
            style="bold red",
        )


def display_by_week(console: Console, ts: TaskSet, interactive: bool) -> None:
    """Resolved tasks grouped by ISO week. Tasks are expected to be sorted by resolution."""
    tasks = ts.tasks()
    if not interactive:
        render_json(console, [task.to_json() for task in tasks])
        return

    table: Table | None = None
    last_week: tuple[int, int] | None = None

    for task in tasks:
        if task.resolved is None:
            continue
        resolved = task.resolved.astimezone()
        iso = resolved.isocalendar()
        week = (iso[0], iso[1])

        if week != last_week:
            if table is not None and table.row_count:
                console.print(table)
            console.print(f"\n> Week {week[1]}, starting {_day(resolved)}\n", style="bold")
            table = Table(show_edge=False, header_style="bold")
            for column in ("Resolved", "Priority", "Tags", "Due", "Project", "Summary"):
                table.add_column(column)
            last_week = week

        table.add_row(
            f"{resolved:%a} {resolved.day}",
            task.priority,
            " ".join(task.tags),
            task.due_display(),
            task.project,
            task.long_summary(),
            style=_row_style(task),
        )

    if table is not None and table.row_count:
        console.print(table)
    console.print(f"{len(tasks)} tasks.")


def display_projects(console: Console, projects: list[Project], interactive: bool) -> None:
    if not interactive:
        render_json(console, [project.model_dump(mode="json") for project in projects])
        return

    table = Table(show_edge=False, header_style="bold")
    table.add_column("Name")
    table.add_column("Progress")
    table.add_column("Created")

    for project in projects:
        if project.tasks_resolved >= project.tasks:
            continue
        style = "bold" if project.active else ""
        if project.priority == Priority.CRITICAL:
            style = f"{style} red".strip()
        table.add_row(
            project.name,
            f"{project.tasks_resolved}/{project.tasks}",
            _day(project.created) if project.created else "",
            style=style,
        )
    console.print(table)


def display_lines(console: Console, lines: list[str]) -> None:
    for line in lines:
        console.out(line, highlight=False)
