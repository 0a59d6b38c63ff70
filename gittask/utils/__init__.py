"""Utility functions for gittask."""

from gittask.utils.dates import format_due_date, parse_date, parse_due_date_arg
from gittask.utils.formatters import (
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
)

__all__ = [
    "parse_date",
    "parse_due_date_arg",
    "format_due_date",
    "_format_task_concise",
    "_format_task_markdown",
    "_format_tasks_concise",
    "_format_tasks_markdown",
]
