"""MCP tool definitions for gittask."""

# Import all tools to register them with the MCP server
from gittask.tools.core import (
    gittask_add,
    gittask_context,
    gittask_delete,
    gittask_done,
    gittask_get,
    gittask_list,
    gittask_log,
    gittask_modify,
    gittask_note,
    gittask_projects,
    gittask_start,
    gittask_stop,
    gittask_sync,
    gittask_tags,
    gittask_undo,
)

__all__ = [
    "gittask_list",
    "gittask_get",
    "gittask_add",
    "gittask_log",
    "gittask_done",
    "gittask_start",
    "gittask_stop",
    "gittask_modify",
    "gittask_note",
    "gittask_delete",
    "gittask_context",
    "gittask_projects",
    "gittask_tags",
    "gittask_undo",
    "gittask_sync",
]
