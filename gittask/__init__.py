"""
gittask: a task tracker that keeps one file per task in a git repository.

Every change is a commit, so history, undo and sync come from git. The package
provides a command-line interface (``gittask``) and an MCP server
(``gittask-mcp``) exposing the same commands as tools.
"""

# Re-export enums
from gittask.enums import BulkCommitStrategy, DateFilter, Priority, ResponseFormat, TaskStatus

# Re-export errors
from gittask.errors import (
    BusinessRuleError,
    ContextConflictError,
    ExternalCommandError,
    GittaskError,
    InvalidStatusTransitionError,
    ParseError,
    StoreError,
    TaskNotFoundError,
    ValidationError,
)

# Re-export models
from gittask.models import (
    AddTaskInput,
    ContextInput,
    DeleteTaskInput,
    DoneTaskInput,
    GetTaskInput,
    ListProjectsInput,
    ListTagsInput,
    ListTasksInput,
    LogTaskInput,
    ModifyTaskInput,
    NoteTaskInput,
    Project,
    Query,
    StartTaskInput,
    StopTaskInput,
    SubTask,
    SyncInput,
    Task,
    UndoInput,
    parse_query,
    parse_query_string,
)

# Re-export the engine
from gittask.config import Settings
from gittask.commands import Runtime, run_query
from gittask.local_state import LocalState
from gittask.store import TaskStore
from gittask.taskset import TaskSet

# Re-export MCP server instance
from gittask.server import mcp

# Re-export tools
from gittask.tools import (
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
    # Enums
    "ResponseFormat",
    "TaskStatus",
    "Priority",
    "DateFilter",
    "BulkCommitStrategy",
    # Errors
    "GittaskError",
    "ParseError",
    "ValidationError",
    "InvalidStatusTransitionError",
    "TaskNotFoundError",
    "ContextConflictError",
    "BusinessRuleError",
    "ExternalCommandError",
    "StoreError",
    # Domain models
    "Query",
    "parse_query",
    "parse_query_string",
    "Task",
    "SubTask",
    "Project",
    # Engine
    "Settings",
    "Runtime",
    "run_query",
    "LocalState",
    "TaskStore",
    "TaskSet",
    # Tool input models
    "ListTasksInput",
    "GetTaskInput",
    "AddTaskInput",
    "LogTaskInput",
    "DoneTaskInput",
    "StartTaskInput",
    "StopTaskInput",
    "DeleteTaskInput",
    "ModifyTaskInput",
    "NoteTaskInput",
    "ContextInput",
    "ListProjectsInput",
    "ListTagsInput",
    "UndoInput",
    "SyncInput",
    # Tools
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
    # MCP server instance
    "mcp",
]
