"""Pydantic models for gittask."""

from gittask.models.inputs import (
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
    StartTaskInput,
    StopTaskInput,
    SyncInput,
    TaskIdsInput,
    UndoInput,
)
from gittask.models.project import Project
from gittask.models.query import Query, parse_query, parse_query_string
from gittask.models.task import SubTask, Task, is_valid_uuid, new_uuid

__all__ = [
    # Domain models
    "Query",
    "parse_query",
    "parse_query_string",
    "Task",
    "SubTask",
    "Project",
    "is_valid_uuid",
    "new_uuid",
    # Tool input models
    "ListTasksInput",
    "GetTaskInput",
    "AddTaskInput",
    "LogTaskInput",
    "TaskIdsInput",
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
]
