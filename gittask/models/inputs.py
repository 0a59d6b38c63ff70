"""Input models for the gittask MCP tools."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gittask.enums import Priority, ResponseFormat

# ============================================================================
# Listing and lookup
# ============================================================================


class ListTasksInput(BaseModel):
    """Input model for listing open tasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    filter: str | None = Field(
        default=None,
        description="Filter expression (e.g., 'project:work', '+urgent P1', 'due.before:friday')",
    )
    ignore_context: bool = Field(
        default=False,
        description="Ignore the persisted context and search every open task",
    )
    limit: int | None = Field(default=50, description="Maximum number of tasks to return", ge=1, le=500)
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


class GetTaskInput(BaseModel):
    """Input model for getting a single task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: str = Field(..., description="Task ID or UUID to retrieve", min_length=1)
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


class ListProjectsInput(BaseModel):
    """Input model for listing projects."""

    model_config = ConfigDict(str_strip_whitespace=True)

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' or 'json'",
    )


class ListTagsInput(BaseModel):
    """Input model for listing tags."""

    model_config = ConfigDict(str_strip_whitespace=True)


# ============================================================================
# Creating tasks
# ============================================================================


class AddTaskInput(BaseModel):
    """Input model for adding a new task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    summary: str = Field(..., description="Task summary (required)", min_length=1, max_length=1000)
    project: str | None = Field(default=None, description="Project name to assign the task to")
    priority: Priority | None = Field(default=None, description="Task priority: P0 (critical) to P3 (low)")
    due: str | None = Field(
        default=None,
        description="Due date (e.g., 'today', 'tomorrow', '2024-12-31', 'friday', 'next-monday')",
    )
    tags: list[str] | None = Field(
        default=None, description="List of tags to apply (without '+' prefix)", max_length=20
    )
    notes: str | None = Field(default=None, description="Free-form notes (Markdown)")

    @field_validator("summary")
    @classmethod
    def validate_summary(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Summary cannot be empty")
        return v.strip()


class LogTaskInput(AddTaskInput):
    """Input model for recording a task that is already done."""


# ============================================================================
# Changing tasks
# ============================================================================


class TaskIdsInput(BaseModel):
    """Input model for tools that act on a list of task IDs."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_ids: list[int] = Field(..., description="Numeric task IDs", min_length=1, max_length=50)

    @field_validator("task_ids")
    @classmethod
    def validate_task_ids(cls, v: list[int]) -> list[int]:
        if any(task_id < 1 for task_id in v):
            raise ValueError("Task IDs must be positive")
        return v


class DoneTaskInput(TaskIdsInput):
    """Input model for resolving tasks."""


class StartTaskInput(TaskIdsInput):
    """Input model for starting tasks."""


class StopTaskInput(TaskIdsInput):
    """Input model for pausing tasks."""


class DeleteTaskInput(TaskIdsInput):
    """Input model for deleting tasks."""


class ModifyTaskInput(BaseModel):
    """Input model for modifying a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Task ID to modify", ge=1)
    project: str | None = Field(default=None, description="New project name")
    remove_project: str | None = Field(default=None, description="Clear the project if it equals this name")
    priority: Priority | None = Field(default=None, description="New priority: P0 to P3")
    due: str | None = Field(default=None, description="New due date")
    add_tags: list[str] | None = Field(default=None, description="Tags to add (without '+' prefix)")
    remove_tags: list[str] | None = Field(default=None, description="Tags to remove (without '-' prefix)")


class NoteTaskInput(BaseModel):
    """Input model for appending a note line to a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Task ID to annotate", ge=1)
    note: str = Field(..., description="Text appended as a new line of the task notes", min_length=1, max_length=2000)


# ============================================================================
# Context and history
# ============================================================================


class ContextInput(BaseModel):
    """Input model for showing, setting or clearing the context."""

    model_config = ConfigDict(str_strip_whitespace=True)

    filter: str | None = Field(
        default=None,
        description="New context filter (e.g., '+work -project:hobby'). Omit to show the current context",
    )
    clear: bool = Field(default=False, description="Clear the context")


class UndoInput(BaseModel):
    """Input model for undo operation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    count: int = Field(default=1, description="Number of commits to revert", ge=1, le=20)


class SyncInput(BaseModel):
    """Input model for sync operation."""

    model_config = ConfigDict(str_strip_whitespace=True)
    # No parameters needed - pulls then pushes the task repository
