"""Core MCP tool definitions for gittask."""

import json

from mcp.types import ToolAnnotations

from gittask import commands
from gittask.constants import ALL_STATUSES, CMD_ADD, CMD_DONE, CMD_LOG, CMD_MODIFY, CMD_NEXT, CMD_RM, CMD_START, CMD_STOP
from gittask.enums import ResponseFormat
from gittask.errors import GittaskError
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
    UndoInput,
)
from gittask.models.query import Query, parse_query_string
from gittask.server import get_runtime, mcp
from gittask.utils.dates import parse_due_date_arg
from gittask.utils.formatters import (
    _format_projects_markdown,
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
)


def _context(rt: commands.Runtime) -> Query:
    ctx, _ = rt.context()
    return ctx


def _query_from_fields(
    cmd: str,
    summary: str = "",
    project: str | None = None,
    priority=None,
    due: str | None = None,
    tags: list[str] | None = None,
    notes: str | None = None,
) -> Query:
    query = Query(
        cmd=cmd,
        text=summary,
        tags=[tag.lower() for tag in tags or []],
        project=(project or "").lower(),
        priority=priority.value if priority else "",
        note=notes or "",
    )
    if due:
        query.date_filter, query.due = parse_due_date_arg(f"due:{due.lower()}")
    return query


def _summarise_changed(verb: str, tasks) -> str:
    if not tasks:
        return f"No tasks {verb.lower()}"
    lines = [f"{verb} {len(tasks)} task(s):"]
    lines.extend(f"- {task}" for task in tasks)
    return "\n".join(lines)


@mcp.tool(
    name="gittask_list",
    annotations=ToolAnnotations(
        title="List Tasks",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def gittask_list(params: ListTasksInput) -> str:
    """
    List open tasks, most important first, within the current context.

    USE THIS WHEN:
    - Deciding what to work on next
    - Searching for tasks by tag, project, priority or due date
    - Exploring tasks you don't know the IDs of

    DO NOT USE WHEN:
    - You have a specific task ID or UUID → use gittask_get instead
    - You want the list of projects → use gittask_projects instead

    FILTER SYNTAX:
    - Tags: "+urgent" (has tag) or "-someday" (excludes tag)
    - Project: "project:work" or "-project:hobby"
    - Priority: "P0" (critical) to "P3" (low)
    - Due: "due:today", "due.before:friday", "due.after:2024-12-31", "due:overdue"
    - Combined: "+urgent project:work P1"

    Args:
        params: ListTasksInput containing filter, ignore_context, limit and response_format

    Returns:
        Formatted list of tasks (markdown, concise or JSON based on response_format)

    Examples:
        - Next tasks in context: params with no filter
        - Tasks for a project: params with filter="project:work"
        - Everything overdue regardless of context: filter="due:overdue", ignore_context=True
    """
    try:
        rt = get_runtime()
        query = parse_query_string(params.filter) if params.filter else Query()
        query = query.model_copy(
            update={"cmd": CMD_NEXT, "ignore_context": params.ignore_context or query.ignore_context}
        )
        tasks = commands.run_query(rt, query).tasks()
    except GittaskError as e:
        return f"Error: {e}"

    total_count = len(tasks)
    if params.limit and len(tasks) > params.limit:
        tasks = tasks[: params.limit]

    if params.response_format == ResponseFormat.JSON:
        return json.dumps(
            {"total": total_count, "count": len(tasks), "tasks": [t.to_json() for t in tasks]},
            indent=2,
        )

    if params.response_format == ResponseFormat.CONCISE:
        return _format_tasks_concise(tasks, params.filter)

    title = "Tasks"
    if params.filter:
        title = f"Tasks matching '{params.filter}'"
    return _format_tasks_markdown(tasks, title)


@mcp.tool(
    name="gittask_get",
    annotations=ToolAnnotations(
        title="Get Task Details",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def gittask_get(params: GetTaskInput) -> str:
    """
    Retrieve full details for a single task by ID or UUID.

    USE THIS WHEN:
    - You know the task ID and need its notes, dates or tags
    - Looking up a resolved task by UUID (resolved tasks have no ID)

    DO NOT USE WHEN:
    - Searching for tasks → use gittask_list instead

    Args:
        params: GetTaskInput containing task_id and response_format

    Returns:
        Detailed task information (markdown, concise or JSON)
    """
    try:
        ts = get_runtime().load(ALL_STATUSES)
        task = commands.resolve_task_ref(ts, params.task_id)
    except GittaskError as e:
        return f"Error: {e}"

    if params.response_format == ResponseFormat.JSON:
        return json.dumps(task.to_json(), indent=2)
    if params.response_format == ResponseFormat.CONCISE:
        return _format_task_concise(task)
    return _format_task_markdown(task)


@mcp.tool(
    name="gittask_add",
    annotations=ToolAnnotations(
        title="Add Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_add(params: AddTaskInput) -> str:
    """
    Create a new pending task. The current context's tags and project are applied.

    USE THIS WHEN:
    - Adding a new task to track
    - Creating tasks with metadata (project, priority, due date, tags, notes)

    DO NOT USE WHEN:
    - Recording work that is already finished → use gittask_log instead
    - Updating an existing task → use gittask_modify instead

    Args:
        params: AddTaskInput containing summary and optional project, priority, due, tags, notes

    Returns:
        Confirmation with the new task ID

    Examples:
        - Simple task: summary="Buy milk"
        - Full task: summary="File taxes", project="tax", priority="P1", due="friday"
    """
    try:
        rt = get_runtime()
        query = _query_from_fields(
            CMD_ADD, params.summary, params.project, params.priority, params.due, params.tags, params.notes
        )
        task = commands.cmd_add(rt, _context(rt), query)
    except GittaskError as e:
        return f"Error: {e}"

    return f"Added {task.id}: {task.summary}"


@mcp.tool(
    name="gittask_log",
    annotations=ToolAnnotations(
        title="Log Finished Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_log(params: LogTaskInput) -> str:
    """
    Record a task that has already been done, straight into the resolved state.

    Args:
        params: LogTaskInput, same fields as gittask_add

    Returns:
        Confirmation message
    """
    try:
        rt = get_runtime()
        query = _query_from_fields(
            CMD_LOG, params.summary, params.project, params.priority, params.due, params.tags, params.notes
        )
        task = commands.cmd_log(rt, _context(rt), query)
    except GittaskError as e:
        return f"Error: {e}"

    return f"Logged {task.summary}"


@mcp.tool(
    name="gittask_done",
    annotations=ToolAnnotations(
        title="Resolve Tasks",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_done(params: DoneTaskInput) -> str:
    """
    Mark tasks as resolved. Resolved tasks give up their numeric ID.

    Tasks whose notes contain an unchecked checklist item ("- [ ]") cannot be
    resolved until every item is ticked.

    Args:
        params: DoneTaskInput containing task_ids

    Returns:
        The resolved tasks, or an error message
    """
    try:
        rt = get_runtime()
        tasks = commands.cmd_done(rt, _context(rt), Query(cmd=CMD_DONE, ids=params.task_ids))
    except GittaskError as e:
        return f"Error: {e}"
    return _summarise_changed("Resolved", tasks)


@mcp.tool(
    name="gittask_start",
    annotations=ToolAnnotations(
        title="Start Tasks",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_start(params: StartTaskInput) -> str:
    """
    Mark pending or paused tasks as active.

    Args:
        params: StartTaskInput containing task_ids

    Returns:
        The started tasks, or an error message
    """
    try:
        rt = get_runtime()
        tasks = commands.cmd_start(rt, _context(rt), Query(cmd=CMD_START, ids=params.task_ids))
    except GittaskError as e:
        return f"Error: {e}"
    return _summarise_changed("Started", tasks)


@mcp.tool(
    name="gittask_stop",
    annotations=ToolAnnotations(
        title="Pause Tasks",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_stop(params: StopTaskInput) -> str:
    """
    Pause active tasks.

    Args:
        params: StopTaskInput containing task_ids

    Returns:
        The paused tasks, or an error message
    """
    try:
        rt = get_runtime()
        tasks = commands.cmd_stop(rt, _context(rt), Query(cmd=CMD_STOP, ids=params.task_ids))
    except GittaskError as e:
        return f"Error: {e}"
    return _summarise_changed("Stopped", tasks)


@mcp.tool(
    name="gittask_modify",
    annotations=ToolAnnotations(
        title="Modify Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def gittask_modify(params: ModifyTaskInput) -> str:
    """
    Change the tags, project, priority or due date of an existing task.

    USE THIS WHEN:
    - Re-prioritising or re-scheduling a task
    - Moving a task to another project or retagging it

    DO NOT USE WHEN:
    - Changing the status → use gittask_start, gittask_stop or gittask_done
    - Adding a note → use gittask_note instead

    Args:
        params: ModifyTaskInput containing task_id and the fields to change

    Returns:
        Confirmation message
    """
    try:
        rt = get_runtime()
        query = _query_from_fields(
            CMD_MODIFY, project=params.project, priority=params.priority, due=params.due, tags=params.add_tags
        )
        query.ids = [params.task_id]
        query.anti_tags = [tag.lower() for tag in params.remove_tags or []]
        if params.remove_project:
            query.anti_projects = [params.remove_project.lower()]
        tasks = commands.cmd_modify(rt, _context(rt), query)
    except GittaskError as e:
        return f"Error: {e}"
    return _summarise_changed("Modified", tasks)


@mcp.tool(
    name="gittask_note",
    annotations=ToolAnnotations(
        title="Append Note",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_note(params: NoteTaskInput) -> str:
    """
    Append a line to a task's notes.

    Args:
        params: NoteTaskInput containing task_id and note

    Returns:
        Confirmation message
    """
    try:
        rt = get_runtime()
        task = commands.cmd_note(rt, _context(rt), Query(ids=[params.task_id], note=params.note))
    except GittaskError as e:
        return f"Error: {e}"
    return f"Updated notes of {task}"


@mcp.tool(
    name="gittask_delete",
    annotations=ToolAnnotations(
        title="Delete Tasks",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_delete(params: DeleteTaskInput) -> str:
    """
    Delete tasks permanently from the repository.

    The deletion is a git commit and can be reverted with gittask_undo.

    Args:
        params: DeleteTaskInput containing task_ids

    Returns:
        The removed tasks, or an error message
    """
    try:
        rt = get_runtime()
        tasks = commands.cmd_remove(rt, _context(rt), Query(cmd=CMD_RM, ids=params.task_ids))
    except GittaskError as e:
        return f"Error: {e}"
    return _summarise_changed("Removed", tasks)


@mcp.tool(
    name="gittask_context",
    annotations=ToolAnnotations(
        title="Show or Set Context",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def gittask_context(params: ContextInput) -> str:
    """
    Show, set or clear the context: a default filter merged into listings and
    applied to new tasks.

    Args:
        params: ContextInput containing an optional filter or clear=True

    Returns:
        The context now in effect
    """
    try:
        rt = get_runtime()
        if params.clear:
            query = Query(text="none")
        elif params.filter:
            query = parse_query_string(params.filter)
        else:
            query = Query()
        ctx = commands.cmd_context(rt, _context(rt), query)
    except GittaskError as e:
        return f"Error: {e}"

    text = str(ctx)
    return f"Context: {text}" if text else "No context set"


@mcp.tool(
    name="gittask_projects",
    annotations=ToolAnnotations(
        title="List Projects",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def gittask_projects(params: ListProjectsInput) -> str:
    """
    List projects with their progress and highest open priority.

    Args:
        params: ListProjectsInput containing response_format

    Returns:
        Projects (markdown or JSON)
    """
    try:
        rt = get_runtime()
        projects = commands.cmd_show_projects(rt, _context(rt), Query())
    except GittaskError as e:
        return f"Error: {e}"

    if params.response_format == ResponseFormat.JSON:
        return json.dumps([project.model_dump(mode="json") for project in projects], indent=2)
    return _format_projects_markdown(projects)


@mcp.tool(
    name="gittask_tags",
    annotations=ToolAnnotations(
        title="List Tags",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def gittask_tags(params: ListTagsInput) -> str:
    """
    List every tag used by tasks in the current context.

    Args:
        params: ListTagsInput (no parameters)

    Returns:
        One tag per line
    """
    try:
        rt = get_runtime()
        tags = commands.cmd_show_tags(rt, _context(rt), Query())
    except GittaskError as e:
        return f"Error: {e}"
    if not tags:
        return "No tags found."
    return "\n".join(tags)


@mcp.tool(
    name="gittask_undo",
    annotations=ToolAnnotations(
        title="Undo Last Changes",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def gittask_undo(params: UndoInput) -> str:
    """
    Revert the last commits of the task repository.

    Every mutating tool makes one commit, so count=1 undoes the last change.

    Args:
        params: UndoInput containing count

    Returns:
        Confirmation message
    """
    try:
        count = commands.cmd_undo(get_runtime(), params.count)
    except GittaskError as e:
        return f"Error: {e}"
    return f"Undone {count} commit(s)"


@mcp.tool(
    name="gittask_sync",
    annotations=ToolAnnotations(
        title="Sync Repository",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    ),
)
async def gittask_sync(params: SyncInput) -> str:
    """
    Pull then push the task repository.

    Args:
        params: SyncInput (no parameters)

    Returns:
        Output of the pull and push
    """
    try:
        return commands.cmd_sync(get_runtime())
    except GittaskError as e:
        return f"Error: {e}"
