"""Command names, keywords and state machine tables."""

from gittask.enums import TaskStatus

VERSION = "0.3.0"

# Commands
CMD_NEXT = "next"
CMD_ADD = "add"
CMD_RM = "rm"
CMD_REMOVE = "remove"
CMD_TEMPLATE = "template"
CMD_LOG = "log"
CMD_START = "start"
CMD_NOTE = "note"
CMD_NOTES = "notes"
CMD_STOP = "stop"
CMD_DONE = "done"
CMD_RESOLVE = "resolve"
CMD_CONTEXT = "context"
CMD_MODIFY = "modify"
CMD_EDIT = "edit"
CMD_UNDO = "undo"
CMD_SYNC = "sync"
CMD_OPEN = "open"
CMD_GIT = "git"
CMD_SHOW = "show"
CMD_SHOW_NEXT = "show-next"
CMD_SHOW_PROJECTS = "show-projects"
CMD_SHOW_TAGS = "show-tags"
CMD_SHOW_ACTIVE = "show-active"
CMD_SHOW_PAUSED = "show-paused"
CMD_SHOW_OPEN = "show-open"
CMD_SHOW_RESOLVED = "show-resolved"
CMD_SHOW_TEMPLATES = "show-templates"
CMD_SHOW_UNORGANISED = "show-unorganised"
CMD_COMPLETIONS = "_completions"
CMD_HELP = "help"
CMD_VERSION = "version"

ALL_CMDS = (
    CMD_NEXT,
    CMD_ADD,
    CMD_RM,
    CMD_REMOVE,
    CMD_TEMPLATE,
    CMD_LOG,
    CMD_START,
    CMD_NOTE,
    CMD_NOTES,
    CMD_STOP,
    CMD_DONE,
    CMD_RESOLVE,
    CMD_CONTEXT,
    CMD_MODIFY,
    CMD_EDIT,
    CMD_UNDO,
    CMD_SYNC,
    CMD_OPEN,
    CMD_GIT,
    CMD_SHOW,
    CMD_SHOW_NEXT,
    CMD_SHOW_PROJECTS,
    CMD_SHOW_TAGS,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_PAUSED,
    CMD_SHOW_OPEN,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TEMPLATES,
    CMD_SHOW_UNORGANISED,
    CMD_COMPLETIONS,
    CMD_HELP,
    CMD_VERSION,
)

# Query keywords
IGNORE_CONTEXT_KEYWORD = "--"
NOTE_MODE_KEYWORD = "/"

# IDs are allocated from 1..MAX_TASKS_OPEN; beyond that a task stays unnumbered.
MAX_TASKS_OPEN = 10000

# Written for unset instants so files stay readable by older tools.
ZERO_DATE_STR = "0001-01-01T00:00:00Z"

ALL_STATUSES = (
    TaskStatus.ACTIVE,
    TaskStatus.PENDING,
    TaskStatus.DELEGATED,
    TaskStatus.DEFERRED,
    TaskStatus.PAUSED,
    TaskStatus.RECURRING,
    TaskStatus.RESOLVED,
    TaskStatus.TEMPLATE,
)

NON_RESOLVED_STATUSES = tuple(s for s in ALL_STATUSES if s != TaskStatus.RESOLVED)

# Hidden from normal views until TaskSet.unhide() is called.
HIDDEN_STATUSES = (TaskStatus.RECURRING, TaskStatus.RESOLVED, TaskStatus.TEMPLATE)

# Directed edges of the status state machine. resolved -> * is deliberately
# absent: reopening only happens through update_task(strict=False).
VALID_STATUS_TRANSITIONS = frozenset(
    {
        (TaskStatus.PENDING, TaskStatus.ACTIVE),
        (TaskStatus.ACTIVE, TaskStatus.PAUSED),
        (TaskStatus.PAUSED, TaskStatus.ACTIVE),
        (TaskStatus.PENDING, TaskStatus.RESOLVED),
        (TaskStatus.PAUSED, TaskStatus.RESOLVED),
        (TaskStatus.ACTIVE, TaskStatus.RESOLVED),
        (TaskStatus.PENDING, TaskStatus.TEMPLATE),
    }
)

_STATUS_VALUES = frozenset(s.value for s in TaskStatus)
_PRIORITY_VALUES = frozenset({"P0", "P1", "P2", "P3"})


def is_valid_status(status: str) -> bool:
    return status in _STATUS_VALUES


def is_valid_priority(priority: str) -> bool:
    return priority in _PRIORITY_VALUES


def is_valid_status_transition(from_status: str, to_status: str) -> bool:
    try:
        edge = (TaskStatus(from_status), TaskStatus(to_status))
    except ValueError:
        return False
    return edge in VALID_STATUS_TRANSITIONS
