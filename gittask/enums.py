"""Enums for gittask."""

from enum import Enum


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    CONCISE = "concise"  # One line per task
    MARKDOWN = "markdown"  # Human-readable (default)
    JSON = "json"  # Machine-readable with all fields


class TaskStatus(str, Enum):
    """Task lifecycle status. Also the name of the directory a task file lives in."""

    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    DELEGATED = "delegated"
    DEFERRED = "deferred"
    RECURRING = "recurring"
    RESOLVED = "resolved"
    TEMPLATE = "template"


class Priority(str, Enum):
    """Task priority levels. Lexicographic order is importance order."""

    CRITICAL = "P0"
    HIGH = "P1"
    NORMAL = "P2"
    LOW = "P3"


class DateFilter(str, Enum):
    """Comparison mode for a due date in a query."""

    NONE = ""
    AFTER = "after"
    BEFORE = "before"
    ON = "on"
    IN = "in"


class MergeConflictPolicy(str, Enum):
    """How a query field behaves when two queries are combined."""

    UNION = "union"  # append items not already present
    REJECT_DIFFERENT = "reject_different"  # both set and unequal -> ContextConflictError
    REJECT_ANY = "reject_any"  # both set -> ContextConflictError, even when equal
    OVERLAY = "overlay"  # the query calling merge wins, context never contributes
    FIRST_WINS = "first_wins"  # parser keeps the first value and drops later ones


class BulkCommitStrategy(str, Enum):
    """When bulk modifications are committed to git."""

    SINGLE = "single"
    PER_TASK = "per_task"
