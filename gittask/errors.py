"""Exception taxonomy for gittask."""

from __future__ import annotations


class GittaskError(Exception):
    """Base class for every error gittask raises on purpose."""


class ParseError(GittaskError):
    """Malformed query tokens, dates or command arguments."""


class ValidationError(GittaskError):
    """A task carries a malformed field. Indicates a corrupt store or a bug upstream."""


class InvalidUuidError(ValidationError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid UUID: {value}")
        self.value = value


class InvalidStatusError(ValidationError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid status: {value}")
        self.value = value


class InvalidPriorityError(ValidationError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid priority: {value}")
        self.value = value


class InvalidStatusTransitionError(GittaskError):
    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"Invalid status transition from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class TaskNotFoundError(GittaskError):
    def __init__(self, key: str | int) -> None:
        super().__init__(f"Task not found: {key}")
        self.key = key


class ContextConflictError(GittaskError):
    """A context and an explicit query disagree on a single-valued field."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Could not apply context, {field} conflict")
        self.field = field


class BusinessRuleError(GittaskError):
    """A valid request refused by a rule, e.g. resolving a task with open checklist items."""


class ExternalCommandError(GittaskError):
    """git, the editor or another external program failed."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"{command} failed: {reason}")
        self.command = command
        self.reason = reason


class StoreError(GittaskError):
    """Reading or writing task files failed."""
