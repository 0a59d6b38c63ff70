"""Query model: a filter and a set of modifications parsed from CLI tokens."""

from __future__ import annotations

import re
import shlex
from datetime import datetime

from pydantic import BaseModel, Field

from gittask.constants import ALL_CMDS, IGNORE_CONTEXT_KEYWORD, NOTE_MODE_KEYWORD, is_valid_priority
from gittask.enums import MergeConflictPolicy
from gittask.errors import ContextConflictError, ParseError
from gittask.utils.dates import parse_due_date_arg

_ID_TOKEN = re.compile(r"^[+-]?\d+$")

# Field behaviour when a context is merged under an explicit query.
MERGE_POLICIES: dict[str, MergeConflictPolicy] = {
    "tags": MergeConflictPolicy.UNION,
    "anti_tags": MergeConflictPolicy.UNION,
    "anti_projects": MergeConflictPolicy.UNION,
    "project": MergeConflictPolicy.REJECT_DIFFERENT,
    "due": MergeConflictPolicy.REJECT_DIFFERENT,
    "priority": MergeConflictPolicy.REJECT_ANY,
    "cmd": MergeConflictPolicy.OVERLAY,
    "ids": MergeConflictPolicy.OVERLAY,
    "text": MergeConflictPolicy.OVERLAY,
    "note": MergeConflictPolicy.OVERLAY,
    "template": MergeConflictPolicy.OVERLAY,
    "ignore_context": MergeConflictPolicy.OVERLAY,
}

# Policy for repeated tokens inside a single parse.
PROJECT_PARSE_POLICY = MergeConflictPolicy.FIRST_WINS

_CONFLICT_NAMES = {"due": "date filter"}


def _is_set(value: object) -> bool:
    return value is not None and value != "" and value != []


class Query(BaseModel):
    """Parsed command line: command, addressing IDs, filter operators and modifications."""

    cmd: str = ""
    ids: list[int] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    anti_tags: list[str] = Field(default_factory=list)
    project: str = ""
    anti_projects: list[str] = Field(default_factory=list)
    due: datetime | None = None
    date_filter: str = ""
    priority: str = ""
    template: int = 0
    text: str = ""
    ignore_context: bool = False
    note: str = ""

    def has_operators(self) -> bool:
        """True when the query filters or modifies, as opposed to bare ID addressing."""
        return bool(
            self.tags
            or self.anti_tags
            or self.project
            or self.anti_projects
            or self.due is not None
            or self.date_filter
            or self.priority
            or self.template > 0
        )

    def is_empty(self) -> bool:
        return not (self.ids or self.text or self.has_operators())

    def merge(self, context: Query) -> Query:
        """
        Layer a context under this query and return the combined query.

        List fields are unioned. project and due may be set on both sides only
        when equal; priority may not be set on both sides at all. Identity, text,
        note, template and flags always come from this query.

        Raises:
            ContextConflictError: when the two queries disagree
        """
        merged = self.model_copy(deep=True)

        for name, policy in MERGE_POLICIES.items():
            ours = getattr(merged, name)
            theirs = getattr(context, name)

            if policy is MergeConflictPolicy.UNION:
                for item in theirs:
                    if item not in ours:
                        ours.append(item)
                continue

            if policy is MergeConflictPolicy.OVERLAY or not _is_set(theirs):
                continue

            if _is_set(ours) and (policy is MergeConflictPolicy.REJECT_ANY or ours != theirs):
                raise ContextConflictError(_CONFLICT_NAMES.get(name, name))

            setattr(merged, name, theirs)
            if name == "due":
                merged.date_filter = context.date_filter

        return merged

    def to_args(self) -> list[str]:
        """Canonical token list. Note text is not part of it."""
        args = [str(i) for i in self.ids]
        args.extend(f"+{tag}" for tag in self.tags)
        args.extend(f"-{tag}" for tag in self.anti_tags)
        if self.project:
            args.append(f"project:{self.project}")
        args.extend(f"-project:{project}" for project in self.anti_projects)
        if self.due is not None:
            key = f"due.{self.date_filter}" if self.date_filter else "due"
            args.append(f"{key}:{self.due.astimezone():%Y-%m-%d}")
        if self.priority:
            args.append(self.priority)
        if self.template > 0:
            args.append(f"template:{self.template}")
        if self.text:
            args.append(self.text)
        return args

    def __str__(self) -> str:
        args = self.to_args()
        if self.text:
            args[-1] = f'"{self.text}"'
        return " ".join(args)

    def context_description(self, from_env: bool = False) -> str:
        """Banner shown above interactive views when a context is active."""
        text = str(self)
        if not text:
            return ""
        origin = " (set by GITTASK_CONTEXT)" if from_env else ""
        return f"Active context{origin}: {text}"


def parse_query(args: list[str]) -> Query:
    """
    Parse CLI tokens into a Query.

    IDs are only recognised before the first filter or text token; the command
    may appear anywhere. Everything after ``/`` is note text.

    Raises:
        ParseError: for a malformed or repeated due date
    """
    query = Query()
    words: list[str] = []
    notes: list[str] = []
    notes_mode = False
    ids_exhausted = False
    due_date_set = False

    for item in args:
        lc_item = item.lower()

        if notes_mode:
            notes.append(item)
            continue

        if not query.cmd and lc_item in ALL_CMDS:
            query.cmd = lc_item
            continue

        if not ids_exhausted and _ID_TOKEN.match(item):
            query.ids.append(int(item))
            continue

        if item == IGNORE_CONTEXT_KEYWORD:
            query.ignore_context = True
        elif item == NOTE_MODE_KEYWORD:
            notes_mode = True
        elif lc_item.startswith(("project:", "+project:")):
            if not query.project or PROJECT_PARSE_POLICY is not MergeConflictPolicy.FIRST_WINS:
                query.project = lc_item.split(":", 1)[1]
        elif lc_item.startswith("-project:"):
            query.anti_projects.append(lc_item.split(":", 1)[1])
        elif lc_item.startswith(("due.", "due:")):
            if due_date_set:
                raise ParseError("Query should only have one due date")
            query.date_filter, query.due = parse_due_date_arg(lc_item)
            due_date_set = True
        elif lc_item.startswith("template:"):
            template = lc_item.split(":", 1)[1]
            if template.isdigit():
                query.template = int(template)
        elif lc_item.startswith("+"):
            tag = lc_item[1:].strip()
            if tag:
                query.tags.append(tag)
        elif lc_item.startswith("-"):
            tag = lc_item[1:].strip()
            if tag:
                query.anti_tags.append(tag)
        elif not query.priority and is_valid_priority(item):
            query.priority = item
        else:
            words.append(item)

        ids_exhausted = True

    query.text = " ".join(words)
    query.note = " ".join(notes)
    return query


def parse_query_string(text: str) -> Query:
    """Split a shell-style string (context override, tool filter) and parse it."""
    try:
        tokens = shlex.split(text)
    except ValueError as e:
        raise ParseError(f"Could not split query '{text}': {e}") from e
    return parse_query(tokens)
