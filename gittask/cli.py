"""Command-line entry point: ``gittask [command] [ids] [filters] [text] [/ note]``."""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.prompt import Confirm

from gittask import commands, display
from gittask.config import Settings
from gittask.constants import (
    CMD_ADD,
    CMD_COMPLETIONS,
    CMD_CONTEXT,
    CMD_DONE,
    CMD_EDIT,
    CMD_GIT,
    CMD_HELP,
    CMD_LOG,
    CMD_MODIFY,
    CMD_NEXT,
    CMD_NOTE,
    CMD_NOTES,
    CMD_OPEN,
    CMD_REMOVE,
    CMD_RESOLVE,
    CMD_RM,
    CMD_SHOW,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_NEXT,
    CMD_SHOW_OPEN,
    CMD_SHOW_PAUSED,
    CMD_SHOW_PROJECTS,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TAGS,
    CMD_SHOW_TEMPLATES,
    CMD_SHOW_UNORGANISED,
    CMD_START,
    CMD_STOP,
    CMD_SYNC,
    CMD_TEMPLATE,
    CMD_UNDO,
    CMD_VERSION,
    VERSION,
)
from gittask.errors import GittaskError
from gittask.logging_setup import setup_logging
from gittask.models.query import Query, parse_query

logger = logging.getLogger(__name__)

USAGE = """Usage: gittask [command] [ids] [filter] [text] [/ note] [--]

Commands:
  next             open tasks in the current context (default)
  add              add a task: gittask add Fix the build +ci P1 project:infra
  log              record a task that is already done
  template         create a template, or turn tasks into templates
  start / stop     mark tasks active / paused
  done             resolve tasks
  modify           change tags, project, priority or due date
  edit             edit a task in $EDITOR (can reopen resolved tasks by UUID)
  note             append "/ text" to a task, or edit its notes in $EDITOR
  rm               delete tasks
  context          show, set or clear ("context none") the default filter
  show             show a single task
  show-open, show-active, show-paused, show-resolved, show-templates,
  show-unorganised, show-projects, show-tags
  open             open URLs found in a task
  undo [n]         revert the last n commits
  sync             git pull then push
  git <args>       run git in the task repository

Filters:
  +tag -tag project:name -project:name P0..P3
  due:<date> due.after:<date> due.before:<date> due.on:<date> due:overdue
  template:<id>    (add) copy an existing task
  --               ignore the context for this command
"""

COMMAND_HELP = {
    CMD_ADD: "Usage: gittask add [template:<id>] [summary] [+tag] [project:x] [P0-P3] [due:<date>] [/ note] [--]",
    CMD_LOG: "Usage: gittask log [summary] [+tag] [project:x] [P0-P3] [--]",
    CMD_TEMPLATE: "Usage: gittask template <id>... | gittask template [summary] [+tag] [project:x]",
    CMD_DONE: "Usage: gittask done <id>...",
    CMD_RESOLVE: "Usage: gittask resolve <id>...",
    CMD_START: "Usage: gittask start <id>...",
    CMD_STOP: "Usage: gittask stop <id>...",
    CMD_MODIFY: "Usage: gittask modify [<id>...] [+tag] [-tag] [project:x] [-project:x] [P0-P3] [due:<date>]",
    CMD_EDIT: "Usage: gittask edit <id|uuid>",
    CMD_NOTE: "Usage: gittask note <id> [/ text]",
    CMD_NOTES: "Usage: gittask notes <id> [/ text]",
    CMD_RM: "Usage: gittask rm <id>...",
    CMD_REMOVE: "Usage: gittask remove <id>...",
    CMD_CONTEXT: "Usage: gittask context [filter] | gittask context none",
    CMD_UNDO: "Usage: gittask undo [n]",
    CMD_SYNC: "Usage: gittask sync",
    CMD_OPEN: "Usage: gittask open <id>...",
    CMD_GIT: "Usage: gittask git <git arguments>",
    CMD_SHOW: "Usage: gittask show <id|uuid>",
}

_NEXT_VIEWS = {
    "",
    CMD_NEXT,
    CMD_SHOW_NEXT,
    CMD_SHOW_OPEN,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_PAUSED,
    CMD_SHOW_TEMPLATES,
    CMD_SHOW_UNORGANISED,
}

_VERBS = {
    CMD_TEMPLATE: "Templated",
    CMD_DONE: "Resolved",
    CMD_RESOLVE: "Resolved",
    CMD_START: "Started",
    CMD_STOP: "Stopped",
    CMD_MODIFY: "Modified",
    CMD_RM: "Removed",
    CMD_REMOVE: "Removed",
}


def _print_help(console: Console, topic: str) -> None:
    console.out(COMMAND_HELP.get(topic, USAGE), highlight=False)


def _confirm(message: str) -> bool:
    return Confirm.ask(message, default=False)


def _render(console: Console, rt: commands.Runtime, query: Query, result) -> None:
    cmd = query.cmd
    interactive = rt.settings.interactive

    if cmd in _NEXT_VIEWS:
        banner = ""
        if not query.ignore_context and not query.ids:
            ctx, from_env = rt.context()
            banner = ctx.context_description(from_env)
        display.display_by_next(console, result, interactive, banner, truncate=cmd != CMD_SHOW_OPEN)
    elif cmd == CMD_SHOW_RESOLVED:
        display.display_by_week(console, result, interactive)
    elif cmd == CMD_SHOW_PROJECTS:
        display.display_projects(console, result, interactive)
    elif cmd == CMD_SHOW_TAGS:
        display.display_lines(console, result)
    elif cmd == CMD_SHOW:
        if interactive:
            display.display_task(console, result)
        else:
            display.render_json(console, result.to_json())
    elif cmd == CMD_ADD:
        console.print(f"Added {result.id}: {result.summary}")
    elif cmd == CMD_LOG:
        console.print(f"Logged {result.summary}")
    elif cmd in _VERBS:
        if not result:
            console.print("Cancelled")
        for task in result:
            console.print(f"{_VERBS[cmd]} {task}")
    elif cmd in (CMD_EDIT, CMD_NOTE, CMD_NOTES):
        console.print(f"Updated {result}")
    elif cmd == CMD_CONTEXT:
        text = str(result)
        console.print(text or "No context set")
    elif cmd == CMD_UNDO:
        console.print(f"Undone {result} commit(s)")
    elif cmd == CMD_SYNC:
        console.print(result)
    elif cmd == CMD_OPEN:
        display.display_lines(console, result)


def main(argv: list[str] | None = None) -> int:
    """Run one command. Returns the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)

    settings = Settings.from_env()
    setup_logging(level=settings.log_level, log_file=settings.log_file)

    console = Console(highlight=False)
    err_console = Console(stderr=True, highlight=False)

    first = args[0].lower() if args else ""

    if first == CMD_HELP:
        _print_help(console, args[1].lower() if len(args) > 1 else "")
        return 0
    if first in (CMD_VERSION, "--version"):
        console.print(f"gittask {VERSION}")
        return 0

    rt = commands.Runtime.build(settings, confirm=_confirm)

    try:
        if first == CMD_COMPLETIONS:
            display.display_lines(console, commands.cmd_completions(rt, args[1] if len(args) > 1 else ""))
            return 0

        created = rt.vcs.ensure_repo()

        if first == CMD_GIT:
            output = commands.cmd_git(rt, args[1:])
            if output:
                console.out(output, highlight=False)
            return 0

        query = parse_query(args)
        result = commands.run_query(rt, query)
        _render(console, rt, query, result)

        if created:
            console.print("\nAdd a remote repository with:\n\n\tgittask git remote add origin <repo>\n")
        return 0

    except GittaskError as e:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"Error: {e}", style="red", markup=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
