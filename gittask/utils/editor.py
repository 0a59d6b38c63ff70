"""Blocking $EDITOR invocation."""

import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from gittask.errors import ExternalCommandError

logger = logging.getLogger(__name__)


def edit_text(initial_text: str, editor: str = "vi", filename_hint: str = "task.md") -> str:
    """
    Open ``initial_text`` in the editor and return what the user saved.

    Args:
        initial_text: Content to pre-fill
        editor: Editor command line, e.g. "vim" or "code --wait"
        filename_hint: Suffix source so the editor picks a syntax mode

    Raises:
        ExternalCommandError: editor missing or exited non-zero
    """
    suffix = Path(filename_hint).suffix or ".txt"
    fd, path = tempfile.mkstemp(prefix="gittask-", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(initial_text)

        cmd = shlex.split(editor) + [path]
        logger.debug("Running editor: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd)
        except FileNotFoundError as e:
            raise ExternalCommandError(editor, "editor not found") from e

        if result.returncode != 0:
            raise ExternalCommandError(editor, f"exit status {result.returncode}")

        return Path(path).read_text(encoding="utf-8")
    finally:
        try:
            os.unlink(path)
        except OSError:
            logger.debug("Could not remove temporary file %s", path)
