from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep stderr readable:
    - gittask logs pass at the configured level
    - third-party libraries (mcp, httpx, ...) only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "gittask" or record.name.startswith("gittask."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    level: str | int = logging.WARNING,
    log_file: str | Path | None = None,
) -> None:
    """
    Configure logging with:
    - Console handler on stderr (stdout carries command output and MCP traffic)
    - Optional file handler with everything at DEBUG

    Call this once, before the first command runs.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
