"""FastMCP server initialization for gittask."""

from mcp.server.fastmcp import FastMCP

from gittask.commands import Runtime
from gittask.config import Settings
from gittask.logging_setup import setup_logging

# Initialize the MCP server
mcp = FastMCP("gittask")

_runtime: Runtime | None = None


def configure(runtime: Runtime | None) -> None:
    """Install the runtime the tools operate on. ``None`` resets to lazy construction."""
    global _runtime
    _runtime = runtime


def get_runtime() -> Runtime:
    global _runtime
    if _runtime is None:
        _runtime = Runtime.build(Settings.from_env())
        _runtime.vcs.ensure_repo()
    return _runtime


def run() -> None:
    """Run the MCP server."""
    settings = Settings.from_env()
    setup_logging(level=settings.log_level, log_file=settings.log_file)
    # Tools register themselves on import
    import gittask.tools  # noqa: F401

    configure(Runtime.build(settings))
    get_runtime().vcs.ensure_repo()
    mcp.run()


if __name__ == "__main__":
    run()
