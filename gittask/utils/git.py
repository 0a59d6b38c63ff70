"""Git backend: every call goes through the git CLI."""

import logging
import subprocess
from pathlib import Path

from gittask.errors import ExternalCommandError

logger = logging.getLogger(__name__)

NO_CHANGES = "No changes detected"


def _run_git_command(repo: Path, args: list[str], timeout: int = 30) -> tuple[bool, str]:
    """
    Execute a git command against a repository and return the result.

    Args:
        repo: Repository working tree
        args: List of command arguments (without 'git -C <repo>' prefix)
        timeout: Seconds before the command is abandoned

    Returns:
        Tuple of (success: bool, output: str). On failure the output is the
        error text.
    """
    try:
        cmd = ["git", "-C", str(repo)] + args
        logger.debug("Running %s", " ".join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)

        output = result.stdout.strip()
        if result.returncode != 0:
            error = result.stderr.strip() or output or f"exit status {result.returncode}"
            return False, error

        return True, output

    except subprocess.TimeoutExpired:
        return False, f"Command timed out after {timeout} seconds"
    except FileNotFoundError:
        return False, "git is not installed or not in PATH"


class GitBackend:
    """Commit, sync and undo for a task repository."""

    def __init__(self, repo: Path) -> None:
        self.repo = Path(repo)

    def _git(self, args: list[str], timeout: int = 30) -> str:
        success, output = _run_git_command(self.repo, args, timeout=timeout)
        if not success:
            raise ExternalCommandError(f"git {args[0]}", output)
        return output

    def ensure_repo(self) -> bool:
        """Create the repository if it does not exist yet. Returns True when one was created."""
        if (self.repo / ".git").exists():
            return False
        self.repo.mkdir(parents=True, exist_ok=True)
        self._git(["init"])
        logger.info("Initialised task repository at %s", self.repo)
        return True

    def commit(self, message: str) -> str:
        """Stage everything and commit. A clean tree is not an error."""
        self._git(["add", "."])

        clean, _ = _run_git_command(self.repo, ["diff-index", "--quiet", "HEAD", "--"])
        if clean:
            logger.info(NO_CHANGES)
            return NO_CHANGES

        self._git(["commit", "--no-gpg-sign", "-m", message])
        logger.info("Committed: %s", message)
        return message

    def pull(self) -> str:
        return self._git(["pull", "--no-rebase", "--no-edit"], timeout=120) or "Pulled"

    def push(self) -> str:
        return self._git(["push"], timeout=120) or "Pushed"

    def reset_last_commit(self) -> None:
        self._git(["reset", "--hard", "HEAD~1"])

    def run(self, args: list[str]) -> str:
        """Pass arbitrary arguments through to git."""
        if not args:
            raise ExternalCommandError("git", "no arguments given")
        return self._git(list(args), timeout=120)
