"""Git command execution for repository and branch lookups.

PUBLIC API:
  - GitError: Raised by run_git when git fails
  - run_git: Run git in a directory with timeout and output bound
  - resolve_repo_root: Repository top-level for a directory, None if not a repo
"""

import logging
from typing import Sequence

from .command import run_command

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 2000
DEFAULT_MAX_BUFFER = 2_000_000


class GitError(Exception):
    """Raised when a git command fails, times out or overflows its output cap."""

    pass


async def run_git(
    cwd: str,
    args: Sequence[str],
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    max_buffer: int = DEFAULT_MAX_BUFFER,
    allow_stdout_on_error: bool = False,
) -> str:
    """Run git in cwd and return stdout.

    Args:
        cwd: Directory to run in
        args: Git arguments
        timeout_ms: Kill git after this many milliseconds
        max_buffer: Kill git once output exceeds this many bytes
        allow_stdout_on_error: Return partial stdout from a failed run instead of raising

    Raises:
        GitError: If git fails and partial output is not allowed
    """
    result = await run_command(
        ["git", "-C", cwd, *args],
        timeout_s=timeout_ms / 1000,
        max_buffer=max_buffer,
    )
    if result.ok:
        return result.stdout
    if allow_stdout_on_error and result.stdout:
        return result.stdout
    reason = "timeout" if result.timed_out else "output too large" if result.truncated else result.stderr.strip()
    raise GitError(f"git {' '.join(args)} failed in {cwd}: {reason}")


async def resolve_repo_root(
    cwd: str,
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    max_buffer: int = DEFAULT_MAX_BUFFER,
    allow_stdout_on_error: bool = False,
) -> str | None:
    """Get the repository top-level containing cwd."""
    try:
        stdout = await run_git(
            cwd,
            ["rev-parse", "--show-toplevel"],
            timeout_ms=timeout_ms,
            max_buffer=max_buffer,
            allow_stdout_on_error=allow_stdout_on_error,
        )
    except GitError as e:
        logger.debug(f"No repo root for {cwd}: {e}")
        return None
    return stdout.strip() or None
