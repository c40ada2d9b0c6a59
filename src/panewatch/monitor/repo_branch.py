"""Branch resolution with a TTL cache and in-flight de-duplication.

PUBLIC API:
  - BranchSource: Cached branch lookup around a git runner
  - resolve_repo_branch_cached: Process-wide cached lookup
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from ..cache import TTLCache, normalize_path_key
from ..vcs import run_git

logger = logging.getLogger(__name__)

BRANCH_CACHE_TTL_MS = 3000
BRANCH_CACHE_MAX_ENTRIES = 1000
BRANCH_TIMEOUT_MS = 2000
BRANCH_MAX_BUFFER = 2_000_000

type GitRunner = Callable[..., Awaitable[str]]


class BranchSource:
    """Resolves the checked-out branch for a directory.

    Concurrent lookups for the same normalized path share one git call.
    """

    def __init__(self, git: GitRunner = run_git, cache: TTLCache[str | None] | None = None):
        self.git = git
        self.cache: TTLCache[str | None] = cache if cache is not None else TTLCache(BRANCH_CACHE_TTL_MS, BRANCH_CACHE_MAX_ENTRIES)
        self._inflight: dict[str, asyncio.Future[str | None]] = {}

    async def _fetch(self, cwd: str) -> str | None:
        args: Sequence[str] = ["branch", "--show-current"]
        try:
            stdout = await self.git(
                cwd,
                args,
                timeout_ms=BRANCH_TIMEOUT_MS,
                max_buffer=BRANCH_MAX_BUFFER,
                allow_stdout_on_error=False,
            )
        except Exception as e:
            logger.debug(f"Branch lookup failed for {cwd}: {e}")
            return None
        return stdout.strip() or None

    async def resolve(self, cwd: str | None) -> str | None:
        """Get the current branch for cwd, None if unknown."""
        key = normalize_path_key(cwd)
        if key is None:
            return None

        entry = self.cache.get_entry(key)
        if entry is not None:
            return entry.value

        pending = self._inflight.get(key)
        if pending is not None:
            return await pending

        task = asyncio.ensure_future(self._fetch(key))
        self._inflight[key] = task
        try:
            branch = await task
        finally:
            self._inflight.pop(key, None)
        self.cache.set(key, branch)
        return branch


_default_source = BranchSource()


async def resolve_repo_branch_cached(cwd: str | None) -> str | None:
    """Get the current branch for cwd using the process-wide cache."""
    return await _default_source.resolve(cwd)
