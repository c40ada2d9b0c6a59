"""Pull-request existence lookup for agent-managed worktree branches.

PUBLIC API:
  - PrCreatedSource: Cached `gh pr list` lookup per (repo root, branch)
  - resolve_pr_created_cached: Process-wide cached lookup
"""

import json
import logging
from collections.abc import Awaitable, Callable

from ..cache import TTLCache, normalize_path_key
from ..command import CommandResult, run_command

logger = logging.getLogger(__name__)

PR_CACHE_TTL_MS = 60_000
PR_CACHE_MAX_ENTRIES = 200
PR_TIMEOUT_S = 5.0
PR_MAX_BUFFER = 1_000_000


async def _run_gh(repo_root: str, branch: str) -> CommandResult:
    return await run_command(
        ["gh", "pr", "list", "--head", branch, "--state", "all", "--json", "number", "--limit", "1"],
        cwd=repo_root,
        timeout_s=PR_TIMEOUT_S,
        max_buffer=PR_MAX_BUFFER,
    )


class PrCreatedSource:
    """Answers "does this branch have a pull request?" with caching.

    True/False are cached; lookup failures return None and are retried.
    """

    def __init__(
        self,
        run: Callable[[str, str], Awaitable[CommandResult]] = _run_gh,
        cache: TTLCache[bool] | None = None,
    ):
        self.run = run
        self.cache: TTLCache[bool] = cache if cache is not None else TTLCache(PR_CACHE_TTL_MS, PR_CACHE_MAX_ENTRIES)

    async def resolve(self, repo_root: str | None, branch: str | None) -> bool | None:
        root = normalize_path_key(repo_root)
        if root is None or not branch:
            return None

        key = f"{root}\n{branch}"
        entry = self.cache.get_entry(key)
        if entry is not None:
            return entry.value

        try:
            result = await self.run(root, branch)
        except Exception as e:
            logger.debug(f"gh pr list failed for {branch} in {root}: {e}")
            return None
        if not result.ok:
            logger.debug(f"gh pr list exited {result.exit_code} for {branch}: {result.stderr.strip()}")
            return None

        try:
            payload = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            return None
        if not isinstance(payload, list):
            return None

        created = len(payload) > 0
        self.cache.set(key, created)
        return created


_default_source = PrCreatedSource()


async def resolve_pr_created_cached(repo_root: str | None, branch: str | None) -> bool | None:
    """Check for a pull request on branch using the process-wide cache."""
    return await _default_source.resolve(repo_root, branch)
