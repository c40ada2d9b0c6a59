"""Repository root resolution with a bounded TTL cache.

Both hits and misses are cached: a directory that is not inside a repository
is remembered as None for the TTL so we do not shell out for it every tick.

PUBLIC API:
  - RepoRootFetcher: Protocol for the external repo-root lookup
  - RepoRootResolver: Cached resolver around a fetcher
  - resolve_repo_root_cached: Process-wide cached lookup
"""

import logging
from collections.abc import Awaitable
from typing import Protocol

from ..cache import TTLCache, normalize_path_key
from ..vcs import resolve_repo_root

logger = logging.getLogger(__name__)

REPO_ROOT_CACHE_TTL_MS = 10_000
REPO_ROOT_CACHE_MAX_ENTRIES = 1000
REPO_ROOT_TIMEOUT_MS = 2000
REPO_ROOT_MAX_BUFFER = 2_000_000


class RepoRootFetcher(Protocol):
    def __call__(
        self, cwd: str, *, timeout_ms: int, max_buffer: int, allow_stdout_on_error: bool
    ) -> Awaitable[str | None]: ...


class RepoRootResolver:
    """Maps working directories to repository roots.

    Args:
        fetch: External lookup, called with bounded execution options
        cache: Cache to use - a fresh 10s/1000-entry cache by default
    """

    def __init__(self, fetch: RepoRootFetcher = resolve_repo_root, cache: TTLCache[str | None] | None = None):
        if not callable(fetch):
            raise TypeError("fetch must be callable")
        self.fetch = fetch
        self.cache: TTLCache[str | None] = cache if cache is not None else TTLCache(REPO_ROOT_CACHE_TTL_MS, REPO_ROOT_CACHE_MAX_ENTRIES)

    async def resolve(self, cwd: str | None) -> str | None:
        """Get the repository root for cwd.

        Args:
            cwd: Working directory, trailing separators ignored

        Returns:
            Repository root, or None if cwd is empty, not in a repo, or lookup failed
        """
        key = normalize_path_key(cwd)
        if key is None:
            return None

        entry = self.cache.get_entry(key)
        if entry is not None:
            return entry.value

        try:
            repo_root = await self.fetch(
                key,
                timeout_ms=REPO_ROOT_TIMEOUT_MS,
                max_buffer=REPO_ROOT_MAX_BUFFER,
                allow_stdout_on_error=False,
            )
        except Exception as e:
            # Not cached - next tick retries
            logger.debug(f"Repo root lookup failed for {key}: {e}")
            return None

        self.cache.set(key, repo_root)
        return repo_root


_default_resolver = RepoRootResolver()


async def resolve_repo_root_cached(cwd: str | None) -> str | None:
    """Get the repository root for cwd using the process-wide cache."""
    return await _default_resolver.resolve(cwd)
