"""Worktree status snapshots from `vw list --json`.

A snapshot lists every worktree of a repository with its branch, dirty, lock
and merge state. It is cheap to consult for many panes but may be a few
seconds stale, so callers validate it against the canonical repo root.

PUBLIC API:
  - WorktreeEntry: One worktree in a snapshot
  - WorktreeSnapshot: Parsed snapshot for one repository
  - parse_snapshot: Parse `vw list --json` output
  - WorktreeSnapshotSource: Cached snapshot fetcher
  - resolve_worktree_snapshot_cached: Process-wide cached snapshot lookup
  - resolve_worktree_status_from_snapshot: Status for the worktree containing a path
"""

import asyncio
import json
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..cache import TTLCache
from ..command import CommandResult, run_command
from ..types import ResolvedWorktreeStatus

logger = logging.getLogger(__name__)

SNAPSHOT_CACHE_TTL_MS = 3000
SNAPSHOT_CACHE_MAX_ENTRIES = 50
SNAPSHOT_TIMEOUT_S = 4.0
SNAPSHOT_MAX_BUFFER = 2_000_000


@dataclass(frozen=True)
class WorktreeEntry:
    path: str
    branch: str | None
    dirty: bool | None
    locked: bool | None
    lock_owner: str | None
    lock_reason: str | None
    merged: bool | None


@dataclass(frozen=True)
class WorktreeSnapshot:
    repo_root: str | None
    entries: tuple[WorktreeEntry, ...]  # deepest path first


def _normalize_path(value: str | None) -> str | None:
    if not value:
        return None
    resolved = os.path.abspath(value).rstrip("/\\")
    return resolved or os.sep


def _is_within_path(target: str, root: str) -> bool:
    if target == root:
        return True
    return target.startswith(root.rstrip(os.sep) + os.sep)


def _nullable_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _nullable_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _parse_entry(item: Any) -> WorktreeEntry | None:
    if not isinstance(item, dict):
        return None
    path = _normalize_path(_nullable_str(item.get("path")))
    if not path:
        return None
    locked = item.get("locked")
    if not isinstance(locked, dict):
        locked = {}
    merged = item.get("merged")
    if not isinstance(merged, dict):
        merged = {}
    return WorktreeEntry(
        path=path,
        branch=_nullable_str(item.get("branch")),
        dirty=_nullable_bool(item.get("dirty")),
        locked=_nullable_bool(locked.get("value")),
        lock_owner=_nullable_str(locked.get("owner")),
        lock_reason=_nullable_str(locked.get("reason")),
        merged=_nullable_bool(merged.get("overall")),
    )


def parse_snapshot(raw: Any) -> WorktreeSnapshot | None:
    """Parse decoded `vw list --json` output.

    Args:
        raw: Decoded JSON payload

    Returns:
        Snapshot with entries sorted deepest path first, None unless status is "ok"
    """
    if not isinstance(raw, dict):
        return None
    worktrees = raw.get("worktrees")
    if raw.get("status") != "ok" or not isinstance(worktrees, list):
        return None

    entries = [entry for entry in (_parse_entry(item) for item in worktrees) if entry is not None]
    entries.sort(key=lambda entry: len(entry.path), reverse=True)
    return WorktreeSnapshot(
        repo_root=_normalize_path(_nullable_str(raw.get("repoRoot"))),
        entries=tuple(entries),
    )


async def _run_vw(cwd: str) -> CommandResult:
    return await run_command(
        ["vw", "list", "--json"],
        cwd=cwd,
        timeout_s=SNAPSHOT_TIMEOUT_S,
        max_buffer=SNAPSHOT_MAX_BUFFER,
    )


class WorktreeSnapshotSource:
    """Fetches and caches snapshots per directory.

    Args:
        run: Runs `vw list --json` in a directory
        cache: Snapshot cache - 3s/50 entries by default
    """

    def __init__(
        self,
        run: Callable[[str], Awaitable[CommandResult]] = _run_vw,
        cache: TTLCache[WorktreeSnapshot | None] | None = None,
    ):
        self.run = run
        self.cache: TTLCache[WorktreeSnapshot | None] = cache if cache is not None else TTLCache(
            SNAPSHOT_CACHE_TTL_MS, SNAPSHOT_CACHE_MAX_ENTRIES
        )
        self._inflight: dict[str, asyncio.Future[WorktreeSnapshot | None]] = {}

    async def _fetch(self, cwd: str) -> WorktreeSnapshot | None:
        try:
            result = await self.run(cwd)
        except Exception as e:
            logger.debug(f"vw list failed in {cwd}: {e}")
            return None
        if not result.ok:
            return None
        stdout = result.stdout.strip()
        if not stdout:
            return None
        try:
            return parse_snapshot(json.loads(stdout))
        except json.JSONDecodeError as e:
            logger.debug(f"vw list returned invalid JSON in {cwd}: {e}")
            return None

    async def get(self, cwd: str | None) -> WorktreeSnapshot | None:
        """Get the snapshot for cwd, None if unavailable."""
        key = _normalize_path(cwd)
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
            snapshot = await task
        finally:
            self._inflight.pop(key, None)
        self.cache.set(key, snapshot)
        return snapshot


_default_source = WorktreeSnapshotSource()


async def resolve_worktree_snapshot_cached(cwd: str | None) -> WorktreeSnapshot | None:
    """Get the snapshot for cwd using the process-wide cache."""
    return await _default_source.get(cwd)


def resolve_worktree_status_from_snapshot(
    snapshot: WorktreeSnapshot | None, cwd: str | None
) -> ResolvedWorktreeStatus | None:
    """Find the deepest worktree in snapshot containing cwd.

    Returns:
        ResolvedWorktreeStatus, or None if nothing in the snapshot contains cwd
    """
    if snapshot is None:
        return None
    normalized = _normalize_path(cwd)
    if normalized is None:
        return None

    for entry in snapshot.entries:
        if _is_within_path(normalized, entry.path):
            return ResolvedWorktreeStatus(
                repo_root=snapshot.repo_root,
                worktree_path=entry.path,
                branch=entry.branch,
                worktree_dirty=entry.dirty,
                worktree_locked=entry.locked,
                worktree_lock_owner=entry.lock_owner,
                worktree_lock_reason=entry.lock_reason,
                worktree_merged=entry.merged,
            )
    return None
