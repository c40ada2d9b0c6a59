"""Pane context resolution - which repository, worktree and branch a pane is in.

Two sources are consulted concurrently: a fast worktree snapshot that may be
stale, and the canonical repository root. The snapshot is only trusted when
it describes the directory the canonical lookup found; otherwise its fields
describe some other location and are dropped.

PUBLIC API:
  - WorktreeStatusResolver: Protocol for the snapshot lookup (sync or async)
  - BranchResolver: Protocol for the authoritative branch lookup
  - PrCreatedResolver: Protocol for the pull-request lookup
  - resolve_pane_context: Build a PaneResolvedContext for a pane path
  - is_agent_worktree_path: Whether a path lies under a .worktree segment
  - is_same_path: Compare paths ignoring trailing separators
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Protocol

from ..cache import normalize_path_key
from ..types import PaneResolvedContext, ResolvedWorktreeStatus

logger = logging.getLogger(__name__)

_AGENT_WORKTREE_SEGMENT = re.compile(r"(?:^|[\\/])\.worktree(?:[\\/]|$)")


class WorktreeStatusResolver(Protocol):
    def __call__(
        self, current_path: str | None
    ) -> ResolvedWorktreeStatus | None | Awaitable[ResolvedWorktreeStatus | None]: ...


class BranchResolver(Protocol):
    def __call__(self, current_path: str | None) -> Awaitable[str | None]: ...


class PrCreatedResolver(Protocol):
    def __call__(self, repo_root: str | None, branch: str | None) -> Awaitable[bool | None]: ...


def is_same_path(left: str | None, right: str | None) -> bool:
    """Compare two paths ignoring trailing separators.

    Empty or separator-only paths never match anything.
    """
    normalized_left = normalize_path_key(left)
    normalized_right = normalize_path_key(right)
    if normalized_left is None or normalized_right is None:
        return False
    return normalized_left == normalized_right


def is_agent_worktree_path(path: str | None) -> bool:
    """Check for a whole ".worktree" path segment (case-sensitive)."""
    if not path:
        return False
    return _AGENT_WORKTREE_SEGMENT.search(path) is not None


def _require_callable(name: str, value: object, optional: bool = True) -> None:
    if value is None and optional:
        return
    if not callable(value):
        raise TypeError(f"{name} must be callable, got {type(value).__name__}")


async def _call_worktree_status(
    resolver: WorktreeStatusResolver | None, current_path: str | None
) -> ResolvedWorktreeStatus | None:
    if resolver is None:
        return None
    try:
        status = resolver(current_path)
        if inspect.isawaitable(status):
            status = await status
    except Exception as e:
        logger.debug(f"Worktree status lookup failed for {current_path}: {e}")
        return None
    return status


async def _call_safely[T](label: str, call: Callable[[], Awaitable[T]]) -> T | None:
    try:
        return await call()
    except Exception as e:
        logger.debug(f"{label} lookup failed: {e}")
        return None


async def resolve_pane_context(
    current_path: str | None,
    resolve_repo_root: Callable[[str | None], Awaitable[str | None]],
    resolve_worktree_status: WorktreeStatusResolver | None = None,
    resolve_branch: BranchResolver | None = None,
    resolve_pr_created: PrCreatedResolver | None = None,
) -> PaneResolvedContext:
    """Resolve repository, branch and worktree state for a pane.

    Precedence:
      1. Snapshot and canonical root are looked up concurrently.
      2. The snapshot is trusted only if its worktree path equals the canonical
         root, or the canonical root is unknown.
      3. Trusted: fields come from the snapshot.
      4. Not trusted: canonical root, branch from resolve_branch, no worktree fields.
      5. PR status is looked up only for trusted worktrees under ".worktree".

    Args:
        current_path: Pane working directory
        resolve_repo_root: Canonical repository root lookup
        resolve_worktree_status: Fast snapshot lookup, sync or async
        resolve_branch: Branch lookup used when the snapshot cannot supply one
        resolve_pr_created: Pull-request lookup for agent-managed worktrees

    Returns:
        PaneResolvedContext - lookup failures leave fields as None

    Raises:
        TypeError: If an injected resolver is not callable
    """
    _require_callable("resolve_repo_root", resolve_repo_root, optional=False)
    _require_callable("resolve_worktree_status", resolve_worktree_status)
    _require_callable("resolve_branch", resolve_branch)
    _require_callable("resolve_pr_created", resolve_pr_created)

    candidate, canonical_root = await asyncio.gather(
        _call_worktree_status(resolve_worktree_status, current_path),
        _call_safely("Repo root", lambda: resolve_repo_root(current_path)),
    )

    status: ResolvedWorktreeStatus | None = None
    if candidate is not None and (canonical_root is None or is_same_path(candidate.worktree_path, canonical_root)):
        status = candidate
    elif candidate is not None:
        logger.debug(
            f"Dropping stale worktree snapshot for {current_path}: "
            f"{candidate.worktree_path} != {canonical_root}"
        )

    repo_root = status.repo_root if status and status.repo_root is not None else canonical_root

    branch = status.branch if status else None
    if branch is None and resolve_branch is not None:
        branch = await _call_safely("Branch", lambda: resolve_branch(current_path))

    worktree_path = status.worktree_path if status else None
    pr_created: bool | None = None
    if resolve_pr_created is not None and is_agent_worktree_path(worktree_path):
        pr_created = await _call_safely("PR status", lambda: resolve_pr_created(repo_root, branch))

    if status is None:
        return PaneResolvedContext(repo_root=repo_root, branch=branch)

    return PaneResolvedContext(
        repo_root=repo_root,
        branch=branch,
        worktree_path=status.worktree_path,
        worktree_dirty=status.worktree_dirty,
        worktree_locked=status.worktree_locked,
        worktree_lock_owner=status.worktree_lock_owner,
        worktree_lock_reason=status.worktree_lock_reason,
        worktree_merged=status.worktree_merged,
        worktree_pr_created=pr_created,
    )
