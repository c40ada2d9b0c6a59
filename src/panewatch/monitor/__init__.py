"""Pane monitoring - context resolution, detail building and per-tick processing.

PUBLIC API:
  - RepoRootResolver: TTL-cached repository root lookup
  - resolve_repo_root_cached: Repository root via the shared resolver
  - resolve_pane_context: Repository, branch and worktree context for a pane
  - build_pane_detail: Merge one tick's inputs into a PaneDetail
  - PaneLogManager: Attach pipes and maintain pane log files
  - LogActivityTracker: Detect growth of pane logs
  - process_pane: Observe, resolve and build one PaneDetail
  - PaneUpdateService: Run monitoring ticks across all panes
"""

from .context import resolve_pane_context
from .detail import build_pane_detail
from .log_manager import LogActivityTracker, PaneLogManager
from .processor import PaneUpdateService, process_pane
from .repo_root import RepoRootResolver, resolve_repo_root_cached

__all__ = [
    "RepoRootResolver",
    "resolve_repo_root_cached",
    "resolve_pane_context",
    "build_pane_detail",
    "PaneLogManager",
    "LogActivityTracker",
    "process_pane",
    "PaneUpdateService",
]
