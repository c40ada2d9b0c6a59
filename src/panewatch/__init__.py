"""Pane capture and context resolution for tmux-hosted coding agents.

Attaches output capture pipes to tmux panes without hijacking foreign ones,
works out which repository, worktree and branch each pane is in, and merges
that into one PaneDetail per pane per monitoring tick.

PUBLIC API:
  - TmuxAdapter: Runs tmux commands against a server
  - Inspector: Lists panes and pane options
  - PipeManager: Attaches capture pipes with single-owner semantics
  - PaneUpdateService: Runs monitoring ticks across all panes
  - resolve_pane_context: Repository, branch and worktree context for a pane
  - build_pane_detail: Merge one tick's inputs into a PaneDetail
  - get_monitor_config: Settings from panewatch.toml
"""

from .config import get_monitor_config
from .monitor import PaneUpdateService, build_pane_detail, resolve_pane_context
from .tmux import Inspector, PipeManager, TmuxAdapter

__version__ = "0.1.0"
__all__ = [
    "TmuxAdapter",
    "Inspector",
    "PipeManager",
    "PaneUpdateService",
    "resolve_pane_context",
    "build_pane_detail",
    "get_monitor_config",
]
