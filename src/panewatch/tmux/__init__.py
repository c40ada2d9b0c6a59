"""Pure tmux operations - adapter, inspection and capture pipes.

PUBLIC API:
  - CommandAdapter: Protocol for anything that runs tmux commands
  - TmuxAdapter: Adapter running the real tmux binary
  - Inspector: List panes and read/write pane user options
  - PipeManager: Attach capture pipes with single-owner semantics
  - PIPE_TAG_OPTION: Pane option holding our ownership tag
  - TmuxError: Base exception for tmux operations
  - PaneNotFoundError: Pane not found exception
"""

from .core import CommandAdapter, TmuxAdapter
from .exceptions import PaneNotFoundError, TmuxError
from .inspector import Inspector
from .pipe import PIPE_TAG_OPTION, PipeManager

__all__ = [
    "CommandAdapter",
    "TmuxAdapter",
    "Inspector",
    "PipeManager",
    "PIPE_TAG_OPTION",
    "TmuxError",
    "PaneNotFoundError",
]
