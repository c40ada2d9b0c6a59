"""Type definitions for panewatch - one snapshot per pane per tick.

Panes are read fresh from tmux on every monitoring tick. Everything derived
from them is a frozen value object; nothing here is mutated after construction
except the runtime state owned by the observer.
"""

from dataclasses import dataclass, field
from typing import Literal, TypedDict


type PaneID = str  # e.g., "%42" - tmux native pane ID
type AgentType = Literal["codex", "claude", "unknown"]
type SessionStateValue = Literal["RUNNING", "WAITING_INPUT", "WAITING_PERMISSION", "SHELL", "UNKNOWN"]

# Ownership tag value written by us when we attach a capture pipe
PIPE_TAG_OWNED = "1"


@dataclass(frozen=True)
class Pane:
    """One tmux pane as reported by list-panes."""

    pane_id: PaneID
    session_name: str
    window_index: int
    pane_index: int
    current_command: str | None = None
    current_path: str | None = None
    pane_active: bool = False
    pane_dead: bool = False
    window_activity: int | None = None  # epoch seconds
    pane_activity: int | None = None  # epoch seconds
    pane_tty: str | None = None
    pane_pipe: bool = False
    alternate_on: bool = False
    pane_pid: int | None = None
    pane_title: str | None = None
    pane_start_command: str | None = None
    pipe_tag_value: str | None = None

    @property
    def swp(self) -> str:
        """Get session:window.pane format."""
        return f"{self.session_name}:{self.window_index}.{self.pane_index}"

    @property
    def pipe_state(self) -> "PipeState":
        return PipeState(pane_pipe=self.pane_pipe, pipe_tag_value=self.pipe_tag_value)


@dataclass(frozen=True)
class PipeState:
    """Capture flags as read from tmux pane options.

    Attributes:
        pane_pipe: Whether some pipe is attached to the pane.
        pipe_tag_value: Our ownership marker, "1" when we attached it.
    """

    pane_pipe: bool
    pipe_tag_value: str | None = None

    @property
    def is_tagged(self) -> bool:
        return self.pipe_tag_value == PIPE_TAG_OWNED


@dataclass(frozen=True)
class PipeAttachResult:
    """Outcome of a pipe attach attempt.

    conflict=True means a pipe we did not tag is attached and was left alone.
    """

    attached: bool
    conflict: bool


@dataclass(frozen=True)
class ResolvedWorktreeStatus:
    """Fast, possibly stale worktree snapshot for a path."""

    repo_root: str | None = None
    worktree_path: str | None = None
    branch: str | None = None
    worktree_dirty: bool | None = None
    worktree_locked: bool | None = None
    worktree_lock_owner: str | None = None
    worktree_lock_reason: str | None = None
    worktree_merged: bool | None = None


@dataclass(frozen=True)
class PaneResolvedContext:
    """Where a pane is: repository, branch and worktree state."""

    repo_root: str | None = None
    branch: str | None = None
    worktree_path: str | None = None
    worktree_dirty: bool | None = None
    worktree_locked: bool | None = None
    worktree_lock_owner: str | None = None
    worktree_lock_reason: str | None = None
    worktree_merged: bool | None = None
    worktree_pr_created: bool | None = None


@dataclass(frozen=True)
class HookStateSignal:
    """Agent state reported by a hook event."""

    state: SessionStateValue
    reason: str
    at: str


@dataclass
class PaneRuntimeState:
    """Per-pane live state kept by the observer between ticks."""

    hook_state: HookStateSignal | None = None
    last_output_at: str | None = None
    last_event_at: str | None = None
    last_message: str | None = None
    last_input_at: str | None = None
    external_input_cursor_bytes: int | None = None
    external_input_signature: str | None = None
    external_input_last_detected_at: str | None = None
    external_input_last_checked_at: str | None = None
    external_input_last_reason: str | None = None
    external_input_last_reason_code: str | None = None
    external_input_last_error_message: str | None = None
    last_fingerprint: str | None = None
    last_fingerprint_capture_at_ms: int | None = None


@dataclass(frozen=True)
class FinalState:
    """Agent state decided by the observer for this tick."""

    state: SessionStateValue
    reason: str


@dataclass(frozen=True)
class PaneObservation:
    """What a pane is doing, as observed this tick."""

    agent: AgentType
    pipe_attached: bool
    pipe_conflict: bool
    final_state: FinalState
    pane_state: PaneRuntimeState = field(default_factory=PaneRuntimeState)
    output_at: str | None = None


@dataclass(frozen=True)
class PaneDetail:
    """Everything consumers need about one pane for one tick."""

    pane_id: PaneID
    session_name: str
    window_index: int
    pane_index: int
    window_activity: int | None
    pane_active: bool
    current_command: str | None
    current_path: str | None
    pane_tty: str | None
    title: str | None
    custom_title: str | None
    repo_root: str | None
    branch: str | None
    worktree_path: str | None
    worktree_dirty: bool | None
    worktree_locked: bool | None
    worktree_lock_owner: str | None
    worktree_lock_reason: str | None
    worktree_merged: bool | None
    worktree_pr_created: bool | None
    agent: AgentType
    state: SessionStateValue
    state_reason: str
    last_message: str | None
    last_output_at: str | None
    last_event_at: str | None
    last_input_at: str | None
    pane_dead: bool
    alternate_on: bool
    pipe_attached: bool
    pipe_conflict: bool
    start_command: str | None
    pane_pid: int | None

    @property
    def display_title(self) -> str | None:
        """Title shown in list views - custom title wins."""
        return self.custom_title or self.title


# Display types for list views
class PaneRow(TypedDict):
    """Row data for pane listing."""

    Pane: str  # session:window.pane
    Agent: str
    State: str
    Branch: str
    Path: str
    Pipe: Literal["attached", "conflict", "-"]
