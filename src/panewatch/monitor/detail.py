"""Pane detail building - the per-tick snapshot handed to consumers.

PUBLIC API:
  - build_pane_detail: Merge pane, observation and context into a PaneDetail
  - normalize_title: Trim a title, None if empty
  - build_default_title: Title derived from path, window and pane ID
  - HOST_CANDIDATES: Host names tmux reports as pane titles by default
"""

import socket

from ..types import Pane, PaneDetail, PaneObservation, PaneResolvedContext


def _host_candidates() -> frozenset[str]:
    host = socket.gethostname()
    short = host.split(".")[0] or host
    return frozenset({host, short, f"{host}.local", f"{short}.local"})


HOST_CANDIDATES = _host_candidates()


def normalize_title(value: str | None) -> str | None:
    if not value:
        return None
    trimmed = value.strip()
    return trimmed or None


def build_default_title(current_path: str | None, pane_id: str, session_name: str, window_index: int) -> str:
    """Build "<dir>:w<window>:<pane>" or "<session>:w<window>:<pane>" without a path."""
    if not current_path:
        return f"{session_name}:w{window_index}:{pane_id}"
    name = current_path.rstrip("/").split("/")[-1] or "unknown"
    return f"{name}:w{window_index}:{pane_id}"


def _resolve_title(pane: Pane) -> str:
    # tmux defaults pane_title to the host name, which says nothing about the pane
    title = normalize_title(pane.pane_title)
    if title and title not in HOST_CANDIDATES:
        return title
    return build_default_title(pane.current_path, pane.pane_id, pane.session_name, pane.window_index)


def build_pane_detail(
    pane: Pane,
    observation: PaneObservation,
    pane_context: PaneResolvedContext,
    custom_title: str | None = None,
) -> PaneDetail:
    """Merge one tick's inputs into a PaneDetail.

    Pure and total: the observer's final state always wins, custom_title is
    kept only when non-empty, and context fields pass through unchanged.
    """
    pane_state = observation.pane_state
    return PaneDetail(
        pane_id=pane.pane_id,
        session_name=pane.session_name,
        window_index=pane.window_index,
        pane_index=pane.pane_index,
        window_activity=pane.window_activity,
        pane_active=pane.pane_active,
        current_command=pane.current_command,
        current_path=pane.current_path,
        pane_tty=pane.pane_tty,
        title=_resolve_title(pane),
        custom_title=normalize_title(custom_title),
        repo_root=pane_context.repo_root,
        branch=pane_context.branch,
        worktree_path=pane_context.worktree_path,
        worktree_dirty=pane_context.worktree_dirty,
        worktree_locked=pane_context.worktree_locked,
        worktree_lock_owner=pane_context.worktree_lock_owner,
        worktree_lock_reason=pane_context.worktree_lock_reason,
        worktree_merged=pane_context.worktree_merged,
        worktree_pr_created=pane_context.worktree_pr_created,
        agent=observation.agent,
        state=observation.final_state.state,
        state_reason=observation.final_state.reason,
        last_message=pane_state.last_message,
        last_output_at=observation.output_at or pane_state.last_output_at,
        last_event_at=pane_state.last_event_at,
        last_input_at=pane_state.last_input_at,
        pane_dead=pane.pane_dead,
        alternate_on=pane.alternate_on,
        pipe_attached=observation.pipe_attached,
        pipe_conflict=observation.pipe_conflict,
        start_command=pane.pane_start_command,
        pane_pid=pane.pane_pid,
    )
