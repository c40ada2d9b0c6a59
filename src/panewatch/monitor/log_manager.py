"""Pane log files - where capture pipes write, and keeping them bounded.

PUBLIC API:
  - LogPaths: Log locations for one pane
  - resolve_log_paths: Compute log locations for a pane
  - ensure_dir: Create a private log directory
  - rotate_log_if_needed: Rotate an oversized log, pruning old rotations
  - LogActivityTracker: Detect growth of registered pane logs
  - PaneLoggingResult: Outcome of preparing a pane for capture
  - PaneLogManager: Attach pipes and maintain pane log files
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Protocol
from urllib.parse import quote

from ..config import MonitorConfig
from ..types import PIPE_TAG_OWNED, PipeAttachResult, PipeState

logger = logging.getLogger(__name__)

type PipeSupport = Literal["tmux-pipe", "none"]


@dataclass(frozen=True)
class LogPaths:
    panes_dir: Path
    pane_log_path: Path


def resolve_log_paths(base_dir: Path, server_key: str, pane_id: str) -> LogPaths:
    """Get log paths - <base>/panes/<server>/<pane id without %>.log."""
    file_id = quote(pane_id.replace("%", ""), safe="")
    panes_dir = Path(base_dir) / "panes" / server_key
    return LogPaths(panes_dir=panes_dir, pane_log_path=panes_dir / f"{file_id}.log")


def ensure_dir(directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True, mode=0o700)


def _touch(path: Path) -> None:
    with open(path, "a"):
        pass


def rotate_log_if_needed(path: Path, max_bytes: int, retain_rotations: int) -> bool:
    """Rotate path to path.<epoch-ms> once it exceeds max_bytes.

    The live file is truncated rather than replaced so an attached pipe keeps
    writing to it.

    Returns:
        True if the log was rotated
    """
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        return False
    if size <= max_bytes:
        return False

    rotated = path.with_name(f"{path.name}.{int(time.time() * 1000)}")
    rotated.write_bytes(path.read_bytes())
    with open(path, "r+b") as f:
        f.truncate(0)
    logger.info(f"Rotated {path} ({size} bytes) to {rotated.name}")

    prefix = f"{path.name}."
    rotations = sorted(
        (p for p in path.parent.iterdir() if p.name.startswith(prefix) and p.name[len(prefix) :].isdigit()),
        key=lambda p: int(p.name[len(prefix) :]),
    )
    for old in rotations[: max(0, len(rotations) - retain_rotations)]:
        try:
            old.unlink()
        except OSError as e:
            logger.debug(f"Could not remove old rotation {old}: {e}")
    return True


class LogActivity(Protocol):
    def register(self, pane_id: str, path: Path) -> None: ...


class PipeAttacher(Protocol):
    def has_conflict(self, state: PipeState) -> bool: ...

    def attach_pipe(
        self, pane_id: str, log_path: str, state: PipeState, force_reattach: bool = False
    ) -> Awaitable[PipeAttachResult]: ...


@dataclass
class _TrackedLog:
    pane_id: str
    size: int = 0
    initialized: bool = False


class LogActivityTracker:
    """Tracks pane log sizes so growth can be reported as output activity.

    poll() is driven by the caller; the first poll of a file only records its size.
    """

    def __init__(self):
        self._entries: dict[Path, _TrackedLog] = {}

    def register(self, pane_id: str, path: Path) -> None:
        for tracked_path, entry in list(self._entries.items()):
            if tracked_path != path and entry.pane_id == pane_id:
                del self._entries[tracked_path]
        existing = self._entries.get(path)
        if existing:
            existing.pane_id = pane_id
            return
        self._entries[path] = _TrackedLog(pane_id=pane_id)

    def unregister(self, pane_id: str) -> None:
        for tracked_path, entry in list(self._entries.items()):
            if entry.pane_id == pane_id:
                del self._entries[tracked_path]

    def poll(self) -> list[tuple[str, str]]:
        """Check tracked logs once.

        Returns:
            (pane_id, ISO timestamp) for every log that grew since the last poll
        """
        grown = []
        now = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        for path, entry in self._entries.items():
            try:
                size = path.stat().st_size
            except OSError:
                continue
            if not entry.initialized:
                entry.size = size
                entry.initialized = True
                continue
            if size > entry.size:
                grown.append((entry.pane_id, now))
            entry.size = size
        return grown


@dataclass(frozen=True)
class PaneLoggingResult:
    pipe_attached: bool
    pipe_conflict: bool
    log_path: Path | None


class PaneLogManager:
    """Prepares pane capture each tick: log files, pipe attachment, rotation.

    A pipe already tagged as ours is re-attached once per process so it points
    at this process's log path; after that it is left alone.
    """

    def __init__(
        self,
        config: MonitorConfig,
        pipe_manager: PipeAttacher,
        log_activity: LogActivity,
        pipe_support: PipeSupport = "tmux-pipe",
        rotate: Callable[[Path, int, int], bool] = rotate_log_if_needed,
    ):
        self.config = config
        self.pipe_manager = pipe_manager
        self.log_activity = log_activity
        self.pipe_support = pipe_support
        self.rotate = rotate
        self._normalized_destinations: set[str] = set()

    def get_pane_log_path(self, pane_id: str) -> Path:
        return resolve_log_paths(self.config.base_dir, self.config.server_key, pane_id).pane_log_path

    def ensure_log_files(self, pane_id: str) -> None:
        paths = resolve_log_paths(self.config.base_dir, self.config.server_key, pane_id)
        ensure_dir(paths.panes_dir)
        _touch(paths.pane_log_path)

    def forget(self, pane_id: str) -> None:
        """Drop per-pane bookkeeping for a pane that no longer exists."""
        self._normalized_destinations.discard(pane_id)

    async def prepare_pane_logging(self, pane_id: str, pane_pipe: bool, pipe_tag_value: str | None) -> PaneLoggingResult:
        """Make sure pane output is being captured to its log.

        Args:
            pane_id: Target pane ID
            pane_pipe: Whether tmux reports an attached pipe
            pipe_tag_value: Our ownership tag as read from tmux

        Returns:
            PaneLoggingResult with the pipe status and log path
        """
        if self.pipe_support == "none":
            return PaneLoggingResult(pipe_attached=False, pipe_conflict=False, log_path=None)

        log_path = self.get_pane_log_path(pane_id)
        state = PipeState(pane_pipe=pane_pipe, pipe_tag_value=pipe_tag_value)
        is_tagged_pipe = pane_pipe and pipe_tag_value == PIPE_TAG_OWNED
        force_reattach = is_tagged_pipe and pane_id not in self._normalized_destinations

        pipe_attached = is_tagged_pipe
        pipe_conflict = self.pipe_manager.has_conflict(state)

        if self.config.attach_on_serve and not pipe_conflict and (not pipe_attached or force_reattach):
            self.ensure_log_files(pane_id)
            result = await self.pipe_manager.attach_pipe(pane_id, str(log_path), state, force_reattach=force_reattach)
            pipe_attached = pipe_attached or result.attached
            pipe_conflict = result.conflict

        if pipe_attached and not pipe_conflict and (force_reattach or not is_tagged_pipe):
            self._normalized_destinations.add(pane_id)
        if not pipe_attached or pipe_conflict:
            self._normalized_destinations.discard(pane_id)

        if self.config.attach_on_serve:
            self.log_activity.register(pane_id, log_path)

        try:
            await asyncio.to_thread(
                self.rotate, log_path, self.config.max_pane_log_bytes, self.config.retain_rotations
            )
        except OSError as e:
            logger.warning(f"Could not rotate {log_path}: {e}")

        return PaneLoggingResult(pipe_attached=pipe_attached, pipe_conflict=pipe_conflict, log_path=log_path)
