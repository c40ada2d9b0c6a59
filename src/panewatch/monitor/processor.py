"""Pane processing - one monitoring tick from tmux panes to PaneDetails.

When to tick is the caller's business; update_from_panes does exactly one
pass. Each pane goes observe -> resolve context -> build detail, with pipe
capture prepared first when a log manager is configured.

PUBLIC API:
  - Observer: Protocol producing a PaneObservation for a pane
  - process_pane: Observe, resolve and build one PaneDetail
  - PaneProcessingFailure: Failure bookkeeping for a pane
  - PaneUpdateService: Runs ticks across all panes with bounded concurrency
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from ..cache import normalize_path_key
from ..config import MonitorConfig
from ..tmux.inspector import Inspector
from ..tmux.pipe import PIPE_TAG_OPTION
from ..types import Pane, PaneDetail, PaneObservation, ResolvedWorktreeStatus
from .context import BranchResolver, PrCreatedResolver, WorktreeStatusResolver, resolve_pane_context
from .detail import build_pane_detail
from .log_manager import LogActivityTracker, PaneLoggingResult, PaneLogManager
from .pr_created import resolve_pr_created_cached
from .repo_branch import resolve_repo_branch_cached
from .repo_root import resolve_repo_root_cached
from .worktree import WorktreeSnapshot, resolve_worktree_snapshot_cached, resolve_worktree_status_from_snapshot

logger = logging.getLogger(__name__)

PANE_PROCESS_CONCURRENCY = 8


class Observer(Protocol):
    def __call__(self, pane: Pane, logging_result: PaneLoggingResult | None) -> Awaitable[PaneObservation | None]: ...


async def process_pane(
    pane: Pane,
    observe: Observer,
    get_custom_title: Callable[[str], str | None],
    resolve_repo_root: Callable[[str | None], Awaitable[str | None]],
    resolve_worktree_status: WorktreeStatusResolver | None = None,
    resolve_branch: BranchResolver | None = None,
    resolve_pr_created: PrCreatedResolver | None = None,
    logging_result: PaneLoggingResult | None = None,
) -> PaneDetail | None:
    """Build the PaneDetail for one pane.

    Returns:
        PaneDetail, or None when the observer skips the pane
    """
    observation = await observe(pane, logging_result)
    if observation is None:
        return None

    pane_context = await resolve_pane_context(
        pane.current_path,
        resolve_repo_root,
        resolve_worktree_status=resolve_worktree_status,
        resolve_branch=resolve_branch,
        resolve_pr_created=resolve_pr_created,
    )
    return build_pane_detail(pane, observation, pane_context, get_custom_title(pane.pane_id))


@dataclass(frozen=True)
class PaneProcessingFailure:
    count: int
    last_failed_at: str
    last_error_message: str


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class PaneUpdateService:
    """Runs monitoring ticks and keeps the latest PaneDetail per pane.

    Repo-root and snapshot lookups are shared between panes within a tick,
    so panes in the same directory cost one lookup. A pane whose processing
    raises keeps its previous detail and has the failure counted.

    Args:
        inspector: Source of pane metadata
        observe: Produces a PaneObservation for a pane
        log_manager: Prepares capture pipes; capture is skipped when None
        log_activity: Tracker to unregister removed panes from
        get_custom_title: User-assigned title for a pane ID
        config: Monitor settings, supplies pane_process_concurrency
        concurrency: Panes processed in parallel, overrides config
    """

    def __init__(
        self,
        inspector: Inspector,
        observe: Observer,
        log_manager: PaneLogManager | None = None,
        log_activity: LogActivityTracker | None = None,
        get_custom_title: Callable[[str], str | None] = lambda pane_id: None,
        resolve_repo_root: Callable[[str | None], Awaitable[str | None]] = resolve_repo_root_cached,
        resolve_snapshot: Callable[[str], Awaitable[WorktreeSnapshot | None]] = resolve_worktree_snapshot_cached,
        resolve_branch: BranchResolver | None = resolve_repo_branch_cached,
        resolve_pr_created: PrCreatedResolver | None = resolve_pr_created_cached,
        config: MonitorConfig | None = None,
        concurrency: int | None = None,
    ):
        self.inspector = inspector
        self.observe = observe
        self.log_manager = log_manager
        self.log_activity = log_activity
        self.get_custom_title = get_custom_title
        self.resolve_repo_root = resolve_repo_root
        self.resolve_snapshot = resolve_snapshot
        self.resolve_branch = resolve_branch
        self.resolve_pr_created = resolve_pr_created
        if concurrency is None:
            concurrency = config.pane_process_concurrency if config is not None else PANE_PROCESS_CONCURRENCY
        self.concurrency = max(1, concurrency)
        self.details: dict[str, PaneDetail] = {}
        self.failures: dict[str, PaneProcessingFailure] = {}

    async def _pipe_tag_value(self, pane: Pane) -> str | None:
        # Some tmux versions leave user options out of list-panes formats
        if pane.pipe_tag_value is not None or not pane.pane_pipe:
            return pane.pipe_tag_value
        return await self.inspector.read_user_option(pane.pane_id, PIPE_TAG_OPTION)

    async def _process(
        self,
        pane: Pane,
        repo_root_for: Callable[[str | None], Awaitable[str | None]],
        snapshot_for: Callable[[str], Awaitable[WorktreeSnapshot | None]],
    ) -> PaneDetail | None:
        logging_result = None
        if self.log_manager is not None:
            pipe_tag_value = await self._pipe_tag_value(pane)
            logging_result = await self.log_manager.prepare_pane_logging(pane.pane_id, pane.pane_pipe, pipe_tag_value)

        pane_repo_root = await repo_root_for(pane.current_path)
        snapshot = await snapshot_for(pane_repo_root or pane.current_path or os.getcwd())

        async def known_repo_root(_current_path: str | None) -> str | None:
            return pane_repo_root

        def worktree_status(current_path: str | None) -> ResolvedWorktreeStatus | None:
            return resolve_worktree_status_from_snapshot(snapshot, current_path)

        return await process_pane(
            pane,
            self.observe,
            self.get_custom_title,
            known_repo_root,
            resolve_worktree_status=worktree_status,
            resolve_branch=self.resolve_branch,
            resolve_pr_created=self.resolve_pr_created,
            logging_result=logging_result,
        )

    async def update_from_panes(self) -> dict[str, PaneDetail]:
        """Run one tick over every pane.

        Returns:
            Latest PaneDetail per live pane ID

        Raises:
            TmuxError: If panes cannot be listed
        """
        panes = await self.inspector.list_panes()
        repo_root_requests: dict[str, asyncio.Future[str | None]] = {}
        snapshot_requests: dict[str, asyncio.Future[WorktreeSnapshot | None]] = {}

        def repo_root_for(current_path: str | None) -> Awaitable[str | None]:
            key = normalize_path_key(current_path)
            if key is None:
                return self.resolve_repo_root(None)
            if key not in repo_root_requests:
                repo_root_requests[key] = asyncio.ensure_future(self.resolve_repo_root(current_path))
            return repo_root_requests[key]

        def snapshot_for(cwd: str) -> Awaitable[WorktreeSnapshot | None]:
            key = normalize_path_key(cwd) or cwd
            if key not in snapshot_requests:
                snapshot_requests[key] = asyncio.ensure_future(self.resolve_snapshot(cwd))
            return snapshot_requests[key]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(pane: Pane) -> PaneDetail | None:
            async with semaphore:
                return await self._process(pane, repo_root_for, snapshot_for)

        results = await asyncio.gather(*(run(pane) for pane in panes), return_exceptions=True)

        active: set[str] = set()
        for pane, result in zip(panes, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                previous = self.failures.get(pane.pane_id)
                self.failures[pane.pane_id] = PaneProcessingFailure(
                    count=(previous.count if previous else 0) + 1,
                    last_failed_at=datetime.now(timezone.utc).isoformat(),
                    last_error_message=_error_message(result),
                )
                logger.warning(f"Failed to process pane {pane.pane_id}: {_error_message(result)}")
                active.add(pane.pane_id)
                continue

            self.failures.pop(pane.pane_id, None)
            if result is None:
                continue
            active.add(pane.pane_id)
            self.details[pane.pane_id] = result

        for pane_id in [pane_id for pane_id in self.details if pane_id not in active]:
            self._remove(pane_id)
        for pane_id in [pane_id for pane_id in self.failures if pane_id not in active]:
            self.failures.pop(pane_id, None)

        return dict(self.details)

    def _remove(self, pane_id: str) -> None:
        logger.debug(f"Pane {pane_id} is gone, dropping its state")
        self.details.pop(pane_id, None)
        if self.log_activity is not None:
            self.log_activity.unregister(pane_id)
        if self.log_manager is not None:
            self.log_manager.forget(pane_id)
