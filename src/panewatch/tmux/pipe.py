"""Capture pipe attachment - one owner per pane, tmux holds the ownership record.

We never keep a registry of attached pipes. The pane option PIPE_TAG_OPTION
is written when we attach, and callers re-read it from tmux on every tick, so
a tmux restart or a foreign pipe-pane is always seen as it really is.

PUBLIC API:
  - PIPE_TAG_OPTION: Pane option holding our ownership tag
  - PipeManager: Attach/repair capture pipes without hijacking foreign ones
  - build_pipe_command: Shell command that appends pane output to a file
"""

import logging
import shlex

from ..types import PIPE_TAG_OWNED, PipeAttachResult, PipeState
from .core import CommandAdapter

logger = logging.getLogger(__name__)

PIPE_TAG_OPTION = "@panewatch_pipe"


def build_pipe_command(log_path: str) -> str:
    """Build the pipe-pane shell command appending raw output to log_path.

    The path is shell-quoted, and # is doubled because tmux expands formats
    in pipe-pane commands.
    """
    return f"cat >> {shlex.quote(log_path)}".replace("#", "##")


class PipeManager:
    """Attaches pane capture pipes through a command adapter.

    Holds no per-pane state; every call acts on the PipeState passed in.
    """

    def __init__(self, adapter: CommandAdapter, tag_option: str = PIPE_TAG_OPTION):
        self.adapter = adapter
        self.tag_option = tag_option

    @staticmethod
    def has_conflict(state: PipeState) -> bool:
        """Check if a pipe we did not tag is attached."""
        return state.pane_pipe and not state.is_tagged

    async def attach_pipe(
        self,
        pane_id: str,
        log_path: str,
        state: PipeState,
        force_reattach: bool = False,
    ) -> PipeAttachResult:
        """Attach a capture pipe for pane_id writing to log_path.

        Args:
            pane_id: Target pane ID
            log_path: File receiving raw pane output
            state: Pipe flags read fresh from tmux for this pane
            force_reattach: Re-point a pipe we already own at log_path

        Returns:
            PipeAttachResult - conflict=True when a foreign pipe is attached
        """
        if self.has_conflict(state):
            logger.warning(f"Pane {pane_id} has a pipe we did not attach, leaving it alone")
            return PipeAttachResult(attached=False, conflict=True)

        pipe_command = build_pipe_command(log_path)
        owned_and_attached = state.pane_pipe and state.is_tagged
        tagged_but_detached = not state.pane_pipe and state.is_tagged

        if (force_reattach and owned_and_attached) or tagged_but_detached:
            # Tag survived but the live redirection may not have
            await self.adapter.run(["pipe-pane", "-t", pane_id])
            result = await self.adapter.run(["pipe-pane", "-t", pane_id, pipe_command])
            action = "Re-attached"
        else:
            result = await self.adapter.run(["pipe-pane", "-o", "-t", pane_id, pipe_command])
            action = "Attached"

        if result.exit_code != 0:
            logger.error(f"Failed to attach pipe for {pane_id}: {result.stderr.strip()}")
            return PipeAttachResult(attached=False, conflict=False)

        if not state.is_tagged:
            tag_result = await self.adapter.run(["set-option", "-t", pane_id, self.tag_option, PIPE_TAG_OWNED])
            if tag_result.exit_code != 0:
                # Untagged, the pipe reads as foreign on the next tick
                logger.error(f"Failed to tag pipe for {pane_id}: {tag_result.stderr.strip()}")

        logger.info(f"{action} capture pipe for {pane_id} -> {log_path}")
        return PipeAttachResult(attached=True, conflict=False)
