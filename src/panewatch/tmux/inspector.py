"""Pane inspection - list panes and read/write pane user options.

PUBLIC API:
  - PANE_FORMAT: list-panes format string (tab separated)
  - parse_pane_line: Parse one list-panes line into a Pane
  - Inspector: Reads pane metadata through a command adapter
"""

import logging

from ..types import Pane
from .core import CommandAdapter, to_bool, to_nullable
from .exceptions import PaneNotFoundError, TmuxError
from .pipe import PIPE_TAG_OPTION

logger = logging.getLogger(__name__)

_FIELDS = [
    "#{pane_id}",
    "#{session_name}",
    "#{window_index}",
    "#{pane_index}",
    "#{window_activity}",
    "#{pane_activity}",
    "#{pane_active}",
    "#{pane_current_command}",
    "#{pane_current_path}",
    "#{pane_tty}",
    "#{pane_dead}",
    "#{pane_pipe}",
    "#{alternate_on}",
    "#{pane_pid}",
    "#{pane_title}",
    "#{pane_start_command}",
    f"#{{{PIPE_TAG_OPTION}}}",
]
PANE_FORMAT = "\t".join(_FIELDS)


def _to_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _to_epoch_seconds(value: str | None) -> int | None:
    parsed = _to_int(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed


def parse_pane_line(line: str) -> Pane | None:
    """Parse a PANE_FORMAT line.

    Args:
        line: One line of list-panes output

    Returns:
        Pane, or None for short or malformed lines
    """
    if not line:
        return None
    parts = line.split("\t")
    if len(parts) < len(_FIELDS):
        return None

    (
        pane_id,
        session_name,
        window_index,
        pane_index,
        window_activity,
        pane_activity,
        pane_active,
        current_command,
        current_path,
        pane_tty,
        pane_dead,
        pane_pipe,
        alternate_on,
        pane_pid,
        pane_title,
        pane_start_command,
        pipe_tag_value,
    ) = parts[: len(_FIELDS)]

    if not pane_id or not session_name:
        return None

    return Pane(
        pane_id=pane_id,
        session_name=session_name,
        window_index=_to_int(window_index) or 0,
        pane_index=_to_int(pane_index) or 0,
        window_activity=_to_epoch_seconds(window_activity),
        pane_activity=_to_epoch_seconds(pane_activity),
        pane_active=to_bool(pane_active),
        current_command=to_nullable(current_command),
        current_path=to_nullable(current_path),
        pane_tty=to_nullable(pane_tty),
        pane_dead=to_bool(pane_dead),
        pane_pipe=to_bool(pane_pipe),
        alternate_on=to_bool(alternate_on),
        pane_pid=_to_int(pane_pid),
        pane_title=to_nullable(pane_title),
        pane_start_command=to_nullable(pane_start_command),
        pipe_tag_value=to_nullable(pipe_tag_value),
    )


class Inspector:
    """Reads pane metadata and user options from tmux."""

    def __init__(self, adapter: CommandAdapter):
        self.adapter = adapter

    async def list_panes(self) -> list[Pane]:
        """List every pane on the server.

        Raises:
            TmuxError: If list-panes fails
        """
        result = await self.adapter.run(["list-panes", "-a", "-F", PANE_FORMAT])
        if result.exit_code != 0:
            raise TmuxError(result.stderr.strip() or "tmux list-panes failed")

        panes = []
        for line in result.stdout.split("\n"):
            pane = parse_pane_line(line.rstrip("\r"))
            if pane is not None:
                panes.append(pane)
        return panes

    async def read_user_option(self, pane_id: str, key: str) -> str | None:
        """Read a pane user option, None if unset or unreadable."""
        result = await self.adapter.run(["show-options", "-t", pane_id, "-v", key])
        if result.exit_code != 0:
            logger.debug(f"Could not read {key} for {pane_id}: {result.stderr.strip()}")
            return None
        return to_nullable(result.stdout)

    async def write_user_option(self, pane_id: str, key: str, value: str | None) -> None:
        """Set a pane user option, or unset it when value is None.

        Raises:
            PaneNotFoundError: If tmux rejects the option write for pane_id
        """
        if value is None:
            args = ["set-option", "-t", pane_id, "-u", key]
        else:
            args = ["set-option", "-t", pane_id, key, value]
        result = await self.adapter.run(args)
        if result.exit_code != 0:
            raise PaneNotFoundError(f"Failed to set {key} on {pane_id}: {result.stderr.strip()}")
