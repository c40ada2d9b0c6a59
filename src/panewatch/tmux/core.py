"""Core tmux operations - the command adapter every tmux module goes through.

PUBLIC API:
  - CommandAdapter: Protocol for anything that can run tmux commands
  - TmuxAdapter: Adapter running the real tmux binary
  - to_nullable: Normalize a tmux format field to str or None
  - to_bool: Parse a tmux boolean format field
"""

from typing import Protocol, Sequence

from ..command import CommandResult, run_command

DEFAULT_TIMEOUT_S = 5.0
DEFAULT_MAX_BUFFER = 8_000_000


class CommandAdapter(Protocol):
    """Runs multiplexer commands and reports exit code and output."""

    async def run(self, args: Sequence[str]) -> CommandResult: ...


class TmuxAdapter:
    """Runs tmux against a specific server (socket name or path).

    Args:
        socket_name: Server socket name, passed as -L
        socket_path: Server socket path, passed as -S (ignored if socket_name set)
        timeout_s: Per-command timeout
        max_buffer: Per-command output cap in bytes
    """

    def __init__(
        self,
        socket_name: str | None = None,
        socket_path: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_buffer: int = DEFAULT_MAX_BUFFER,
    ):
        self.socket_name = socket_name
        self.socket_path = socket_path
        self.timeout_s = timeout_s
        self.max_buffer = max_buffer

    def _base_args(self) -> list[str]:
        if self.socket_name:
            return ["tmux", "-L", self.socket_name]
        if self.socket_path:
            return ["tmux", "-S", self.socket_path]
        return ["tmux"]

    async def run(self, args: Sequence[str]) -> CommandResult:
        """Run tmux command, return CommandResult."""
        return await run_command(
            [*self._base_args(), *args],
            timeout_s=self.timeout_s,
            max_buffer=self.max_buffer,
        )


def to_nullable(value: str | None) -> str | None:
    """Strip a format field, mapping empty to None."""
    if not value:
        return None
    trimmed = value.strip()
    return trimmed or None


def to_bool(value: str | None) -> bool:
    """Parse tmux flag output ("1", "on", "true")."""
    return value in ("1", "on", "true")
