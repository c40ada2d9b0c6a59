"""Bounded subprocess execution shared by tmux, git and helper tools.

Every external command runs with an explicit timeout and an output cap. A
command that times out, overflows its cap or cannot be started is reported as
a failed CommandResult, never raised.

PUBLIC API:
  - CommandResult: Exit code and captured output of one command
  - run_command: Run a command asynchronously with timeout and output bound
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024

# Exit code reported when the command never produced one
FAILED_EXIT_CODE = -1


@dataclass(frozen=True)
class CommandResult:
    """Result of one external command.

    Attributes:
        exit_code: Process exit code, FAILED_EXIT_CODE if it never exited normally.
        stdout: Captured stdout (possibly cut at the output cap).
        stderr: Captured stderr.
        timed_out: Whether the command was killed on timeout.
        truncated: Whether output exceeded the cap and the command was killed.
    """

    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and not self.truncated


async def _read_limited(
    stream: asyncio.StreamReader, limit: int | None, proc: asyncio.subprocess.Process
) -> tuple[bytes, bool]:
    """Read stream to EOF, killing the process once limit bytes are exceeded."""
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return b"".join(chunks), False
        size += len(chunk)
        if limit is not None and size > limit:
            chunks.append(chunk[: len(chunk) - (size - limit)])
            _kill(proc)
            return b"".join(chunks), True
        chunks.append(chunk)


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass


async def run_command(
    argv: Sequence[str],
    *,
    cwd: str | None = None,
    timeout_s: float | None = None,
    max_buffer: int | None = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        argv: Program and arguments.
        cwd: Working directory for the command.
        timeout_s: Kill the command after this many seconds.
        max_buffer: Kill the command once stdout or stderr exceeds this many bytes.

    Returns:
        CommandResult - failures are reported through exit_code/timed_out/truncated.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.debug(f"Could not start {argv[0]}: {e}")
        return CommandResult(exit_code=FAILED_EXIT_CODE, stdout="", stderr=str(e))

    stdout_stream, stderr_stream = proc.stdout, proc.stderr
    if stdout_stream is None or stderr_stream is None:
        _kill(proc)
        await proc.wait()
        return CommandResult(exit_code=FAILED_EXIT_CODE, stdout="", stderr="output pipes unavailable")

    async def collect() -> tuple[tuple[bytes, bool], tuple[bytes, bool]]:
        out, err = await asyncio.gather(
            _read_limited(stdout_stream, max_buffer, proc),
            _read_limited(stderr_stream, max_buffer, proc),
        )
        await proc.wait()
        return out, err

    try:
        (stdout, out_truncated), (stderr, err_truncated) = await asyncio.wait_for(collect(), timeout_s)
    except TimeoutError:
        _kill(proc)
        await proc.wait()
        logger.debug(f"Command timed out after {timeout_s}s: {argv[0]} {' '.join(argv[1:3])}")
        return CommandResult(exit_code=FAILED_EXIT_CODE, stdout="", stderr="timeout", timed_out=True)

    truncated = out_truncated or err_truncated
    if truncated:
        logger.debug(f"Command output exceeded {max_buffer} bytes: {argv[0]}")

    return CommandResult(
        exit_code=proc.returncode if proc.returncode is not None and not truncated else FAILED_EXIT_CODE,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        truncated=truncated,
    )
