"""Tests for bounded command execution."""

import asyncio
import sys

from panewatch.command import FAILED_EXIT_CODE, run_command


class TestRunCommand:
    def test_captures_output(self):
        result = asyncio.run(run_command([sys.executable, "-c", "print('hi')"], timeout_s=10))

        assert result.ok
        assert result.stdout.strip() == "hi"

    def test_non_zero_exit(self):
        result = asyncio.run(run_command([sys.executable, "-c", "import sys; sys.exit(3)"], timeout_s=10))

        assert result.exit_code == 3
        assert not result.ok

    def test_missing_binary(self):
        result = asyncio.run(run_command(["panewatch-no-such-binary"]))

        assert result.exit_code == FAILED_EXIT_CODE
        assert not result.ok

    def test_timeout(self):
        result = asyncio.run(run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout_s=0.2))

        assert result.timed_out
        assert not result.ok

    def test_output_cap(self):
        result = asyncio.run(
            run_command([sys.executable, "-c", "print('x' * 100000)"], timeout_s=10, max_buffer=1000)
        )

        assert result.truncated
        assert len(result.stdout) == 1000
        assert not result.ok

    def test_missing_pipes_reported_as_failure(self, monkeypatch):
        class NoPipesProcess:
            stdout = None
            stderr = None
            returncode = None

            def __init__(self):
                self.killed = False

            def kill(self):
                self.killed = True
                self.returncode = -9

            async def wait(self):
                return self.returncode

        proc = NoPipesProcess()

        async def fake_exec(*args, **kwargs):
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)

        result = asyncio.run(run_command(["tmux", "list-panes"], timeout_s=1))

        assert result.exit_code == FAILED_EXIT_CODE
        assert not result.ok
        assert proc.killed
