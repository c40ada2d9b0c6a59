"""Shared fakes for panewatch tests."""

from typing import Sequence

import pytest

from panewatch.command import CommandResult
from panewatch.types import FinalState, Pane, PaneObservation


class FakeAdapter:
    """Records tmux calls and replies from a queue (default: success)."""

    def __init__(self, results: list[CommandResult] | None = None):
        self.calls: list[list[str]] = []
        self.results = list(results or [])

    async def run(self, args: Sequence[str]) -> CommandResult:
        self.calls.append(list(args))
        if self.results:
            return self.results.pop(0)
        return CommandResult(exit_code=0, stdout="", stderr="")


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_pane(pane_id: str = "%1", **overrides) -> Pane:
    values = dict(
        pane_id=pane_id,
        session_name="main",
        window_index=0,
        pane_index=0,
        current_command="zsh",
        current_path="/tmp/project",
        pane_active=True,
    )
    values.update(overrides)
    return Pane(**values)


def make_observation(**overrides) -> PaneObservation:
    values = dict(
        agent="codex",
        pipe_attached=True,
        pipe_conflict=False,
        final_state=FinalState(state="RUNNING", reason="output"),
    )
    values.update(overrides)
    return PaneObservation(**values)


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
