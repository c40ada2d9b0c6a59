"""Tests for pane inspection."""

import asyncio

import pytest
from conftest import FakeAdapter

from panewatch.command import CommandResult
from panewatch.tmux.exceptions import PaneNotFoundError, TmuxError
from panewatch.tmux.inspector import PANE_FORMAT, Inspector, parse_pane_line


def pane_line(**overrides) -> str:
    fields = {
        "pane_id": "%4",
        "session_name": "work",
        "window_index": "1",
        "pane_index": "2",
        "window_activity": "1700000000",
        "pane_activity": "0",
        "pane_active": "1",
        "current_command": "codex",
        "current_path": "/repo",
        "pane_tty": "/dev/ttys004",
        "pane_dead": "0",
        "pane_pipe": "1",
        "alternate_on": "0",
        "pane_pid": "4242",
        "pane_title": "agent",
        "pane_start_command": "",
        "pipe_tag": "1",
    }
    fields.update(overrides)
    return "\t".join(fields.values())


class TestParsePaneLine:
    def test_parses_all_fields(self):
        pane = parse_pane_line(pane_line())

        assert pane is not None
        assert pane.pane_id == "%4"
        assert pane.swp == "work:1.2"
        assert pane.window_activity == 1700000000
        assert pane.pane_activity is None
        assert pane.pane_active is True
        assert pane.pane_pipe is True
        assert pane.pane_pid == 4242
        assert pane.pane_start_command is None
        assert pane.pipe_tag_value == "1"
        assert pane.pipe_state.is_tagged

    def test_short_line_is_skipped(self):
        assert parse_pane_line("%1\tmain") is None
        assert parse_pane_line("") is None

    def test_missing_pane_id_is_skipped(self):
        assert parse_pane_line(pane_line(pane_id="")) is None


class TestInspector:
    def test_list_panes(self):
        output = "\n".join([pane_line(), pane_line(pane_id="%5", pipe_tag=""), ""])
        adapter = FakeAdapter([CommandResult(exit_code=0, stdout=output, stderr="")])

        panes = asyncio.run(Inspector(adapter).list_panes())

        assert adapter.calls == [["list-panes", "-a", "-F", PANE_FORMAT]]
        assert [pane.pane_id for pane in panes] == ["%4", "%5"]
        assert panes[1].pipe_tag_value is None

    def test_list_panes_failure_raises(self):
        adapter = FakeAdapter([CommandResult(exit_code=1, stdout="", stderr="no server running")])

        with pytest.raises(TmuxError, match="no server running"):
            asyncio.run(Inspector(adapter).list_panes())

    def test_read_user_option(self):
        adapter = FakeAdapter([CommandResult(exit_code=0, stdout="1\n", stderr="")])

        value = asyncio.run(Inspector(adapter).read_user_option("%4", "@panewatch_pipe"))

        assert value == "1"
        assert adapter.calls == [["show-options", "-t", "%4", "-v", "@panewatch_pipe"]]

    def test_read_user_option_failure_is_none(self):
        adapter = FakeAdapter([CommandResult(exit_code=1, stdout="", stderr="invalid option")])

        assert asyncio.run(Inspector(adapter).read_user_option("%4", "@x")) is None

    def test_write_and_unset_user_option(self, adapter):
        inspector = Inspector(adapter)

        asyncio.run(inspector.write_user_option("%4", "@title", "build"))
        asyncio.run(inspector.write_user_option("%4", "@title", None))

        assert adapter.calls == [
            ["set-option", "-t", "%4", "@title", "build"],
            ["set-option", "-t", "%4", "-u", "@title"],
        ]

    def test_write_user_option_failure_raises(self):
        adapter = FakeAdapter([CommandResult(exit_code=1, stdout="", stderr="can't find pane: %9")])

        with pytest.raises(PaneNotFoundError, match="can't find pane"):
            asyncio.run(Inspector(adapter).write_user_option("%9", "@title", "x"))
