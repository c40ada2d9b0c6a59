"""Tests for pane listing formatters."""

from io import StringIO

import pytest
from conftest import make_observation, make_pane
from rich.console import Console
from rich.table import Table

from panewatch.formatters import pane_rows, render_pane_table
from panewatch.monitor.detail import build_pane_detail
from panewatch.types import PaneResolvedContext


def detail(pane_id, pane_index, **observation):
    return build_pane_detail(
        make_pane(pane_id, pane_index=pane_index, current_path="/repo/src"),
        make_observation(**observation),
        PaneResolvedContext(repo_root="/repo", branch="main"),
    )


class TestPaneRows:
    def test_rows_ordered_and_flattened(self):
        rows = pane_rows([detail("%2", 1, pipe_conflict=True), detail("%1", 0)])

        assert rows == [
            {"Pane": "main:0.0", "Agent": "codex", "State": "RUNNING", "Branch": "main", "Path": "/repo/src", "Pipe": "attached"},
            {"Pane": "main:0.1", "Agent": "codex", "State": "RUNNING", "Branch": "main", "Path": "/repo/src", "Pipe": "conflict"},
        ]

    def test_missing_values_dashed(self):
        bare = build_pane_detail(
            make_pane("%1", current_path=None),
            make_observation(pipe_attached=False),
            PaneResolvedContext(),
        )

        row = pane_rows([bare])[0]

        assert row["Branch"] == "-"
        assert row["Path"] == "-"
        assert row["Pipe"] == "-"


class TestRenderPaneTable:
    def test_one_row_per_pane(self):
        table = render_pane_table([detail("%1", 0), detail("%2", 1)])

        assert isinstance(table, Table)
        assert table.row_count == 2
        assert [column.header for column in table.columns] == ["Pane", "Agent", "State", "Branch", "Path", "Pipe"]

    @pytest.mark.parametrize("path", ["/home/u/[/notes]", "/home/u/[bold]x"])
    def test_bracketed_paths_render_verbatim(self, path):
        bracketed = build_pane_detail(
            make_pane("%1", current_path=path),
            make_observation(),
            PaneResolvedContext(branch="[wip]"),
        )
        console = Console(file=StringIO(), width=200)

        console.print(render_pane_table([bracketed]))

        output = console.file.getvalue()
        assert path in output
        assert "[wip]" in output
