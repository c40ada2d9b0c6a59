"""Pane listing formatters.

PUBLIC API:
  - pane_row: Flatten a PaneDetail into a PaneRow
  - pane_rows: Rows for a set of pane details, ordered by session:window.pane
  - render_pane_table: Rich table of pane details
"""

from collections.abc import Iterable
from typing import Literal

from rich.table import Table
from rich.text import Text

from .types import PaneDetail, PaneRow

__all__ = ["pane_row", "pane_rows", "render_pane_table"]

_HEADERS = ("Pane", "Agent", "State", "Branch", "Path", "Pipe")

_STATE_STYLES = {
    "RUNNING": "green",
    "WAITING_INPUT": "yellow",
    "WAITING_PERMISSION": "bold yellow",
    "SHELL": "dim",
    "UNKNOWN": "dim",
}


def _pipe_status(detail: PaneDetail) -> Literal["attached", "conflict", "-"]:
    if detail.pipe_conflict:
        return "conflict"
    if detail.pipe_attached:
        return "attached"
    return "-"


def pane_row(detail: PaneDetail) -> PaneRow:
    return {
        "Pane": f"{detail.session_name}:{detail.window_index}.{detail.pane_index}",
        "Agent": detail.agent,
        "State": detail.state,
        "Branch": detail.branch or "-",
        "Path": detail.worktree_path or detail.current_path or "-",
        "Pipe": _pipe_status(detail),
    }


def pane_rows(details: Iterable[PaneDetail]) -> list[PaneRow]:
    ordered = sorted(details, key=lambda d: (d.session_name, d.window_index, d.pane_index))
    return [pane_row(detail) for detail in ordered]


def render_pane_table(details: Iterable[PaneDetail]) -> Table:
    """Build a table with one row per pane.

    Conflicting pipes are highlighted in red.
    """
    table = Table(show_header=True, header_style="bold", padding=(0, 1))
    for header in _HEADERS:
        table.add_column(header, justify="left")

    for row in pane_rows(details):
        # Text cells: paths and branch names are never parsed as markup
        table.add_row(
            Text(row["Pane"]),
            Text(row["Agent"]),
            Text(row["State"], style=_STATE_STYLES.get(row["State"], "")),
            Text(row["Branch"]),
            Text(row["Path"]),
            Text(row["Pipe"], style="red" if row["Pipe"] == "conflict" else ""),
        )
    return table
