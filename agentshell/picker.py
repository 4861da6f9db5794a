"""Interactive row selection for structured responses.

:class:`TablePicker` shows a list of records as a numbered ``rich``
table and lets the user tick the rows to keep with a ``questionary``
checkbox (space to toggle, enter to confirm).  Confirming with nothing
ticked, or cancelling with Ctrl-C, picks nothing.

Records are usually flat JSON objects sharing the same keys.  Columns
are the union of keys in first-seen order; anything that is not an
object is shown in a single ``value`` column.
"""

from __future__ import annotations

import json
from typing import Any, Callable, List, Optional, Tuple

import questionary
from rich.console import Console
from rich.table import Table

MAX_CELL_WIDTH = 40
VALUE_COLUMN = "value"

Choices = List[Tuple[str, int]]


def _columns(records: List[Any]) -> List[str]:
    columns: List[str] = []
    for record in records:
        keys = record.keys() if isinstance(record, dict) else [VALUE_COLUMN]
        for key in keys:
            if str(key) not in columns:
                columns.append(str(key))
    return columns


def _cell(record: Any, column: str) -> str:
    if isinstance(record, dict):
        value = record.get(column, "")
    else:
        value = record if column == VALUE_COLUMN else ""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return " ".join(str(value).split())


def render_table(records: List[Any]) -> Table:
    """Return ``records`` as a numbered ``rich`` table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="cyan", justify="right")
    columns = _columns(records)
    for column in columns:
        table.add_column(column, max_width=MAX_CELL_WIDTH, overflow="ellipsis")
    for number, record in enumerate(records, start=1):
        table.add_row(str(number), *(_cell(record, c) for c in columns))
    return table


def row_label(number: int, record: Any, columns: List[str]) -> str:
    """One-line summary of a row for the checkbox list."""
    parts = [_cell(record, c) for c in columns]
    text = " | ".join(p for p in parts if p)
    if len(text) > 2 * MAX_CELL_WIDTH:
        text = text[: 2 * MAX_CELL_WIDTH - 1] + "…"
    return f"{number}. {text}"


def _checkbox(choices: Choices) -> Optional[List[int]]:
    return questionary.checkbox(
        "Pick rows for your next question (space to toggle, enter to confirm)",
        choices=[questionary.Choice(title=title, value=index) for title, index in choices],
    ).ask()


class TablePicker:
    """Show records and return the subset the user picks.

    :param select: Given ``(label, index)`` pairs, returns the picked
      indices or ``None`` when cancelled.  Defaults to a
      ``questionary`` checkbox.
    :param console: ``rich`` console the table is printed to.
    """

    def __init__(
        self,
        select: Optional[Callable[[Choices], Optional[List[int]]]] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._select = select or _checkbox
        self.console = console or Console()

    def __call__(self, records: List[Any]) -> List[Any]:
        if not records:
            return []
        self.console.print(render_table(records))
        columns = _columns(records)
        choices = [(row_label(i + 1, r, columns), i) for i, r in enumerate(records)]
        picked = self._select(choices)
        if not picked:
            return []
        return [records[i] for i in sorted(set(picked))]
