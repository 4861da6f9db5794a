import io

from rich.console import Console

from agentshell.picker import TablePicker, render_table, row_label

ROWS = [
    {"Route": "OSL-MAD-LIM", "Stops": 1},
    {"Route": "OSL-AMS-LIM", "Stops": 1, "Notes": "overnight"},
    {"Route": "OSL-LIM", "Stops": 0},
]


def render(renderable) -> str:
    console = Console(file=io.StringIO(), width=120, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


def test_render_table_uses_union_of_keys() -> None:
    table = render_table(ROWS)
    assert [column.header for column in table.columns] == ["#", "Route", "Stops", "Notes"]
    assert table.row_count == 3
    out = render(table)
    assert "OSL-MAD-LIM" in out
    assert "overnight" in out


def test_render_table_handles_non_objects() -> None:
    table = render_table([{"a": 1}, "plain"])
    assert [column.header for column in table.columns] == ["#", "a", "value"]
    assert "plain" in render(table)


def test_row_label_summarises_cells() -> None:
    assert row_label(2, ROWS[1], ["Route", "Stops", "Notes"]) == "2. OSL-AMS-LIM | 1 | overnight"


def test_picker_returns_selected_rows_in_table_order() -> None:
    offered = []

    def select(choices):
        offered.append(choices)
        return [2, 0]

    picker = TablePicker(select=select, console=quiet_console())

    assert picker(ROWS) == [ROWS[0], ROWS[2]]
    assert [index for _, index in offered[0]] == [0, 1, 2]
    assert offered[0][0][0].startswith("1. OSL-MAD-LIM")


def test_picker_cancel_or_empty_returns_nothing() -> None:
    console = quiet_console()
    assert TablePicker(select=lambda choices: None, console=console)(ROWS) == []
    assert TablePicker(select=lambda choices: [], console=console)(ROWS) == []


def test_picker_skips_empty_records() -> None:
    def select(choices):
        raise AssertionError("nothing to pick")

    assert TablePicker(select=select, console=quiet_console())([]) == []
