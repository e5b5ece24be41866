"""Tests for clipboard copy, cut and paste."""

from __future__ import annotations

import pytest

from tabletify.clipboard import ClipboardBuffer, parse_tsv, to_tsv
from tabletify.models import CellPosition, Column


def cell(row: int, key: str) -> CellPosition:
    return CellPosition(row_index=row, col_key=key)


class Writer:
    """apply_edit stand-in that writes into the row dicts."""

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.calls: list[tuple[int, str, str]] = []

    def __call__(self, row, column, value, row_index) -> bool:
        self.calls.append((row_index, column.key, value))
        if self.accept:
            row[column.key] = value
        return self.accept


@pytest.fixture
def grid_columns() -> list[Column]:
    """name and age editable, role read-only."""
    return [
        Column(key="name", editable=True),
        Column(key="age", editable=True),
        Column(key="role"),
    ]


@pytest.fixture
def rows(people) -> list[dict]:
    return [dict(row) for row in people]


class TestTsv:
    """Text conversion."""

    def test_to_tsv(self) -> None:
        assert to_tsv([["a", "b"], ["c", "d"]]) == "a\tb\nc\td"

    def test_to_tsv_quotes_special_fields(self) -> None:
        """Tabs, newlines and quotes in a cell survive a copy and paste."""
        grid = [["a\tb", "line\nbreak"], ['"quoted', "plain"]]
        text = to_tsv(grid)
        assert text == '"a\tb"\t"line\nbreak"\n"""quoted"\tplain'
        assert parse_tsv(text) == grid

    def test_to_tsv_single_empty_cell(self) -> None:
        assert to_tsv([[""]]) == ""

    def test_parse_drops_blank_lines(self) -> None:
        assert parse_tsv("a\tb\n\nc\td\n") == [["a", "b"], ["c", "d"]]

    def test_parse_quoted_fields(self) -> None:
        """Spreadsheet quoting survives tabs and doubled quotes."""
        assert parse_tsv('"x\ty"\t"say ""hi"""') == [["x\ty", 'say "hi"']]

    def test_parse_empty(self) -> None:
        assert parse_tsv("") == []
        assert parse_tsv("  \n ") == []


class TestCopy:
    """Copying a range."""

    def test_copy_row_major_in_column_order(self, rows, grid_columns) -> None:
        """Cells are emitted row by row in display column order."""
        buffer = ClipboardBuffer()
        cells = [cell(1, "age"), cell(0, "age"), cell(0, "name"), cell(1, "name")]
        assert buffer.copy(cells, rows, grid_columns) == "Alice\t25\nBob\t30"
        assert buffer.can_paste

    def test_nulls_copy_as_empty(self, rows, grid_columns) -> None:
        buffer = ClipboardBuffer()
        assert buffer.copy([cell(3, "age")], rows, grid_columns) == ""
        assert buffer.data == [[""]]

    def test_copy_nothing(self, rows, grid_columns) -> None:
        buffer = ClipboardBuffer()
        assert buffer.copy([], rows, grid_columns) == ""
        assert not buffer.can_paste


class TestPaste:
    """Pasting onto targets."""

    def test_single_value_fills_targets(self, rows, grid_columns) -> None:
        """One copied value is written into every target cell."""
        buffer = ClipboardBuffer()
        buffer.copy([cell(0, "name")], rows, grid_columns)
        writer = Writer()
        targets = [cell(2, "name"), cell(3, "name"), cell(4, "name")]
        buffer.paste(targets, rows, grid_columns, writer)
        assert [row["name"] for row in rows] == ["Alice", "Bob", "Alice", "Alice", "Alice"]

    def test_grid_pastes_from_first_target(self, rows, grid_columns) -> None:
        writer = Writer()
        size = ClipboardBuffer().paste_text(
            "X\t1\nY\t2", [cell(3, "name")], rows, grid_columns, writer
        )
        assert size == (2, 2)
        assert rows[3]["name"] == "X" and rows[3]["age"] == "1"
        assert rows[4]["name"] == "Y" and rows[4]["age"] == "2"

    def test_overflow_is_skipped(self, rows, grid_columns) -> None:
        """Rows past the end and columns past the edge are dropped."""
        writer = Writer()
        text = "A\tB\tC\tD\nE\tF\tG\tH"
        ClipboardBuffer().paste_text(text, [cell(4, "age")], rows, grid_columns, writer)
        assert writer.calls == [(4, "age", "A")]

    def test_read_only_columns_skipped(self, rows, grid_columns) -> None:
        writer = Writer()
        ClipboardBuffer().paste_text("1\tadmin", [cell(0, "age")], rows, grid_columns, writer)
        assert rows[0]["role"] == "dev"
        assert writer.calls == [(0, "age", "1")]

    def test_unknown_start_column(self, rows, grid_columns) -> None:
        writer = Writer()
        size = ClipboardBuffer().paste_text("a\tb", [cell(0, "salary")], rows, grid_columns, writer)
        assert size == (0, 0)
        assert writer.calls == []

    def test_nothing_to_paste(self, rows, grid_columns) -> None:
        assert ClipboardBuffer().paste([cell(0, "name")], rows, grid_columns, Writer()) == (0, 0)


class TestCut:
    """Cut clears its source after the paste."""

    def test_cut_then_paste_moves(self, rows, grid_columns) -> None:
        buffer = ClipboardBuffer()
        buffer.cut([cell(0, "name")], rows, grid_columns)
        assert buffer.is_cut
        buffer.paste([cell(2, "name")], rows, grid_columns, Writer())
        assert rows[2]["name"] == "Alice"
        assert rows[0]["name"] == ""
        assert not buffer.is_cut

    def test_second_paste_does_not_clear_again(self, rows, grid_columns) -> None:
        buffer = ClipboardBuffer()
        buffer.cut([cell(1, "name")], rows, grid_columns)
        buffer.paste([cell(2, "name")], rows, grid_columns, Writer())
        rows[1]["name"] = "Restored"
        buffer.paste([cell(3, "name")], rows, grid_columns, Writer())
        assert rows[1]["name"] == "Restored"
        assert rows[3]["name"] == "Bob"

    def test_external_paste_keeps_cut_source(self, rows, grid_columns) -> None:
        """Pasting outside text never clears the cut cells."""
        buffer = ClipboardBuffer()
        buffer.cut([cell(0, "name")], rows, grid_columns)
        buffer.paste_text("Z", [cell(2, "name")], rows, grid_columns, Writer())
        assert rows[0]["name"] == "Alice"
        assert buffer.is_cut

    def test_cut_source_followed_after_view_change(self, rows, grid_columns) -> None:
        """The cut row is cleared even when the visible rows changed since."""
        buffer = ClipboardBuffer()
        page_one, page_two = rows[:2], rows[2:4]
        buffer.cut([cell(0, "name")], page_one, grid_columns)
        writer = Writer()
        buffer.paste([cell(1, "name")], page_two, grid_columns, writer)
        assert rows[3]["name"] == "Alice"
        assert rows[0]["name"] == ""
        assert rows[2]["name"] == "Carol"
        assert writer.calls == [(1, "name", "Alice"), (0, "name", "")]


class TestClearCells:
    """Delete / Backspace over a range."""

    def test_counts_written_cells(self, rows, grid_columns) -> None:
        cells = [cell(0, "name"), cell(0, "age"), cell(0, "role"), cell(9, "name")]
        assert ClipboardBuffer().clear_cells(cells, rows, grid_columns, Writer()) == 2
        assert (rows[0]["name"], rows[0]["age"], rows[0]["role"]) == ("", "", "dev")

    def test_rejected_writes_not_counted(self, rows, grid_columns) -> None:
        writer = Writer(accept=False)
        assert ClipboardBuffer().clear_cells([cell(0, "name")], rows, grid_columns, writer) == 0
