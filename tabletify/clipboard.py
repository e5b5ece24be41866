"""Copy, cut and paste of cell ranges as tab-separated text.

Cells are addressed by visible row index and column key. Writes go through
an ``apply_edit(row, column, value, row_index)`` callable supplied by the
caller, so validation and host notification stay with the engine. A cut
remembers the row objects it came from, so the paste clears those rows even
after paging, filtering or sorting moved them.
"""

from __future__ import annotations

import csv
import io

from collections.abc import Callable, Sequence
from typing import Any

from .log import debug
from .models import CellPosition, Column
from .pipeline import get_field, stringify


ApplyEdit = Callable[[Any, Column, str, int], bool]


def to_tsv(grid: Sequence[Sequence[str]]) -> str:
    """Join a grid into TSV text, quoting fields the way ``parse_tsv`` reads them."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter="\t", quotechar='"', lineterminator="\n")
    for row in grid:
        if len(row) == 1 and not row[0]:
            # csv would write a lone empty field as ""
            buffer.write("\n")
        else:
            writer.writerow(row)
    return buffer.getvalue().removesuffix("\n")


def parse_tsv(text: str) -> list[list[str]]:
    """Parse spreadsheet clipboard text into a grid.

    Blank lines are dropped; quoted fields may contain tabs and doubled
    quotes.
    """
    if not text or not text.strip():
        return []
    reader = csv.reader(io.StringIO(text), delimiter="\t", quotechar='"')
    return [row for row in reader if any(cell.strip() for cell in row)]


def _grid(
    cells: Sequence[CellPosition], rows: Sequence[Any], columns: Sequence[Column]
) -> list[list[str]]:
    order = {column.key: index for index, column in enumerate(columns)}
    by_row: dict[int, list[CellPosition]] = {}
    for cell in sorted(cells, key=lambda c: (c.row_index, order.get(c.col_key, len(order)))):
        by_row.setdefault(cell.row_index, []).append(cell)

    grid = []
    for row_index, row_cells in by_row.items():
        row = rows[row_index] if 0 <= row_index < len(rows) else None
        grid.append(
            ["" if row is None else stringify(get_field(row, cell.col_key)) for cell in row_cells]
        )
    return grid


class ClipboardBuffer:
    """Internal clipboard holding the last copied grid."""

    def __init__(self) -> None:
        self.data: list[list[str]] | None = None
        self.is_cut = False
        # (source row, cell at cut time); rows are matched by identity on paste
        self.cut_cells: list[tuple[Any, CellPosition]] = []

    @property
    def can_paste(self) -> bool:
        """Whether there is something to paste."""
        return bool(self.data)

    def copy(
        self, cells: Sequence[CellPosition], rows: Sequence[Any], columns: Sequence[Column]
    ) -> str:
        """Copy ``cells`` and return them as TSV text.

        Parameters
        ----------
        cells : Sequence of CellPosition
            Cells to copy, in any order.
        rows : Sequence
            The visible rows the cell indices refer to.
        columns : Sequence of Column
            Columns in display order.
        """
        if not cells:
            return ""
        self.data = _grid(cells, rows, columns)
        self.is_cut = False
        self.cut_cells = []
        return to_tsv(self.data)

    def cut(
        self, cells: Sequence[CellPosition], rows: Sequence[Any], columns: Sequence[Column]
    ) -> str:
        """Copy ``cells`` and clear them on the next paste."""
        text = self.copy(cells, rows, columns)
        if cells:
            self.is_cut = True
            self.cut_cells = [
                (rows[cell.row_index], cell) for cell in cells if 0 <= cell.row_index < len(rows)
            ]
        return text

    def clear(self) -> None:
        """Forget the clipboard contents."""
        self.data = None
        self.is_cut = False
        self.cut_cells = []

    def paste(
        self,
        targets: Sequence[CellPosition],
        rows: Sequence[Any],
        columns: Sequence[Column],
        apply_edit: ApplyEdit,
        data: list[list[str]] | None = None,
    ) -> tuple[int, int]:
        """Paste the clipboard (or ``data``) onto ``targets``.

        A single copied value fills every target cell. A larger grid is
        pasted from the first target cell, skipping rows and columns past
        the edge and non-editable columns.

        Returns
        -------
        tuple of int
            ``(rows, cols)`` of the grid that was pasted, ``(0, 0)`` if none.
        """
        grid = data if data is not None else self.data
        if not grid or not targets:
            return (0, 0)
        by_key = {column.key: column for column in columns}

        if len(grid) == 1 and len(grid[0]) == 1:
            value = grid[0][0]
            for cell in targets:
                column = by_key.get(cell.col_key)
                if column is not None:
                    self._write(rows, column, cell.row_index, value, apply_edit)
        else:
            start = targets[0]
            keys = [column.key for column in columns]
            if start.col_key not in keys:
                return (0, 0)
            start_col = keys.index(start.col_key)
            for row_offset, values in enumerate(grid):
                row_index = start.row_index + row_offset
                if not 0 <= row_index < len(rows):
                    continue
                for col_offset, value in enumerate(values):
                    col_index = start_col + col_offset
                    if col_index >= len(columns):
                        break
                    self._write(rows, columns[col_index], row_index, value, apply_edit)

        if self.is_cut and data is None:
            self._clear_cut(rows, columns, apply_edit)
            self.is_cut = False
            self.cut_cells = []
        return (len(grid), max(len(values) for values in grid))

    def paste_text(
        self,
        text: str,
        targets: Sequence[CellPosition],
        rows: Sequence[Any],
        columns: Sequence[Column],
        apply_edit: ApplyEdit,
    ) -> tuple[int, int]:
        """Paste external clipboard text."""
        return self.paste(targets, rows, columns, apply_edit, data=parse_tsv(text))

    def clear_cells(
        self,
        cells: Sequence[CellPosition],
        rows: Sequence[Any],
        columns: Sequence[Column],
        apply_edit: ApplyEdit,
    ) -> int:
        """Write an empty value into each editable cell.

        Returns
        -------
        int
            Number of cells written.
        """
        by_key = {column.key: column for column in columns}
        written = 0
        for cell in cells:
            column = by_key.get(cell.col_key)
            if column is not None and self._write(rows, column, cell.row_index, "", apply_edit):
                written += 1
        return written

    def _clear_cut(
        self, rows: Sequence[Any], columns: Sequence[Column], apply_edit: ApplyEdit
    ) -> None:
        """Empty the cut cells on the rows they were cut from.

        The reported index is the row's current visible index, or its index
        at cut time when it is no longer on screen.
        """
        by_key = {column.key: column for column in columns}
        visible = {id(row): index for index, row in enumerate(rows)}
        for source, cell in self.cut_cells:
            column = by_key.get(cell.col_key)
            if column is not None:
                index = visible.get(id(source), cell.row_index)
                self._write_row(source, column, "", index, apply_edit)

    @classmethod
    def _write(
        cls,
        rows: Sequence[Any],
        column: Column,
        row_index: int,
        value: str,
        apply_edit: ApplyEdit,
    ) -> bool:
        if not 0 <= row_index < len(rows):
            return False
        return cls._write_row(rows[row_index], column, value, row_index, apply_edit)

    @staticmethod
    def _write_row(
        row: Any, column: Column, value: str, row_index: int, apply_edit: ApplyEdit
    ) -> bool:
        if not column.editable:
            debug(f"Skipped paste into read-only column '{column.key}'")
            return False
        return apply_edit(row, column, value, row_index)
