"""Rectangular cell-range selection over the visible grid.

Coordinates are visible row indices and column keys; the rectangle spans the
columns between anchor and focus in display order. The engine pushes the
grid shape after every pipeline run and clears the range on the changes
listed in ``CellSelectionSettings.invalidate_on``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from .exceptions import ConfigurationError
from .log import debug, warn
from .models import CellPosition, CellRange, CellRangeInfo
from .pipeline import clamp


Direction = Literal["up", "down", "left", "right"]


class CellRangeSelector:
    """Anchor/focus rectangle with drag, freeze and copy-marking states.

    Parameters
    ----------
    enabled : bool
        When False every operation is a no-op.
    """

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._row_count = 0
        self._columns: list[str] = []
        self._range: CellRange | None = None
        self._selecting = False
        self._frozen = False
        self._copied = False
        self._focused: CellPosition | None = None

    # --- Grid shape ---

    def set_grid(self, row_count: int, column_keys: Sequence[str]) -> None:
        """Adopt the visible grid shape.

        A range whose columns disappeared is cleared; rows are clamped.
        """
        self._row_count = max(0, row_count)
        self._columns = list(column_keys)
        if self._range is not None:
            anchor = self._fit(self._range.anchor)
            focus = self._fit(self._range.focus)
            if anchor is None or focus is None:
                self.clear()
            else:
                self._range = CellRange(anchor=anchor, focus=focus)
        if self._focused is not None:
            self._focused = self._fit(self._focused)

    def _fit(self, pos: CellPosition) -> CellPosition | None:
        if self._row_count == 0 or pos.col_key not in self._columns:
            return None
        row = min(pos.row_index, self._row_count - 1)
        if row == pos.row_index:
            return pos
        return CellPosition(row_index=row, col_key=pos.col_key)

    def _position(self, row_index: int, col_key: str) -> CellPosition | None:
        """Validate and clamp a requested cell."""
        if self._row_count == 0:
            return None
        if col_key not in self._columns:
            error = ConfigurationError(
                "Cell range references hidden or unknown column", column_key=col_key
            )
            warn(str(error))
            return None
        row = clamp(row_index, 0, self._row_count - 1, "row index")
        return CellPosition(row_index=row, col_key=col_key)

    # --- State ---

    @property
    def range(self) -> CellRange | None:
        """The current anchor/focus pair."""
        return self._range

    @property
    def is_selecting(self) -> bool:
        """A pointer drag is extending the range."""
        return self._selecting

    @property
    def is_frozen(self) -> bool:
        """The range is finished and eligible for copy highlighting."""
        return self._frozen

    @property
    def is_copied(self) -> bool:
        """The frozen range was copied to the clipboard."""
        return self._copied

    @property
    def focused_cell(self) -> CellPosition | None:
        """The keyboard-focused cell."""
        return self._focused

    def bounds(self) -> tuple[int, int, int, int] | None:
        """``(top_row, bottom_row, left_col, right_col)`` of the rectangle.

        Column bounds are indices into the display order.
        """
        if self._range is None:
            return None
        anchor, focus = self._range.anchor, self._range.focus
        a_col = self._columns.index(anchor.col_key)
        f_col = self._columns.index(focus.col_key)
        return (
            min(anchor.row_index, focus.row_index),
            max(anchor.row_index, focus.row_index),
            min(a_col, f_col),
            max(a_col, f_col),
        )

    def is_cell_selected(self, row_index: int, col_key: str) -> bool:
        """Whether the cell falls inside the closed rectangle."""
        box = self.bounds()
        if box is None or col_key not in self._columns:
            return False
        top, bottom, left, right = box
        return top <= row_index <= bottom and left <= self._columns.index(col_key) <= right

    def range_info(self, row_index: int, col_key: str) -> CellRangeInfo:
        """Boundary flags for one cell, relative to the visible grid."""
        is_focused = (
            self._focused is not None
            and self._focused.row_index == row_index
            and self._focused.col_key == col_key
        )
        if not self.enabled or not self.is_cell_selected(row_index, col_key):
            return CellRangeInfo(is_focused=is_focused)

        top, bottom, left, right = self.bounds()  # type: ignore[misc]
        col = self._columns.index(col_key)
        anchor, focus = self._range.anchor, self._range.focus  # type: ignore[union-attr]
        return CellRangeInfo(
            is_in_range=True,
            is_start=anchor.row_index == row_index and anchor.col_key == col_key,
            is_end=focus.row_index == row_index and focus.col_key == col_key,
            is_top_row=row_index == top,
            is_bottom_row=row_index == bottom,
            is_left_col=col == left,
            is_right_col=col == right,
            is_copied=self._copied,
            is_focused=is_focused,
        )

    def cells(self) -> list[CellPosition]:
        """Selected cells, row-major in display order."""
        box = self.bounds()
        if box is None:
            return []
        top, bottom, left, right = box
        return [
            CellPosition(row_index=row, col_key=self._columns[col])
            for row in range(top, bottom + 1)
            for col in range(left, right + 1)
        ]

    # --- Pointer gesture ---

    def begin_selection(self, row_index: int, col_key: str, *, extend: bool = False) -> None:
        """Start a range at a cell. With ``extend`` (shift) keep the anchor."""
        if not self.enabled:
            return
        pos = self._position(row_index, col_key)
        if pos is None:
            return
        anchor = self._range.anchor if extend and self._range is not None else pos
        self._range = CellRange(anchor=anchor, focus=pos)
        self._selecting = True
        self._frozen = False
        self._copied = False
        self._focused = pos

    def extend_selection(self, row_index: int, col_key: str) -> None:
        """Move the focus while a drag is in progress."""
        if not self.enabled or not self._selecting or self._range is None:
            return
        pos = self._position(row_index, col_key)
        if pos is None or pos == self._range.focus:
            return
        self._range = CellRange(anchor=self._range.anchor, focus=pos)

    def end_selection(self) -> None:
        """Freeze the range."""
        if not self._selecting:
            return
        self._selecting = False
        self._frozen = self._range is not None

    def mark_copied(self, copied: bool = True) -> None:
        """Flag the frozen range as copied."""
        if copied and not self._frozen:
            return
        self._copied = copied

    def clear(self) -> None:
        """Drop the range. The focused cell is kept."""
        self._range = None
        self._selecting = False
        self._frozen = False
        self._copied = False

    def invalidate(self, reason: str) -> None:
        """Clear range and focus after the grid shape changed meaning."""
        if self._range is not None or self._focused is not None:
            debug(f"Cell range cleared ({reason})")
        self.clear()
        self._focused = None

    # --- Keyboard ---

    def set_focused_cell(self, row_index: int, col_key: str) -> None:
        """Focus a cell; with no range, the cell becomes the range."""
        if not self.enabled:
            return
        pos = self._position(row_index, col_key)
        if pos is None:
            return
        self._focused = pos
        if self._range is None:
            self._range = CellRange(anchor=pos, focus=pos)
            self._frozen = True

    def move_focus(self, direction: Direction, *, extend: bool = False) -> CellPosition | None:
        """Move the focused cell one step, clamped to the grid.

        With ``extend`` the anchor stays and the range grows to the new cell;
        otherwise the range collapses onto it.
        """
        if not self.enabled or self._row_count == 0 or not self._columns:
            return None
        current = self._focused or (self._range.focus if self._range else None)
        if current is None:
            current = CellPosition(row_index=0, col_key=self._columns[0])
        row = current.row_index
        col = self._columns.index(current.col_key)
        if direction == "up":
            row = max(0, row - 1)
        elif direction == "down":
            row = min(self._row_count - 1, row + 1)
        elif direction == "left":
            col = max(0, col - 1)
        elif direction == "right":
            col = min(len(self._columns) - 1, col + 1)

        pos = CellPosition(row_index=row, col_key=self._columns[col])
        anchor = self._range.anchor if extend and self._range is not None else (
            current if extend else pos
        )
        self._range = CellRange(anchor=anchor, focus=pos)
        self._focused = pos
        self._selecting = False
        self._frozen = True
        self._copied = False
        return pos
