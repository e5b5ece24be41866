"""Tests for CellRangeSelector.

Covers the drag gesture, rectangle membership over display order, boundary
flags, keyboard focus movement, copy marking and invalidation.
"""

from __future__ import annotations

import pytest

from tabletify.cell_range import CellRangeSelector
from tabletify.models import CellPosition


COLUMNS = ["name", "age", "role", "joined"]


@pytest.fixture
def selector() -> CellRangeSelector:
    """Enabled selector over a 5 x 4 grid."""
    sel = CellRangeSelector(enabled=True)
    sel.set_grid(5, COLUMNS)
    return sel


class TestGesture:
    """begin / extend / end."""

    def test_begin_sets_anchor_and_focus(self, selector) -> None:
        """Beginning a selection selects one cell."""
        selector.begin_selection(1, "age")
        expected = CellPosition(row_index=1, col_key="age")
        assert selector.range.anchor == selector.range.focus == expected
        assert selector.is_selecting

    def test_extend_moves_focus_only(self, selector) -> None:
        """Extending keeps the anchor."""
        selector.begin_selection(1, "age")
        selector.extend_selection(3, "joined")
        assert selector.range.anchor.col_key == "age"
        assert selector.range.focus == CellPosition(row_index=3, col_key="joined")

    def test_extend_ignored_without_drag(self, selector) -> None:
        """Extending after the drag ended does nothing."""
        selector.begin_selection(0, "name")
        selector.end_selection()
        selector.extend_selection(2, "role")
        assert selector.range.focus.row_index == 0

    def test_end_freezes(self, selector) -> None:
        """Ending the drag freezes the range."""
        selector.begin_selection(0, "name")
        selector.end_selection()
        assert selector.is_frozen
        assert not selector.is_selecting

    def test_shift_begin_keeps_anchor(self, selector) -> None:
        """A shift-click extends from the existing anchor."""
        selector.begin_selection(0, "name")
        selector.end_selection()
        selector.begin_selection(2, "role", extend=True)
        assert selector.range.anchor == CellPosition(row_index=0, col_key="name")
        assert len(selector.cells()) == 9

    def test_disabled_is_noop(self) -> None:
        """A disabled selector never holds a range."""
        sel = CellRangeSelector(enabled=False)
        sel.set_grid(3, COLUMNS)
        sel.begin_selection(0, "name")
        assert sel.range is None

    def test_unknown_column_is_ignored(self, selector, caplog) -> None:
        """A column outside the grid is rejected with a warning."""
        with caplog.at_level("WARNING", logger="tabletify"):
            selector.begin_selection(0, "salary")
        assert selector.range is None
        assert "salary" in caplog.text

    def test_row_index_clamped(self, selector) -> None:
        """Out-of-range rows are clamped."""
        selector.begin_selection(99, "name")
        assert selector.range.focus.row_index == 4


class TestRectangle:
    """Membership and boundary flags."""

    def test_rectangle_uses_display_order(self, selector) -> None:
        """Columns between anchor and focus follow display order."""
        selector.begin_selection(3, "joined")
        selector.extend_selection(1, "age")
        assert selector.is_cell_selected(2, "role")
        assert not selector.is_cell_selected(2, "name")
        assert not selector.is_cell_selected(0, "age")

    def test_cells_row_major(self, selector) -> None:
        """cells() lists the rectangle row by row."""
        selector.begin_selection(1, "role")
        selector.extend_selection(0, "age")
        assert [(c.row_index, c.col_key) for c in selector.cells()] == [
            (0, "age"),
            (0, "role"),
            (1, "age"),
            (1, "role"),
        ]

    def test_boundary_flags(self, selector) -> None:
        """Corner cells carry their edge flags."""
        selector.begin_selection(1, "age")
        selector.extend_selection(3, "role")
        start = selector.range_info(1, "age")
        assert start.is_in_range and start.is_start
        assert start.is_top_row and start.is_left_col
        assert not start.is_bottom_row and not start.is_right_col

        end = selector.range_info(3, "role")
        assert end.is_end and end.is_bottom_row and end.is_right_col

        outside = selector.range_info(0, "name")
        assert not outside.is_in_range

    def test_flags_follow_grid_reorder(self, selector) -> None:
        """Boundary flags are computed against the current column order."""
        selector.begin_selection(0, "name")
        selector.extend_selection(0, "age")
        selector.set_grid(5, ["age", "name", "role", "joined"])
        assert selector.range_info(0, "age").is_left_col
        assert selector.range_info(0, "name").is_right_col

    def test_hidden_column_clears_range(self, selector) -> None:
        """A range referencing a removed column is dropped."""
        selector.begin_selection(0, "name")
        selector.set_grid(5, ["age", "role"])
        assert selector.range is None

    def test_shrinking_grid_clamps_rows(self, selector) -> None:
        """Rows past the new end are clamped."""
        selector.begin_selection(4, "name")
        selector.set_grid(2, COLUMNS)
        assert selector.range.focus.row_index == 1


class TestCopyMarking:
    """Copy highlight state."""

    def test_mark_copied_requires_frozen(self, selector) -> None:
        """Only a frozen range can be marked copied."""
        selector.begin_selection(0, "name")
        selector.mark_copied()
        assert not selector.is_copied
        selector.end_selection()
        selector.mark_copied()
        assert selector.is_copied
        assert selector.range_info(0, "name").is_copied

    def test_new_selection_clears_copied(self, selector) -> None:
        """Starting a new range resets the copy highlight."""
        selector.begin_selection(0, "name")
        selector.end_selection()
        selector.mark_copied()
        selector.begin_selection(1, "age")
        assert not selector.is_copied


class TestKeyboard:
    """Focused-cell movement."""

    def test_move_focus_starts_at_origin(self, selector) -> None:
        """Without focus, movement starts from the top-left cell."""
        pos = selector.move_focus("right")
        assert pos == CellPosition(row_index=0, col_key="age")

    def test_move_focus_clamped(self, selector) -> None:
        """Focus stops at the grid edge."""
        selector.set_focused_cell(0, "name")
        assert selector.move_focus("up") == CellPosition(row_index=0, col_key="name")
        assert selector.move_focus("left") == CellPosition(row_index=0, col_key="name")

    def test_move_collapses_range(self, selector) -> None:
        """Plain movement collapses the range onto the new cell."""
        selector.set_focused_cell(1, "age")
        selector.move_focus("down")
        assert len(selector.cells()) == 1
        assert selector.range_info(2, "age").is_focused

    def test_shift_move_extends(self, selector) -> None:
        """Shift movement keeps the anchor."""
        selector.set_focused_cell(1, "age")
        selector.move_focus("down", extend=True)
        selector.move_focus("right", extend=True)
        assert selector.range.anchor == CellPosition(row_index=1, col_key="age")
        assert len(selector.cells()) == 4

    def test_clear_keeps_focus(self, selector) -> None:
        """clear() drops the range but not the focused cell."""
        selector.set_focused_cell(2, "role")
        selector.clear()
        assert selector.range is None
        assert selector.focused_cell == CellPosition(row_index=2, col_key="role")

    def test_invalidate_drops_everything(self, selector) -> None:
        """invalidate() clears the range and the focus."""
        selector.set_focused_cell(2, "role")
        selector.invalidate("page")
        assert selector.range is None
        assert selector.focused_cell is None
