"""TableEngine: the headless table wired together.

The engine owns query state (filters, search, sort, group, page) and one
instance of each component. After every mutation it re-runs the pipeline and
pushes the derived view into the components that depend on it: selection
sees the filtered rows, keyboard navigation and cell ranges see the visible
grid, row reordering sees the visible rows and their groups.

Example::

    from tabletify import Column, TableEngine, TableObserver

    class Printer(TableObserver):
        def on_selection_changed(self, rows):
            print([row["name"] for row in rows])

    engine = TableEngine(
        [{"id": 1, "name": "Alice", "age": 25}, {"id": 2, "name": "Bob", "age": 30}],
        [Column(key="name"), Column(key="age", value_type="number")],
        observer=Printer(),
        selection_mode="multiple",
    )
    engine.sort_by("age", "desc")
    engine.select_all(True)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from .callout import CalloutCoordinator
from .cell_range import CellRangeSelector, Direction
from .clipboard import ClipboardBuffer
from .columns import ColumnManager
from .config import TabletifySettings, get_settings
from .editing import CommitFunc, EditSession, SaveStatus, ValidateFunc, check_type, run_validator
from .exceptions import ConfigurationError
from .log import apply_settings, debug, warn
from .models import (
    Column,
    EditState,
    FilterState,
    GroupState,
    Key,
    PageState,
    PinSide,
    PipelineResult,
    SelectionMode,
    SortDirection,
    SortState,
)
from .navigation import KeyboardNavigator, NavAction
from .observer import Notifier, TableObserver
from .pipeline import (
    DataPipeline,
    KeyFunc,
    build_key_index,
    clamp,
    default_key,
    get_field,
    infer_columns,
    normalize_rows,
    require_column,
    stringify,
)
from .row_reorder import RowReorderManager
from .selection import SelectionManager


_ARROWS: dict[str, Direction] = {
    "ArrowUp": "up",
    "ArrowDown": "down",
    "ArrowLeft": "left",
    "ArrowRight": "right",
}


class TableEngine:  # pylint: disable=too-many-public-methods
    """Headless table: data pipeline plus interaction components.

    Parameters
    ----------
    data : Any, optional
        Rows in any form accepted by :func:`~tabletify.pipeline.normalize_rows`.
    columns : Sequence of Column, optional
        Column definitions. Inferred from the first row when omitted.
    observer : TableObserver, optional
        Receives change notifications.
    get_key : Callable, optional
        ``(row, index) -> key``. Defaults to the row's ``id`` then its index.
    settings : TabletifySettings, optional
        Configuration. Defaults to :func:`~tabletify.config.get_settings`.
    selection_mode, items_per_page, group_by : optional
        Override the matching settings.
    enable_cell_selection, enable_row_reorder, enable_navigation : bool, optional
        Override the matching settings.
    commit : Callable, optional
        Edit commit callback. Defaults to ``observer.on_cell_edit``.
    validate : Callable, optional
        Extra edit validator ``(row, column_key, value) -> error | None``.
    clock : Callable, optional
        Monotonic clock for callout hover delays.
    """

    def __init__(
        self,
        data: Any = None,
        columns: Sequence[Column] | None = None,
        *,
        observer: TableObserver | None = None,
        get_key: KeyFunc | None = None,
        settings: TabletifySettings | None = None,
        selection_mode: SelectionMode | None = None,
        items_per_page: int | None = None,
        group_by: str | None = None,
        enable_cell_selection: bool | None = None,
        enable_row_reorder: bool | None = None,
        enable_navigation: bool | None = None,
        commit: CommitFunc | None = None,
        validate: ValidateFunc | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        apply_settings(self.settings.log)
        self._notifier = Notifier(observer)
        self._get_key: KeyFunc = get_key or default_key

        rows = normalize_rows(data)
        self._rows = rows
        self._key_index = build_key_index(rows, self._get_key)
        if columns is None:
            columns = infer_columns(rows)

        col_cfg = self.settings.columns
        mode = selection_mode or self.settings.selection.mode
        self.columns = ColumnManager(
            columns,
            self._notifier,
            default_width=col_cfg.default_width,
            min_width=col_cfg.min_width,
            max_width=col_cfg.max_width,
            enable_visibility=col_cfg.enable_visibility,
            enable_reorder=col_cfg.enable_reorder,
            enable_resize=col_cfg.enable_resize,
            leading_offset=col_cfg.selection_column_width if mode != "none" else 0.0,
        )
        self._column_defs = self.columns.columns

        self.pipeline = DataPipeline()
        self.selection = SelectionManager(
            self.key_of,
            mode,
            self._notifier,
            select_all_scope=self.settings.selection.select_all_scope,
        )
        self.cell_range = CellRangeSelector(
            self.settings.cell_selection.enabled
            if enable_cell_selection is None
            else enable_cell_selection
        )
        self.row_reorder = RowReorderManager(
            rows,
            self._notifier,
            enabled=self.settings.row_reorder.enabled
            if enable_row_reorder is None
            else enable_row_reorder,
        )
        self.navigator = KeyboardNavigator(
            self.settings.navigation.enabled if enable_navigation is None else enable_navigation,
            page_step=self.settings.navigation.page_step,
            notifier=self._notifier,
        )
        self.callout = CalloutCoordinator(
            self._notifier,
            open_delay_ms=self.settings.callout.open_delay_ms,
            dismiss_delay_ms=self.settings.callout.dismiss_delay_ms,
            clock=clock,
            is_resizing=lambda: self.columns.is_resizing,
        )
        self.editor = EditSession(
            commit or self._observer_commit,
            validate,
            save_failed_message=self.settings.edit.save_failed_message,
            type_check=self.settings.edit.type_check,
        )
        self.clipboard = ClipboardBuffer()

        self._invalidate_on = frozenset(self.settings.cell_selection.invalidate_on)
        self._filters = FilterState()
        self._sort = SortState()
        self._group = GroupState()
        self._seen_groups: set[str] = set()
        self._page = PageState(
            items_per_page=items_per_page or self.settings.pagination.items_per_page
        )
        self._shown_page = (self._page.current_page, self._page.total_pages)
        self._display_order: list[str] = []
        self._result: PipelineResult
        if group_by is not None:
            self._set_group(group_by)
        self._refresh(notify=False)

    # --- Host data ---

    def key_of(self, row: Any) -> Key:
        """Key of a row from the current data."""
        key = self._key_index.get(id(row))
        if key is None:
            return self._get_key(row, -1)
        return key

    @property
    def rows(self) -> list[Any]:
        """Canonical rows as last supplied by the host."""
        return self._rows

    def set_data(self, data: Any) -> None:
        """Adopt new host data. Drops any optimistic row order."""
        self._rows = normalize_rows(data)
        self._key_index = build_key_index(self._rows, self._get_key)
        self.row_reorder.set_data(self._rows)
        self._refresh(triggers={"data"})

    def set_columns(self, columns: Sequence[Column]) -> None:
        """Adopt new column definitions, keeping layout of surviving keys."""
        self.columns.set_columns(columns)
        self._column_defs = self.columns.columns
        self._refresh()

    def set_key_func(self, get_key: KeyFunc) -> None:
        """Replace the key function and rebuild the key index."""
        self._get_key = get_key
        self._key_index = build_key_index(self._rows, get_key)
        self._refresh(triggers={"data"})

    @property
    def loading(self) -> bool:
        """Whether the host is loading data; keyboard input is ignored."""
        return self.navigator.loading

    @loading.setter
    def loading(self, value: bool) -> None:
        self.navigator.loading = value

    def _column(self, key: str, what: str) -> Column | None:
        try:
            return require_column(self._column_defs, key, what)
        except ConfigurationError as exc:
            warn(str(exc))
            return None

    # --- Derived view ---

    @property
    def result(self) -> PipelineResult:
        """Latest pipeline output."""
        return self._result

    @property
    def page(self) -> PageState:
        """Clamped page state."""
        return self.result.page

    @property
    def total_pages(self) -> int:
        """Number of pages."""
        return self.result.total_pages

    @property
    def filters(self) -> FilterState:
        """Per-field filters and search text."""
        return self._filters

    @property
    def sort(self) -> SortState:
        """Active sort."""
        return self._sort

    @property
    def group(self) -> GroupState:
        """Group-by field and expanded groups."""
        return self._group

    def filtered_rows(self) -> list[Any]:
        """Rows passing filters and search, in original order."""
        return list(self.result.filtered)

    def visible_rows(self) -> list[Any]:
        """Rows on screen: the current page, expanded groups only."""
        return self.result.visible_rows()

    def display_columns(self) -> list[Column]:
        """Visible columns in display order."""
        return self.columns.display_columns()

    def _compute(self) -> PipelineResult:
        return self.pipeline.compute(
            self.row_reorder.rows,
            self._column_defs,
            filters=self._filters,
            sort=self._sort,
            group=self._group,
            page=PageState(
                items_per_page=self._page.items_per_page,
                current_page=self._page.current_page,
            ),
            visible_keys=self.columns.visible_keys(),
        )

    def _refresh(self, *, triggers: Iterable[str] = (), notify: bool = True) -> None:
        """Re-run the pipeline and push the view into every component."""
        result = self._compute()

        if result.groups is not None:
            keys = [group.key for group in result.groups]
            fresh = {key for key in keys if key not in self._seen_groups}
            self._seen_groups.update(keys)
            if fresh and self._group.expanded is not None:
                self._group = self._group.model_copy(
                    update={"expanded": self._group.expanded | fresh}
                )
                result = self._compute()

        self._result = result
        self._page = result.page
        visible = result.visible_rows()

        self.selection.set_rows(result.filtered, visible)
        self.navigator.set_row_count(len(visible))
        self.row_reorder.set_visible(
            visible, self._group_value if self._group.key is not None else None
        )

        reasons = set(triggers)
        previous_page = self._shown_page
        current_page = (result.page.current_page, result.page.total_pages)
        self._shown_page = current_page
        if current_page[0] != previous_page[0]:
            reasons.add("page")
        display_order = self.columns.display_order()
        if display_order != self._display_order:
            reasons.add("column_order")
        self._display_order = display_order
        fired = reasons & self._invalidate_on
        if fired and notify:
            self.cell_range.invalidate(", ".join(sorted(fired)))
        self.cell_range.set_grid(len(visible), display_order)

        if notify and current_page != previous_page:
            self._notifier.emit("page_change", *current_page)

    def _group_value(self, row: Any) -> str:
        return stringify(get_field(row, self._group.key or ""))

    # --- Filtering and search ---

    def set_filter(self, field: str, values: Iterable[Any]) -> None:
        """Restrict ``field`` to ``values``; empty values remove the filter."""
        column = self._column(field, "Filter")
        if column is None:
            return
        if not column.filterable:
            debug(f"Column '{field}' is not filterable")
            return
        accepted = frozenset(stringify(value) for value in values)
        fields = dict(self._filters.fields)
        if accepted:
            fields[field] = accepted
        else:
            fields.pop(field, None)
        self._update_filters(self._filters.model_copy(update={"fields": fields}))

    def clear_filter(self, field: str) -> None:
        """Remove the filter on ``field``."""
        if field in self._filters.fields:
            fields = {k: v for k, v in self._filters.fields.items() if k != field}
            self._update_filters(self._filters.model_copy(update={"fields": fields}))

    def clear_filters(self) -> None:
        """Remove every per-field filter."""
        self._update_filters(self._filters.model_copy(update={"fields": {}}))

    def set_search(self, text: str) -> None:
        """Set the global search text."""
        self._update_filters(self._filters.model_copy(update={"search": text}))

    def clear_search(self) -> None:
        """Clear the global search text."""
        self.set_search("")

    def _update_filters(self, filters: FilterState) -> None:
        if filters == self._filters:
            return
        self._filters = filters
        self._refresh(triggers={"data"})
        self._notifier.emit("filter_change", filters.to_lists(), filters.search)

    def filter_options(self, field: str) -> list[str]:
        """Distinct stringified values of ``field``, for a filter list."""
        if self._column(field, "Filter") is None:
            return []
        return sorted({stringify(get_field(row, field)) for row in self._rows})

    # --- Sorting ---

    def sort_by(self, key: str, direction: SortDirection | None = None) -> None:
        """Sort by ``key``.

        Without ``direction`` the direction toggles when ``key`` is already
        the sort key, otherwise it starts ascending.
        """
        column = self._column(key, "Sort")
        if column is None:
            return
        if not column.sortable:
            debug(f"Column '{key}' is not sortable")
            return
        if direction is None:
            if self._sort.key == key:
                direction = "desc" if self._sort.direction == "asc" else "asc"
            else:
                direction = "asc"
        self._update_sort(SortState(key=key, direction=direction))

    def reset_sort(self) -> None:
        """Return to the original row order."""
        self._update_sort(SortState())

    def _update_sort(self, sort: SortState) -> None:
        if sort == self._sort:
            return
        self._sort = sort
        self._refresh(triggers={"data"})
        self._notifier.emit("sort_change", sort)

    # --- Paging ---

    def set_page(self, page: int) -> None:
        """Go to ``page`` (1-indexed), clamped to the available pages."""
        page = clamp(page, 1, self._page.total_pages, "page")
        if page == self._page.current_page:
            return
        self._page = self._page.model_copy(update={"current_page": page})
        self._refresh()

    def first_page(self) -> None:
        """Go to the first page."""
        self.set_page(1)

    def last_page(self) -> None:
        """Go to the last page."""
        self.set_page(self._page.total_pages)

    def next_page(self) -> None:
        """Go forward one page."""
        self.set_page(self._page.current_page + 1)

    def prev_page(self) -> None:
        """Go back one page."""
        self.set_page(self._page.current_page - 1)

    def set_items_per_page(self, count: int) -> None:
        """Change the page size. The current page is kept when still valid."""
        count = max(1, count)
        if count == self._page.items_per_page:
            return
        self._page = self._page.model_copy(update={"items_per_page": count})
        self._refresh()

    # --- Grouping ---

    def group_by(self, field: str | None) -> None:
        """Group rows by ``field``, or ungroup with None."""
        if field is not None:
            column = self._column(field, "Group")
            if column is None:
                return
            if not column.groupable:
                debug(f"Column '{field}' is not groupable")
                return
        if field == self._group.key:
            return
        self._set_group(field)
        self._refresh(triggers={"data"})

    def _set_group(self, field: str | None) -> None:
        self._group = GroupState(key=field)
        self._seen_groups = set()
        self.row_reorder.drag_end()

    def toggle_group(self, group_key: str) -> None:
        """Expand or collapse one group."""
        if self._group.key is None or group_key not in self._seen_groups:
            return
        expanded = set(self._seen_groups if self._group.expanded is None else self._group.expanded)
        now_expanded = group_key not in expanded
        if now_expanded:
            expanded.add(group_key)
        else:
            expanded.discard(group_key)
        self._group = self._group.model_copy(update={"expanded": frozenset(expanded)})
        self._refresh()
        self._notifier.emit("group_toggled", group_key, now_expanded)

    def expand_all_groups(self) -> None:
        """Expand every group."""
        if self._group.key is not None:
            self._group = self._group.model_copy(update={"expanded": None})
            self._refresh()

    def collapse_all_groups(self) -> None:
        """Collapse every group seen so far."""
        if self._group.key is not None:
            self._group = self._group.model_copy(update={"expanded": frozenset()})
            self._refresh()

    def reset_all(self) -> None:
        """Clear search, filters and sort and go to the first page."""
        changed_filters = self._filters != FilterState()
        changed_sort = self._sort != SortState()
        self._filters = FilterState()
        self._sort = SortState()
        self._page = self._page.model_copy(update={"current_page": 1})
        self._refresh(triggers={"data"})
        if changed_filters:
            self._notifier.emit("filter_change", {}, "")
        if changed_sort:
            self._notifier.emit("sort_change", self._sort)

    # --- Row selection ---

    def set_selection_mode(self, mode: SelectionMode) -> None:
        """Switch selection mode, trimming the selection to fit."""
        self.selection.mode = mode
        self.columns.leading_offset = (
            self.settings.columns.selection_column_width if mode != "none" else 0.0
        )

    def toggle_selection(self, key: Key) -> None:
        """Checkbox toggle of the row with ``key``."""
        self.selection.toggle(key)

    def select_all(self, checked: bool) -> None:
        """Header checkbox."""
        self.selection.select_all(checked)

    def click_row(self, index: int, *, additive: bool = False) -> None:
        """Pointer click on the visible row at ``index``."""
        visible = self.visible_rows()
        if not visible:
            return
        index = clamp(index, 0, len(visible) - 1, "row index")
        self.selection.click(self.key_of(visible[index]), index, additive=additive)
        self.navigator.focus(index)

    def selected_rows(self) -> list[Any]:
        """Selected rows in filtered order."""
        return self.selection.selected_rows()

    # --- Keyboard ---

    def handle_key(self, key: str, *, shift: bool = False, ctrl: bool = False) -> NavAction:
        """Route a key press to the cell range or the row navigator.

        With cell selection enabled and a focused cell, arrows move the cell
        focus (``shift`` extends), ``ctrl`` + c/x/v copy, cut and paste, and
        Delete/Backspace clear the range. Otherwise the key drives row focus;
        Enter/Space act like a click on the focused row and Escape clears
        focus and selection.
        """
        if not self.navigator.active:
            return NavAction.NONE

        if self.cell_range.enabled and self.cell_range.focused_cell is not None:
            action = self._handle_cell_key(key, shift=shift, ctrl=ctrl)
            if action is not None:
                return action

        action = self.navigator.handle_key(key)
        if action is NavAction.ACTIVATE:
            index = self.navigator.focused_index
            visible = self.visible_rows()
            if index is not None and index < len(visible):
                self.selection.click(self.key_of(visible[index]), index)
        elif action is NavAction.CLEAR and self.selection.mode != "none":
            self.selection.clear()
        return action

    def _handle_cell_key(self, key: str, *, shift: bool, ctrl: bool) -> NavAction | None:
        if key in _ARROWS:
            self.cell_range.move_focus(_ARROWS[key], extend=shift)
            return NavAction.MOVED
        if ctrl and key.lower() == "c":
            self.copy_selection()
            return NavAction.NONE
        if ctrl and key.lower() == "x":
            self.cut_selection()
            return NavAction.NONE
        if ctrl and key.lower() == "v":
            self.paste()
            return NavAction.NONE
        if key in ("Delete", "Backspace"):
            self.clear_selected_cells()
            return NavAction.NONE
        if key == "Escape":
            self.cell_range.invalidate("escape")
            return NavAction.CLEAR
        return None

    # --- Clipboard ---

    def copy_selection(self) -> str:
        """Copy the cell range; returns TSV text for the system clipboard."""
        text = self.clipboard.copy(
            self.cell_range.cells(), self.visible_rows(), self.display_columns()
        )
        self.cell_range.mark_copied(bool(text))
        return text

    def cut_selection(self) -> str:
        """Cut the cell range; cells are cleared on the next paste."""
        text = self.clipboard.cut(
            self.cell_range.cells(), self.visible_rows(), self.display_columns()
        )
        self.cell_range.mark_copied(bool(text))
        return text

    def paste(self, text: str | None = None) -> tuple[int, int]:
        """Paste the internal clipboard, or external TSV ``text``, onto the range."""
        targets = self.cell_range.cells()
        if not targets and self.cell_range.focused_cell is not None:
            targets = [self.cell_range.focused_cell]
        rows, columns = self.visible_rows(), self.display_columns()
        if text is not None:
            shape = self.clipboard.paste_text(text, targets, rows, columns, self._apply_cell_value)
        else:
            shape = self.clipboard.paste(targets, rows, columns, self._apply_cell_value)
        self.cell_range.mark_copied(False)
        return shape

    def clear_selected_cells(self) -> int:
        """Write an empty value into every editable cell of the range."""
        return self.clipboard.clear_cells(
            self.cell_range.cells(),
            self.visible_rows(),
            self.display_columns(),
            self._apply_cell_value,
        )

    def _apply_cell_value(self, row: Any, column: Column, value: str, index: int) -> bool:
        error = check_type(value, column.value_type) if self.editor.type_check else None
        error = error or run_validator(column, value, row, index)
        if error:
            debug(f"Skipped value for '{column.key}' at row {index}: {error}")
            return False
        return self._notifier.emit("cell_edit", row, column.key, value, index) is not False

    # --- Editing ---

    def _observer_commit(self, row: Any, column_key: str, value: str, index: int) -> Any:
        return self._notifier.observer.on_cell_edit(row, column_key, value, index)

    def start_edit(self, row_index: int, column_key: str) -> bool:
        """Open an editor on a visible cell."""
        column = self._column(column_key, "Edit")
        visible = self.visible_rows()
        if column is None or not visible:
            return False
        row_index = clamp(row_index, 0, len(visible) - 1, "row index")
        return self.editor.start(row_index, column, visible[row_index])

    def stage_edit(self, text: str) -> None:
        """Update the text of the open editor."""
        self.editor.stage_value(text)

    def save_edit(self) -> SaveStatus:
        """Validate and commit the open editor."""
        return self.editor.save()

    def cancel_edit(self) -> None:
        """Close the open editor without saving."""
        self.editor.cancel()

    @property
    def edit_state(self) -> EditState | None:
        """The open edit, or None."""
        return self.editor.state

    # --- Columns ---

    def toggle_column_visibility(self, key: str) -> bool:
        """Show or hide a column."""
        changed = self.columns.toggle_visibility(key)
        if changed:
            self._refresh()
        return changed

    def pin_column(self, key: str, side: PinSide | None) -> bool:
        """Pin a column left/right, or unpin it."""
        changed = self.columns.pin(key, side)
        if changed:
            self._refresh()
        return changed

    def reorder_column(self, key: str, to_index: int) -> bool:
        """Move a column to a display position."""
        changed = self.columns.reorder(key, to_index)
        if changed:
            self._refresh()
        return changed

    def commit_column_drag(self, target: str | None = None) -> bool:
        """Finish a header drag."""
        changed = self.columns.commit_drag(target)
        if changed:
            self._refresh()
        return changed

    def resize_column(self, key: str, delta: float) -> float | None:
        """Resize a column by ``delta``."""
        return self.columns.resize(key, delta)

    # --- Row reorder ---

    def begin_row_drag(self, index: int) -> bool:
        """Pick up a visible row."""
        return self.row_reorder.drag_start(index)

    def update_row_drag(self, index: int | None) -> bool:
        """Preview a drop target."""
        return self.row_reorder.drag_over(index)

    def drop_row(self, index: int | None = None) -> list[Any] | None:
        """Drop the dragged row; the new order is shown until the host re-supplies data."""
        rows = self.row_reorder.drop(index)
        if rows is not None:
            self._refresh()
        return rows

    def abort_row_drag(self) -> None:
        """Cancel the row drag."""
        self.row_reorder.drag_end()
