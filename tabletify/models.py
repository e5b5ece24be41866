"""Pydantic models for column definitions and engine state snapshots.

Column definitions are supplied by the host. Every other model here is a
read-only snapshot of state owned by one engine component; components swap
in a new snapshot instead of mutating the old one, so a host may hold on to
a snapshot while rendering.

All models serialize to camelCase through ``to_dict()`` so renderers written
against the original widget props can consume them directly.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Key = str | int
SortDirection = Literal["asc", "desc"]
PinSide = Literal["left", "right"]
SelectionMode = Literal["none", "single", "multiple"]
Align = Literal["left", "center", "right"]
ValueType = Literal["string", "number", "date", "boolean"]

# Formatter: (value, row) -> rendered text
CellFormatter = Callable[[Any, Any], str]
# Validator: (value, row, column_key) -> error message or None
CellValidator = Callable[[str, Any, str], str | None]


class TableModel(BaseModel):
    """Base model with camelCase serialization."""

    model_config = ConfigDict(
        populate_by_name=True,  # Accept both snake_case and camelCase
        alias_generator=to_camel,
        frozen=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict with camelCase keys, excluding None values."""
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Column definition ---


class Column(TableModel):
    """Column definition supplied by the host.

    Example:
        Column(key="age", label="Age", value_type="number", pinned="left")
    """

    # Identity
    key: str
    label: str | None = None

    # Interaction
    sortable: bool = True
    filterable: bool = True
    resizable: bool = True
    editable: bool = False
    groupable: bool = True
    show_callout: bool = True

    # Display
    align: Align = "left"
    pinned: PinSide | None = None
    width: float | None = None
    min_width: float | None = None
    max_width: float | None = None

    # Editing
    value_type: ValueType | None = None
    formatter: CellFormatter | None = Field(default=None, exclude=True, repr=False)
    validator: CellValidator | None = Field(default=None, exclude=True, repr=False)

    @field_validator("width", "min_width", "max_width", mode="after")
    @classmethod
    def validate_positive_width(cls, v: float | None) -> float | None:
        """Validate width values are non-negative if set."""
        if v is not None and v < 0:
            raise ValueError(f"Width must be non-negative, got {v}")
        return v

    @model_validator(mode="after")
    def _check_width_bounds(self) -> Column:
        if (
            self.min_width is not None
            and self.max_width is not None
            and self.min_width > self.max_width
        ):
            raise ValueError(
                f"min_width ({self.min_width}) exceeds max_width ({self.max_width})"
            )
        return self

    @property
    def title(self) -> str:
        """Header text, falling back to the key."""
        return self.label if self.label is not None else self.key


# --- Query state ---


class SortState(TableModel):
    """Active sort. ``key=None`` keeps the original (or grouped) order."""

    key: str | None = None
    direction: SortDirection = "asc"


class PageState(TableModel):
    """Pagination position.

    ``current_page`` is 1-indexed and always within ``[1, total_pages]``.
    """

    items_per_page: int = Field(default=10, ge=1)
    current_page: int = Field(default=1, ge=1)
    total_pages: int = Field(default=1, ge=1)
    item_count: int = Field(default=0, ge=0)


class Group(TableModel):
    """Rows sharing one stringified group-by value, in sorted order."""

    key: str
    rows: list[Any] = Field(default_factory=list)
    expanded: bool = True

    @property
    def count(self) -> int:
        """Number of rows in the group."""
        return len(self.rows)


class PipelineResult(TableModel):
    """Output of one pipeline run.

    ``paged_rows`` holds the current page of rows when ungrouped.
    When grouped, pagination slices whole groups and ``paged_groups`` holds
    the groups on the current page (``paged_rows`` is then empty).
    """

    filtered: list[Any] = Field(default_factory=list)
    sorted: list[Any] = Field(default_factory=list)
    groups: list[Group] | None = None
    paged_rows: list[Any] = Field(default_factory=list)
    paged_groups: list[Group] | None = None
    page: PageState = Field(default_factory=PageState)

    @property
    def is_grouped(self) -> bool:
        """Whether a group-by field was active."""
        return self.groups is not None

    @property
    def total_pages(self) -> int:
        """Shortcut for ``page.total_pages``."""
        return self.page.total_pages

    def visible_rows(self) -> list[Any]:
        """Rows the user can currently see, in display order.

        Collapsed groups contribute no rows.
        """
        if self.paged_groups is None:
            return list(self.paged_rows)
        return [row for group in self.paged_groups if group.expanded for row in group.rows]


class FilterState(TableModel):
    """Per-field accepted values plus the global search text.

    A field mapped to an empty set places no restriction on that field.
    """

    fields: dict[str, frozenset[str]] = Field(default_factory=dict)
    search: str = ""

    def active_fields(self) -> dict[str, frozenset[str]]:
        """Fields that actually restrict rows."""
        return {field: values for field, values in self.fields.items() if values}

    def to_lists(self) -> dict[str, list[str]]:
        """Active fields with sorted value lists, for host notifications."""
        return {field: sorted(values) for field, values in self.active_fields().items()}


class GroupState(TableModel):
    """Group-by field and expanded group keys.

    ``expanded=None`` means every group is expanded.
    """

    key: str | None = None
    expanded: frozenset[str] | None = None

    def is_expanded(self, group_key: str) -> bool:
        """Whether ``group_key`` renders its rows."""
        return self.expanded is None or group_key in self.expanded


# --- Selection ---


class SelectionState(TableModel):
    """Row selection snapshot.

    In ``single`` mode ``selected_keys`` holds at most one key; in ``none``
    mode it is always empty.
    """

    mode: SelectionMode = "none"
    selected_keys: frozenset[Key] = Field(default_factory=frozenset)
    active_index: int | None = None

    @model_validator(mode="after")
    def _check_mode_invariant(self) -> SelectionState:
        if self.mode == "none" and self.selected_keys:
            raise ValueError("selection mode 'none' cannot hold selected keys")
        if self.mode == "single" and len(self.selected_keys) > 1:
            raise ValueError("selection mode 'single' holds at most one key")
        return self


# --- Cell range ---


class CellPosition(TableModel):
    """A cell coordinate on the visible grid."""

    row_index: int
    col_key: str


class CellRange(TableModel):
    """Anchor/focus pair spanning a closed rectangle of cells."""

    anchor: CellPosition
    focus: CellPosition


class CellRangeInfo(TableModel):
    """Per-cell flags used to draw range borders and highlights."""

    is_in_range: bool = False
    is_start: bool = False
    is_end: bool = False
    is_top_row: bool = False
    is_bottom_row: bool = False
    is_left_col: bool = False
    is_right_col: bool = False
    is_copied: bool = False
    is_focused: bool = False


# --- Column layout ---


class ColumnLayout(TableModel):
    """Column layout snapshot.

    ``order`` is the unified order of every column; pin state is a view over
    it, so left-pinned columns always render as a prefix and right-pinned
    columns as a suffix of the visible columns.
    """

    order: tuple[str, ...] = ()
    visible: frozenset[str] = Field(default_factory=frozenset)
    pin: dict[str, PinSide] = Field(default_factory=dict)
    widths: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_members(self) -> ColumnLayout:
        known = set(self.order)
        stray = (set(self.visible) | set(self.pin) | set(self.widths)) - known
        if stray:
            raise ValueError(f"Layout references unknown columns: {sorted(stray)}")
        return self

    def display_order(self) -> list[str]:
        """Visible keys ordered left-pinned, free, right-pinned."""
        shown = [key for key in self.order if key in self.visible]
        left = [key for key in shown if self.pin.get(key) == "left"]
        free = [key for key in shown if key not in self.pin]
        right = [key for key in shown if self.pin.get(key) == "right"]
        return left + free + right


# --- Editing ---


class EditState(TableModel):
    """The single open cell edit."""

    row_index: int
    column_key: str
    pending_value: str = ""
    validation_error: str | None = None
    saving: bool = False


# --- Drag gestures ---


class RowDragState(TableModel):
    """Row drag in progress."""

    dragged_index: int | None = None
    drag_over_index: int | None = None
    in_progress: bool = False


class ColumnDragState(TableModel):
    """Column header drag in progress."""

    dragged_key: str | None = None
    drag_over_key: str | None = None
