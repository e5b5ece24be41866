"""Column layout: visibility, unified order, pinning, widths and drag reorder.

The unified ``order`` list holds every column and is never split by pin
state. Pinning only changes the derived display view, which renders
left-pinned columns first and right-pinned columns last, each partition in
unified order. Unpinning therefore returns a column to where it was.
"""

from __future__ import annotations

import math

from collections.abc import Sequence

from .exceptions import ConfigurationError
from .gesture import Gesture
from .log import debug, warn
from .models import Column, ColumnDragState, ColumnLayout, PinSide
from .observer import Notifier
from .pipeline import clamp, require_column


class ColumnManager:
    """Owns the column layout and its drag/resize gestures.

    Parameters
    ----------
    columns : Sequence of Column
        Column definitions in definition order.
    notifier : Notifier, optional
        Receives pin, visibility, reorder and resize events.
    default_width : float
        Width of columns that do not declare one.
    min_width : float
        Lower width bound for columns without ``min_width``.
    max_width : float, optional
        Upper width bound for columns without ``max_width``.
    enable_visibility, enable_reorder, enable_resize : bool
        Feature switches; a disabled feature turns its operations into no-ops.
    leading_offset : float
        Width rendered ahead of the left-pinned columns, e.g. the selection
        checkbox column.
    """

    def __init__(
        self,
        columns: Sequence[Column],
        notifier: Notifier | None = None,
        *,
        default_width: float = 100.0,
        min_width: float = 50.0,
        max_width: float | None = None,
        enable_visibility: bool = True,
        enable_reorder: bool = True,
        enable_resize: bool = True,
        leading_offset: float = 0.0,
    ) -> None:
        self._notifier = notifier or Notifier()
        self.default_width = default_width
        self.min_width = min_width
        self.max_width = max_width
        self.enable_visibility = enable_visibility
        self.enable_reorder = enable_reorder
        self.enable_resize = enable_resize
        self.leading_offset = leading_offset

        self._columns: dict[str, Column] = {}
        self._order: list[str] = []
        self._visible: set[str] = set()
        self._pin: dict[str, PinSide] = {}
        self._widths: dict[str, float] = {}
        self._drag: Gesture[str] = Gesture()
        self._resizing: str | None = None
        self.set_columns(columns)

    # --- Definitions ---

    def set_columns(self, columns: Sequence[Column]) -> None:
        """Adopt new column definitions.

        Layout state of keys that survive is kept; new keys are appended to
        the order, visible, pinned as declared.
        """
        fresh = {column.key: column for column in columns}
        previous = self._columns
        self._columns = fresh
        self._order = [key for key in self._order if key in fresh]
        self._order += [key for key in fresh if key not in self._order]
        self._visible = {key for key in self._visible if key in fresh}
        self._pin = {key: side for key, side in self._pin.items() if key in fresh}
        self._widths = {key: width for key, width in self._widths.items() if key in fresh}

        for key, column in fresh.items():
            if key in previous:
                continue
            self._visible.add(key)
            if column.pinned is not None:
                self._pin[key] = column.pinned
            width = column.width if column.width is not None else self.default_width
            self._widths[key] = self._clamp_width(column, width)
        if fresh and not self._visible:
            self._visible.add(self._order[0])

    @property
    def columns(self) -> list[Column]:
        """Column definitions in definition order."""
        return list(self._columns.values())

    def column(self, key: str) -> Column | None:
        """Definition of ``key``, or None."""
        return self._columns.get(key)

    def _lookup(self, key: str, what: str) -> Column | None:
        try:
            return require_column(self.columns, key, what)
        except ConfigurationError as exc:
            warn(str(exc))
            return None

    # --- Queries ---

    @property
    def order(self) -> list[str]:
        """Unified order of every column key."""
        return list(self._order)

    def visible_keys(self) -> list[str]:
        """Visible keys in unified order."""
        return [key for key in self._order if key in self._visible]

    def is_visible(self, key: str) -> bool:
        """Whether ``key`` is shown."""
        return key in self._visible

    def pin_of(self, key: str) -> PinSide | None:
        """Pin side of ``key``."""
        return self._pin.get(key)

    def width(self, key: str) -> float:
        """Current width of ``key``."""
        return self._widths.get(key, self.default_width)

    def layout(self) -> ColumnLayout:
        """Snapshot of the current layout."""
        return ColumnLayout(
            order=tuple(self._order),
            visible=frozenset(self._visible),
            pin=dict(self._pin),
            widths=dict(self._widths),
        )

    def display_order(self) -> list[str]:
        """Visible keys as rendered: left-pinned, free, right-pinned."""
        return self.layout().display_order()

    def display_columns(self) -> list[Column]:
        """Visible column definitions in display order."""
        return [self._columns[key] for key in self.display_order()]

    def _partition(self, side: PinSide) -> list[str]:
        return [key for key in self.display_order() if self._pin.get(key) == side]

    def last_left_pinned_key(self) -> str | None:
        """Rightmost visible left-pinned column, drawn with the pin boundary."""
        left = self._partition("left")
        return left[-1] if left else None

    def first_right_pinned_key(self) -> str | None:
        """Leftmost visible right-pinned column."""
        right = self._partition("right")
        return right[0] if right else None

    def left_offset(self, key: str) -> float | None:
        """Sticky ``left`` offset of a visible left-pinned column.

        Sum of the widths of the left-pinned columns before it, plus
        ``leading_offset``. None for columns that are not left-pinned.
        """
        left = self._partition("left")
        if key not in left:
            return None
        return self.leading_offset + sum(self.width(k) for k in left[: left.index(key)])

    def right_offset(self, key: str) -> float | None:
        """Sticky ``right`` offset of a visible right-pinned column."""
        right = self._partition("right")
        if key not in right:
            return None
        return sum(self.width(k) for k in right[right.index(key) + 1 :])

    # --- Visibility ---

    def toggle_visibility(self, key: str) -> bool:
        """Show or hide ``key``.

        Hiding the last visible column is refused.

        Returns
        -------
        bool
            True if visibility changed.
        """
        if not self.enable_visibility or self._lookup(key, "Visibility") is None:
            return False
        return self.set_visible(key, key not in self._visible)

    def set_visible(self, key: str, visible: bool) -> bool:
        """Set visibility of ``key`` explicitly."""
        if key not in self._columns or (key in self._visible) == visible:
            return False
        if not visible and len(self._visible) == 1:
            debug(f"Refusing to hide '{key}': it is the last visible column")
            return False
        if visible:
            self._visible.add(key)
        else:
            self._visible.discard(key)
        self._notifier.emit("column_visibility_change", self.visible_keys())
        return True

    # --- Pinning ---

    def pin(self, key: str, side: PinSide | None) -> bool:
        """Pin ``key`` to a side, or unpin it with ``side=None``."""
        if self._lookup(key, "Pin") is None or self._pin.get(key) == side:
            return False
        if side is None:
            del self._pin[key]
        else:
            self._pin[key] = side
        debug(f"Column '{key}' pinned {side or 'none'}")
        self._notifier.emit("column_pin", key, side)
        return True

    # --- Reorder ---

    def reorder(self, key: str, to_index: int) -> bool:
        """Move ``key`` onto the column shown at ``to_index``.

        ``to_index`` indexes the display order and is clamped. Moves across
        pin partitions are rejected.

        Returns
        -------
        bool
            True if the order changed.
        """
        if not self.enable_reorder or self._lookup(key, "Reorder") is None:
            return False
        display = self.display_order()
        if not display or key not in display:
            return False
        target = display[clamp(to_index, 0, len(display) - 1, "column index")]
        return self._move(key, target)

    def _move(self, dragged: str, target: str) -> bool:
        if dragged == target or target not in self._columns:
            return False
        if self._pin.get(dragged) != self._pin.get(target):
            debug(f"Rejected reorder of '{dragged}' across pin partitions onto '{target}'")
            return False
        drop_index = self._order.index(target)
        self._order.remove(dragged)
        self._order.insert(drop_index, dragged)
        self._notifier.emit("column_reorder", self.order)
        return True

    @property
    def drag_state(self) -> ColumnDragState:
        """Header drag in progress."""
        return ColumnDragState(dragged_key=self._drag.source, drag_over_key=self._drag.target)

    def begin_drag(self, key: str) -> None:
        """Start dragging the header of ``key``."""
        if self.enable_reorder and key in self._columns:
            self._drag.begin(key)

    def update_drag(self, target: str | None) -> bool:
        """Set the header currently dragged over."""
        return self._drag.update(target)

    def commit_drag(self, target: str | None = None) -> bool:
        """Drop onto ``target`` (or the last previewed header)."""
        if target is not None:
            self._drag.update(target)
        dragged, over = self._drag.finish()
        if dragged is None or over is None:
            return False
        return self._move(dragged, over)

    def abort_drag(self) -> None:
        """Cancel the header drag."""
        self._drag.abort()

    # --- Resize ---

    def _clamp_width(self, column: Column, width: float) -> float:
        low = column.min_width if column.min_width is not None else self.min_width
        high = column.max_width if column.max_width is not None else self.max_width
        if high is None:
            high = math.inf
        return max(low, min(width, max(low, high)))

    def resize(self, key: str, delta: float) -> float | None:
        """Grow or shrink ``key`` by ``delta``, clamped to its bounds.

        Returns
        -------
        float or None
            The new width, or None when the column cannot be resized.
        """
        column = self._lookup(key, "Resize")
        if column is None:
            return None
        return self.set_width(key, self.width(key) + delta)

    def set_width(self, key: str, width: float) -> float | None:
        """Set an absolute width, clamped to the column's bounds."""
        column = self._columns.get(key)
        if column is None or not self.enable_resize or not column.resizable:
            return None
        new_width = self._clamp_width(column, width)
        if new_width != self._widths.get(key):
            self._widths[key] = new_width
            self._notifier.emit("column_resize", key, new_width)
        return new_width

    @property
    def resizing_key(self) -> str | None:
        """Column whose resize handle is being dragged."""
        return self._resizing

    @property
    def is_resizing(self) -> bool:
        """Whether a resize gesture is in progress."""
        return self._resizing is not None

    def begin_resize(self, key: str) -> bool:
        """Grab the resize handle of ``key``."""
        column = self._columns.get(key)
        if column is None or not self.enable_resize or not column.resizable:
            return False
        self._resizing = key
        return True

    def update_resize(self, delta: float) -> float | None:
        """Apply a pointer delta to the column being resized."""
        if self._resizing is None:
            return None
        return self.resize(self._resizing, delta)

    def end_resize(self) -> None:
        """Release the resize handle."""
        self._resizing = None
