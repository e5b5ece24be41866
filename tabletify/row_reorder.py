"""Drag-to-reorder of rows.

Drag indices refer to the visible row list. A drop is resolved to canonical
positions by row identity, produces a new row list (the host's list is never
touched) and hands it to the host through ``on_row_reorder``. The new list
is shown optimistically until the host supplies data again.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from .gesture import Gesture
from .log import debug
from .models import RowDragState
from .observer import Notifier


class RowReorderManager:
    """Row drag gesture plus the optimistic reordered rows.

    Parameters
    ----------
    rows : Sequence
        Canonical rows supplied by the host.
    notifier : Notifier, optional
        Receives ``row_reorder`` events.
    enabled : bool
        When False drags never start.
    """

    def __init__(
        self,
        rows: Sequence[Any] = (),
        notifier: Notifier | None = None,
        enabled: bool = False,
    ) -> None:
        self.enabled = enabled
        self._notifier = notifier or Notifier()
        self._canonical: list[Any] = list(rows)
        self._reordered: list[Any] | None = None
        self._visible: list[Any] = []
        self._group_of: Callable[[Any], str] | None = None
        self._drag: Gesture[int] = Gesture()

    def set_data(self, rows: Sequence[Any]) -> None:
        """Adopt host data, dropping any optimistic order."""
        self._canonical = list(rows)
        self._reordered = None
        self._drag.abort()

    @property
    def rows(self) -> list[Any]:
        """Rows to render: the optimistic order if one is pending."""
        return self._reordered if self._reordered is not None else self._canonical

    @property
    def has_pending_order(self) -> bool:
        """Whether a drop is shown that the host has not re-supplied yet."""
        return self._reordered is not None

    def set_visible(
        self, rows: Sequence[Any], group_of: Callable[[Any], str] | None = None
    ) -> None:
        """Adopt the visible rows and, when grouped, the row -> group function."""
        self._visible = list(rows)
        self._group_of = group_of
        if self._drag.active and (self._drag.source or 0) >= len(self._visible):
            self._drag.abort()

    @property
    def state(self) -> RowDragState:
        """Current drag state."""
        return RowDragState(
            dragged_index=self._drag.source,
            drag_over_index=self._drag.target,
            in_progress=self._drag.active,
        )

    def _droppable(self, source: int, target: int) -> bool:
        if not 0 <= target < len(self._visible):
            return False
        if self._group_of is None:
            return True
        return self._group_of(self._visible[source]) == self._group_of(self._visible[target])

    # --- Gesture ---

    def drag_start(self, index: int) -> bool:
        """Pick up the visible row at ``index``."""
        if not self.enabled or not 0 <= index < len(self._visible):
            return False
        self._drag.begin(index)
        return True

    def drag_over(self, index: int | None) -> bool:
        """Preview a drop target. Targets in another group are ignored."""
        if not self._drag.active:
            return False
        source = self._drag.source
        if index is not None and not self._droppable(source, index):  # type: ignore[arg-type]
            index = None
        return self._drag.update(index)

    def drag_leave(self) -> None:
        """The pointer left the previewed row."""
        self._drag.update(None)

    def drag_end(self) -> None:
        """Cancel the drag without a drop."""
        self._drag.abort()

    def drop(self, target_index: int | None = None) -> list[Any] | None:
        """Drop onto ``target_index`` (or the previewed target).

        The dragged row lands after the target when moving down and before
        it when moving up.

        Returns
        -------
        list or None
            The new row order handed to the host, or None if nothing moved.
        """
        if target_index is not None and self._drag.active:
            self.drag_over(target_index)
        source, target = self._drag.finish()
        if source is None or target is None or not self.enabled:
            return None
        if not self._droppable(source, target):
            debug("Row drop rejected: target is in another group")
            return None

        current = list(self.rows)
        item = self._visible[source]
        anchor = self._visible[target]
        from_index = next((i for i, row in enumerate(current) if row is item), -1)
        to_index = next((i for i, row in enumerate(current) if row is anchor), -1)
        if from_index == -1 or to_index == -1 or from_index == to_index:
            return None

        del current[from_index]
        current.insert(to_index, item)
        self._reordered = current
        debug(f"Row moved from {from_index} to {to_index}")
        self._notifier.emit("row_reorder", list(current), item, from_index, to_index)
        return current

    # Gesture protocol names
    begin = drag_start
    update = drag_over
    commit = drop
    abort = drag_end
