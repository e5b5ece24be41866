"""Row selection: none/single/multiple modes, active item, select-all state.

Selection is defined over row keys, independent of pagination. The engine
feeds the manager the current filtered rows (and the rows on screen) after
every pipeline run; the manager never sees the host's canonical array.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, Literal

from .log import debug
from .models import Key, SelectionMode, SelectionState
from .observer import Notifier
from .pipeline import clamp


SelectAllScope = Literal["filtered", "page"]


class SelectionManager:
    """Owns the selected key set and the active row index.

    Parameters
    ----------
    key_of : Callable
        Returns the key of a row object.
    mode : str
        ``"none"``, ``"single"`` or ``"multiple"``.
    notifier : Notifier, optional
        Receives ``selection_changed`` and ``active_item_changed`` events.
    select_all_scope : str
        ``"filtered"`` selects every filtered row; ``"page"`` only the rows
        currently on screen.
    """

    def __init__(
        self,
        key_of: Callable[[Any], Key],
        mode: SelectionMode = "none",
        notifier: Notifier | None = None,
        select_all_scope: SelectAllScope = "filtered",
    ) -> None:
        self._key_of = key_of
        self._mode: SelectionMode = mode
        self._notifier = notifier or Notifier()
        self.select_all_scope: SelectAllScope = select_all_scope
        self._selected: set[Key] = set()
        self._active_index: int | None = None
        self._filtered: list[Any] = []
        self._visible: list[Any] = []

    # --- Inputs ---

    def set_rows(self, filtered: Sequence[Any], visible: Sequence[Any]) -> None:
        """Adopt the latest filtered rows and on-screen rows."""
        self._filtered = list(filtered)
        self._visible = list(visible)
        if self._active_index is not None:
            if not self._visible:
                self._active_index = None
            else:
                self._active_index = clamp(
                    self._active_index, 0, len(self._visible) - 1, "active index"
                )

    def set_key_func(self, key_of: Callable[[Any], Key]) -> None:
        """Swap the key function after the host re-supplied data."""
        self._key_of = key_of

    # --- State ---

    @property
    def mode(self) -> SelectionMode:
        """Current selection mode."""
        return self._mode

    @mode.setter
    def mode(self, mode: SelectionMode) -> None:
        self._mode = mode
        if mode == "none" and self._selected:
            self._replace(set())
        elif mode == "single" and len(self._selected) > 1:
            keys = (self._key_of(row) for row in self._filtered)
            fallback = next(iter(self._selected))
            keep = next((key for key in keys if key in self._selected), fallback)
            self._replace({keep})

    @property
    def selected_keys(self) -> frozenset[Key]:
        """Keys of the selected rows."""
        return frozenset(self._selected)

    @property
    def active_index(self) -> int | None:
        """Index of the active row among the visible rows."""
        return self._active_index

    @property
    def state(self) -> SelectionState:
        """Immutable snapshot of the selection."""
        return SelectionState(
            mode=self._mode,
            selected_keys=frozenset(self._selected),
            active_index=self._active_index,
        )

    def is_selected(self, key: Key) -> bool:
        """Whether the row with ``key`` is selected."""
        return key in self._selected

    def _scope_rows(self) -> list[Any]:
        return self._visible if self.select_all_scope == "page" else self._filtered

    @property
    def is_all_selected(self) -> bool:
        """Every row in scope is selected and the scope is non-empty."""
        rows = self._scope_rows()
        return bool(rows) and all(self._key_of(row) in self._selected for row in rows)

    @property
    def is_indeterminate(self) -> bool:
        """Some but not all rows in scope are selected."""
        rows = self._scope_rows()
        count = sum(1 for row in rows if self._key_of(row) in self._selected)
        return 0 < count < len(rows)

    def selected_rows(self) -> list[Any]:
        """Selected row objects in current filtered order."""
        return [row for row in self._filtered if self._key_of(row) in self._selected]

    # --- Operations ---

    def toggle(self, key: Key) -> None:
        """Checkbox semantics.

        Single mode replaces the selection with ``{key}`` or clears it when
        ``key`` is already selected; multiple mode flips membership.
        """
        if self._mode == "none":
            return
        if self._mode == "single":
            self._replace(set() if key in self._selected else {key})
            return
        self._replace(self._selected ^ {key})

    def click(self, key: Key, index: int | None = None, *, additive: bool = False) -> None:
        """Pointer click on a row.

        A plain click selects only ``key``; with ``additive`` (ctrl/meta) in
        multiple mode it flips membership instead. The row becomes active.
        """
        if self._mode == "single":
            self._replace({key})
        elif self._mode == "multiple":
            self._replace(self._selected ^ {key} if additive else {key})
        if index is not None:
            self.set_active(index)

    def select_all(self, checked: bool) -> None:
        """Select every row in scope, or clear the selection."""
        if self._mode != "multiple":
            debug("select_all ignored outside multiple selection mode")
            return
        if self.select_all_scope == "page":
            page_keys = {self._key_of(row) for row in self._visible}
            self._replace(self._selected | page_keys if checked else self._selected - page_keys)
        elif not checked:
            self._replace(set())
        else:
            self._replace({self._key_of(row) for row in self._filtered})

    def set_selection(self, keys: Iterable[Key]) -> None:
        """Replace the selection, trimmed to the mode's invariant."""
        wanted = set(keys)
        if self._mode == "none":
            wanted = set()
        elif self._mode == "single" and len(wanted) > 1:
            wanted = {next(iter(wanted))}
        self._replace(wanted)

    def clear(self) -> None:
        """Deselect everything."""
        self._replace(set())

    def prune(self) -> None:
        """Drop selected keys that are no longer in the filtered set.

        Never called implicitly; filtering alone keeps hidden keys selected.
        """
        self._replace({self._key_of(row) for row in self._filtered} & self._selected)

    def set_active(self, index: int | None) -> None:
        """Mark a visible row as active, clamping the index."""
        if index is None or not self._visible:
            self._active_index = None
            return
        index = clamp(index, 0, len(self._visible) - 1, "active index")
        self._active_index = index
        self._notifier.emit("active_item_changed", self._visible[index], index)

    def _replace(self, keys: set[Key]) -> None:
        if keys == self._selected:
            return
        self._selected = keys
        debug(f"Selection changed: {len(keys)} key(s)")
        self._notifier.emit("selection_changed", self.selected_rows())
