"""Observer interface for host notifications.

The host subclasses :class:`TableObserver` and overrides the events it cares
about; every method defaults to a no-op. Hosts that prefer plain callables
can use :class:`CallbackObserver` instead.

Example::

    class MyObserver(TableObserver):
        def on_selection_changed(self, rows):
            print(f"{len(rows)} rows selected")

    engine = TableEngine(rows, observer=MyObserver())
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .log import debug, log_callback_error
from .models import PinSide, SortState


class TableObserver:
    """Receives derived state after each engine mutation."""

    def on_selection_changed(self, rows: list[Any]) -> None:
        """Selected rows, materialized in current filtered order."""

    def on_active_item_changed(self, row: Any, index: int) -> None:
        """The active row and its visible index."""

    def on_group_toggled(self, group_key: str, expanded: bool) -> None:
        """A group was expanded or collapsed."""

    def on_row_reorder(self, rows: list[Any], item: Any, from_index: int, to_index: int) -> None:
        """A row drop produced a new row order for the host to adopt."""

    def on_column_pin(self, column_key: str, side: PinSide | None) -> None:
        """A column was pinned (or unpinned when ``side`` is None)."""

    def on_column_visibility_change(self, visible: list[str]) -> None:
        """Visible column keys in unified order."""

    def on_column_reorder(self, order: list[str]) -> None:
        """Unified column order after a drop."""

    def on_column_resize(self, column_key: str, width: float) -> None:
        """New clamped width of a column."""

    def on_sort_change(self, sort: SortState) -> None:
        """Sort key or direction changed."""

    def on_filter_change(self, filters: dict[str, list[str]], search: str) -> None:
        """Per-field filters or the search text changed."""

    def on_page_change(self, page: int, total_pages: int) -> None:
        """Current page (or page count) changed."""

    def on_callout_change(self, column_key: str | None) -> None:
        """The open header callout changed."""

    def on_cell_edit(self, row: Any, column_key: str, value: str, index: int) -> bool:
        """Apply an edited value. Used for paste/clear and as the default commit.

        Returns
        -------
        bool
            Whether the host accepted the value.
        """
        return True

    def on_focus_change(self, row_index: int | None) -> None:
        """Keyboard focus moved to another visible row."""


class CallbackObserver(TableObserver):
    """Observer built from keyword callbacks.

    Parameters
    ----------
    **callbacks : Callable
        Callables named after :class:`TableObserver` methods, e.g.
        ``on_selection_changed=print``. Unknown names raise ``TypeError``.
    """

    def __init__(self, **callbacks: Callable[..., Any]) -> None:
        for name, func in callbacks.items():
            if not name.startswith("on_") or not hasattr(TableObserver, name):
                raise TypeError(f"Unknown observer event: {name!r}")
            setattr(self, name, func)


class Notifier:
    """Delivers events to an observer, isolating the engine from host errors.

    Parameters
    ----------
    observer : TableObserver, optional
        The host observer. A no-op observer is used when omitted.
    """

    def __init__(self, observer: TableObserver | None = None) -> None:
        self.observer = observer or TableObserver()

    def emit(self, event: str, *args: Any) -> Any:
        """Invoke ``on_<event>`` on the observer.

        Parameters
        ----------
        event : str
            Event name without the ``on_`` prefix.
        *args : Any
            Positional payload.

        Returns
        -------
        Any
            The callback's return value, or None when it raised.
        """
        handler = getattr(self.observer, f"on_{event}", None)
        if handler is None:
            debug(f"Observer has no handler for '{event}'")
            return None
        try:
            return handler(*args)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_callback_error(event, exc)
            return None
