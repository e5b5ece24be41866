"""Keyboard focus over the visible row list."""

from __future__ import annotations

from enum import Enum

from .observer import Notifier
from .pipeline import clamp


class NavAction(str, Enum):
    """What the caller should do after a key was handled."""

    NONE = "none"
    MOVED = "moved"
    ACTIVATE = "activate"
    CLEAR = "clear"


_ACTIVATE_KEYS = frozenset({"Enter", " ", "Space", "Spacebar"})


class KeyboardNavigator:
    """Focused-row state machine.

    Focus is a visible row index or None. Movement is clamped to the list;
    there is no wraparound.

    Parameters
    ----------
    enabled : bool
        When False every key is ignored.
    page_step : int
        Rows moved by PageUp/PageDown.
    notifier : Notifier, optional
        Receives ``focus_change`` events.
    """

    def __init__(
        self,
        enabled: bool = True,
        page_step: int = 10,
        notifier: Notifier | None = None,
    ) -> None:
        self.enabled = enabled
        self.page_step = page_step
        self.loading = False
        self._notifier = notifier or Notifier()
        self._row_count = 0
        self._focused: int | None = None

    @property
    def focused_index(self) -> int | None:
        """Focused visible row."""
        return self._focused

    @property
    def row_count(self) -> int:
        """Number of visible rows."""
        return self._row_count

    @property
    def active(self) -> bool:
        """Whether keys are handled right now."""
        return self.enabled and not self.loading

    def set_row_count(self, count: int) -> None:
        """Adopt a new visible row count, clamping the focus."""
        self._row_count = max(0, count)
        if self._focused is None:
            return
        if self._row_count == 0:
            self._set(None)
        else:
            self._set(clamp(self._focused, 0, self._row_count - 1, "focused row"))

    def focus(self, index: int | None) -> None:
        """Focus a row directly, e.g. after a pointer click."""
        if index is None or self._row_count == 0:
            self._set(None)
        else:
            self._set(clamp(index, 0, self._row_count - 1, "focused row"))

    def _set(self, index: int | None) -> bool:
        if index == self._focused:
            return False
        self._focused = index
        self._notifier.emit("focus_change", index)
        return True

    def _step(self, delta: int) -> int:
        if self._focused is None:
            return 0 if delta > 0 else self._row_count - 1
        return clamp(self._focused + delta, 0, self._row_count - 1, "focused row")

    def handle_key(self, key: str) -> NavAction:
        """Apply a key press.

        Parameters
        ----------
        key : str
            A DOM-style key name: ``ArrowDown``, ``ArrowUp``, ``Home``,
            ``End``, ``PageDown``, ``PageUp``, ``Enter``, ``" "`` or
            ``Escape``.

        Returns
        -------
        NavAction
            ``ACTIVATE`` when the focused row should be treated as clicked,
            ``CLEAR`` after Escape, ``MOVED`` when focus moved.
        """
        if not self.active:
            return NavAction.NONE
        if key == "Escape":
            self._set(None)
            return NavAction.CLEAR
        if key in _ACTIVATE_KEYS:
            return NavAction.ACTIVATE if self._focused is not None else NavAction.NONE
        if self._row_count == 0:
            return NavAction.NONE

        if key == "ArrowDown":
            target = self._step(1)
        elif key == "ArrowUp":
            target = self._step(-1)
        elif key == "Home":
            target = 0
        elif key == "End":
            target = self._row_count - 1
        elif key == "PageDown":
            target = self._step(self.page_step)
        elif key == "PageUp":
            target = self._step(-self.page_step)
        else:
            return NavAction.NONE
        return NavAction.MOVED if self._set(target) else NavAction.NONE
