"""Column header callouts.

At most one callout is open. Hover intent is modelled as one pending
transition with a due time: entering a header schedules an open, leaving
schedules a dismiss, and entering the header or the callout surface again
before the dismiss is due cancels it. Pending transitions settle whenever
state is queried or :meth:`CalloutCoordinator.tick` is called.
"""

from __future__ import annotations

import time

from collections.abc import Callable
from typing import Any

from .log import debug
from .observer import Notifier
from .registry import SingleSlot


class CalloutCoordinator:
    """Open/dismiss arbitration for header callouts.

    Parameters
    ----------
    notifier : Notifier, optional
        Receives ``callout_change`` events.
    open_delay_ms : int
        Hover time before a callout opens.
    dismiss_delay_ms : int
        Grace period before a callout closes after the pointer leaves.
    clock : Callable, optional
        Monotonic clock in seconds. Defaults to ``time.monotonic``.
    is_resizing : Callable, optional
        Returns True while a column resize is in progress; hover opens are
        suppressed then.
    """

    def __init__(
        self,
        notifier: Notifier | None = None,
        *,
        open_delay_ms: int = 150,
        dismiss_delay_ms: int = 200,
        clock: Callable[[], float] | None = None,
        is_resizing: Callable[[], bool] | None = None,
    ) -> None:
        self._notifier = notifier or Notifier()
        self.open_delay_ms = open_delay_ms
        self.dismiss_delay_ms = dismiss_delay_ms
        self._clock = clock or time.monotonic
        self._is_resizing = is_resizing or (lambda: False)
        self._slot: SingleSlot[str] = SingleSlot()
        self._anchor: Any = None
        # (target key or None for dismiss, due time, anchor)
        self._pending: tuple[str | None, float, Any] | None = None

    # --- Queries ---

    @property
    def open_key(self) -> str | None:
        """Key of the open callout after settling due transitions."""
        self.tick()
        return self._slot.current

    @property
    def anchor(self) -> Any:
        """Opaque position handle of the open callout."""
        self.tick()
        return self._anchor if self._slot.occupied else None

    @property
    def has_pending(self) -> bool:
        """Whether an open or dismiss is scheduled."""
        return self._pending is not None

    def is_open(self, key: str) -> bool:
        """Whether the callout of ``key`` is open."""
        return self.open_key == key

    # --- Immediate transitions ---

    def open(self, key: str, anchor: Any = None) -> None:
        """Open ``key`` now, dismissing any other callout."""
        self._pending = None
        self._anchor = anchor
        if self._slot.holds(key):
            return
        evicted = self._slot.occupy(key)
        if evicted is not None:
            debug(f"Callout '{evicted}' replaced by '{key}'")
        self._notifier.emit("callout_change", key)

    def dismiss(self) -> None:
        """Close the open callout now."""
        self._pending = None
        self._anchor = None
        if self._slot.release():
            self._notifier.emit("callout_change", None)

    def toggle(self, key: str, anchor: Any = None) -> None:
        """Open ``key``, or close it when it is already open."""
        if self._slot.holds(key):
            self.dismiss()
        else:
            self.open(key, anchor)

    # --- Hover intent ---

    def _schedule(self, key: str | None, delay_ms: int, anchor: Any = None) -> None:
        self._pending = (key, self._clock() + delay_ms / 1000.0, anchor)
        self.tick()

    def hover_enter(self, key: str, anchor: Any = None) -> None:
        """Pointer entered the header of ``key``."""
        if self._is_resizing():
            return
        if self._slot.holds(key):
            self._pending = None
            return
        self._schedule(key, self.open_delay_ms, anchor)

    def hover_leave(self) -> None:
        """Pointer left a header or the callout surface."""
        if not self._slot.occupied:
            self._pending = None
            return
        self._schedule(None, self.dismiss_delay_ms)

    def callout_enter(self) -> None:
        """Pointer reached the callout surface; keep it open."""
        if self._pending is not None and self._pending[0] is None:
            self._pending = None

    def tick(self) -> None:
        """Apply the pending transition if it is due."""
        if self._pending is None:
            return
        key, due, anchor = self._pending
        if self._clock() < due:
            return
        if key is None:
            self.dismiss()
        else:
            self.open(key, anchor)
