"""Three-phase drag gesture protocol.

Pointer plumbing (dragstart/dragover/dragleave/drop/dragend) collapses into
``begin(source)``, repeated ``update(target)``, and ``finish()`` or
``abort()``. Components own a :class:`Gesture` and decide what a finished
gesture means.
"""

from __future__ import annotations

from typing import Generic, TypeVar


S = TypeVar("S")


class Gesture(Generic[S]):
    """State for one drag gesture keyed by source/target ids."""

    def __init__(self) -> None:
        self.source: S | None = None
        self.target: S | None = None

    @property
    def active(self) -> bool:
        """Whether a gesture has begun and not yet finished."""
        return self.source is not None

    def begin(self, source: S) -> None:
        """Start a gesture, discarding any stale one."""
        self.source = source
        self.target = None

    def update(self, target: S | None) -> bool:
        """Set the preview target. Idempotent.

        Returns
        -------
        bool
            True if the target changed.
        """
        if not self.active:
            return False
        if target == self.source:
            target = None
        if target == self.target:
            return False
        self.target = target
        return True

    def finish(self) -> tuple[S | None, S | None]:
        """End the gesture and return ``(source, target)``."""
        result = (self.source, self.target)
        self.abort()
        return result

    def abort(self) -> None:
        """Drop the gesture without effect."""
        self.source = None
        self.target = None
