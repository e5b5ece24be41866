"""Single-slot registry enforcing "at most one open" semantics."""

from __future__ import annotations

from typing import Generic, TypeVar


T = TypeVar("T")


class SingleSlot(Generic[T]):
    """Holds at most one active value.

    Used for the open edit cell and the open header callout, so the
    mutual-exclusion invariant lives in one place.
    """

    def __init__(self) -> None:
        self._value: T | None = None

    @property
    def current(self) -> T | None:
        """The occupying value, or None when empty."""
        return self._value

    @property
    def occupied(self) -> bool:
        """Whether a value holds the slot."""
        return self._value is not None

    def holds(self, value: T) -> bool:
        """Whether ``value`` is the current occupant."""
        return self._value is not None and self._value == value

    def occupy(self, value: T) -> T | None:
        """Place ``value`` in the slot, evicting any previous occupant.

        Returns
        -------
        T or None
            The evicted value, if it differed from ``value``.
        """
        previous = self._value
        self._value = value
        if previous is not None and previous != value:
            return previous
        return None

    def release(self, value: T | None = None) -> bool:
        """Empty the slot.

        Parameters
        ----------
        value : T, optional
            When given, release only if it is the current occupant.

        Returns
        -------
        bool
            True if the slot was emptied.
        """
        if self._value is None:
            return False
        if value is not None and self._value != value:
            return False
        self._value = None
        return True
