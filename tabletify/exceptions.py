"""tabletify exception hierarchy.

All tabletify-specific exceptions inherit from TabletifyException. None of
them escape a public engine operation: each one is caught at the operation
boundary and turned into a warning, a clamp, or recorded edit state.
"""

from __future__ import annotations

from typing import Any


class TabletifyException(Exception):
    """Base exception for all tabletify errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize tabletify exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (column_key, row_index, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(TabletifyException):
    """A request referenced a column that does not exist.

    Raised internally when a filter, sort, group, pin or edit request names
    an unknown column key. Surfaced to the host as a warning plus a no-op.
    """

    def __init__(self, message: str, column_key: str | None = None, **context: Any) -> None:
        """Initialize configuration error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        column_key : str, optional
            The column key that caused the error.
        **context : Any
            Additional context.
        """
        super().__init__(message, column_key=column_key, **context)
        self.column_key = column_key


class CellValidationError(TabletifyException):
    """An edited value failed validation.

    Column validators may raise this instead of returning an error string.
    The message is stored on the edit state and never propagated further.
    """

    def __init__(
        self,
        message: str,
        row_index: int | None = None,
        column_key: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize validation error.

        Parameters
        ----------
        message : str
            Human-readable error message shown next to the editor.
        row_index : int, optional
            The visible row index of the edited cell.
        column_key : str, optional
            The column key of the edited cell.
        **context : Any
            Additional context.
        """
        super().__init__(message, row_index=row_index, column_key=column_key, **context)
        self.row_index = row_index
        self.column_key = column_key


class OutOfRangeRequest(TabletifyException):
    """A page number, row index or column index fell outside current bounds.

    Always clamped silently by the engine.
    """

    def __init__(
        self,
        message: str,
        value: int | None = None,
        bounds: tuple[int, int] | None = None,
        **context: Any,
    ) -> None:
        """Initialize out-of-range error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        value : int, optional
            The requested value.
        bounds : tuple of int, optional
            The inclusive ``(low, high)`` bounds the value was clamped to.
        **context : Any
            Additional context.
        """
        super().__init__(message, value=value, bounds=bounds, **context)
        self.value = value
        self.bounds = bounds


class AsyncCommitFailure(TabletifyException):
    """The host commit callback rejected an edit.

    Recoverable: the edit session stays open so the user can retry.
    """

    def __init__(
        self,
        message: str,
        row_index: int | None = None,
        column_key: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize commit failure.

        Parameters
        ----------
        message : str
            Human-readable error message.
        row_index : int, optional
            The visible row index of the edited cell.
        column_key : str, optional
            The column key of the edited cell.
        **context : Any
            Additional context.
        """
        super().__init__(message, row_index=row_index, column_key=column_key, **context)
        self.row_index = row_index
        self.column_key = column_key
