"""Inline cell editing.

At most one cell edit is open engine-wide. Starting an edit on another cell
cancels the open one without saving. ``save()`` validates the pending text
(type check, then the column validator, then the session validator) and
hands it to the host commit callback, which may answer now or return an
awaitable that answers later. While a deferred commit is outstanding the
session stays open and shows ``saving``; a resolution that arrives after the
session was cancelled or replaced is discarded.

Example::

    session = EditSession(commit=save_to_db)
    session.start(0, column, row)
    session.stage_value("42")
    status = session.save()   # SaveStatus.PENDING if save_to_db is async
"""

from __future__ import annotations

import asyncio
import inspect

from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from typing import Any

from .exceptions import AsyncCommitFailure, CellValidationError
from .log import debug, warn
from .models import CellPosition, Column, EditState
from .pipeline import get_field, stringify
from .registry import SingleSlot


# Commit: (row, column_key, value, index) -> accepted, now or later
CommitFunc = Callable[[Any, str, str, int], bool | None | Awaitable[bool | None]]
# Validate: (row, column_key, value) -> error message or None
ValidateFunc = Callable[[Any, str, str], str | None]

_BOOLEAN_TEXT = frozenset({"", "true", "false", "1", "0", "yes", "no"})
INVALID_VALUE_MESSAGE = "Invalid value"


class SaveStatus(str, Enum):
    """Outcome of :meth:`EditSession.save`."""

    SAVED = "saved"
    INVALID = "invalid"
    FAILED = "failed"
    PENDING = "pending"
    IGNORED = "ignored"


def check_type(value: str, value_type: str | None) -> str | None:
    """Check ``value`` parses as the column's declared type.

    Empty text always passes so a cell can be cleared.
    """
    text = value.strip()
    if not text or value_type in (None, "string"):
        return None
    if value_type == "number":
        try:
            float(text)
        except ValueError:
            return "Value must be a number"
    elif value_type == "date":
        try:
            datetime.fromisoformat(text)
        except ValueError:
            return "Value must be a date (YYYY-MM-DD)"
    elif value_type == "boolean" and text.lower() not in _BOOLEAN_TEXT:
        return "Value must be true or false"
    return None


def call_validator(
    validator: Callable[..., str | None],
    *args: Any,
    row_index: int | None = None,
    column_key: str | None = None,
) -> str | None:
    """Call a host validator, accepting a returned or raised error.

    ``CellValidationError`` carries the message to show. Any other exception
    is logged and reported as a generic error so it never reaches the host.
    """
    try:
        return validator(*args) or None
    except CellValidationError as exc:
        debug(str(CellValidationError(exc.message, row_index=row_index, column_key=column_key)))
        return exc.message
    except Exception as exc:  # pylint: disable=broad-exception-caught
        warn(f"Validator for {column_key}[{row_index}] raised: {exc}")
        return INVALID_VALUE_MESSAGE


def run_validator(column: Column, value: str, row: Any, row_index: int | None = None) -> str | None:
    """Run the column's validator, if it has one."""
    if column.validator is None:
        return None
    return call_validator(
        column.validator, value, row, column.key, row_index=row_index, column_key=column.key
    )


class EditSession:
    """The single open cell edit.

    Parameters
    ----------
    commit : Callable, optional
        Host commit callback ``(row, column_key, value, index)``. ``False``
        rejects the value; any other result accepts it. May return an
        awaitable. Without one, every valid save succeeds.
    validate : Callable, optional
        Extra validator ``(row, column_key, value) -> error | None`` run
        after the type check and the column validator.
    save_failed_message : str
        Error shown when the commit rejects the value.
    type_check : bool
        Whether to check text against ``Column.value_type``.
    """

    def __init__(
        self,
        commit: CommitFunc | None = None,
        validate: ValidateFunc | None = None,
        *,
        save_failed_message: str = "Save failed",
        type_check: bool = True,
    ) -> None:
        self._commit = commit
        self._validate = validate
        self.save_failed_message = save_failed_message
        self.type_check = type_check
        self._slot: SingleSlot[CellPosition] = SingleSlot()
        self._state: EditState | None = None
        self._row: Any = None
        self._column: Column | None = None
        self._token = 0
        self._pending: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[None]] = set()

    # --- State ---

    @property
    def state(self) -> EditState | None:
        """The open edit, or None."""
        return self._state

    @property
    def is_open(self) -> bool:
        """Whether an edit is open."""
        return self._state is not None

    @property
    def saving(self) -> bool:
        """Whether a deferred commit is outstanding."""
        return self._state is not None and self._state.saving

    @property
    def pending(self) -> asyncio.Task[None] | None:
        """Task awaiting the current deferred commit."""
        return self._pending

    def is_editing(self, row_index: int, column_key: str) -> bool:
        """Whether the given cell holds the open edit."""
        return self._slot.holds(CellPosition(row_index=row_index, col_key=column_key))

    # --- Operations ---

    def start(self, row_index: int, column: Column, row: Any) -> bool:
        """Open an edit on a cell.

        No-op for non-editable columns and for the cell already being
        edited. Any other open edit is cancelled without saving.
        """
        if not column.editable:
            return False
        position = CellPosition(row_index=row_index, col_key=column.key)
        if self._slot.holds(position):
            return False
        evicted = self._slot.occupy(position)
        if evicted is not None:
            debug(f"Edit on {evicted.col_key}[{evicted.row_index}] replaced without saving")
        self._token += 1
        self._pending = None
        self._row = row
        self._column = column
        self._state = EditState(
            row_index=row_index,
            column_key=column.key,
            pending_value=stringify(get_field(row, column.key)),
        )
        return True

    def stage_value(self, text: str) -> None:
        """Replace the pending text and clear the previous error."""
        if self._state is None or self._state.saving:
            return
        self._state = self._state.model_copy(
            update={"pending_value": text, "validation_error": None}
        )

    def validate(self) -> str | None:
        """First validation error of the pending text, or None."""
        if self._state is None or self._column is None:
            return None
        value = self._state.pending_value
        if self.type_check:
            error = check_type(value, self._column.value_type)
            if error:
                return error
        error = run_validator(self._column, value, self._row, self._state.row_index)
        if error:
            return error
        if self._validate is None:
            return None
        return call_validator(
            self._validate,
            self._row,
            self._column.key,
            value,
            row_index=self._state.row_index,
            column_key=self._column.key,
        )

    def save(self) -> SaveStatus:
        """Validate and commit the pending text.

        Returns
        -------
        SaveStatus
            ``SAVED`` (closed), ``INVALID`` or ``FAILED`` (still open with an
            error), ``PENDING`` (deferred commit outstanding) or ``IGNORED``
            (nothing open).
        """
        state = self._state
        if state is None:
            return SaveStatus.IGNORED
        if state.saving:
            return SaveStatus.PENDING

        error = self.validate()
        if error:
            self._state = state.model_copy(update={"validation_error": error})
            return SaveStatus.INVALID

        if self._commit is None:
            return self._resolve(True)
        try:
            outcome = self._commit(
                self._row, state.column_key, state.pending_value, state.row_index
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            warn(f"Commit for {state.column_key}[{state.row_index}] raised: {exc}")
            return self._resolve(False)

        if not inspect.isawaitable(outcome):
            return self._resolve(outcome is not False)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            warn("Deferred commit returned outside a running event loop")
            if inspect.iscoroutine(outcome):
                outcome.close()
            return self._resolve(False)

        self._state = state.model_copy(update={"saving": True, "validation_error": None})
        task = loop.create_task(self._await_commit(outcome, self._token))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        self._pending = task
        return SaveStatus.PENDING

    async def _await_commit(self, outcome: Awaitable[Any], token: int) -> None:
        try:
            accepted = (await outcome) is not False
        except Exception as exc:  # pylint: disable=broad-exception-caught
            warn(f"Deferred commit raised: {exc}")
            accepted = False
        if token != self._token:
            debug("Late commit result discarded")
            return
        self._pending = None
        self._resolve(accepted)

    def _resolve(self, accepted: bool) -> SaveStatus:
        state = self._state
        if state is None:
            return SaveStatus.IGNORED
        if accepted:
            self._close()
            return SaveStatus.SAVED
        warn(
            str(
                AsyncCommitFailure(
                    "Commit rejected", row_index=state.row_index, column_key=state.column_key
                )
            )
        )
        self._state = state.model_copy(
            update={"saving": False, "validation_error": self.save_failed_message}
        )
        return SaveStatus.FAILED

    def cancel(self) -> None:
        """Discard the pending value and close without notifying the host."""
        if self._state is not None:
            self._close()

    def _close(self) -> None:
        self._token += 1
        self._slot.release()
        self._state = None
        self._row = None
        self._column = None
        self._pending = None
