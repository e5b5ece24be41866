"""Tests for tabletify.exceptions module.

These tests verify the exception hierarchy, message formatting,
context storage, and inheritance relationships.
"""

from __future__ import annotations

import pytest

from tabletify.exceptions import (
    AsyncCommitFailure,
    CellValidationError,
    ConfigurationError,
    OutOfRangeRequest,
    TabletifyException,
)


class TestTabletifyException:
    """Test base exception class behavior."""

    def test_message_only(self) -> None:
        """Exception with just a message stores it correctly."""
        exc = TabletifyException("Something went wrong")
        assert exc.message == "Something went wrong"
        assert not exc.context
        assert str(exc) == "Something went wrong"

    def test_with_context(self) -> None:
        """Exception with context includes it in string representation."""
        exc = TabletifyException("Failed", column_key="age", row_index=3)
        assert exc.context == {"column_key": "age", "row_index": 3}
        exc_str = str(exc)
        assert "Failed" in exc_str
        assert "column_key='age'" in exc_str
        assert "row_index=3" in exc_str

    def test_args_preserved(self) -> None:
        """Standard exception args are preserved."""
        assert TabletifyException("message").args == ("message",)


class TestSubclasses:
    """Specific exception types."""

    @pytest.mark.parametrize(
        "exc_type",
        [ConfigurationError, CellValidationError, OutOfRangeRequest, AsyncCommitFailure],
    )
    def test_inherits_base(self, exc_type) -> None:
        """Every tabletify error can be caught as TabletifyException."""
        with pytest.raises(TabletifyException):
            raise exc_type("boom")

    def test_configuration_error_key(self) -> None:
        """ConfigurationError carries the unknown column key."""
        exc = ConfigurationError("Unknown column", column_key="salary")
        assert exc.column_key == "salary"
        assert "salary" in str(exc)

    def test_validation_error_position(self) -> None:
        """CellValidationError records the cell it belongs to."""
        exc = CellValidationError("Bad value", row_index=2, column_key="age")
        assert (exc.row_index, exc.column_key) == (2, "age")
        assert exc.message == "Bad value"

    def test_out_of_range_bounds(self) -> None:
        """OutOfRangeRequest records the request and its bounds."""
        exc = OutOfRangeRequest("Clamped", value=12, bounds=(1, 4))
        assert exc.value == 12
        assert exc.bounds == (1, 4)
        assert "bounds=(1, 4)" in str(exc)

    def test_commit_failure_context(self) -> None:
        """AsyncCommitFailure keeps extra context."""
        exc = AsyncCommitFailure("Rejected", row_index=0, column_key="name", attempt=2)
        assert exc.context["attempt"] == 2
        assert exc.column_key == "name"
