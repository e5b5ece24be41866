"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

from typing import Any

import pytest

from tabletify.config import clear_settings
from tabletify.models import Column
from tabletify.observer import Notifier, TableObserver


class RecordingObserver(TableObserver):
    """Observer that records every event it receives.

    ``events`` holds ``(event, args)`` tuples in delivery order.
    """

    def __init__(self, accept_edits: bool = True) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []
        self.accept_edits = accept_edits

    def _record(self, event: str, *args: Any) -> None:
        self.events.append((event, args))

    def named(self, event: str) -> list[tuple[Any, ...]]:
        """Payloads of every ``event`` received."""
        return [args for name, args in self.events if name == event]

    def last(self, event: str) -> tuple[Any, ...]:
        """Payload of the most recent ``event``."""
        found = self.named(event)
        assert found, f"no '{event}' event recorded"
        return found[-1]

    def on_selection_changed(self, rows):
        self._record("selection_changed", rows)

    def on_active_item_changed(self, row, index):
        self._record("active_item_changed", row, index)

    def on_group_toggled(self, group_key, expanded):
        self._record("group_toggled", group_key, expanded)

    def on_row_reorder(self, rows, item, from_index, to_index):
        self._record("row_reorder", rows, item, from_index, to_index)

    def on_column_pin(self, column_key, side):
        self._record("column_pin", column_key, side)

    def on_column_visibility_change(self, visible):
        self._record("column_visibility_change", visible)

    def on_column_reorder(self, order):
        self._record("column_reorder", order)

    def on_column_resize(self, column_key, width):
        self._record("column_resize", column_key, width)

    def on_sort_change(self, sort):
        self._record("sort_change", sort)

    def on_filter_change(self, filters, search):
        self._record("filter_change", filters, search)

    def on_page_change(self, page, total_pages):
        self._record("page_change", page, total_pages)

    def on_callout_change(self, column_key):
        self._record("callout_change", column_key)

    def on_cell_edit(self, row, column_key, value, index):
        self._record("cell_edit", row, column_key, value, index)
        return self.accept_edits

    def on_focus_change(self, row_index):
        self._record("focus_change", row_index)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate every test from cached settings and TABLETIFY env vars."""
    for name in list(os.environ):
        if name.startswith("TABLETIFY"):
            monkeypatch.delenv(name, raising=False)
    clear_settings()
    yield
    clear_settings()


@pytest.fixture
def two_rows() -> list[dict[str, Any]]:
    """The two-row dataset used by the basic pipeline scenarios."""
    return [
        {"id": 1, "name": "Alice", "age": 25},
        {"id": 2, "name": "Bob", "age": 30},
    ]


@pytest.fixture
def people() -> list[dict[str, Any]]:
    """A small dataset with duplicates, nulls and a groupable field."""
    return [
        {"id": 1, "name": "Alice", "age": 25, "role": "dev", "joined": "2021-03-01"},
        {"id": 2, "name": "Bob", "age": 30, "role": "ops", "joined": "2019-11-15"},
        {"id": 3, "name": "Carol", "age": 25, "role": "dev", "joined": "2020-06-30"},
        {"id": 4, "name": "dave", "age": None, "role": "qa", "joined": "2022-01-10"},
        {"id": 5, "name": "Eve", "age": 41, "role": "ops", "joined": None},
    ]


@pytest.fixture
def columns() -> list[Column]:
    """Column definitions matching ``people``."""
    return [
        Column(key="name", label="Name", editable=True),
        Column(key="age", label="Age", value_type="number", editable=True),
        Column(key="role", label="Role"),
        Column(key="joined", label="Joined", value_type="date"),
    ]


@pytest.fixture
def observer() -> RecordingObserver:
    """A fresh recording observer."""
    return RecordingObserver()


@pytest.fixture
def notifier(observer: RecordingObserver) -> Notifier:
    """Notifier delivering to the recording observer."""
    return Notifier(observer)


@pytest.fixture
def rejecting_observer() -> RecordingObserver:
    """A recording observer whose ``on_cell_edit`` rejects every value."""
    return RecordingObserver(accept_edits=False)
