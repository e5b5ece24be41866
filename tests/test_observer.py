"""Tests for the observer, notifier and the small state primitives.

Covers CallbackObserver construction, error isolation in Notifier, the
single-slot registry and the drag gesture protocol.
"""

from __future__ import annotations

import pytest

from tabletify.gesture import Gesture
from tabletify.observer import CallbackObserver, Notifier, TableObserver
from tabletify.registry import SingleSlot


class TestCallbackObserver:
    """Keyword-built observers."""

    def test_callbacks_are_called(self) -> None:
        seen = []
        observer = CallbackObserver(on_page_change=lambda page, total: seen.append((page, total)))
        notifier = Notifier(observer)
        notifier.emit("page_change", 2, 5)
        assert seen == [(2, 5)]

    def test_unknown_callback_rejected(self) -> None:
        with pytest.raises(TypeError, match="on_row_clicked"):
            CallbackObserver(on_row_clicked=print)

    def test_unset_events_are_noops(self) -> None:
        """Events without a callback fall back to the defaults."""
        notifier = Notifier(CallbackObserver())
        assert notifier.emit("selection_changed", []) is None
        assert notifier.emit("cell_edit", {}, "a", "1", 0) is True


class TestNotifier:
    """Event delivery."""

    def test_default_observer(self) -> None:
        """A notifier without an observer accepts edits and ignores events."""
        notifier = Notifier()
        assert isinstance(notifier.observer, TableObserver)
        assert notifier.emit("cell_edit", {}, "a", "1", 0) is True

    def test_host_errors_are_isolated(self, caplog) -> None:
        """A raising callback is logged and never propagates."""

        class Broken(TableObserver):
            def on_sort_change(self, sort):
                raise RuntimeError("renderer crashed")

        notifier = Notifier(Broken())
        with caplog.at_level("ERROR", logger="tabletify"):
            assert notifier.emit("sort_change", None) is None
        assert "sort_change" in caplog.text
        assert "renderer crashed" in caplog.text

    def test_unknown_event_is_ignored(self) -> None:
        assert Notifier().emit("not_an_event") is None


class TestSingleSlot:
    """At-most-one registry."""

    def test_occupy_evicts(self) -> None:
        slot: SingleSlot[str] = SingleSlot()
        assert slot.occupy("a") is None
        assert slot.occupy("b") == "a"
        assert slot.current == "b"

    def test_reoccupy_same_value(self) -> None:
        slot: SingleSlot[str] = SingleSlot()
        slot.occupy("a")
        assert slot.occupy("a") is None

    def test_release_only_matching(self) -> None:
        slot: SingleSlot[str] = SingleSlot()
        slot.occupy("a")
        assert slot.release("b") is False
        assert slot.holds("a")
        assert slot.release("a") is True
        assert not slot.occupied
        assert slot.release() is False


class TestGesture:
    """begin / update / finish / abort."""

    def test_finish_returns_source_and_target(self) -> None:
        gesture: Gesture[int] = Gesture()
        gesture.begin(1)
        assert gesture.update(3) is True
        assert gesture.update(3) is False
        assert gesture.finish() == (1, 3)
        assert not gesture.active

    def test_target_on_source_is_none(self) -> None:
        gesture: Gesture[int] = Gesture()
        gesture.begin(2)
        gesture.update(4)
        gesture.update(2)
        assert gesture.target is None

    def test_update_without_begin(self) -> None:
        gesture: Gesture[str] = Gesture()
        assert gesture.update("x") is False
        assert gesture.finish() == (None, None)
