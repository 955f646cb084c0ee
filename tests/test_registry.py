"""Tests for WatchRegistry: registration, removal and isolated dispatch."""
import logging

import pytest

from mutationwatch import ListenerError, Watcher, WatchRegistry, WatcherConfig


def test_dispatch_exact_path_only(recorder):
    registry = WatchRegistry()
    registry.watch("user", recorder.listener)

    registry.dispatch("user.name", "Ann", None)
    assert recorder.calls == []

    registry.dispatch("user", {"name": "Ann"}, None)
    assert recorder.calls == [({"name": "Ann"}, None)]


def test_dispatch_without_listeners_is_noop():
    registry = WatchRegistry()
    assert registry.dispatch("nothing", 1, 0) == 0


def test_insertion_order_and_global_last():
    order = []
    registry = WatchRegistry(lambda path, new, old: order.append(("global", path)))
    registry.watch("x", lambda new, old: order.append("first"))
    registry.watch("x", lambda new, old: order.append("second"))

    assert registry.dispatch("x", 1, None) == 3
    assert order == ["first", "second", ("global", "x")]


def test_duplicate_registration_called_twice(recorder):
    registry = WatchRegistry()
    registry.watch("x", recorder.listener)
    registry.watch("x", recorder.listener)

    registry.dispatch("x", 1, None)
    assert recorder.calls == [(1, None), (1, None)]


def test_watch_rejects_non_callable():
    with pytest.raises(TypeError):
        WatchRegistry().watch("x", "not callable")


class TestUnwatch:
    """unwatch returns True exactly when a registration was removed."""

    def test_remove_registered(self, recorder):
        registry = WatchRegistry()
        registry.watch("x", recorder.listener)

        assert registry.unwatch("x", recorder.listener) is True
        assert registry.unwatch("x", recorder.listener) is False
        registry.dispatch("x", 1, None)
        assert recorder.calls == []

    def test_remove_unknown(self, recorder):
        registry = WatchRegistry()
        assert registry.unwatch("missing", recorder.listener) is False

        registry.watch("x", recorder.listener)
        assert registry.unwatch("x", lambda new, old: None) is False
        assert registry.listeners("x") == [recorder.listener]

    def test_removes_one_of_duplicates(self, recorder):
        registry = WatchRegistry()
        registry.watch("x", recorder.listener)
        registry.watch("x", recorder.listener)

        assert registry.unwatch("x", recorder.listener) is True
        registry.dispatch("x", 1, None)
        assert recorder.calls == [(1, None)]

    def test_bound_method_matches_fresh_lookup(self, recorder):
        registry = WatchRegistry()
        registry.watch("x", recorder.listener)
        assert recorder.listener is not recorder.listener
        assert registry.unwatch("x", recorder.listener) is True

    def test_custom_eq_does_not_match_other_callable(self):
        class Greedy:
            def __call__(self, new, old):
                pass

            def __eq__(self, other):
                return True

            __hash__ = object.__hash__

        first, second = Greedy(), Greedy()
        registry = WatchRegistry()
        registry.watch("x", first)

        assert registry.unwatch("x", second) is False
        assert registry.listeners("x") == [first]
        assert registry.unwatch("x", first) is True

    def test_watcher_unwatch_alias(self, recorder):
        w = Watcher()
        w.watch("count", recorder.listener)
        assert w.unWatch("count", recorder.listener) is True
        assert w.unwatch("count", recorder.listener) is False

        w.obj.count = 1
        assert recorder.calls == []


class TestListenerIsolation:
    """A failing listener never suppresses the others."""

    def test_failing_listener_does_not_stop_dispatch(self, caplog):
        seen = []

        def broken(new, old):
            raise RuntimeError("boom")

        w = Watcher({}, lambda path, new, old: seen.append(("global", path)))
        w.watch("x", broken).watch("x", lambda new, old: seen.append("second"))

        with caplog.at_level(logging.WARNING, logger="mutationwatch.registry"):
            w.obj.x = 1

        assert seen == ["second", ("global", "x")]
        assert "boom" in caplog.text
        assert w.obj.x == 1

    def test_failing_global_callback_is_isolated(self, recorder):
        def broken(path, new, old):
            raise ValueError("bad")

        w = Watcher({}, broken)
        w.watch("x", recorder.listener)
        w.obj.x = 1
        assert recorder.calls == [(1, None)]

    def test_raise_listener_errors_after_full_dispatch(self, recorder):
        def broken(new, old):
            raise RuntimeError("boom")

        w = Watcher({}, config=WatcherConfig(raise_listener_errors=True))
        w.watch("x", broken).watch("x", recorder.listener)

        with pytest.raises(ListenerError) as exc_info:
            w.obj.x = 1

        assert recorder.calls == [(1, None)]
        assert exc_info.value.path == "x"
        assert [cb for cb, _ in exc_info.value.failures] == [broken]
        # The write itself was committed before dispatch
        assert w.obj.x == 1


def test_listener_may_unwatch_itself_during_dispatch(recorder):
    registry = WatchRegistry()

    def once(new, old):
        registry.unwatch("x", once)
        recorder.listener(new, old)

    registry.watch("x", once)
    registry.dispatch("x", 1, None)
    registry.dispatch("x", 2, 1)
    assert recorder.calls == [(1, None)]


def test_clear_watches(recorder):
    w = Watcher()
    w.watch("a", recorder.listener).watch("b", recorder.listener)

    assert w.clear_watches("a") is w
    w.obj.a = 1
    w.obj.b = 2
    assert recorder.calls == [(2, None)]

    w.clear_watches()
    w.obj.b = 3
    assert recorder.calls == [(2, None)]
    assert w.listeners("b") == []


def test_change_event_shapes():
    from mutationwatch import ChangeEvent

    event = ChangeEvent("user.name", "Bob", "Ann")
    assert event.as_listener_args() == ("Bob", "Ann")
    assert event.as_global_args() == ("user.name", "Bob", "Ann")
