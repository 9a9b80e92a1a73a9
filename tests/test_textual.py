"""Tests for mapfx.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from mapfx import MAP_SUBJECT, Engine, MemoryBackend, WidgetEvent
from mapfx import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


def _ready_map():
    backend = MemoryBackend(auto_ready=True)
    engine = Engine(backend)
    return engine.create_map("map"), backend.widgets[0]


class TestListener:
    def test_fires_when_safe(self):
        app = _MockApp()
        m, widget = _ready_map()
        seen = []
        m.add_map_event(stx.bind(app, {"onadd": lambda e: seen.append(e.id)}))
        m.add_point("p", 0, 0)
        assert seen == [MAP_SUBJECT]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        m, widget = _ready_map()
        seen = []
        m.add_map_event({"onadd": stx.listener(app, lambda e: seen.append(e.id))})
        m.add_point("p", 0, 0)
        assert seen == []

    def test_skips_during_pause(self):
        app = _MockApp()
        m, widget = _ready_map()
        seen = []
        m.add_map_event({"onadd": stx.listener(app, lambda e: seen.append(e.id))})
        with stx.pause(app):
            m.add_point("p", 0, 0)
        assert seen == []
        m.add_point("q", 0, 0)
        assert seen == [MAP_SUBJECT]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        m, widget = _ready_map()

        def _raise_nomatch(event):
            raise NoMatches("StatusFooter")

        m.add_map_event({"onadd": stx.listener(app, _raise_nomatch)})
        # Should not raise
        assert m.add_point("p", 0, 0) == "p"

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        m, widget = _ready_map()

        def _raise_value_error(event):
            raise ValueError("boom")

        m.add_map_event({"onadd": stx.listener(app, _raise_value_error)})
        with pytest.raises(ValueError, match="boom"):
            m.add_point("p", 0, 0)

    def test_thread_marshal(self):
        """Native events from a background thread use call_from_thread."""
        app = _MockApp()
        m, widget = _ready_map()
        seen = []
        m.add_point("a", 0, 0)
        m.add_overlay_event("a", stx.bind(app, {"onclick": lambda e: seen.append(e.id)}))
        overlay = widget.overlays["a"]

        t = threading.Thread(target=widget.dispatch, args=(overlay, WidgetEvent.CLICK, 0, 0))
        t.start()
        t.join()

        assert seen == ["a"]
        assert len(app._call_from_thread_log) == 1

    def test_keeps_callback_name(self):
        app = _MockApp()

        def on_hide(event):
            pass

        assert stx.listener(app, on_hide).__name__ == "on_hide"


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during, (
            f"pause() added attributes to app: {attrs_during - attrs_before}"
        )
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
