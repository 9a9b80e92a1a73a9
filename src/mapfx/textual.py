"""Textual integration for mapfx. Opt-in, requires textual.

Map listeners often update widgets. Wrapping them with ``listener(app, fn)``
makes that safe: the callback is skipped while the app is not running or
is paused, marshalled through ``call_from_thread`` when a native event
arrives off the UI thread, and NoMatches from widget queries is ignored.
Textual coupling is isolated here; the engine stays agnostic.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded listeners during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def listener(app, callback):
    """Wrap a map-event callback so it only touches the app when safe."""
    _main = threading.get_ident()

    def _guarded(event):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, event)
        else:
            _safe(event)

    def _safe(event):
        try:
            callback(event)
        except NoMatches:
            pass

    _guarded.__name__ = getattr(callback, "__name__", "listener")
    return _guarded


def bind(app, events):
    """Wrap every callback of an events mapping, e.g. for add_overlay_event."""
    return {event_type: listener(app, callback) for event_type, callback in events.items()}
