"""Tests for the construction queue and readiness counting."""

import logging

import pytest

from mapfx import Engine, LatLng, MapType, MemoryBackend


class TestConstruction:
    def test_ready_with_no_maps(self):
        assert Engine(MemoryBackend()).is_ready

    def test_map_ids_are_sequential(self):
        engine = Engine(MemoryBackend())
        assert [engine.create_map(name).id for name in "abc"] == [0, 1, 2]

    def test_widget_created_with_defaults(self):
        backend = MemoryBackend()
        Engine(backend).create_map("map")
        widget = backend.widgets[0]
        assert widget.container == "map"
        assert widget.center == LatLng(30, 120)
        assert widget.zoom == 5
        assert widget.map_type is MapType.GOOGLEMAP

    def test_widget_created_with_options(self):
        backend = MemoryBackend()
        Engine(backend).create_map("map", 10, 20, 8, MapType.CMAP)
        widget = backend.widgets[0]
        assert widget.center == LatLng(10, 20)
        assert widget.zoom == 8
        assert widget.map_type is MapType.CMAP

    def test_pending_until_every_map_ready(self):
        backend = MemoryBackend()
        engine = Engine(backend)
        engine.create_map("a")
        engine.create_map("b")
        assert not engine.is_ready
        backend.ready()
        assert not engine.is_ready
        backend.ready()
        assert engine.is_ready

    def test_new_map_closes_the_gate_again(self):
        backend = MemoryBackend(auto_ready=True)
        engine = Engine(backend)
        engine.create_map("a")
        assert engine.is_ready
        backend.auto_ready = False
        engine.create_map("b")
        assert not engine.is_ready

    def test_ready_inside_create(self):
        """A widget that signals readiness synchronously still drains correctly."""
        ready_calls = []
        engine = Engine(MemoryBackend(auto_ready=True), on_ready=lambda: ready_calls.append(1))
        m = engine.create_map("map")
        assert ready_calls == [1]
        assert m.add_point("p", 0, 0) == "p"

    def test_extra_ready_signal_ignored(self, caplog):
        backend = MemoryBackend(auto_ready=True)
        engine = Engine(backend)
        engine.create_map("map")
        with caplog.at_level(logging.WARNING, logger="mapfx.construction"):
            engine.map_ready()
        assert engine.construction.ready_count == 1
        assert "ignoring readiness signal" in caplog.text

    def test_fully_ready_logged(self, caplog):
        backend = MemoryBackend()
        engine = Engine(backend)
        engine.create_map("map")
        with caplog.at_level(logging.INFO, logger="mapfx.construction"):
            backend.ready_all()
        assert "all 1 maps ready" in caplog.text


class _FailingBackend(MemoryBackend):
    """Refuses to create maps in the listed containers."""

    def __init__(self, *failing, ready_before_failing=False, **kwargs):
        super().__init__(**kwargs)
        self.failing = set(failing)
        self.ready_before_failing = ready_before_failing

    def create(self, container, center, zoom, map_type):
        if container in self.failing:
            if self.ready_before_failing:
                self.ready_all()
            raise RuntimeError(f"no such container: {container}")
        return super().create(container, center, zoom, map_type)


class TestCreationFailure:
    def test_failure_propagates_and_releases_reservation(self, caplog):
        engine = Engine(_FailingBackend("missing", auto_ready=True))
        with caplog.at_level(logging.ERROR, logger="mapfx.construction"):
            with pytest.raises(RuntimeError, match="missing"):
                engine.create_map("missing")
        assert engine.construction.map_count == 0
        assert engine.is_ready
        assert "creating map 0 in 'missing' failed" in caplog.text

    def test_other_maps_still_become_ready(self):
        backend = _FailingBackend("missing")
        engine = Engine(backend)
        m = engine.create_map("map")
        with pytest.raises(RuntimeError):
            engine.create_map("missing")
        token = m.get_zoom()
        assert not token.done()
        backend.ready()
        assert engine.is_ready
        assert token.result() == 5

    def test_failed_map_no_longer_holds_the_gate(self):
        backend = _FailingBackend("missing", ready_before_failing=True)
        ready_calls = []
        engine = Engine(backend, on_ready=lambda: ready_calls.append(1))
        m = engine.create_map("map")
        token = m.get_zoom()
        with pytest.raises(RuntimeError):
            engine.create_map("missing")
        assert engine.is_ready
        assert ready_calls == [1]
        assert token.result() == 5

    def test_later_maps_use_fresh_ids(self):
        engine = Engine(_FailingBackend("missing", auto_ready=True))
        with pytest.raises(RuntimeError):
            engine.create_map("missing")
        m = engine.create_map("map")
        assert m.id == 1
        assert m.add_point("p", 0, 0) == "p"
