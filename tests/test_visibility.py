"""Tests for hide/show and the hidden partitions."""

import pytest

from mapfx import Engine, IdNotFound, MemoryBackend, OverlayType


def _ready_map():
    backend = MemoryBackend(auto_ready=True)
    engine = Engine(backend)
    return engine, engine.create_map("map"), backend.widgets[0]


class TestSingle:
    def test_hide_then_show_restores(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        assert m.hide("a") is True
        assert m.is_hidden("a") is True
        assert "a" not in widget.overlays
        assert m.show("a") is True
        assert m.is_hidden("a") is False
        assert "a" in widget.overlays

    def test_show_visible_returns_false(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        before = dict(widget.overlays)
        assert m.show("a") is False
        assert widget.overlays == before
        assert engine.registry[m.id].hidden[OverlayType.POINT] == []

    def test_hide_hidden_returns_false(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.hide("a")
        assert m.hide("a") is False
        assert len(engine.registry[m.id].hidden[OverlayType.POINT]) == 1

    def test_missing_ids(self):
        engine, m, widget = _ready_map()
        for op in (m.hide, m.show, m.is_hidden):
            with pytest.raises(IdNotFound):
                op("missing")


class TestBulk:
    def _populate(self, m):
        m.add_point("p1", 0, 0)
        m.add_point("p2", 0, 0)
        m.add_polyline("line", [(0, 0), (1, 1)])
        m.add_polygon("area", [(0, 0), (1, 1), (1, 0)])

    def test_hide_by_type_counts_visible_only(self):
        engine, m, widget = _ready_map()
        self._populate(m)
        m.hide("p1")
        assert m.hide_by_type(OverlayType.POINT) == 1
        assert m.is_hidden("p2")
        assert not m.is_hidden("line")

    def test_show_by_type(self):
        engine, m, widget = _ready_map()
        self._populate(m)
        m.hide_by_type(OverlayType.POINT)
        assert m.show_by_type(OverlayType.POINT) == 2
        assert m.show_by_type(OverlayType.POINT) == 0
        assert not m.is_hidden("p1")

    def test_hide_all_and_show_all(self):
        engine, m, widget = _ready_map()
        self._populate(m)
        m.hide("line")
        assert m.hide_all() == 3
        assert widget.overlays == {}
        assert m.show_all() == 4
        assert len(widget.overlays) == 4
        assert m.show_all() == 0
