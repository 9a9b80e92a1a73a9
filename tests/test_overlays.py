"""Tests for overlay creation, ids, queries and deletion."""

import pytest

from mapfx import (
    MAP_SUBJECT,
    Engine,
    Fill,
    Font,
    IdAlreadyExists,
    IdNotFound,
    Label,
    LatLng,
    MemoryBackend,
    OverlayType,
    Stroke,
)
from mapfx.overlays import allocate_id


def _ready_map():
    backend = MemoryBackend(auto_ready=True)
    engine = Engine(backend)
    return engine, engine.create_map("map"), backend.widgets[0]


class TestIds:
    def test_generated_ids_are_distinct(self):
        engine, m, widget = _ready_map()
        ids = [m.add_point(None, 0, 0) for _ in range(30)]
        ids += [m.add_polyline(None, [(0, 0), (1, 1)]) for _ in range(10)]
        ids += [m.add_polygon("", [(0, 0), (1, 1), (1, 0)]) for _ in range(10)]
        assert len(set(ids)) == 50
        assert MAP_SUBJECT not in ids

    def test_allocate_retries_until_free(self):
        draws = iter(["__map__", "taken", "free"])
        assert allocate_id(lambda c: c == "taken", draws.__next__) == "free"

    def test_map_subject_is_reserved(self):
        engine, m, widget = _ready_map()
        with pytest.raises(IdAlreadyExists):
            m.add_point(MAP_SUBJECT, 0, 0)
        with pytest.raises(IdAlreadyExists):
            m.add_polyline(MAP_SUBJECT, [(0, 0)])

    def test_ids_unique_across_types(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        with pytest.raises(IdAlreadyExists):
            m.add_polygon("a", [(0, 0), (1, 1), (1, 0)])

    def test_ids_unique_against_hidden(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.hide("a")
        with pytest.raises(IdAlreadyExists):
            m.add_point("a", 1, 1)


class TestCreation:
    def test_point_defaults(self):
        engine, m, widget = _ready_map()
        m.add_point("p", 10, 20)
        overlay = widget.overlays["p"]
        assert overlay.type is OverlayType.POINT
        assert overlay.points == [LatLng(10, 20)]
        assert overlay.options.image_url == engine.defaults.point_url
        assert overlay.options.zoom_levels == (1, 18)
        assert overlay.options.z_index == 3
        assert overlay.options.image_pos == (0, 0)
        assert overlay.options.editable is False

    def test_point_options(self):
        engine, m, widget = _ready_map()
        m.add_point("p", 10, 20, None, "pin.png", (3, 9), 7, 4, -2, True)
        options = widget.overlays["p"].options
        assert options.image_url == "pin.png"
        assert options.zoom_levels == (3, 9)
        assert options.z_index == 7
        assert options.image_pos == (4, -2)
        assert options.editable is True

    def test_polyline_and_polygon_styles(self):
        engine, m, widget = _ready_map()
        m.add_polyline("line", [(0, 0), (1, 1)])
        red = Fill(0xFF0000, 0.5)
        m.add_polygon("area", [(0, 0), (1, 1), (1, 0)], None, red)
        assert widget.overlays["line"].options.stroke == Stroke()
        assert widget.overlays["line"].points == [LatLng(0, 0), LatLng(1, 1)]
        assert widget.overlays["area"].options.fill == red
        assert widget.overlays["area"].options.stroke == Stroke()

    def test_recorded_defaults_apply_to_later_overlays(self):
        engine, m, widget = _ready_map()
        thick = Stroke(thickness=4)
        engine.set_default_stroke(thick)
        engine.set_default_point_url("other.png")
        m.add_polyline("line", [(0, 0), (1, 1)])
        m.add_point("p", 0, 0)
        assert widget.overlays["line"].options.stroke == thick
        assert widget.overlays["p"].options.image_url == "other.png"

    def test_label_gets_default_font(self):
        engine, m, widget = _ready_map()
        engine.set_default_font(Font(name="Calibri"))
        m.add_point("p", 0, 0, Label("hello"))
        assert widget.overlays["p"].options.label.font.name == "Calibri"


class TestQueries:
    def test_get_type(self):
        engine, m, widget = _ready_map()
        m.add_polyline("line", [(0, 0), (1, 1)])
        assert m.get_type("line") is OverlayType.POLYLINE
        with pytest.raises(IdNotFound):
            m.get_type("missing")

    def test_get_by_type_includes_hidden(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.add_point("b", 0, 0)
        m.add_polygon("c", [(0, 0), (1, 1), (1, 0)])
        m.hide("a")
        assert sorted(m.get_by_type(OverlayType.POINT)) == ["a", "b"]
        assert m.get_by_type(OverlayType.POLYGON) == ["c"]
        assert m.get_by_type(OverlayType.POLYLINE) == []

    def test_locate(self):
        engine, m, widget = _ready_map()
        m.add_point("p", 10, 20)
        m.locate("p", 8)
        assert widget.center == LatLng(10, 20)
        assert widget.zoom == 8
        with pytest.raises(IdNotFound):
            m.locate("missing")


class TestDeletion:
    def test_remove(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.remove("a")
        assert "a" not in widget.overlays
        with pytest.raises(IdNotFound):
            m.get_type("a")

    def test_remove_missing_is_strict(self):
        engine, m, widget = _ready_map()
        with pytest.raises(IdNotFound):
            m.remove("missing")

    def test_remove_hidden(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.hide("a")
        m.remove("a")
        assert m.get_by_type(OverlayType.POINT) == []

    def test_removed_id_can_be_reused(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.remove("a")
        assert m.add_point("a", 1, 1) == "a"

    def test_remove_by_type_counts(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.add_point("b", 0, 0)
        m.hide("b")
        m.add_polyline("line", [(0, 0), (1, 1)])
        assert m.remove_by_type(OverlayType.POINT) == 2
        assert m.remove_by_type(OverlayType.POINT) == 0
        assert m.get_by_type(OverlayType.POLYLINE) == ["line"]

    def test_remove_all(self):
        engine, m, widget = _ready_map()
        m.add_point("a", 0, 0)
        m.add_polyline("line", [(0, 0), (1, 1)])
        m.add_polygon("area", [(0, 0), (1, 1), (1, 0)])
        m.hide("area")
        assert m.remove_all() == 3
        assert widget.overlays == {}
        assert m.remove_all() == 0
