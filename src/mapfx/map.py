"""Thin Map handle forwarding every call to Engine.submit.

Each method returns the command's value when the engine is ready, or a
ResultToken when the call was queued.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterable, Mapping

if TYPE_CHECKING:
    from mapfx.backend import MapType, OverlayType
    from mapfx.engine import Engine
    from mapfx.listeners import Listener
    from mapfx.styles import Fill, Label, Stroke


class Map:
    __slots__ = ("_engine", "id")

    def __init__(self, engine: Engine, map_id: int) -> None:
        self._engine = engine
        self.id = map_id

    def _submit(self, operation: str, *args, **kwargs):
        return self._engine.submit(self.id, operation, *args, **kwargs)

    # --- View ---

    def set_center(self, lat: float, lng: float, zoom: int | None = None):
        return self._submit("set_center", lat, lng, zoom)

    def set_zoom(self, zoom: int):
        return self._submit("set_zoom", zoom)

    def set_map_type(self, map_type: MapType):
        return self._submit("set_map_type", map_type)

    def get_center(self):
        return self._submit("get_center")

    def get_zoom(self):
        return self._submit("get_zoom")

    def get_map_type(self):
        return self._submit("get_map_type")

    def get_size(self):
        return self._submit("get_size")

    def get_bounds(self):
        return self._submit("get_bounds")

    def translate(self, east: float, south: float):
        return self._submit("translate", east, south)

    def from_lat_lng_to_point(self, lat: float, lng: float):
        return self._submit("from_lat_lng_to_point", lat, lng)

    def from_point_to_lat_lng(self, x: float, y: float):
        return self._submit("from_point_to_lat_lng", x, y)

    # --- Overlays ---

    def add_point(
        self,
        id: str | None,
        lat: float,
        lng: float,
        label: Label | None = None,
        image_url: str | None = None,
        zoom_levels: tuple[int, int] | None = None,
        z_index: int | None = None,
        image_pos_x: float = 0,
        image_pos_y: float = 0,
        editable: bool = False,
    ):
        return self._submit(
            "add_point", id, lat, lng, label, image_url, zoom_levels, z_index,
            image_pos_x, image_pos_y, editable,
        )

    def add_polyline(
        self,
        id: str | None,
        data: Iterable,
        stroke: Stroke | None = None,
        label: Label | None = None,
        zoom_levels: tuple[int, int] | None = None,
        z_index: int | None = None,
        editable: bool = False,
    ):
        return self._submit("add_polyline", id, data, stroke, label, zoom_levels, z_index, editable)

    def add_polygon(
        self,
        id: str | None,
        data: Iterable,
        stroke: Stroke | None = None,
        fill: Fill | None = None,
        label: Label | None = None,
        zoom_levels: tuple[int, int] | None = None,
        z_index: int | None = None,
        editable: bool = False,
    ):
        return self._submit(
            "add_polygon", id, data, stroke, fill, label, zoom_levels, z_index, editable
        )

    def get_type(self, id: str):
        return self._submit("get_type", id)

    def get_by_type(self, type: OverlayType):
        return self._submit("get_by_type", type)

    def locate(self, id: str, zoom: int | None = None):
        return self._submit("locate", id, zoom)

    def remove(self, id: str):
        return self._submit("remove", id)

    def remove_by_type(self, type: OverlayType):
        return self._submit("remove_by_type", type)

    def remove_all(self):
        return self._submit("remove_all")

    # --- Visibility ---

    def hide(self, id: str):
        return self._submit("hide", id)

    def hide_by_type(self, type: OverlayType):
        return self._submit("hide_by_type", type)

    def hide_all(self):
        return self._submit("hide_all")

    def show(self, id: str):
        return self._submit("show", id)

    def show_by_type(self, type: OverlayType):
        return self._submit("show_by_type", type)

    def show_all(self):
        return self._submit("show_all")

    def is_hidden(self, id: str):
        return self._submit("is_hidden", id)

    # --- Listeners ---

    def add_map_event(self, events: Mapping[str, Listener]):
        return self._submit("add_map_event", events)

    def add_overlay_event(self, id: str, events: Mapping[str, Listener]):
        return self._submit("add_overlay_event", id, events)

    def add_overlay_event_by_type(self, type: OverlayType, events: Mapping[str, Listener]):
        return self._submit("add_overlay_event_by_type", type, events)

    def add_overlay_event_to_all(self, events: Mapping[str, Listener]):
        return self._submit("add_overlay_event_to_all", events)

    def remove_map_event(self, event_type: str):
        return self._submit("remove_map_event", event_type)

    def remove_overlay_event(self, id: str, event_type: str):
        return self._submit("remove_overlay_event", id, event_type)

    def remove_overlay_event_by_type(self, overlay_type: OverlayType, event_type: str):
        return self._submit("remove_overlay_event_by_type", overlay_type, event_type)

    def remove_all_overlay_event(self, event_type: str):
        return self._submit("remove_all_overlay_event", event_type)

    # --- Groups ---

    def group(self, id: str | None, members: Iterable[str]):
        return self._submit("group", id, members)

    def ungroup(self, id: str):
        return self._submit("ungroup", id)

    def get_group(self, id: str):
        return self._submit("get_group", id)

    def remove_group(self, id: str):
        return self._submit("remove_group", id)

    def hide_group(self, id: str):
        return self._submit("hide_group", id)

    def show_group(self, id: str):
        return self._submit("show_group", id)

    def locate_group(self, id: str, zoom: int | None = None):
        return self._submit("locate_group", id, zoom)

    def add_group_event(self, id: str, events: Mapping[str, Listener]):
        return self._submit("add_group_event", id, events)

    def remove_group_event(self, id: str, event_type: str):
        return self._submit("remove_group_event", id, event_type)

    def run(self, fn: Callable[[], object]):
        """Run fn with group events deduplicated across every command it issues."""
        return self._submit("run", fn)

    def __repr__(self) -> str:
        return f"Map({self.id})"
