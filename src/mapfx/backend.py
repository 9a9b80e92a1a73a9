"""The widget surface mapfx drives.

The map widget itself (tiles, hit-testing, projection, drawing) lives
outside this package. This module names the small surface the engine needs
from it, plus the value types that cross the boundary.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol


@dataclass(frozen=True, slots=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Bounds:
    south_west: LatLng
    north_east: LatLng


class MapType(enum.Enum):
    CMAP = "cmap"
    GOOGLEMAP = "googlemap"
    GOOGLESATELLITE = "googlesatellite"


class OverlayType(enum.Enum):
    POINT = "point"
    POLYLINE = "polyline"
    POLYGON = "polygon"


class WidgetEvent(enum.Enum):
    MOVE_END = "move_end"
    ZOOM_CHANGED = "zoom_changed"
    MAPTYPE_CHANGED = "maptype_changed"
    CLICK = "click"
    DOUBLE_CLICK = "double_click"
    MOUSE_DOWN = "mouse_down"
    MOUSE_UP = "mouse_up"
    MOUSE_MOVE = "mouse_move"
    MOUSE_OVER = "mouse_over"
    MOUSE_OUT = "mouse_out"


# Event names the widget can deliver by itself. Anything else (onadd,
# onhide, onshow, onremove) is only ever fired by the aggregation engine.
NATIVE_EVENTS: dict[str, WidgetEvent] = {
    "onchange": WidgetEvent.MOVE_END,
    "onzoom": WidgetEvent.ZOOM_CHANGED,
    "onchangemaptype": WidgetEvent.MAPTYPE_CHANGED,
    "onclick": WidgetEvent.CLICK,
    "ondoubleclick": WidgetEvent.DOUBLE_CLICK,
    "onmousedown": WidgetEvent.MOUSE_DOWN,
    "onmouseup": WidgetEvent.MOUSE_UP,
    "onmousemove": WidgetEvent.MOUSE_MOVE,
    "onmouseover": WidgetEvent.MOUSE_OVER,
    "onmouseout": WidgetEvent.MOUSE_OUT,
}

# Only the map itself reports these; overlays and groups never do.
VIEW_EVENTS = frozenset(
    {WidgetEvent.MOVE_END, WidgetEvent.ZOOM_CHANGED, WidgetEvent.MAPTYPE_CHANGED}
)


def native_event(name: str) -> WidgetEvent | None:
    """Translate an event name to the widget's event, or None if it has none."""
    return NATIVE_EVENTS.get(name)


class MapWidget(Protocol):
    """One live map created by a MapBackend."""

    def set_center(self, center: LatLng, zoom: int) -> None: ...
    def set_zoom(self, zoom: int) -> None: ...
    def set_map_type(self, map_type: MapType) -> None: ...
    def get_center(self) -> LatLng: ...
    def get_zoom(self) -> int: ...
    def get_map_type(self) -> MapType: ...
    def get_size(self) -> tuple[int, int]: ...
    def get_bounds(self) -> Bounds: ...
    def pan_by(self, dx: float, dy: float) -> None: ...
    def from_lat_lng_to_point(self, lat_lng: LatLng) -> Point: ...
    def from_point_to_lat_lng(self, point: Point) -> LatLng: ...

    def add_overlay(self, overlay, refresh: bool) -> None: ...
    def remove_overlay(self, overlay) -> None: ...
    def get_overlay_by_id(self, id: str): ...
    def get_overlays_by_type(self, type: OverlayType) -> list: ...
    def locate_overlay(self, overlay, zoom: int | None = None) -> None: ...
    def locate_overlays(self, overlays: Iterable, zoom: int | None = None) -> None: ...

    def add_event_listener(
        self, target, event: WidgetEvent, callback: Callable[[LatLng], None]
    ) -> None: ...


class MapBackend(Protocol):
    """Factory for MapWidgets with a single global readiness callback."""

    def set_ready_callback(self, callback: Callable[[], None]) -> None: ...

    def create(
        self, container: str, center: LatLng, zoom: int, map_type: MapType
    ) -> MapWidget: ...
