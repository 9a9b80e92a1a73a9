"""Headless in-memory widget — drives the engine without a real map.

Positions use a flat equirectangular mapping (256 * 2**zoom pixels per
360 degrees) around the current centre. Readiness is signalled explicitly
with ``ready()``/``ready_all()`` unless ``auto_ready`` is set.
"""

from __future__ import annotations

from typing import Callable, Iterable

from mapfx.backend import Bounds, LatLng, MapType, OverlayType, Point, WidgetEvent


class MemoryWidget:
    def __init__(
        self,
        container: str,
        center: LatLng,
        zoom: int,
        map_type: MapType,
        size: tuple[int, int] = (800, 600),
    ) -> None:
        self.container = container
        self.center = center
        self.zoom = zoom
        self.map_type = map_type
        self.size = size
        self.ready = False
        self.overlays: dict[str, object] = {}
        self.subscriptions: list[tuple[object, WidgetEvent, Callable[[LatLng], None]]] = []

    @property
    def _px_per_degree(self) -> float:
        return 256 * 2**self.zoom / 360

    # --- View ---

    def set_center(self, center: LatLng, zoom: int) -> None:
        zoomed = zoom != self.zoom
        self.center = center
        self.zoom = zoom
        self.dispatch(self, WidgetEvent.MOVE_END, center.lat, center.lng)
        if zoomed:
            self.dispatch(self, WidgetEvent.ZOOM_CHANGED, center.lat, center.lng)

    def set_zoom(self, zoom: int) -> None:
        self.zoom = zoom
        self.dispatch(self, WidgetEvent.ZOOM_CHANGED, self.center.lat, self.center.lng)

    def set_map_type(self, map_type: MapType) -> None:
        self.map_type = map_type
        self.dispatch(self, WidgetEvent.MAPTYPE_CHANGED, self.center.lat, self.center.lng)

    def get_center(self) -> LatLng:
        return self.center

    def get_zoom(self) -> int:
        return self.zoom

    def get_map_type(self) -> MapType:
        return self.map_type

    def get_size(self) -> tuple[int, int]:
        return self.size

    def get_bounds(self) -> Bounds:
        half_w = self.size[0] / 2 / self._px_per_degree
        half_h = self.size[1] / 2 / self._px_per_degree
        c = self.center
        return Bounds(LatLng(c.lat - half_h, c.lng - half_w), LatLng(c.lat + half_h, c.lng + half_w))

    def pan_by(self, dx: float, dy: float) -> None:
        ppd = self._px_per_degree
        self.center = LatLng(self.center.lat - dy / ppd, self.center.lng + dx / ppd)
        self.dispatch(self, WidgetEvent.MOVE_END, self.center.lat, self.center.lng)

    def from_lat_lng_to_point(self, lat_lng: LatLng) -> Point:
        ppd = self._px_per_degree
        x = (lat_lng.lng - self.center.lng) * ppd + self.size[0] / 2
        y = (self.center.lat - lat_lng.lat) * ppd + self.size[1] / 2
        return Point(x, y)

    def from_point_to_lat_lng(self, point: Point) -> LatLng:
        ppd = self._px_per_degree
        lng = self.center.lng + (point.x - self.size[0] / 2) / ppd
        lat = self.center.lat - (point.y - self.size[1] / 2) / ppd
        return LatLng(lat, lng)

    # --- Overlays ---

    def add_overlay(self, overlay, refresh: bool) -> None:
        self.overlays[overlay.id] = overlay

    def remove_overlay(self, overlay) -> None:
        self.overlays.pop(overlay.id, None)

    def get_overlay_by_id(self, id: str):
        return self.overlays.get(id)

    def get_overlays_by_type(self, type: OverlayType) -> list:
        return [o for o in self.overlays.values() if o.type is type]

    def locate_overlay(self, overlay, zoom: int | None = None) -> None:
        self.locate_overlays([overlay], zoom)

    def locate_overlays(self, overlays: Iterable, zoom: int | None = None) -> None:
        points = [p for o in overlays for p in o.points]
        if not points:
            return
        lat = sum(p.lat for p in points) / len(points)
        lng = sum(p.lng for p in points) / len(points)
        self.set_center(LatLng(lat, lng), zoom or self.zoom)

    # --- Native events ---

    def add_event_listener(self, target, event: WidgetEvent, callback: Callable[[LatLng], None]) -> None:
        self.subscriptions.append((target, event, callback))

    def dispatch(self, target, event: WidgetEvent, lat: float, lng: float) -> None:
        """Deliver a native event to every subscription on ``target``."""
        for subscribed, kind, callback in list(self.subscriptions):
            if subscribed is target and kind is event:
                callback(LatLng(lat, lng))

    def __repr__(self) -> str:
        return f"MemoryWidget({self.container!r}, {len(self.overlays)} overlays)"


class MemoryBackend:
    """Creates MemoryWidgets and signals their readiness on request."""

    def __init__(self, *, auto_ready: bool = False, size: tuple[int, int] = (800, 600)) -> None:
        self.auto_ready = auto_ready
        self.size = size
        self.widgets: list[MemoryWidget] = []
        self._pending: list[MemoryWidget] = []
        self._ready_callback: Callable[[], None] | None = None

    def set_ready_callback(self, callback: Callable[[], None]) -> None:
        self._ready_callback = callback

    def create(self, container: str, center: LatLng, zoom: int, map_type: MapType) -> MemoryWidget:
        widget = MemoryWidget(container, center, zoom, map_type, self.size)
        self.widgets.append(widget)
        self._pending.append(widget)
        if self.auto_ready:
            self.ready(widget)
        return widget

    def ready(self, widget: MemoryWidget | None = None) -> None:
        """Signal readiness for ``widget`` (default: the oldest pending one)."""
        if widget is None:
            widget = self._pending[0]
        self._pending.remove(widget)
        widget.ready = True
        if self._ready_callback is not None:
            self._ready_callback()

    def ready_all(self) -> None:
        for widget in list(self._pending):
            self.ready(widget)
