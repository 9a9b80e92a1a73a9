"""Engine: owns one registry and wires the components around it.

Engines are independent: each has its own maps, overlays, listeners,
readiness counters and deferred queue.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Callable

from mapfx._anchor import MapRegistry
from mapfx.aggregation import EventAggregator
from mapfx.backend import MapType
from mapfx.construction import ConstructionQueue
from mapfx.dispatch import Dispatcher, resolve
from mapfx.groups import GroupIndex
from mapfx.listeners import ListenerRegistry
from mapfx.map import Map
from mapfx.overlays import OverlayIndex
from mapfx.styles import Defaults

if TYPE_CHECKING:
    from mapfx.backend import MapBackend, MapWidget
    from mapfx.styles import Fill, Font, Label, Stroke


class Engine:
    """Deferred-command map engine.

    Usage:
        backend = MemoryBackend()
        engine = Engine(backend)
        m = engine.create_map("map")
        token = m.add_point("p1", 10, 20)   # queued, map not ready yet
        backend.ready_all()                 # queue drains here
        token.result()                      # "p1"
    """

    def __init__(
        self,
        backend: MapBackend,
        *,
        defaults: Defaults | None = None,
        on_ready: Callable[[], None] | None = None,
    ) -> None:
        self.backend = backend
        self.defaults = defaults if defaults is not None else Defaults()
        self.on_ready = on_ready
        self.registry = MapRegistry()
        self.listeners = ListenerRegistry(self.registry)
        self.events = EventAggregator(self.registry, self.listeners)
        self.groups = GroupIndex(self.registry, self.events, self.listeners)
        self.overlays = OverlayIndex(self.registry, self.events, self.listeners, self.groups)
        self.construction = ConstructionQueue(self.registry, backend, self._fully_ready)
        self.dispatcher = Dispatcher(self)
        backend.set_ready_callback(self.construction.map_ready)

    @property
    def is_ready(self) -> bool:
        return self.construction.is_ready

    def create_map(
        self,
        container: str,
        center_lat: float | None = None,
        center_lng: float | None = None,
        zoom: int | None = None,
        map_type: MapType | None = None,
    ) -> Map:
        """Request a map. The handle is usable at once; its commands queue until ready."""
        map_id = self.construction.request(container, center_lat, center_lng, zoom, map_type)
        return Map(self, map_id)

    def map_ready(self) -> None:
        self.construction.map_ready()

    def submit(self, map_id: int, operation: int | str, *args, **kwargs):
        return self.dispatcher.submit(map_id, operation, args, kwargs)

    def resolve(self, value: Any) -> Any:
        return resolve(value)

    def widget(self, map_id: int) -> MapWidget:
        return self.registry.widget(map_id)

    def _fully_ready(self) -> None:
        self.dispatcher.drain()
        if self.on_ready is not None:
            self.on_ready()

    # --- Defaults ---

    def set_default_stroke(self, stroke: Stroke) -> None:
        self.defaults.stroke = stroke

    def set_default_fill(self, fill: Fill) -> None:
        self.defaults.fill = fill

    def set_default_font(self, font: Font) -> None:
        self.defaults.font = font

    def set_default_point_url(self, url: str) -> None:
        self.defaults.point_url = url

    def with_default_font(self, label: Label) -> Label:
        return dataclasses.replace(label, font=self.defaults.font)
