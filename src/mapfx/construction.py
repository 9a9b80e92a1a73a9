"""Construction queue — creates widgets and tracks global readiness.

Map creation requests are pushed on a stack and drained by a single
non-reentrant routine. Each widget later reports readiness through the
backend's global callback; once every created map is ready the engine is
"fully ready" and the deferred command queue drains.

There is one readiness gate for the whole engine: while any map is pending,
operations on every map are deferred.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from mapfx.backend import LatLng, MapType

if TYPE_CHECKING:
    from mapfx._anchor import MapRegistry
    from mapfx.backend import MapBackend

logger = logging.getLogger("mapfx.construction")


class ConstructionQueue:
    def __init__(
        self,
        registry: MapRegistry,
        backend: MapBackend,
        on_fully_ready: Callable[[], None],
    ) -> None:
        self._registry = registry
        self._backend = backend
        self._on_fully_ready = on_fully_ready
        self._waiting: list[tuple[int, tuple]] = []
        self._creating = False
        # Set when the last readiness signal arrives while a widget is being created.
        self._ready_deferred = False
        # A readiness signal arrived since the gate last opened.
        self._signalled = False
        self.map_count = 0
        self.ready_count = 0

    @property
    def is_ready(self) -> bool:
        return self.ready_count == self.map_count

    def request(
        self,
        container: str,
        center_lat: float | None = None,
        center_lng: float | None = None,
        zoom: int | None = None,
        map_type: MapType | None = None,
    ) -> int:
        """Reserve a map id now; the widget is created by the construction routine."""
        state = self._registry.new_map(container)
        self.map_count += 1
        self._waiting.append((state.map_id, (container, center_lat, center_lng, zoom, map_type)))
        self._create_pending()
        return state.map_id

    def _create_pending(self) -> None:
        if self._creating:
            return
        self._creating = True
        failure = None
        try:
            while self._waiting:
                map_id, (container, lat, lng, zoom, map_type) = self._waiting.pop()
                center = LatLng(30 if lat is None else lat, 120 if lng is None else lng)
                try:
                    widget = self._backend.create(
                        container, center, zoom or 5, map_type or MapType.GOOGLEMAP
                    )
                except Exception as exc:
                    logger.exception("creating map %d in %r failed", map_id, container)
                    self._release(map_id)
                    if failure is None:
                        failure = exc
                    continue
                self._registry[map_id].widget = widget
                logger.debug("created map %d in %r", map_id, container)
        finally:
            self._creating = False
        if self._ready_deferred:
            self._ready_deferred = False
            if self.is_ready:
                self._become_ready()
        if failure is not None:
            raise failure

    def _release(self, map_id: int) -> None:
        """Give back a reservation whose widget could not be created."""
        self._registry.discard(map_id)
        self.map_count -= 1
        self.ready_count = min(self.ready_count, self.map_count)
        # The failed map may have been all that held the gate shut.
        if self._signalled and self.is_ready:
            self._ready_deferred = True

    def map_ready(self) -> None:
        """Global readiness callback, invoked once per created widget."""
        if self.ready_count >= self.map_count:
            logger.warning(
                "ignoring readiness signal: %d of %d maps already ready",
                self.ready_count, self.map_count,
            )
            return
        self.ready_count += 1
        self._signalled = True
        logger.debug("map ready (%d/%d)", self.ready_count, self.map_count)
        if not self.is_ready:
            return
        # Widgets signalling from inside create() have no registry slot yet.
        if self._creating:
            self._ready_deferred = True
        else:
            self._become_ready()

    def _become_ready(self) -> None:
        self._signalled = False
        logger.info("all %d maps ready", self.map_count)
        self._on_fully_ready()
