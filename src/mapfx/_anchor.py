"""Data anchor — plain Python structures that hold all map state.

One MapRegistry per Engine stores the raw data for every map it created:
widgets, hidden overlays, groups, group bindings and listener tables.
The behavior modules (overlays, groups, listeners, aggregation) operate on
it but own none of it, so several engines never share state.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mapfx.backend import OverlayType

if TYPE_CHECKING:
    from mapfx.backend import MapWidget
    from mapfx.listeners import ListenerHandle

    # subject id -> event type -> handles
    ListenerTable = dict[str, dict[str, list[ListenerHandle]]]

MAP_SUBJECT = "__map__"


def _hidden_partitions() -> dict[OverlayType, list]:
    return {t: [] for t in OverlayType}


@dataclass(slots=True)
class MapState:
    map_id: int
    container: str
    widget: MapWidget | None = None
    hidden: dict[OverlayType, list] = field(default_factory=_hidden_partitions)
    listeners: ListenerTable = field(default_factory=lambda: {MAP_SUBJECT: {}})
    groups: dict[str, list[str]] = field(default_factory=dict)  # group -> members
    group_listeners: ListenerTable = field(default_factory=dict)
    bindings: dict[str, list[str]] = field(
        default_factory=lambda: {MAP_SUBJECT: []}
    )  # overlay -> groups


class MapRegistry:
    """Every map of one engine, keyed by sequence number."""

    def __init__(self) -> None:
        self.maps: dict[int, MapState] = {}
        self._id_counter = itertools.count()

    def new_map(self, container: str) -> MapState:
        state = MapState(next(self._id_counter), container)
        self.maps[state.map_id] = state
        return state

    def __getitem__(self, map_id: int) -> MapState:
        return self.maps[map_id]

    def discard(self, map_id: int) -> None:
        self.maps.pop(map_id, None)

    def widget(self, map_id: int) -> MapWidget:
        return self.maps[map_id].widget
