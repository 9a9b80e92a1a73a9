"""Overlay records, id allocation and the visible/hidden registry.

A visible overlay lives in the widget; a hidden one lives in the map's
hidden partition for its type. Ids are unique across both.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from mapfx._anchor import MAP_SUBJECT
from mapfx.backend import LatLng, OverlayType

if TYPE_CHECKING:
    from mapfx._anchor import MapRegistry
    from mapfx.aggregation import EventAggregator
    from mapfx.groups import GroupIndex
    from mapfx.listeners import ListenerRegistry
    from mapfx.styles import Fill, Label, Stroke


@dataclass(slots=True)
class OverlayOptions:
    zoom_levels: tuple[int, int] = (1, 18)
    z_index: int = 3
    editable: bool = False
    label: Label | None = None
    stroke: Stroke | None = None
    fill: Fill | None = None
    image_url: str | None = None
    image_pos: tuple[float, float] = (0, 0)


@dataclass(eq=False, slots=True)
class Overlay:
    """What the widget draws. Identity is the id; equality is object identity."""

    id: str
    type: OverlayType
    points: list[LatLng]
    options: OverlayOptions = field(default_factory=OverlayOptions)


def random_id() -> str:
    return secrets.token_hex(6)


def allocate_id(taken: Callable[[str], bool], factory: Callable[[], str] = random_id) -> str:
    """Draw random ids until one is free and is not the map subject."""
    while True:
        candidate = factory()
        if candidate != MAP_SUBJECT and not taken(candidate):
            return candidate


class OverlayIndex:
    def __init__(
        self,
        registry: MapRegistry,
        events: EventAggregator,
        listeners: ListenerRegistry,
        groups: GroupIndex,
    ) -> None:
        self._registry = registry
        self._events = events
        self._listeners = listeners
        self._groups = groups

    def resolve(self, map_id: int, id: str) -> Overlay | None:
        """Find an overlay, visible first, then hidden. None if absent."""
        if not id:
            return None
        state = self._registry[map_id]
        found = state.widget.get_overlay_by_id(id)
        if found is not None:
            return found
        for partition in state.hidden.values():
            for overlay in partition:
                if overlay.id == id:
                    return overlay
        return None

    def exists(self, map_id: int, id: str) -> bool:
        return self.resolve(map_id, id) is not None

    def is_visible(self, map_id: int, id: str) -> bool:
        return self._registry.widget(map_id).get_overlay_by_id(id) is not None

    def ids_by_type(self, map_id: int, type: OverlayType) -> list[str]:
        state = self._registry[map_id]
        ids = [o.id for o in state.widget.get_overlays_by_type(type)]
        ids.extend(o.id for o in state.hidden[type])
        return ids

    def all_ids(self, map_id: int) -> list[str]:
        ids = []
        for type in OverlayType:
            ids.extend(self.ids_by_type(map_id, type))
        return ids

    def allocate_id(self, map_id: int) -> str:
        return allocate_id(lambda candidate: self.exists(map_id, candidate))

    def register(self, map_id: int, overlay: Overlay) -> None:
        """Draw a new overlay and give it an empty group-membership record."""
        state = self._registry[map_id]
        state.widget.add_overlay(overlay, True)
        state.bindings[overlay.id] = []

    # --- Visibility ---

    def hide(self, map_id: int, overlay: Overlay) -> None:
        state = self._registry[map_id]
        state.hidden[overlay.type].append(overlay)
        state.widget.remove_overlay(overlay)

    def show(self, map_id: int, overlay: Overlay) -> None:
        state = self._registry[map_id]
        state.hidden[overlay.type].remove(overlay)
        state.widget.add_overlay(overlay, True)

    # --- Deletion ---

    def delete(self, map_id: int, id: str) -> None:
        """Destroy an overlay, its listeners and its group memberships.

        No-op for an absent id or the map subject. onremove listeners are
        staged, not fired; the aggregator fires them once the enclosing
        command has finished.
        """
        if not id or id == MAP_SUBJECT:
            return
        overlay = self.resolve(map_id, id)
        if overlay is None:
            return
        state = self._registry[map_id]

        if self.is_visible(map_id, id):
            state.widget.remove_overlay(overlay)
        else:
            state.hidden[overlay.type].remove(overlay)

        self._events.stage_overlay_removal(self._listeners.drop(map_id, id), id)
        self._groups.detach(map_id, id)
