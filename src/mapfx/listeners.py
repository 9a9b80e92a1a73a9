"""Listener tables — registration, tombstoning and native trampolines.

A listener is stored as a ListenerHandle under (map, subject, event type).
Event types the widget can deliver itself also get a trampoline wired at the
widget level. Trampolines are never unsubscribed: removal flips the handle's
``active`` flag and the trampoline becomes a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Mapping

from mapfx._anchor import MAP_SUBJECT
from mapfx.backend import VIEW_EVENTS, LatLng, native_event

if TYPE_CHECKING:
    from mapfx._anchor import ListenerTable, MapRegistry

logger = logging.getLogger("mapfx.listeners")


def normalize_lng(lng: float) -> float:
    """Fold a longitude into [0, 360)."""
    return lng % 360


@dataclass(frozen=True, slots=True)
class MapEvent:
    """Payload every listener receives."""

    lat: float
    lng: float
    id: str


Listener = Callable[[MapEvent], None]


class ListenerHandle:
    """A callback plus its tombstone."""

    __slots__ = ("callback", "active")

    def __init__(self, callback: Listener) -> None:
        self.callback = callback
        self.active = True

    def fire(self, event: MapEvent) -> None:
        self.callback(event)

    def __repr__(self) -> str:
        state = "active" if self.active else "removed"
        name = getattr(self.callback, "__name__", repr(self.callback))
        return f"ListenerHandle({name}, {state})"


def _trampoline(handle: ListenerHandle, subject: str) -> Callable[[LatLng], None]:
    def _deliver(lat_lng: LatLng) -> None:
        if not handle.active:
            return
        handle.fire(MapEvent(lat_lng.lat, normalize_lng(lat_lng.lng), subject))

    return _deliver


def _tombstone(handles: Iterable[ListenerHandle]) -> None:
    for handle in handles:
        handle.active = False


class ListenerRegistry:
    """Listener tables for overlays, groups and the map subject."""

    def __init__(self, registry: MapRegistry) -> None:
        self._registry = registry

    # --- Registration ---

    def add(self, map_id: int, subject: str, events: Mapping[str, Listener], target) -> None:
        """Register ``events`` on an overlay (or the map subject).

        ``target`` is the object native trampolines attach to: the overlay,
        or the widget itself for the map subject.
        """
        state = self._registry[map_id]
        by_type = state.listeners.setdefault(subject, {})
        for event_type, callback in events.items():
            handle = ListenerHandle(callback)
            by_type.setdefault(event_type, []).append(handle)
            self._wire(map_id, subject, event_type, handle, [target])

    def add_group(
        self, map_id: int, group_id: str, events: Mapping[str, Listener], members: list
    ) -> None:
        """Register ``events`` on a group, wiring natives on every current member."""
        by_type = self._registry[map_id].group_listeners.setdefault(group_id, {})
        for event_type, callback in events.items():
            handle = ListenerHandle(callback)
            by_type.setdefault(event_type, []).append(handle)
            self._wire(map_id, group_id, event_type, handle, members, group=True)

    def _wire(self, map_id, subject, event_type, handle, targets, *, group=False) -> None:
        widget_event = native_event(event_type)
        if widget_event is None:
            return
        widget = self._registry.widget(map_id)
        if not group and subject == MAP_SUBJECT:
            widget.add_event_listener(widget, widget_event, _trampoline(handle, subject))
            return
        if widget_event in VIEW_EVENTS:
            return
        deliver = _trampoline(handle, subject)
        for target in targets:
            widget.add_event_listener(target, widget_event, deliver)
        logger.debug("wired %s on %r (map %d)", event_type, subject, map_id)

    # --- Lookup ---

    def lookup(self, map_id: int, subject: str, event_type: str) -> list[ListenerHandle]:
        return _lookup(self._registry[map_id].listeners, subject, event_type)

    def lookup_group(self, map_id: int, group_id: str, event_type: str) -> list[ListenerHandle]:
        return _lookup(self._registry[map_id].group_listeners, group_id, event_type)

    # --- Removal ---

    def remove(self, map_id: int, subject: str, event_type: str) -> None:
        _clear(self._registry[map_id].listeners, subject, event_type)

    def remove_group(self, map_id: int, group_id: str, event_type: str) -> None:
        _clear(self._registry[map_id].group_listeners, group_id, event_type)

    def drop(self, map_id: int, subject: str) -> list[ListenerHandle]:
        """Tombstone every listener of a deleted overlay. Returns its onremove handles."""
        return _drop(self._registry[map_id].listeners, subject)

    def drop_group(self, map_id: int, group_id: str) -> list[ListenerHandle]:
        return _drop(self._registry[map_id].group_listeners, group_id)


def _lookup(table: ListenerTable, subject: str, event_type: str) -> list[ListenerHandle]:
    return table.get(subject, {}).get(event_type, [])


def _clear(table: ListenerTable, subject: str, event_type: str) -> None:
    by_type = table.get(subject)
    if not by_type:
        return
    _tombstone(by_type.get(event_type, ()))
    by_type[event_type] = []


def _drop(table: ListenerTable, subject: str) -> list[ListenerHandle]:
    by_type = table.pop(subject, None)
    if not by_type:
        return []
    for handles in by_type.values():
        _tombstone(handles)
    return list(by_type.get("onremove", ()))
