"""Group membership and the overlay -> groups back-reference index.

Both sides are mutated together in every method here; nothing else writes
``MapState.groups`` or ``MapState.bindings``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mapfx._anchor import MapRegistry
    from mapfx.aggregation import EventAggregator
    from mapfx.listeners import ListenerRegistry


class GroupIndex:
    def __init__(
        self, registry: MapRegistry, events: EventAggregator, listeners: ListenerRegistry
    ) -> None:
        self._registry = registry
        self._events = events
        self._listeners = listeners

    def get(self, map_id: int, group_id: str) -> list[str] | None:
        """The live member list, or None. Callers must copy before iterating mutably."""
        if not group_id:
            return None
        return self._registry[map_id].groups.get(group_id)

    def exists(self, map_id: int, group_id: str) -> bool:
        return self.get(map_id, group_id) is not None

    def create(self, map_id: int, group_id: str, members: list[str]) -> None:
        state = self._registry[map_id]
        members = list(dict.fromkeys(members))
        state.groups[group_id] = members
        for overlay_id in members:
            state.bindings.setdefault(overlay_id, []).append(group_id)
        state.group_listeners[group_id] = {}

    def delete(self, map_id: int, group_id: str) -> bool:
        """Forget a group. Members survive; only their back-reference goes."""
        state = self._registry[map_id]
        members = state.groups.pop(group_id, None) if group_id else None
        if members is None:
            return False
        for overlay_id in members:
            bound = state.bindings.get(overlay_id)
            if bound and group_id in bound:
                bound.remove(group_id)
        self._listeners.drop_group(map_id, group_id)
        return True

    def detach(self, map_id: int, overlay_id: str) -> None:
        """Remove a deleted overlay from every group, staging each group's onremove."""
        state = self._registry[map_id]
        for group_id in state.bindings.pop(overlay_id, ()):
            handles = self._listeners.lookup_group(map_id, group_id, "onremove")
            self._events.stage_group_removal(handles, group_id)
            members = state.groups.get(group_id)
            if members and overlay_id in members:
                members.remove(overlay_id)
