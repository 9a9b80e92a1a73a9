"""Event aggregation — the heart of mapfx.

After every top-level command the aggregator works out which subjects the
command touched, fires their listeners, fans out to the groups containing
them, then drains the onremove notifications staged by overlay deletion.

Everything a command stages belongs to that command's pass: ``notify`` takes
the staged state and leaves a fresh one behind, so a listener that issues
further commands starts passes of its own without seeing or resetting the
outer one.

Group dedup: a group is notified at most once per pass. Inside ``atomic()``
(the body of a ``run`` command) every pass shares one dedup set, so a group
is notified at most once for the whole atomic scope.
"""

from __future__ import annotations

import enum
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterable, Iterator

from mapfx._anchor import MAP_SUBJECT
from mapfx.listeners import MapEvent, normalize_lng

if TYPE_CHECKING:
    from mapfx._anchor import MapRegistry
    from mapfx.listeners import ListenerHandle, ListenerRegistry


class Subjects(enum.Enum):
    """Which subjects a command can affect."""

    NONE = "none"
    MAP = "map"  # the map subject only
    CHANGED = "changed"  # overlays changed this step, plus the map subject


class _Seen:
    """Groups already notified, and groups whose onremove is already staged."""

    __slots__ = ("groups", "removed_groups")

    def __init__(self) -> None:
        self.groups: set[str] = set()
        self.removed_groups: set[str] = set()


class _Staged:
    """What the command currently executing has touched."""

    __slots__ = ("changed", "overlay_removals", "group_removals", "seen")

    def __init__(self) -> None:
        self.changed: list[str] = []
        self.overlay_removals: list[tuple[ListenerHandle, str]] = []
        self.group_removals: list[tuple[ListenerHandle, str]] = []
        self.seen = _Seen()


class EventAggregator:
    """Per-engine fan-out: stages each command's changes, then fires its pass."""

    def __init__(self, registry: MapRegistry, listeners: ListenerRegistry) -> None:
        self._registry = registry
        self._listeners = listeners
        self._staged = _Staged()
        # Atomic depth counter. While > 0 every pass shares _atomic_seen.
        self._atomic_depth = 0
        self._atomic_seen: _Seen | None = None

    @property
    def in_atomic(self) -> bool:
        return self._atomic_depth > 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Widen group dedup across every command issued inside the block."""
        self._atomic_depth += 1
        if self._atomic_seen is None:
            self._atomic_seen = _Seen()
        try:
            yield
        finally:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                self._atomic_seen = None

    def _seen(self, staged: _Staged) -> _Seen:
        return self._atomic_seen if self._atomic_seen is not None else staged.seen

    def mark_changed(self, ids: Iterable[str]) -> None:
        """Record the overlays changed by the current step, replacing the last set."""
        self._staged.changed = list(ids)

    # --- Staging (called from overlay deletion) ---

    def stage_overlay_removal(self, handles: Iterable[ListenerHandle], overlay_id: str) -> None:
        self._staged.overlay_removals.extend((h, overlay_id) for h in handles)

    def stage_group_removal(self, handles: Iterable[ListenerHandle], group_id: str) -> None:
        staged = self._staged
        seen = self._seen(staged)
        if group_id in seen.removed_groups:
            return
        seen.removed_groups.add(group_id)
        staged.group_removals.extend((h, group_id) for h in handles)

    # --- Pass ---

    def notify(self, map_id: int, subjects: Subjects, event_types: tuple[str, ...]) -> None:
        """Fire everything the command just executed triggered."""
        staged, self._staged = self._staged, _Staged()
        affected = self._affected(staged, subjects) if event_types else []
        if affected or staged.overlay_removals or staged.group_removals:
            self._fire(map_id, staged, affected, event_types)

    def abandon(self) -> None:
        """Drop a failed command's staged state without firing it."""
        self._staged = _Staged()

    @staticmethod
    def _affected(staged: _Staged, subjects: Subjects) -> list[str]:
        if subjects is Subjects.MAP:
            return [MAP_SUBJECT]
        if subjects is Subjects.CHANGED and staged.changed:
            return [*staged.changed, MAP_SUBJECT]
        return []

    def _fire(
        self,
        map_id: int,
        staged: _Staged,
        affected: list[str],
        event_types: tuple[str, ...],
    ) -> None:
        center = self._registry.widget(map_id).get_center()
        lat, lng = center.lat, normalize_lng(center.lng)
        seen = self._seen(staged)

        # 1. Subjects themselves
        for subject in affected:
            for event_type in event_types:
                event = MapEvent(lat, lng, subject)
                for handle in list(self._listeners.lookup(map_id, subject, event_type)):
                    if handle.active:
                        handle.fire(event)

        # 2. Groups containing them, once each
        bindings = self._registry[map_id].bindings
        for subject in affected:
            for group_id in list(bindings.get(subject, ())):
                if group_id in seen.groups:
                    continue
                seen.groups.add(group_id)
                event = MapEvent(lat, lng, group_id)
                for event_type in event_types:
                    for handle in list(self._listeners.lookup_group(map_id, group_id, event_type)):
                        if handle.active:
                            handle.fire(event)

        # 3. Staged onremove listeners. Handles are already tombstoned.
        for handle, subject in staged.overlay_removals:
            handle.fire(MapEvent(lat, lng, subject))
        for handle, group_id in staged.group_removals:
            handle.fire(MapEvent(lat, lng, group_id))
