"""Domain errors raised by map commands.

Immediately executed commands raise these to the caller. Commands replayed
from the deferred queue record them on their ResultToken instead.
"""

from __future__ import annotations


class MapError(Exception):
    """Base class for every error a map command can signal."""


class IdAlreadyExists(MapError):
    """An overlay or group id is already taken (or is the reserved map id)."""

    def __init__(self, map_id: int, id: str) -> None:
        super().__init__(f"id {id!r} already exists on map {map_id}")
        self.map_id = map_id
        self.id = id


class IdNotFound(MapError):
    """An operation referenced an overlay or group id that does not exist."""

    def __init__(self, map_id: int, id: object) -> None:
        super().__init__(f"id {id!r} does not exist on map {map_id}")
        self.map_id = map_id
        self.id = id


class PendingResult(MapError):
    """A ResultToken was read before its command was replayed."""


class BatchAborted(MapError):
    """The drain stopped on an unexpected error before this command ran."""
