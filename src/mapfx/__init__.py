"""mapfx: deferred-command map widget wrapper with unified overlay events."""

from importlib.metadata import version as _version

__version__ = _version("mapfx")

from mapfx.backend import LatLng, MapType, OverlayType, WidgetEvent
from mapfx.errors import BatchAborted, IdAlreadyExists, IdNotFound, MapError, PendingResult
from mapfx.listeners import MapEvent
from mapfx.dispatch import ResultToken
from mapfx.engine import Engine
from mapfx.map import Map
from mapfx.memory import MemoryBackend
from mapfx.styles import Defaults, Fill, Font, Label, Stroke
from mapfx._anchor import MAP_SUBJECT
# textual is opt-in, import mapfx.textual explicitly

__all__ = [
    "Engine",
    "Map",
    "ResultToken",
    "MapEvent",
    "MAP_SUBJECT",
    "LatLng",
    "MapType",
    "OverlayType",
    "WidgetEvent",
    "MemoryBackend",
    "Defaults",
    "Fill",
    "Font",
    "Label",
    "Stroke",
    "MapError",
    "IdAlreadyExists",
    "IdNotFound",
    "PendingResult",
    "BatchAborted",
]
