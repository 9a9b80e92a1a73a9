"""The command table — every map operation, addressed by id or name.

Each command is a plain function ``body(engine, map_id, *args)`` registered
with ``@command``. The registration also records which subjects the command
affects and which event types it triggers; the dispatcher hands both to the
aggregator after the body returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Mapping

from mapfx._anchor import MAP_SUBJECT
from mapfx.aggregation import Subjects
from mapfx.backend import LatLng, MapType, OverlayType, Point
from mapfx.errors import IdAlreadyExists, IdNotFound
from mapfx.listeners import normalize_lng
from mapfx.overlays import Overlay, OverlayOptions, allocate_id

if TYPE_CHECKING:
    from mapfx.engine import Engine
    from mapfx.listeners import Listener
    from mapfx.styles import Fill, Label, Stroke

# Pixel width of the wrapped world; x from lat/lng -> pixel folds into it.
WORLD_WIDTH = 2050

_TYPE_ORDER = (OverlayType.POINT, OverlayType.POLYLINE, OverlayType.POLYGON)


@dataclass(frozen=True, slots=True)
class Command:
    op_id: int
    name: str
    body: Callable
    subjects: Subjects
    events: tuple[str, ...]


COMMANDS: dict[int, Command] = {}
BY_NAME: dict[str, Command] = {}


def command(op_id: int, name: str, *, subjects: Subjects = Subjects.NONE, events: tuple[str, ...] = ()):
    def decorator(fn):
        cmd = Command(op_id, name, fn, subjects, events)
        COMMANDS[op_id] = cmd
        BY_NAME[name] = cmd
        return fn

    return decorator


def lookup(operation: int | str) -> Command:
    table = BY_NAME if isinstance(operation, str) else COMMANDS
    try:
        return table[operation]
    except KeyError:
        raise ValueError(f"unknown map operation {operation!r}") from None


# ─── View ────────────────────────────────────────────────────────────────────


@command(0, "set_center")
def set_center(engine: Engine, map_id: int, lat: float, lng: float, zoom: int | None = None) -> None:
    engine.widget(map_id).set_center(LatLng(lat, lng), zoom or 5)


@command(1, "set_zoom")
def set_zoom(engine: Engine, map_id: int, zoom: int) -> None:
    engine.widget(map_id).set_zoom(zoom)


@command(2, "set_map_type")
def set_map_type(engine: Engine, map_id: int, map_type: MapType) -> None:
    engine.widget(map_id).set_map_type(map_type)


@command(3, "get_center")
def get_center(engine: Engine, map_id: int) -> tuple[float, float]:
    center = engine.widget(map_id).get_center()
    return center.lat, normalize_lng(center.lng)


@command(4, "get_zoom")
def get_zoom(engine: Engine, map_id: int) -> int:
    return engine.widget(map_id).get_zoom()


@command(5, "get_map_type")
def get_map_type(engine: Engine, map_id: int) -> MapType:
    return engine.widget(map_id).get_map_type()


@command(6, "get_size")
def get_size(engine: Engine, map_id: int) -> tuple[int, int]:
    width, height = engine.widget(map_id).get_size()
    return width, height


@command(7, "get_bounds")
def get_bounds(engine: Engine, map_id: int) -> tuple[float, float, float, float]:
    """(south-west lat, south-west lng, north-east lat, north-east lng)."""
    bounds = engine.widget(map_id).get_bounds()
    sw, ne = bounds.south_west, bounds.north_east
    return sw.lat, sw.lng, ne.lat, ne.lng


@command(8, "translate")
def translate(engine: Engine, map_id: int, east: float, south: float) -> None:
    engine.widget(map_id).pan_by(east, south)


@command(9, "from_lat_lng_to_point")
def from_lat_lng_to_point(engine: Engine, map_id: int, lat: float, lng: float) -> tuple[float, float]:
    point = engine.widget(map_id).from_lat_lng_to_point(LatLng(lat, lng))
    return point.x % WORLD_WIDTH, point.y


@command(10, "from_point_to_lat_lng")
def from_point_to_lat_lng(engine: Engine, map_id: int, x: float, y: float) -> tuple[float, float]:
    lat_lng = engine.widget(map_id).from_point_to_lat_lng(Point(x, y))
    return lat_lng.lat, normalize_lng(lat_lng.lng)


# ─── Creation ────────────────────────────────────────────────────────────────


def _claim_id(engine: Engine, map_id: int, id: str | None) -> str:
    if id:
        if id == MAP_SUBJECT or engine.overlays.exists(map_id, id):
            raise IdAlreadyExists(map_id, id)
        return id
    return engine.overlays.allocate_id(map_id)


def _points(data: Iterable) -> list[LatLng]:
    return [LatLng(lat, lng) for lat, lng in data]


def _options(engine: Engine, zoom_levels, z_index, editable, label) -> OverlayOptions:
    defaults = engine.defaults
    if label is not None and label.font is None:
        label = engine.with_default_font(label)
    return OverlayOptions(
        zoom_levels=tuple(zoom_levels) if zoom_levels else defaults.zoom_levels,
        z_index=z_index or defaults.z_index,
        editable=bool(editable),
        label=label,
    )


@command(11, "add_point", subjects=Subjects.MAP, events=("onadd",))
def add_point(
    engine: Engine,
    map_id: int,
    id: str | None,
    lat: float,
    lng: float,
    label: Label | None = None,
    image_url: str | None = None,
    zoom_levels: tuple[int, int] | None = None,
    z_index: int | None = None,
    image_pos_x: float = 0,
    image_pos_y: float = 0,
    editable: bool = False,
) -> str:
    point_id = _claim_id(engine, map_id, id)
    options = _options(engine, zoom_levels, z_index, editable, label)
    options.image_url = image_url or engine.defaults.point_url
    options.image_pos = (image_pos_x or 0, image_pos_y or 0)
    engine.overlays.register(map_id, Overlay(point_id, OverlayType.POINT, [LatLng(lat, lng)], options))
    return point_id


@command(12, "add_polyline", subjects=Subjects.MAP, events=("onadd",))
def add_polyline(
    engine: Engine,
    map_id: int,
    id: str | None,
    data: Iterable,
    stroke: Stroke | None = None,
    label: Label | None = None,
    zoom_levels: tuple[int, int] | None = None,
    z_index: int | None = None,
    editable: bool = False,
) -> str:
    line_id = _claim_id(engine, map_id, id)
    options = _options(engine, zoom_levels, z_index, editable, label)
    options.stroke = stroke or engine.defaults.stroke
    engine.overlays.register(map_id, Overlay(line_id, OverlayType.POLYLINE, _points(data), options))
    return line_id


@command(13, "add_polygon", subjects=Subjects.MAP, events=("onadd",))
def add_polygon(
    engine: Engine,
    map_id: int,
    id: str | None,
    data: Iterable,
    stroke: Stroke | None = None,
    fill: Fill | None = None,
    label: Label | None = None,
    zoom_levels: tuple[int, int] | None = None,
    z_index: int | None = None,
    editable: bool = False,
) -> str:
    polygon_id = _claim_id(engine, map_id, id)
    options = _options(engine, zoom_levels, z_index, editable, label)
    options.stroke = stroke or engine.defaults.stroke
    options.fill = fill or engine.defaults.fill
    engine.overlays.register(map_id, Overlay(polygon_id, OverlayType.POLYGON, _points(data), options))
    return polygon_id


# ─── Query, locate, delete ───────────────────────────────────────────────────


def _require(engine: Engine, map_id: int, id: str) -> Overlay:
    overlay = engine.overlays.resolve(map_id, id)
    if overlay is None:
        raise IdNotFound(map_id, id)
    return overlay


@command(14, "get_type")
def get_type(engine: Engine, map_id: int, id: str) -> OverlayType:
    return _require(engine, map_id, id).type


@command(15, "get_by_type")
def get_by_type(engine: Engine, map_id: int, type: OverlayType) -> list[str]:
    return engine.overlays.ids_by_type(map_id, type)


@command(16, "locate")
def locate(engine: Engine, map_id: int, id: str, zoom: int | None = None) -> None:
    overlay = _require(engine, map_id, id)
    engine.widget(map_id).locate_overlay(overlay, zoom or None)


@command(17, "remove")
def remove(engine: Engine, map_id: int, id: str) -> None:
    _require(engine, map_id, id)
    engine.overlays.delete(map_id, id)


@command(18, "remove_by_type")
def remove_by_type(engine: Engine, map_id: int, type: OverlayType) -> int:
    ids = engine.overlays.ids_by_type(map_id, type)
    for overlay_id in ids:
        engine.overlays.delete(map_id, overlay_id)
    return len(ids)


@command(19, "remove_all")
def remove_all(engine: Engine, map_id: int) -> int:
    return sum(remove_by_type(engine, map_id, t) for t in _TYPE_ORDER)


# ─── Visibility ──────────────────────────────────────────────────────────────


def _hide_visible(engine: Engine, map_id: int, overlays: list[Overlay]) -> list[str]:
    for overlay in overlays:
        engine.overlays.hide(map_id, overlay)
    return [o.id for o in overlays]


def _show_hidden(engine: Engine, map_id: int, overlays: list[Overlay]) -> list[str]:
    for overlay in overlays:
        engine.overlays.show(map_id, overlay)
    return [o.id for o in overlays]


@command(20, "hide", subjects=Subjects.CHANGED, events=("onhide",))
def hide(engine: Engine, map_id: int, id: str) -> bool:
    engine.events.mark_changed(())
    overlay = _require(engine, map_id, id)
    if not engine.overlays.is_visible(map_id, id):
        return False
    engine.events.mark_changed(_hide_visible(engine, map_id, [overlay]))
    return True


@command(21, "hide_by_type", subjects=Subjects.CHANGED, events=("onhide",))
def hide_by_type(engine: Engine, map_id: int, type: OverlayType) -> int:
    visible = list(engine.widget(map_id).get_overlays_by_type(type))
    engine.events.mark_changed(_hide_visible(engine, map_id, visible))
    return len(visible)


@command(22, "hide_all", subjects=Subjects.CHANGED, events=("onhide",))
def hide_all(engine: Engine, map_id: int) -> int:
    widget = engine.widget(map_id)
    changed = []
    for t in _TYPE_ORDER:
        changed.extend(_hide_visible(engine, map_id, list(widget.get_overlays_by_type(t))))
    engine.events.mark_changed(changed)
    return len(changed)


@command(23, "show", subjects=Subjects.CHANGED, events=("onshow",))
def show(engine: Engine, map_id: int, id: str) -> bool:
    engine.events.mark_changed(())
    overlay = _require(engine, map_id, id)
    if engine.overlays.is_visible(map_id, id):
        return False
    engine.events.mark_changed(_show_hidden(engine, map_id, [overlay]))
    return True


@command(24, "show_by_type", subjects=Subjects.CHANGED, events=("onshow",))
def show_by_type(engine: Engine, map_id: int, type: OverlayType) -> int:
    hidden = list(engine.registry[map_id].hidden[type])
    engine.events.mark_changed(_show_hidden(engine, map_id, hidden))
    return len(hidden)


@command(25, "show_all", subjects=Subjects.CHANGED, events=("onshow",))
def show_all(engine: Engine, map_id: int) -> int:
    partitions = engine.registry[map_id].hidden
    changed = []
    for t in _TYPE_ORDER:
        changed.extend(_show_hidden(engine, map_id, list(partitions[t])))
    engine.events.mark_changed(changed)
    return len(changed)


@command(26, "is_hidden")
def is_hidden(engine: Engine, map_id: int, id: str) -> bool:
    _require(engine, map_id, id)
    return not engine.overlays.is_visible(map_id, id)


# ─── Listeners ───────────────────────────────────────────────────────────────


def _register_each(engine: Engine, map_id: int, ids: list[str], events: Mapping[str, Listener]) -> None:
    for overlay_id in ids:
        engine.listeners.add(map_id, overlay_id, events, engine.overlays.resolve(map_id, overlay_id))


@command(27, "add_map_event")
def add_map_event(engine: Engine, map_id: int, events: Mapping[str, Listener]) -> None:
    engine.listeners.add(map_id, MAP_SUBJECT, events, engine.widget(map_id))


@command(28, "add_overlay_event")
def add_overlay_event(engine: Engine, map_id: int, id: str, events: Mapping[str, Listener]) -> None:
    overlay = _require(engine, map_id, id)
    engine.listeners.add(map_id, id, events, overlay)


@command(29, "add_overlay_event_by_type")
def add_overlay_event_by_type(
    engine: Engine, map_id: int, type: OverlayType, events: Mapping[str, Listener]
) -> None:
    _register_each(engine, map_id, engine.overlays.ids_by_type(map_id, type), events)


@command(30, "add_overlay_event_to_all")
def add_overlay_event_to_all(engine: Engine, map_id: int, events: Mapping[str, Listener]) -> None:
    _register_each(engine, map_id, engine.overlays.all_ids(map_id), events)


@command(31, "remove_map_event")
def remove_map_event(engine: Engine, map_id: int, event_type: str) -> None:
    engine.listeners.remove(map_id, MAP_SUBJECT, event_type)


@command(32, "remove_overlay_event")
def remove_overlay_event(engine: Engine, map_id: int, id: str, event_type: str) -> None:
    _require(engine, map_id, id)
    engine.listeners.remove(map_id, id, event_type)


@command(33, "remove_overlay_event_by_type")
def remove_overlay_event_by_type(
    engine: Engine, map_id: int, overlay_type: OverlayType, event_type: str
) -> None:
    for overlay_id in engine.overlays.ids_by_type(map_id, overlay_type):
        engine.listeners.remove(map_id, overlay_id, event_type)


@command(34, "remove_all_overlay_event")
def remove_all_overlay_event(engine: Engine, map_id: int, event_type: str) -> None:
    for overlay_id in engine.overlays.all_ids(map_id):
        engine.listeners.remove(map_id, overlay_id, event_type)


# ─── Groups ──────────────────────────────────────────────────────────────────


def _require_group(engine: Engine, map_id: int, group_id: str) -> list[str]:
    members = engine.groups.get(map_id, group_id)
    if members is None:
        raise IdNotFound(map_id, group_id)
    return members


@command(35, "group")
def group(engine: Engine, map_id: int, id: str | None, members: Iterable[str]) -> str:
    if id:
        if engine.groups.exists(map_id, id):
            raise IdAlreadyExists(map_id, id)
        group_id = id
    else:
        group_id = allocate_id(lambda candidate: engine.groups.exists(map_id, candidate))
    members = list(members)
    for overlay_id in members:
        _require(engine, map_id, overlay_id)
    engine.groups.create(map_id, group_id, members)
    return group_id


@command(36, "ungroup")
def ungroup(engine: Engine, map_id: int, id: str) -> bool:
    return engine.groups.delete(map_id, id)


@command(37, "get_group")
def get_group(engine: Engine, map_id: int, id: str) -> list[str]:
    return list(_require_group(engine, map_id, id))


@command(38, "remove_group")
def remove_group(engine: Engine, map_id: int, id: str) -> None:
    for overlay_id in list(_require_group(engine, map_id, id)):
        engine.overlays.delete(map_id, overlay_id)
    engine.groups.delete(map_id, id)


@command(39, "hide_group", subjects=Subjects.CHANGED, events=("onhide",))
def hide_group(engine: Engine, map_id: int, id: str) -> int:
    engine.events.mark_changed(())
    members = _require_group(engine, map_id, id)
    widget = engine.widget(map_id)
    visible = [o for o in map(widget.get_overlay_by_id, members) if o is not None]
    engine.events.mark_changed(_hide_visible(engine, map_id, visible))
    return len(visible)


@command(40, "show_group", subjects=Subjects.CHANGED, events=("onshow",))
def show_group(engine: Engine, map_id: int, id: str) -> int:
    engine.events.mark_changed(())
    members = _require_group(engine, map_id, id)
    hidden = [
        engine.overlays.resolve(map_id, overlay_id)
        for overlay_id in members
        if not engine.overlays.is_visible(map_id, overlay_id)
    ]
    engine.events.mark_changed(_show_hidden(engine, map_id, hidden))
    return len(hidden)


@command(41, "locate_group")
def locate_group(engine: Engine, map_id: int, id: str, zoom: int | None = None) -> None:
    members = _require_group(engine, map_id, id)
    overlays = [engine.overlays.resolve(map_id, overlay_id) for overlay_id in members]
    engine.widget(map_id).locate_overlays(overlays, zoom or None)


@command(42, "add_group_event")
def add_group_event(engine: Engine, map_id: int, id: str, events: Mapping[str, Listener]) -> None:
    members = _require_group(engine, map_id, id)
    overlays = [engine.overlays.resolve(map_id, overlay_id) for overlay_id in members]
    engine.listeners.add_group(map_id, id, events, overlays)


@command(43, "remove_group_event")
def remove_group_event(engine: Engine, map_id: int, id: str, event_type: str) -> None:
    _require_group(engine, map_id, id)
    engine.listeners.remove_group(map_id, id, event_type)


# ─── Atomic run ──────────────────────────────────────────────────────────────


@command(44, "run")
def run(engine: Engine, map_id: int, fn: Callable[[], object]):
    """Call fn with group notifications deduplicated across everything it does."""
    with engine.events.atomic():
        return fn()
