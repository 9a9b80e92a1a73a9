"""Style value objects and the defaults creation commands fall back to.

All values are frozen, so recording one as a default never aliases
caller-owned state.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Font:
    name: str = "Verdana"
    size: int = 11
    color: int = 0x000000
    bold: bool = False
    italic: bool = False
    underline: bool = False


@dataclass(frozen=True, slots=True)
class Stroke:
    thickness: int = 1
    color: int = 0x000000
    alpha: float = 1.0


@dataclass(frozen=True, slots=True)
class Fill:
    color: int = 0x000000
    alpha: float = 1.0


@dataclass(frozen=True, slots=True)
class Label:
    """Text attached to an overlay. font=None means the engine default."""

    text: str
    pos_x: float = 0
    pos_y: float = 0
    font: Font | None = None
    href: str | None = None
    background: Fill | None = None
    border: Stroke | None = None


@dataclass(slots=True)
class Defaults:
    """Per-engine fallbacks for omitted overlay options."""

    stroke: Stroke = field(default_factory=Stroke)
    fill: Fill = field(default_factory=Fill)
    font: Font = field(default_factory=Font)
    point_url: str = "img/point.png"
    zoom_levels: tuple[int, int] = (1, 18)
    z_index: int = 3
