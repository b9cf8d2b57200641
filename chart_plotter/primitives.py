"""
primitives.py — Device-space render primitive tree

Coordinates are device units (1 unit = 1 px), origin at the top-left,
y growing downwards. Nodes are frozen so a rendered tree can be cached
and shared.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Union

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]  # x, y, width, height


@dataclass(frozen=True)
class Subpath:
    """
    One connected polyline. When `controls` is set it holds one
    (control1, control2) pair per segment and the segment is a cubic Bezier.
    """
    points: Tuple[Point, ...]
    controls: Optional[Tuple[Tuple[Point, Point], ...]] = None
    closed: bool = False

    @property
    def is_curve(self) -> bool:
        return self.controls is not None


@dataclass(frozen=True)
class Path:
    subpaths: Tuple[Subpath, ...]
    stroke: Optional[str] = "#000000"
    stroke_width: float = 1.0
    dash: Tuple[float, ...] = ()
    opacity: float = 1.0


@dataclass(frozen=True)
class Polygon:
    points: Tuple[Point, ...]
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 1.0
    opacity: float = 1.0


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 1.0
    opacity: float = 1.0


@dataclass(frozen=True)
class Text:
    position: Point
    text: str
    font_size: float = 12.0
    anchor: str = "middle"  # start | middle | end
    baseline: str = "middle"  # top | middle | bottom
    rotation: float = 0.0  # degrees, positive = clockwise on screen
    color: str = "#000000"
    weight: str = "normal"


@dataclass(frozen=True)
class Group:
    name: str
    children: Tuple["Primitive", ...] = ()
    clip: Optional[Rect] = None


Primitive = Union[Group, Path, Polygon, Circle, Text]


# ============================================================================
# TREE HELPERS
# ============================================================================

def iter_primitives(node: Primitive) -> Iterator[Primitive]:
    """Depth-first walk, groups included."""
    yield node
    if isinstance(node, Group):
        for child in node.children:
            yield from iter_primitives(child)


def find_group(node: Primitive, name: str) -> Optional[Group]:
    for n in iter_primitives(node):
        if isinstance(n, Group) and n.name == name:
            return n
    return None


def child_names(group: Group) -> Tuple[str, ...]:
    return tuple(c.name for c in group.children if isinstance(c, Group))


def to_dict(node: Primitive) -> Dict[str, Any]:
    """JSON-friendly rendering of a primitive tree."""
    if isinstance(node, Group):
        d: Dict[str, Any] = {
            "type": "group",
            "name": node.name,
            "children": [to_dict(c) for c in node.children],
        }
        if node.clip is not None:
            d["clip"] = list(node.clip)
        return d

    if isinstance(node, Path):
        subpaths = []
        for sp in node.subpaths:
            entry: Dict[str, Any] = {
                "points": [list(p) for p in sp.points],
                "closed": sp.closed,
            }
            if sp.controls is not None:
                entry["controls"] = [[list(c1), list(c2)] for c1, c2 in sp.controls]
            subpaths.append(entry)
        return {
            "type": "path",
            "subpaths": subpaths,
            "stroke": node.stroke,
            "stroke_width": node.stroke_width,
            "dash": list(node.dash),
            "opacity": node.opacity,
        }

    if isinstance(node, Polygon):
        return {
            "type": "polygon",
            "points": [list(p) for p in node.points],
            "fill": node.fill,
            "stroke": node.stroke,
            "stroke_width": node.stroke_width,
            "opacity": node.opacity,
        }

    if isinstance(node, Circle):
        return {
            "type": "circle",
            "center": list(node.center),
            "radius": node.radius,
            "fill": node.fill,
            "stroke": node.stroke,
            "stroke_width": node.stroke_width,
            "opacity": node.opacity,
        }

    if isinstance(node, Text):
        return {
            "type": "text",
            "position": list(node.position),
            "text": node.text,
            "font_size": node.font_size,
            "anchor": node.anchor,
            "baseline": node.baseline,
            "rotation": node.rotation,
            "color": node.color,
            "weight": node.weight,
        }

    raise TypeError(f"Not a primitive: {type(node).__name__}")
