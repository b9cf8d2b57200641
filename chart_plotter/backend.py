"""
backend.py — Draw a primitive tree with matplotlib

This file contains ONLY:
- draw_tree(): primitive tree -> matplotlib Figure (1 device unit = 1 px)
- render_to_bytes() / save(): PNG / SVG / PDF output via savefig

The Figure is created directly (no pyplot) so nothing global is touched.
"""

from __future__ import annotations

import io
from typing import List, Optional

from matplotlib.figure import Figure
from matplotlib.patches import Circle as MplCircle
from matplotlib.patches import PathPatch
from matplotlib.patches import Polygon as MplPolygon
from matplotlib.patches import Rectangle
from matplotlib.path import Path as MplPath

from .primitives import Circle, Group, Path, Polygon, Primitive, Rect, Text

_HA = {"start": "left", "middle": "center", "end": "right"}
_VA = {"top": "top", "middle": "center", "bottom": "bottom"}


def _pt(px: float, dpi: float) -> float:
    return px * 72.0 / dpi


def _mpl_path(node: Path) -> MplPath:
    verts: List[tuple] = []
    codes: List[int] = []
    for sp in node.subpaths:
        if not sp.points:
            continue
        verts.append(sp.points[0])
        codes.append(MplPath.MOVETO)
        for i, p in enumerate(sp.points[1:]):
            if sp.controls is not None:
                c1, c2 = sp.controls[i]
                verts.extend([c1, c2, p])
                codes.extend([MplPath.CURVE4] * 3)
            else:
                verts.append(p)
                codes.append(MplPath.LINETO)
        if sp.closed:
            verts.append(sp.points[0])
            codes.append(MplPath.CLOSEPOLY)
    return MplPath(verts, codes)


class _Drawer:
    def __init__(self, ax, dpi: float) -> None:
        self.ax = ax
        self.dpi = dpi
        self.zorder = 0

    def _clip(self, artist, clip: Optional[Rect]) -> None:
        if clip is None:
            return
        x, y, w, h = clip
        rect = Rectangle((x, y), w, h, transform=self.ax.transData, fill=False, visible=False)
        artist.set_clip_path(rect)

    def _add(self, artist, clip: Optional[Rect]) -> None:
        self.zorder += 1
        artist.set_zorder(self.zorder)
        self.ax.add_artist(artist)
        self._clip(artist, clip)

    def draw(self, node: Primitive, clip: Optional[Rect] = None) -> None:
        if isinstance(node, Group):
            inner = node.clip if node.clip is not None else clip
            for child in node.children:
                self.draw(child, inner)
            return

        if isinstance(node, Path):
            if not node.subpaths:
                return
            kwargs = dict(
                edgecolor=node.stroke or "none",
                linewidth=_pt(node.stroke_width, self.dpi) if node.stroke else 0.0,
                alpha=node.opacity,
                capstyle="round",
                joinstyle="round",
                fill=False,
            )
            if node.dash:
                kwargs["linestyle"] = (0, tuple(_pt(d, self.dpi) / max(kwargs["linewidth"], 1e-6) for d in node.dash))
            self._add(PathPatch(_mpl_path(node), **kwargs), clip)
            return

        if isinstance(node, Polygon):
            self._add(MplPolygon(
                node.points,
                closed=True,
                facecolor=node.fill or "none",
                edgecolor=node.stroke or "none",
                linewidth=_pt(node.stroke_width, self.dpi) if node.stroke else 0.0,
                alpha=node.opacity,
            ), clip)
            return

        if isinstance(node, Circle):
            self._add(MplCircle(
                node.center,
                node.radius,
                facecolor=node.fill or "none",
                edgecolor=node.stroke or "none",
                linewidth=_pt(node.stroke_width, self.dpi) if node.stroke else 0.0,
                alpha=node.opacity,
            ), clip)
            return

        if isinstance(node, Text):
            self.zorder += 1
            artist = self.ax.text(
                node.position[0],
                node.position[1],
                node.text,
                fontsize=_pt(node.font_size, self.dpi),
                ha=_HA.get(node.anchor, "center"),
                va=_VA.get(node.baseline, "center"),
                rotation=-node.rotation,
                rotation_mode="anchor",
                color=node.color,
                fontweight=node.weight,
                zorder=self.zorder,
                parse_math=False,
            )
            self._clip(artist, clip)
            return

        raise TypeError(f"Not a primitive: {type(node).__name__}")


def draw_tree(tree: Group, width: float, height: float, dpi: float = 100.0) -> Figure:
    """New Figure of width x height px with the tree drawn on it."""
    fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)  # device y grows downwards
    ax.set_axis_off()
    _Drawer(ax, dpi).draw(tree)
    return fig


def render_to_bytes(tree: Group, width: float, height: float, fmt: str = "png", dpi: float = 100.0) -> bytes:
    fig = draw_tree(tree, width, height, dpi)
    buf = io.BytesIO()
    fig.savefig(buf, format=fmt, dpi=dpi, facecolor="white")
    return buf.getvalue()


def save(tree: Group, width: float, height: float, path: str, dpi: float = 100.0) -> None:
    """Format from the file extension (png / svg / pdf)."""
    fig = draw_tree(tree, width, height, dpi)
    fig.savefig(path, dpi=dpi, facecolor="white")
