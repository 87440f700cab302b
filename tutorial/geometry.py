"""2D geometry used to place pointer hints over live controls.

Controls are positioned the way scene graphs usually do it: each one has a
local translation, rotation and scale relative to its parent container, and
an origin expressed as a fraction of its own size. The helpers here fold the
parent chain into a single affine transform and report the axis-aligned box
the control occupies on screen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

# Guards against cyclic parent links in malformed scene graphs.
_MAX_PARENT_DEPTH = 64


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def enclosing(cls, points: Iterable[Tuple[float, float]]) -> "Rect":
        xs: List[float] = []
        ys: List[float] = []
        for px, py in points:
            xs.append(px)
            ys.append(py)
        if not xs:
            raise ValueError("cannot enclose an empty point set")
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


@dataclass(frozen=True)
class Affine:
    """Row-major 2x3 affine matrix ``[[a, c, tx], [b, d, ty]]``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @classmethod
    def local(
        cls,
        x: float = 0.0,
        y: float = 0.0,
        rotation: float = 0.0,
        scale_x: float = 1.0,
        scale_y: float = 1.0,
    ) -> "Affine":
        """Translate, then rotate, then scale."""
        cos_r = math.cos(rotation)
        sin_r = math.sin(rotation)
        return cls(
            a=cos_r * scale_x,
            b=sin_r * scale_x,
            c=-sin_r * scale_y,
            d=cos_r * scale_y,
            tx=x,
            ty=y,
        )

    def then(self, child: "Affine") -> "Affine":
        """Compose so that ``child`` is applied first, then ``self``."""
        return Affine(
            a=self.a * child.a + self.c * child.b,
            b=self.b * child.a + self.d * child.b,
            c=self.a * child.c + self.c * child.d,
            d=self.b * child.c + self.d * child.d,
            tx=self.a * child.tx + self.c * child.ty + self.tx,
            ty=self.b * child.tx + self.d * child.ty + self.ty,
        )

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return self.a * x + self.c * y + self.tx, self.b * x + self.d * y + self.ty


def _number(obj: Any, name: str, default: float) -> float:
    value = getattr(obj, name, None)
    if isinstance(value, (int, float)):
        return float(value)
    return default


def local_transform(node: Any) -> Affine:
    return Affine.local(
        x=_number(node, "x", 0.0),
        y=_number(node, "y", 0.0),
        rotation=_number(node, "rotation", 0.0),
        scale_x=_number(node, "scale_x", 1.0),
        scale_y=_number(node, "scale_y", 1.0),
    )


def world_transform(node: Any) -> Affine:
    """Fold the ``parent`` chain of ``node`` into one transform."""
    chain = []
    current: Optional[Any] = node
    while current is not None and len(chain) < _MAX_PARENT_DEPTH:
        chain.append(current)
        current = getattr(current, "parent", None)
    matrix = Affine()
    for item in reversed(chain):
        matrix = matrix.then(local_transform(item))
    return matrix


def world_bounds(node: Any) -> Optional[Rect]:
    """Axis-aligned on-screen box of ``node`` or ``None`` when it has no size."""
    width = _number(node, "width", 0.0)
    height = _number(node, "height", 0.0)
    if width <= 0 and height <= 0:
        return None
    origin_x = _number(node, "origin_x", 0.5)
    origin_y = _number(node, "origin_y", 0.5)
    left = -width * origin_x
    top = -height * origin_y
    corners = (
        (left, top),
        (left + width, top),
        (left, top + height),
        (left + width, top + height),
    )
    matrix = world_transform(node)
    return Rect.enclosing(matrix.apply(px, py) for px, py in corners)


__all__ = ["Rect", "Affine", "local_transform", "world_transform", "world_bounds"]
