"""Affine helpers, path segments and the EPS path serializer."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple, Union

from .document import DocumentWriter

Affine = Tuple[float, float, float, float, float, float]


def identity_affine() -> Affine:
    return (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


def mul_affine(m1: Affine, m2: Affine) -> Affine:
    # Composition m = m1 x m2: m2 is applied to points first.
    a1, b1, c1, d1, e1, f1 = m1
    a2, b2, c2, d2, e2, f2 = m2
    return (
        a1 * a2 + c1 * b2,
        b1 * a2 + d1 * b2,
        a1 * c2 + c1 * d2,
        b1 * c2 + d1 * d2,
        a1 * e2 + c1 * f2 + e1,
        b1 * e2 + d1 * f2 + f1,
    )


def apply_affine(m: Affine, p: Tuple[float, float]) -> Tuple[float, float]:
    a, b, c, d, e, f = m
    x, y = p
    return (a * x + c * y + e, b * x + d * y + f)


def translate_affine(tx: float, ty: float) -> Affine:
    return (1.0, 0.0, 0.0, 1.0, float(tx), float(ty))


def scale_affine(sx: float, sy: float) -> Affine:
    return (float(sx), 0.0, 0.0, float(sy), 0.0, 0.0)


def shear_affine(shx: float, shy: float) -> Affine:
    return (1.0, float(shy), float(shx), 1.0, 0.0, 0.0)


def rotate_affine(theta: float, x: Optional[float] = None, y: Optional[float] = None) -> Affine:
    """Rotation by ``theta`` radians, optionally about the point (x, y)."""
    cos_v = math.cos(theta)
    sin_v = math.sin(theta)
    rotation = (cos_v, sin_v, -sin_v, cos_v, 0.0, 0.0)
    if x is None and y is None:
        return rotation
    cx = x or 0.0
    cy = y or 0.0
    return mul_affine(
        mul_affine(translate_affine(cx, cy), rotation),
        translate_affine(-cx, -cy),
    )


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float

    def transformed(self, m: Affine) -> "MoveTo":
        return MoveTo(*apply_affine(m, (self.x, self.y)))

    def points(self) -> Tuple[Tuple[float, float], ...]:
        return ((self.x, self.y),)


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float

    def transformed(self, m: Affine) -> "LineTo":
        return LineTo(*apply_affine(m, (self.x, self.y)))

    def points(self) -> Tuple[Tuple[float, float], ...]:
        return ((self.x, self.y),)


@dataclass(frozen=True)
class QuadTo:
    cx: float
    cy: float
    x: float
    y: float

    def transformed(self, m: Affine) -> "QuadTo":
        cx, cy = apply_affine(m, (self.cx, self.cy))
        x, y = apply_affine(m, (self.x, self.y))
        return QuadTo(cx, cy, x, y)

    def points(self) -> Tuple[Tuple[float, float], ...]:
        return ((self.cx, self.cy), (self.x, self.y))


@dataclass(frozen=True)
class CubicTo:
    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float

    def transformed(self, m: Affine) -> "CubicTo":
        c1x, c1y = apply_affine(m, (self.c1x, self.c1y))
        c2x, c2y = apply_affine(m, (self.c2x, self.c2y))
        x, y = apply_affine(m, (self.x, self.y))
        return CubicTo(c1x, c1y, c2x, c2y, x, y)

    def points(self) -> Tuple[Tuple[float, float], ...]:
        return ((self.c1x, self.c1y), (self.c2x, self.c2y), (self.x, self.y))


@dataclass(frozen=True)
class ClosePath:
    def transformed(self, m: Affine) -> "ClosePath":
        return self

    def points(self) -> Tuple[Tuple[float, float], ...]:
        return ()


PathSegment = Union[MoveTo, LineTo, QuadTo, CubicTo, ClosePath]


class Path:
    """Immutable ordered sequence of path segments."""

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[PathSegment] = ()) -> None:
        self._segments: Tuple[PathSegment, ...] = tuple(segments)

    @property
    def segments(self) -> Tuple[PathSegment, ...]:
        return self._segments

    @property
    def is_empty(self) -> bool:
        return not self._segments

    def __iter__(self) -> Iterator[PathSegment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __repr__(self) -> str:
        return f"Path({list(self._segments)!r})"

    def transformed(self, m: Affine) -> "Path":
        return Path(seg.transformed(m) for seg in self._segments)

    def translated(self, dx: float, dy: float) -> "Path":
        return self.transformed(translate_affine(dx, dy))

    def bounds(self) -> Optional[Tuple[float, float, float, float]]:
        xs = []
        ys = []
        for seg in self._segments:
            for x, y in seg.points():
                xs.append(x)
                ys.append(y)
        if not xs:
            return None
        return (min(xs), min(ys), max(xs), max(ys))


def elevate_quadratic(
    p: Tuple[float, float], q: Tuple[float, float], end: Tuple[float, float]
) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Return the two cubic control points equivalent to the quadratic p-q-end."""
    px, py = p
    qx, qy = q
    ex, ey = end
    c1 = (px + 2.0 / 3.0 * (qx - px), py + 2.0 / 3.0 * (qy - py))
    c2 = (ex + 2.0 / 3.0 * (qx - ex), ey + 2.0 / 3.0 * (qy - ey))
    return c1, c2


class GeometryEmitter:
    """Writes device-space path segments as PostScript path construction.

    Only ``moveto``, ``lineto``, ``curveto`` and ``closepath`` are emitted;
    quadratic segments are elevated to cubics from the current point. The
    caller writes the terminal ``fill`` or ``stroke``.
    """

    def __init__(self, writer: DocumentWriter) -> None:
        self._writer = writer

    def emit(self, path: Path) -> None:
        write = self._writer.write_directive
        write("newpath")
        current = (0.0, 0.0)
        subpath_start = current
        for seg in path:
            if isinstance(seg, MoveTo):
                write(seg.x, seg.y, "moveto")
                current = subpath_start = (seg.x, seg.y)
            elif isinstance(seg, LineTo):
                write(seg.x, seg.y, "lineto")
                current = (seg.x, seg.y)
            elif isinstance(seg, QuadTo):
                end = (seg.x, seg.y)
                c1, c2 = elevate_quadratic(current, (seg.cx, seg.cy), end)
                write(c1[0], c1[1], c2[0], c2[1], end[0], end[1], "curveto")
                current = end
            elif isinstance(seg, CubicTo):
                write(seg.c1x, seg.c1y, seg.c2x, seg.c2y, seg.x, seg.y, "curveto")
                current = (seg.x, seg.y)
            elif isinstance(seg, ClosePath):
                write("closepath")
                current = subpath_start
            else:
                raise TypeError(f"unknown path segment: {seg!r}")
