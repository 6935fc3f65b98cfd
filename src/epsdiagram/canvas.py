"""Narrow drawing surface that writes EPS and caches paint state."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .document import DocumentWriter, format_number
from .errors import UnsupportedPaintError
from .geometry import (
    Affine,
    GeometryEmitter,
    Path,
    apply_affine,
    identity_affine,
    mul_affine,
    rotate_affine,
    scale_affine,
    shear_affine,
    translate_affine,
)

FONT_FAMILY = "Times-Roman"


class LineCap(enum.IntEnum):
    BUTT = 0
    ROUND = 1
    SQUARE = 2


class LineJoin(enum.IntEnum):
    MITER = 0
    ROUND = 1
    BEVEL = 2


@dataclass(frozen=True)
class Color:
    """Solid RGB color with 0-255 channels."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"color channel out of range: {channel}")

    def normalized(self) -> Tuple[float, float, float]:
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0)


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)


@dataclass(frozen=True)
class Stroke:
    width: float = 1.0
    cap: LineCap = LineCap.SQUARE
    join: LineJoin = LineJoin.MITER
    dash: Optional[Tuple[float, ...]] = None
    dash_phase: float = 0.0


@dataclass(frozen=True)
class Font:
    """Font selection; only the point size varies, the family is fixed."""

    size: int = 12


@dataclass
class _PaintCache:
    color: Color = BLACK
    stroke: Stroke = field(default_factory=Stroke)
    font: Font = field(default_factory=Font)
    emitted_color: Optional[Color] = None
    emitted_stroke: Optional[Stroke] = None
    emitted_font: Optional[Font] = None

    @property
    def color_dirty(self) -> bool:
        return self.emitted_color != self.color

    @property
    def stroke_dirty(self) -> bool:
        return self.emitted_stroke != self.stroke

    @property
    def font_dirty(self) -> bool:
        return self.emitted_font != self.font


class StateTrackingCanvas:
    """Fill, stroke and text on an EPS document with lazily emitted state.

    Color, stroke and font setters only record the new value. The matching
    directive is written right before the first draw call that depends on
    it, and only when the value differs from what was last written.
    """

    def __init__(self, writer: DocumentWriter) -> None:
        self._writer = writer
        self._emitter = GeometryEmitter(writer)
        self._transform: Affine = identity_affine()
        self._state = _PaintCache()

    # transform

    def get_transform(self) -> Affine:
        return self._transform

    def set_transform(self, m: Affine) -> None:
        if len(m) != 6:
            raise ValueError("affine transform needs six components")
        self._transform = tuple(float(v) for v in m)  # type: ignore[assignment]

    def transform(self, m: Affine) -> None:
        self._transform = mul_affine(self._transform, m)

    def translate(self, tx: float, ty: float) -> None:
        self.transform(translate_affine(tx, ty))

    def rotate(self, theta: float, x: Optional[float] = None, y: Optional[float] = None) -> None:
        self.transform(rotate_affine(theta, x, y))

    def scale(self, sx: float, sy: float) -> None:
        self.transform(scale_affine(sx, sy))

    def shear(self, shx: float, shy: float) -> None:
        self.transform(shear_affine(shx, shy))

    # paint state

    @property
    def color(self) -> Color:
        return self._state.color

    @property
    def stroke(self) -> Stroke:
        return self._state.stroke

    @property
    def font(self) -> Font:
        return self._state.font

    def set_color(self, color: Color) -> None:
        if not isinstance(color, Color):
            raise UnsupportedPaintError(f"only solid colors are supported, got {color!r}")
        self._state.color = color

    def set_stroke(self, stroke: Stroke) -> None:
        if not isinstance(stroke, Stroke):
            raise UnsupportedPaintError(f"only basic strokes are supported, got {stroke!r}")
        if stroke.width < 0:
            raise UnsupportedPaintError(f"negative stroke width: {stroke.width}")
        self._state.stroke = stroke

    def set_font(self, font: Font) -> None:
        if not isinstance(font, Font):
            raise UnsupportedPaintError(f"only size-based fonts are supported, got {font!r}")
        self._state.font = font

    # drawing

    def fill_path(self, path: Path) -> None:
        self._emit_color()
        self._emitter.emit(path.transformed(self._transform))
        self._writer.write_directive("fill")

    def stroke_path(self, path: Path) -> None:
        self._emit_color()
        self._emit_stroke()
        self._emitter.emit(path.transformed(self._transform))
        self._writer.write_directive("stroke")

    def draw_text(self, text: str, x: float, y: float) -> None:
        self._emit_color()
        self._emit_font()
        tx, ty = apply_affine(self._transform, (x, y))
        self._writer.write_directive(tx, ty, "moveto")
        self._writer.write_text(text)

    def dispose(self) -> None:
        self._writer.close()

    def _emit_color(self) -> None:
        state = self._state
        if not state.color_dirty:
            return
        r, g, b = state.color.normalized()
        self._writer.write_directive(r, g, b, "setrgbcolor")
        state.emitted_color = state.color

    def _emit_stroke(self) -> None:
        state = self._state
        if not state.stroke_dirty:
            return
        stroke = state.stroke
        self._writer.write_directive(float(stroke.width), "setlinewidth")
        self._writer.write_directive(int(stroke.cap), "setlinecap")
        if stroke.dash:
            self._writer.write_directive(
                "[" + " ".join(format_number(float(v)) for v in stroke.dash) + "]",
                float(stroke.dash_phase),
                "setdash",
            )
        else:
            self._writer.write_directive("[]", 0, "setdash")
        state.emitted_stroke = stroke

    def _emit_font(self) -> None:
        state = self._state
        if not state.font_dirty:
            return
        self._writer.write_directive(f"/{FONT_FAMILY}", "findfont")
        # Source sizes are pixels; EPS works in points (4/3 ratio).
        self._writer.write_directive(int(state.font.size) * 4 // 3, "scalefont", "setfont")
        state.emitted_font = state.font
