"""Diagram model consumed by the composer, and its JSON form."""
from __future__ import annotations

import enum
import json
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional

from PIL import ImageColor

from .canvas import BLACK, Color
from .errors import DiagramModelError
from .geometry import ClosePath, CubicTo, LineTo, MoveTo, Path, PathSegment, QuadTo


class ShapeKind(enum.Enum):
    ORDINARY = "ordinary"
    STORAGE = "storage"
    POINT_MARKER = "point_marker"
    ARROWHEAD = "arrowhead"


@dataclass
class DiagramShape:
    path: Path
    kind: ShapeKind = ShapeKind.ORDINARY
    closed: bool = False
    dashed: bool = False
    drops_shadow: bool = True
    fill_color: Optional[Color] = None
    stroke_color: Color = BLACK


@dataclass
class DiagramText:
    text: str
    x: float
    y: float
    color: Color = BLACK
    font_size: int = 12


@dataclass
class Diagram:
    width: float
    height: float
    cell_width: float
    cell_height: float
    shapes: List[DiagramShape] = field(default_factory=list)
    texts: List[DiagramText] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in ("width", "height", "cell_width", "cell_height"):
            if not math.isfinite(getattr(self, name)):
                raise DiagramModelError(f"diagram {name} must be finite")
        if self.width < 0 or self.height < 0:
            raise DiagramModelError("diagram width and height must be >= 0")
        if self.cell_width <= 0 or self.cell_height <= 0:
            raise DiagramModelError("diagram cell_width and cell_height must be > 0")

    @property
    def minimum_cell_dimension(self) -> float:
        return min(self.cell_width, self.cell_height)


_SEGMENT_ARITY = {"M": 2, "L": 2, "Q": 4, "C": 6, "Z": 0}


def load_diagram(source: str) -> Diagram:
    """Build a :class:`Diagram` from its JSON text."""
    try:
        data = json.loads(source)
    except json.JSONDecodeError as exc:
        raise DiagramModelError(
            f"failed to parse diagram JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}"
        ) from exc
    if not isinstance(data, dict):
        raise DiagramModelError("diagram JSON must be an object")

    width = _number(data, "width", "diagram")
    height = _number(data, "height", "diagram")
    cell_width = _number(data, "cell_width", "diagram")
    cell_height = _number(data, "cell_height", "diagram")

    shapes = [
        _parse_shape(raw, f"shapes[{idx}]") for idx, raw in enumerate(_list(data, "shapes"))
    ]
    texts = [
        _parse_text(raw, f"texts[{idx}]") for idx, raw in enumerate(_list(data, "texts"))
    ]
    return Diagram(
        width=width,
        height=height,
        cell_width=cell_width,
        cell_height=cell_height,
        shapes=shapes,
        texts=texts,
    )


def parse_color(value: Any, where: str = "color") -> Color:
    if isinstance(value, str):
        try:
            rgb = ImageColor.getrgb(value)
        except ValueError as exc:
            raise DiagramModelError(f"{where}: unknown color {value!r}") from exc
        return Color(*rgb[:3])
    if isinstance(value, (list, tuple)) and len(value) == 3:
        if not all(isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 255 for v in value):
            raise DiagramModelError(f"{where}: color channels must be integers in 0..255")
        return Color(*value)
    raise DiagramModelError(f"{where}: expected a color string or [r, g, b], got {value!r}")


def parse_path(raw: Any, where: str = "path") -> Path:
    if not isinstance(raw, list):
        raise DiagramModelError(f"{where}: expected a list of path commands")
    segments: List[PathSegment] = []
    for idx, command in enumerate(raw):
        loc = f"{where}[{idx}]"
        if not isinstance(command, list) or not command or not isinstance(command[0], str):
            raise DiagramModelError(f"{loc}: expected [op, numbers...]")
        op = command[0].upper()
        arity = _SEGMENT_ARITY.get(op)
        if arity is None:
            raise DiagramModelError(f"{loc}: unknown path command {command[0]!r}")
        args = command[1:]
        if len(args) != arity or not all(_is_number(v) for v in args):
            raise DiagramModelError(f"{loc}: {op} takes {arity} finite numbers")
        values = [float(v) for v in args]
        if op == "M":
            segments.append(MoveTo(*values))
        elif op == "L":
            segments.append(LineTo(*values))
        elif op == "Q":
            segments.append(QuadTo(*values))
        elif op == "C":
            segments.append(CubicTo(*values))
        else:
            segments.append(ClosePath())
    return Path(segments)


def _parse_shape(raw: Any, where: str) -> DiagramShape:
    if not isinstance(raw, dict):
        raise DiagramModelError(f"{where}: expected an object")
    kind_name = raw.get("kind", ShapeKind.ORDINARY.value)
    try:
        kind = ShapeKind(kind_name)
    except ValueError:
        choices = ", ".join(k.value for k in ShapeKind)
        raise DiagramModelError(f"{where}: unknown kind {kind_name!r} (expected one of: {choices})") from None
    fill = raw.get("fill")
    return DiagramShape(
        path=parse_path(raw.get("path", []), f"{where}.path"),
        kind=kind,
        closed=_flag(raw, "closed", False, where),
        dashed=_flag(raw, "dashed", False, where),
        drops_shadow=_flag(raw, "shadow", True, where),
        fill_color=parse_color(fill, f"{where}.fill") if fill is not None else None,
        stroke_color=parse_color(raw.get("stroke", "black"), f"{where}.stroke"),
    )


def _parse_text(raw: Any, where: str) -> DiagramText:
    if not isinstance(raw, dict):
        raise DiagramModelError(f"{where}: expected an object")
    text = raw.get("text")
    if not isinstance(text, str):
        raise DiagramModelError(f"{where}.text: expected a string")
    font_size = raw.get("font_size", 12)
    if not _is_number(font_size) or font_size <= 0:
        raise DiagramModelError(f"{where}.font_size: expected a positive number")
    return DiagramText(
        text=text,
        x=_number(raw, "x", where),
        y=_number(raw, "y", where),
        color=parse_color(raw.get("color", "black"), f"{where}.color"),
        font_size=int(font_size),
    )


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _number(obj: dict, key: str, where: str) -> float:
    value = obj.get(key)
    if not _is_number(value):
        raise DiagramModelError(f"{where}.{key}: expected a finite number")
    return float(value)


def _flag(obj: dict, key: str, default: bool, where: str) -> bool:
    value = obj.get(key, default)
    if not isinstance(value, bool):
        raise DiagramModelError(f"{where}.{key}: expected true or false")
    return value


def _list(obj: dict, key: str) -> list:
    value = obj.get(key, [])
    if not isinstance(value, list):
        raise DiagramModelError(f"diagram.{key}: expected a list")
    return value
