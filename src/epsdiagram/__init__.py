"""Public API for epsdiagram."""
from .canvas import Color, Font, LineCap, LineJoin, StateTrackingCanvas, Stroke
from .composer import (
    DiagramComposer,
    RenderingOptions,
    render_eps,
    render_eps_text,
    render_to_eps,
    storage_depth_order,
)
from .document import DocumentWriter, escape_text
from .errors import (
    AlreadyClosedError,
    DiagramModelError,
    EpsDiagramError,
    SinkUnavailableError,
    UnsupportedPaintError,
    WriteFailureError,
)
from .geometry import ClosePath, CubicTo, GeometryEmitter, LineTo, MoveTo, Path, QuadTo
from .model import Diagram, DiagramShape, DiagramText, ShapeKind, load_diagram

__all__ = [
    "AlreadyClosedError",
    "ClosePath",
    "Color",
    "CubicTo",
    "Diagram",
    "DiagramComposer",
    "DiagramModelError",
    "DiagramShape",
    "DiagramText",
    "DocumentWriter",
    "EpsDiagramError",
    "Font",
    "GeometryEmitter",
    "LineCap",
    "LineJoin",
    "LineTo",
    "MoveTo",
    "Path",
    "QuadTo",
    "RenderingOptions",
    "ShapeKind",
    "SinkUnavailableError",
    "StateTrackingCanvas",
    "Stroke",
    "UnsupportedPaintError",
    "WriteFailureError",
    "escape_text",
    "load_diagram",
    "render_eps",
    "render_eps_text",
    "render_to_eps",
    "storage_depth_order",
]
