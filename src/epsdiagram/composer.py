"""Render a diagram model to EPS in the fixed multi-pass draw order."""
from __future__ import annotations

import functools
import io
import logging
from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import Callable, List, Optional, TextIO, Union

from .canvas import WHITE, Color, Font, LineCap, LineJoin, StateTrackingCanvas, Stroke
from .document import DocumentWriter, open_sink
from .geometry import LineTo, MoveTo, Path
from .model import Diagram, DiagramShape, ShapeKind

logger = logging.getLogger(__name__)

SHADOW_COLOR = Color(150, 150, 150)
DEBUG_GRID_COLOR = Color(170, 170, 170)
SHADOW_OFFSET_DIVISOR = 3.333

StorageOrder = Callable[[DiagramShape, DiagramShape], int]


@dataclass
class RenderingOptions:
    drop_shadows: bool = True
    # Accepted for parity with bitmap output; vector output ignores it.
    antialias: bool = True
    render_debug_lines: bool = False


def storage_depth_order(first: DiagramShape, second: DiagramShape) -> int:
    """Order storage shapes bottom-to-top by the vertical centre of their bounds."""
    y1 = _center_y(first.path)
    y2 = _center_y(second.path)
    if y1 > y2:
        return -1
    if y1 < y2:
        return 1
    return 0


def _center_y(path: Path) -> float:
    bounds = path.bounds()
    if bounds is None:
        return 0.0
    return (bounds[1] + bounds[3]) / 2.0


class DiagramComposer:
    """Drives a :class:`StateTrackingCanvas` through the render passes.

    Passes run strictly in order: background, shadows, storage shapes,
    ordinary shapes, point markers, text, optional debug grid. Storage
    shapes get their own pass so stacked pseudo-3D shapes occlude bottom
    to top. A storage shape nested inside a larger ordinary shape is
    therefore painted over by that shape; this is kept as-is.
    """

    def __init__(
        self,
        diagram: Diagram,
        options: Optional[RenderingOptions] = None,
        *,
        storage_order: Optional[StorageOrder] = None,
    ) -> None:
        self.diagram = diagram
        self.options = options or RenderingOptions()
        self.storage_order = storage_order or storage_depth_order

        min_cell = diagram.minimum_cell_dimension
        stroke_width = min_cell / 10
        self.normal_stroke = Stroke(stroke_width, LineCap.ROUND, LineJoin.ROUND)
        self.dash_stroke = Stroke(
            stroke_width,
            LineCap.BUTT,
            LineJoin.ROUND,
            dash=(min(diagram.cell_width, diagram.cell_height) / 2,),
            dash_phase=0.0,
        )
        self.shadow_offset = min_cell / SHADOW_OFFSET_DIVISOR

    def render(self, writer: DocumentWriter) -> None:
        diagram = self.diagram
        writer.open((0.0, -diagram.height), (diagram.width, 0.0))
        canvas = StateTrackingCanvas(writer)
        logger.debug(
            "rendering %d shapes and %d texts (%sx%s)",
            len(diagram.shapes),
            len(diagram.texts),
            diagram.width,
            diagram.height,
        )

        self._render_background(canvas)
        if self.options.drop_shadows:
            self._render_shadows(canvas)
        self._render_storage_shapes(canvas)
        point_markers = self._render_ordinary_shapes(canvas)
        self._render_point_markers(canvas, point_markers)
        self._render_texts(canvas)
        if self.options.render_debug_lines:
            self._render_debug_grid(canvas)

        canvas.dispose()

    def _render_background(self, canvas: StateTrackingCanvas) -> None:
        # Device origin is top-left, EPS origin is bottom-left.
        canvas.scale(1, -1)
        canvas.set_color(WHITE)
        # The background is never filled; white paper is assumed.
        canvas.set_stroke(Stroke(1.0, LineCap.SQUARE, LineJoin.ROUND))

    def _render_shadows(self, canvas: StateTrackingCanvas) -> None:
        count = 0
        for shape in self.diagram.shapes:
            if shape.kind in (ShapeKind.STORAGE, ShapeKind.POINT_MARKER):
                continue
            if shape.path.is_empty or not shape.drops_shadow:
                continue
            canvas.set_color(SHADOW_COLOR)
            canvas.fill_path(shape.path.translated(self.shadow_offset, self.shadow_offset))
            count += 1
        logger.debug("shadow pass: %d shadows, offset %s", count, self.shadow_offset)

    def _render_storage_shapes(self, canvas: StateTrackingCanvas) -> None:
        storage = [s for s in self.diagram.shapes if s.kind is ShapeKind.STORAGE]
        storage.sort(key=functools.cmp_to_key(self.storage_order))
        logger.debug("storage pass: %d shapes", len(storage))

        canvas.set_stroke(self.normal_stroke)
        for shape in storage:
            if not shape.dashed:
                canvas.set_color(shape.fill_color or WHITE)
                canvas.fill_path(shape.path)
            canvas.set_stroke(self._stroke_for(shape))
            canvas.set_color(shape.stroke_color)
            canvas.stroke_path(shape.path)

    def _render_ordinary_shapes(self, canvas: StateTrackingCanvas) -> List[DiagramShape]:
        point_markers: List[DiagramShape] = []
        drawn = 0
        for shape in self.diagram.shapes:
            if shape.kind is ShapeKind.POINT_MARKER:
                point_markers.append(shape)
                continue
            if shape.kind is ShapeKind.STORAGE:
                continue
            if shape.path.is_empty:
                continue

            if shape.closed and not shape.dashed:
                canvas.set_color(shape.fill_color or WHITE)
                canvas.fill_path(shape.path)
            if shape.kind is not ShapeKind.ARROWHEAD:
                canvas.set_color(shape.stroke_color)
                canvas.set_stroke(self._stroke_for(shape))
                canvas.stroke_path(shape.path)
            drawn += 1
        logger.debug("ordinary pass: %d shapes", drawn)
        return point_markers

    def _render_point_markers(
        self, canvas: StateTrackingCanvas, point_markers: List[DiagramShape]
    ) -> None:
        logger.debug("point marker pass: %d markers", len(point_markers))
        canvas.set_stroke(self.normal_stroke)
        for shape in point_markers:
            canvas.set_color(WHITE)
            canvas.fill_path(shape.path)
            canvas.set_color(shape.stroke_color)
            canvas.stroke_path(shape.path)

    def _render_texts(self, canvas: StateTrackingCanvas) -> None:
        for text in self.diagram.texts:
            canvas.set_color(text.color)
            canvas.set_font(Font(text.font_size))
            canvas.draw_text(text.text, text.x, text.y)

    def _render_debug_grid(self, canvas: StateTrackingCanvas) -> None:
        # EPS has no XOR mode; the grid is drawn as plain gray lines on top.
        diagram = self.diagram
        canvas.set_stroke(Stroke(1.0, LineCap.ROUND, LineJoin.ROUND))
        canvas.set_color(DEBUG_GRID_COLOR)
        x = 0.0
        while x < diagram.width:
            canvas.stroke_path(Path([MoveTo(x, 0.0), LineTo(x, diagram.height)]))
            x += diagram.cell_width
        y = 0.0
        while y < diagram.height:
            canvas.stroke_path(Path([MoveTo(0.0, y), LineTo(diagram.width, y)]))
            y += diagram.cell_height

    def _stroke_for(self, shape: DiagramShape) -> Stroke:
        return self.dash_stroke if shape.dashed else self.normal_stroke


def render_to_eps(
    diagram: Diagram,
    out: TextIO,
    options: Optional[RenderingOptions] = None,
    *,
    storage_order: Optional[StorageOrder] = None,
) -> None:
    """Render ``diagram`` to a caller-owned text stream."""
    composer = DiagramComposer(diagram, options, storage_order=storage_order)
    with DocumentWriter(out, owns_sink=False) as writer:
        composer.render(writer)


def render_eps(
    diagram: Diagram,
    path: Union[str, FilePath],
    options: Optional[RenderingOptions] = None,
    *,
    storage_order: Optional[StorageOrder] = None,
) -> None:
    """Render ``diagram`` to the file at ``path``.

    The file is opened and released inside this call. If rendering fails
    the file is left incomplete and should be discarded by the caller.
    """
    composer = DiagramComposer(diagram, options, storage_order=storage_order)
    with DocumentWriter(open_sink(path)) as writer:
        composer.render(writer)
    logger.info("wrote EPS document to %s", path)


def render_eps_text(
    diagram: Diagram,
    options: Optional[RenderingOptions] = None,
    *,
    storage_order: Optional[StorageOrder] = None,
) -> str:
    buffer = io.StringIO()
    render_to_eps(diagram, buffer, options, storage_order=storage_order)
    return buffer.getvalue()
