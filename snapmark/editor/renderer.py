"""
Layered rendering for the SnapMark editor.

Two surfaces of the image's native size are kept:

- background: the source raster, painted once when the image is set
- shapes: transparent layer cleared and repainted on every frame

Per frame each annotation is painted in insertion order; the selected one
first gets a dashed white highlight. A live preview of the shape being
drawn goes on top. flatten() composes the final raster without any
selection decoration.
"""

import math
from typing import Iterable, List, Optional

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPen, QPolygonF

from snapmark.editor.annotations import (
    Annotation,
    ArrowAnnotation,
    RectangleAnnotation,
    TextAnnotation,
)
from snapmark.editor.hit_testing import HitTester
from snapmark.editor.interaction import Preview
from snapmark.editor.store import NO_SELECTION
from snapmark.editor.text_metrics import annotation_font
from snapmark.editor.tools import ToolType
from snapmark.services.logging_service import get_logger

SURFACE_FORMAT = QImage.Format.Format_ARGB32_Premultiplied

HIGHLIGHT_COLOR = QColor(255, 255, 255)
HIGHLIGHT_DASH = (5, 3)
TEXT_HIGHLIGHT_DASH = (3, 2)
TEXT_SHADOW_COLOR = QColor(0, 0, 0, 178)

ARROW_HEAD_MIN_LENGTH = 15
ARROW_HEAD_WIDTH_FACTOR = 5
ARROW_HEAD_ANGLE = 0.4


def _dashed_pen(color: QColor, width: float, dash: Iterable[float]) -> QPen:
    pen = QPen(color)
    pen.setWidthF(width)
    pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
    pen.setCapStyle(Qt.PenCapStyle.FlatCap)
    # Qt measures dash lengths in pen widths
    pen.setDashPattern([length / max(width, 1.0) for length in dash])
    return pen


def arrow_head(x1: float, y1: float, x2: float, y2: float, width: float) -> List[QPointF]:
    """
    Corners of the arrowhead triangle: the tip, then the two back corners.

    The back corners sit ``max(15, width * 5)`` pixels behind the tip at
    +/-0.4 radians from the shaft direction.
    """
    head_length = max(ARROW_HEAD_MIN_LENGTH, width * ARROW_HEAD_WIDTH_FACTOR)
    angle = math.atan2(y2 - y1, x2 - x1)
    return [
        QPointF(x2, y2),
        QPointF(
            x2 - head_length * math.cos(angle - ARROW_HEAD_ANGLE),
            y2 - head_length * math.sin(angle - ARROW_HEAD_ANGLE),
        ),
        QPointF(
            x2 - head_length * math.cos(angle + ARROW_HEAD_ANGLE),
            y2 - head_length * math.sin(angle + ARROW_HEAD_ANGLE),
        ),
    ]


def draw_arrow(
    painter: QPainter,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    color: QColor,
    width: float,
    shaft_pen: Optional[QPen] = None,
) -> None:
    """Draw a round-capped shaft from tail to head and a filled arrowhead."""
    painter.save()

    if shaft_pen is None:
        shaft_pen = QPen(color)
        shaft_pen.setWidthF(width)
    shaft_pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    painter.setPen(shaft_pen)
    painter.setBrush(Qt.BrushStyle.NoBrush)
    painter.drawLine(QPointF(x1, y1), QPointF(x2, y2))

    painter.setPen(Qt.PenStyle.NoPen)
    painter.setBrush(color)
    painter.drawPolygon(QPolygonF(arrow_head(x1, y1, x2, y2, width)))

    painter.restore()


class Renderer:
    """
    Paints the background and annotation layers.

    Args:
        hit_tester: Supplies the text selection box so the highlight matches
            the area that selects the label.
    """

    def __init__(self, hit_tester: Optional[HitTester] = None) -> None:
        self._logger = get_logger(__name__)
        self._hit_tester = hit_tester or HitTester()
        self._background: Optional[QImage] = None
        self._shapes: Optional[QImage] = None

    # ─── Surfaces ─────────────────────────────────────────────────────────

    def set_background(self, image: QImage) -> None:
        """Paint ``image`` onto a fresh background surface and reset the shape layer."""
        size = image.size()
        background = QImage(size, SURFACE_FORMAT)
        background.fill(Qt.GlobalColor.transparent)
        painter = QPainter(background)
        painter.drawImage(0, 0, image)
        painter.end()

        shapes = QImage(size, SURFACE_FORMAT)
        shapes.fill(Qt.GlobalColor.transparent)

        self._background = background
        self._shapes = shapes
        self._logger.debug(f"Background set: {size.width()}x{size.height()}")

    @property
    def background(self) -> Optional[QImage]:
        return self._background

    @property
    def shape_layer(self) -> Optional[QImage]:
        return self._shapes

    @property
    def size(self) -> QSize:
        if self._background is None:
            return QSize(0, 0)
        return self._background.size()

    # ─── Frames ───────────────────────────────────────────────────────────

    def render(
        self,
        annotations: Iterable[Annotation],
        selected_index: int = NO_SELECTION,
        preview: Optional[Preview] = None,
    ) -> QImage:
        """
        Repaint the shape layer and return it.

        Raises:
            RuntimeError: If no background has been set.
        """
        if self._shapes is None:
            raise RuntimeError("Renderer has no background image")

        self._shapes.fill(Qt.GlobalColor.transparent)
        painter = QPainter(self._shapes)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)

        self._paint_annotations(painter, annotations, selected_index)
        if preview is not None:
            self._paint_preview(painter, preview)

        painter.end()
        return self._shapes

    def flatten(self, annotations: Iterable[Annotation]) -> QImage:
        """Background plus every annotation, without selection decoration."""
        if self._background is None:
            raise RuntimeError("Renderer has no background image")

        result = self._background.copy()
        painter = QPainter(result)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        self._paint_annotations(painter, annotations, NO_SELECTION)
        painter.end()
        return result

    def _paint_annotations(
        self, painter: QPainter, annotations: Iterable[Annotation], selected_index: int
    ) -> None:
        for index, annotation in enumerate(annotations):
            selected = index == selected_index
            if isinstance(annotation, RectangleAnnotation):
                self._paint_rectangle(painter, annotation, selected)
            elif isinstance(annotation, ArrowAnnotation):
                self._paint_arrow(painter, annotation, selected)
            elif isinstance(annotation, TextAnnotation):
                self._paint_text(painter, annotation, selected)
            else:
                raise TypeError(f"Unknown annotation kind: {type(annotation).__name__}")

    # ─── Shapes ───────────────────────────────────────────────────────────

    def _paint_rectangle(
        self, painter: QPainter, rect: RectangleAnnotation, selected: bool
    ) -> None:
        painter.save()
        painter.setBrush(Qt.BrushStyle.NoBrush)

        if selected:
            painter.setPen(_dashed_pen(HIGHLIGHT_COLOR, rect.stroke_width + 2, HIGHLIGHT_DASH))
            painter.drawRect(QRectF(rect.x - 1, rect.y - 1, rect.w + 2, rect.h + 2))

        pen = QPen(rect.color)
        pen.setWidthF(rect.stroke_width)
        pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
        painter.setPen(pen)
        painter.drawRect(QRectF(rect.x, rect.y, rect.w, rect.h))
        painter.restore()

    def _paint_arrow(
        self, painter: QPainter, arrow: ArrowAnnotation, selected: bool
    ) -> None:
        if selected:
            width = arrow.stroke_width + 2
            draw_arrow(
                painter, arrow.x1, arrow.y1, arrow.x2, arrow.y2,
                HIGHLIGHT_COLOR, width,
                shaft_pen=_dashed_pen(HIGHLIGHT_COLOR, width, HIGHLIGHT_DASH),
            )
        draw_arrow(
            painter, arrow.x1, arrow.y1, arrow.x2, arrow.y2,
            arrow.color, arrow.stroke_width,
        )

    def _paint_text(
        self, painter: QPainter, label: TextAnnotation, selected: bool
    ) -> None:
        painter.save()

        if selected:
            painter.setPen(_dashed_pen(HIGHLIGHT_COLOR, 1, TEXT_HIGHLIGHT_DASH))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(self._hit_tester.text_bounds(label))

        painter.setFont(annotation_font(label.font_size))

        # Shadow keeps the label readable on any background
        painter.setPen(TEXT_SHADOW_COLOR)
        painter.drawText(QPointF(label.x + 1, label.y + 1), label.text)

        painter.setPen(label.color)
        painter.drawText(QPointF(label.x, label.y), label.text)
        painter.restore()

    def _paint_preview(self, painter: QPainter, preview: Preview) -> None:
        start, end = preview.start, preview.end

        if preview.tool == ToolType.RECTANGLE:
            painter.save()
            pen = QPen(preview.color)
            pen.setWidthF(preview.stroke_width)
            pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
            painter.setPen(pen)
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(QRectF(start, end).normalized())
            painter.restore()
        elif preview.tool == ToolType.ARROW:
            draw_arrow(
                painter, start.x(), start.y(), end.x(), end.y(),
                preview.color, preview.stroke_width,
            )
