"""
Geometric hit-testing for annotations.

Each annotation kind has its own containment rule:

- Rectangle: inside the rectangle grown by 5px on every side, so thin or
  empty rectangles can still be grabbed.
- Arrow: closer than 15px to the shaft segment.
- Text: inside an approximate box around the measured text, from 20px
  above the baseline to 10px below it.

Callers search top-most first (reverse insertion order) so the shape drawn
last wins when several overlap.
"""

import math
from typing import Iterable, Optional, Sequence

from PySide6.QtCore import QPointF, QRectF

from snapmark.editor.annotations import (
    Annotation,
    AnnotationType,
    ArrowAnnotation,
    RectangleAnnotation,
    TextAnnotation,
)
from snapmark.editor.text_metrics import TextMeasure, measure_text

NO_HIT = -1

RECT_PADDING = 5
ARROW_TOLERANCE = 15
TEXT_PADDING = 5
TEXT_ASCENT = 20
TEXT_DESCENT = 10


def distance_to_segment(
    px: float, py: float, x1: float, y1: float, x2: float, y2: float
) -> float:
    """
    Euclidean distance from (px, py) to the segment (x1, y1)-(x2, y2).

    The projection onto the line is clamped to the segment ends; a
    zero-length segment measures to its single point.
    """
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy

    if length_sq == 0:
        return math.hypot(px - x1, py - y1)

    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = max(0.0, min(1.0, t))

    return math.hypot(px - (x1 + t * dx), py - (y1 + t * dy))


class HitTester:
    """
    Hit-tests annotations against points in native image coordinates.

    Args:
        measure: Text width function; the Renderer must use the same one.
    """

    def __init__(self, measure: TextMeasure = measure_text) -> None:
        self._measure = measure

    @property
    def measure(self) -> TextMeasure:
        return self._measure

    def text_bounds(self, annotation: TextAnnotation) -> QRectF:
        """Selection box of a text label."""
        width = self._measure(annotation.text, annotation.font_size)
        return QRectF(
            annotation.x - TEXT_PADDING,
            annotation.y - TEXT_ASCENT,
            width + 2 * TEXT_PADDING,
            TEXT_ASCENT + TEXT_DESCENT,
        )

    def hit_test(self, annotation: Annotation, point: QPointF) -> bool:
        """Return True if ``point`` hits ``annotation``."""
        px, py = point.x(), point.y()

        if isinstance(annotation, RectangleAnnotation):
            return (
                annotation.x - RECT_PADDING <= px <= annotation.x + annotation.w + RECT_PADDING
                and annotation.y - RECT_PADDING <= py <= annotation.y + annotation.h + RECT_PADDING
            )

        if isinstance(annotation, ArrowAnnotation):
            distance = distance_to_segment(
                px, py, annotation.x1, annotation.y1, annotation.x2, annotation.y2
            )
            return distance < ARROW_TOLERANCE

        if isinstance(annotation, TextAnnotation):
            # Inclusive on every edge, like the rectangle test
            box = self.text_bounds(annotation)
            return box.left() <= px <= box.right() and box.top() <= py <= box.bottom()

        raise TypeError(f"Unknown annotation kind: {type(annotation).__name__}")

    def find_topmost(
        self,
        annotations: Sequence[Annotation],
        point: QPointF,
        kinds: Optional[Iterable[AnnotationType]] = None,
    ) -> int:
        """
        Index of the topmost annotation hit by ``point``, or NO_HIT.

        Args:
            annotations: Annotations in insertion (bottom-to-top) order.
            point: Point in image coordinates.
            kinds: If given, only annotations of these types are considered.
        """
        allowed = set(kinds) if kinds is not None else None

        for index in range(len(annotations) - 1, -1, -1):
            annotation = annotations[index]
            if allowed is not None and annotation.annotation_type not in allowed:
                continue
            if self.hit_test(annotation, point):
                return index
        return NO_HIT
