"""
Annotation models for the SnapMark editor.

This module provides the data models for the annotation kinds that can be
drawn on the canvas. The set is closed:

- RectangleAnnotation: Outlined rectangle
- ArrowAnnotation: Directed line with a filled arrowhead
- TextAnnotation: Single-line text label

All coordinates are in native image pixels. Hit-testing and painting live
in hit_testing.py and renderer.py, which dispatch over these types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Union

from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor


DEFAULT_COLOR = "#ff3b3b"
DEFAULT_STROKE_WIDTH = 3
DEFAULT_FONT_SIZE = 16


def _default_color() -> QColor:
    return QColor(DEFAULT_COLOR)


class AnnotationType(Enum):
    """Enum for annotation types."""
    RECTANGLE = auto()
    ARROW = auto()
    TEXT = auto()


class AnnotationBase(ABC):
    """
    Base class for all annotations.

    Every annotation has an anchor point used as the drag reference and can
    be translated and copied.
    """

    annotation_type: ClassVar[AnnotationType]

    @property
    @abstractmethod
    def anchor(self) -> QPointF:
        """Return the reference point used when dragging."""

    @abstractmethod
    def move_by(self, dx: float, dy: float) -> None:
        """
        Move the annotation by the given delta.

        Args:
            dx: Delta X in image coordinates.
            dy: Delta Y in image coordinates.
        """

    def move_to(self, x: float, y: float) -> None:
        """Move the annotation so its anchor lands on (x, y)."""
        anchor = self.anchor
        self.move_by(x - anchor.x(), y - anchor.y())


@dataclass
class RectangleAnnotation(AnnotationBase):
    """
    Outlined rectangle. ``x, y`` is the top-left corner and the size is
    never negative.
    """

    x: float
    y: float
    w: float
    h: float
    color: QColor = field(default_factory=_default_color)
    stroke_width: int = DEFAULT_STROKE_WIDTH

    annotation_type: ClassVar[AnnotationType] = AnnotationType.RECTANGLE

    def __post_init__(self) -> None:
        if self.w < 0 or self.h < 0:
            raise ValueError(f"Rectangle size must not be negative: {self.w}x{self.h}")

    @classmethod
    def from_corners(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: QColor,
        stroke_width: int,
    ) -> "RectangleAnnotation":
        """Build a normalized rectangle from two opposite corners."""
        return cls(
            x=min(x1, x2),
            y=min(y1, y2),
            w=abs(x2 - x1),
            h=abs(y2 - y1),
            color=QColor(color),
            stroke_width=stroke_width,
        )

    @property
    def anchor(self) -> QPointF:
        return QPointF(self.x, self.y)

    def move_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy


@dataclass
class ArrowAnnotation(AnnotationBase):
    """Arrow from the tail (x1, y1) to the head (x2, y2)."""

    x1: float
    y1: float
    x2: float
    y2: float
    color: QColor = field(default_factory=_default_color)
    stroke_width: int = DEFAULT_STROKE_WIDTH

    annotation_type: ClassVar[AnnotationType] = AnnotationType.ARROW

    @property
    def anchor(self) -> QPointF:
        return QPointF(self.x1, self.y1)

    @property
    def length(self) -> float:
        return ((self.x2 - self.x1) ** 2 + (self.y2 - self.y1) ** 2) ** 0.5

    def move_by(self, dx: float, dy: float) -> None:
        self.x1 += dx
        self.y1 += dy
        self.x2 += dx
        self.y2 += dy


@dataclass
class TextAnnotation(AnnotationBase):
    """
    Text label. ``x, y`` is the left end of the baseline.
    """

    x: float
    y: float
    text: str
    color: QColor = field(default_factory=_default_color)
    font_size: int = DEFAULT_FONT_SIZE

    annotation_type: ClassVar[AnnotationType] = AnnotationType.TEXT

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("Text annotation requires non-empty text")

    @property
    def anchor(self) -> QPointF:
        return QPointF(self.x, self.y)

    def move_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy


Annotation = Union[RectangleAnnotation, ArrowAnnotation, TextAnnotation]
