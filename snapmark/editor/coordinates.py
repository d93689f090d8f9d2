"""
Mapping between display space and native image space.

The image is shown scaled down to fit the available viewport (never
scaled up). Annotations are stored in native pixels, so every pointer
position is multiplied by ``scale = native_width / display_width`` before
it is compared with or stored as a shape coordinate.

Also provides the optional source crop applied when an image is loaded.
"""

import math
from dataclasses import dataclass

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QImage, QPainter


@dataclass(frozen=True)
class FitResult:
    """Display size of an image fitted into a viewport."""
    display_width: int
    display_height: int
    scale: float


def fit(native_width: int, native_height: int, max_width: float, max_height: float) -> FitResult:
    """
    Fit a native image size into ``max_width`` x ``max_height``.

    ``scale = min(1, max_w / native_w, max_h / native_h)`` and the display
    size is ``floor(native * scale)``, at least one pixel.

    Raises:
        ValueError: If the native size is not positive.
    """
    if native_width <= 0 or native_height <= 0:
        raise ValueError(f"Invalid image size: {native_width}x{native_height}")

    scale = min(1.0, max_width / native_width, max_height / native_height)
    scale = max(scale, 0.0)

    display_width = max(1, math.floor(native_width * scale))
    display_height = max(1, math.floor(native_height * scale))
    return FitResult(display_width, display_height, scale)


class CoordinateMapper:
    """
    Converts pointer positions between display and native image space.

    A fresh mapper has scale 1 (display size equals native size).
    """

    def __init__(self, native_width: int = 1, native_height: int = 1,
                 display_width: int = 0, display_height: int = 0) -> None:
        self._native_width = native_width
        self._native_height = native_height
        self._display_width = display_width or native_width
        self._display_height = display_height or native_height

    @classmethod
    def from_fit(cls, native_width: int, native_height: int,
                 max_width: float, max_height: float) -> "CoordinateMapper":
        result = fit(native_width, native_height, max_width, max_height)
        return cls(native_width, native_height, result.display_width, result.display_height)

    @property
    def scale(self) -> float:
        """Native pixels per display pixel."""
        return self._native_width / self._display_width

    @property
    def native_size(self) -> tuple:
        return (self._native_width, self._native_height)

    @property
    def display_size(self) -> tuple:
        return (self._display_width, self._display_height)

    def to_canvas_space(self, point: QPointF) -> QPointF:
        """Convert a display-space point to native image coordinates."""
        scale = self.scale
        return QPointF(point.x() * scale, point.y() * scale)

    def to_display_space(self, point: QPointF) -> QPointF:
        """Convert a native image point to display-space coordinates."""
        scale = self.scale
        return QPointF(point.x() / scale, point.y() / scale)


@dataclass(frozen=True)
class CropRegion:
    """
    Crop rectangle in display (CSS-like) pixels plus the device pixel ratio
    of the screen it was selected on.
    """
    x: float
    y: float
    width: float
    height: float
    device_pixel_ratio: float = 1.0

    def source_rect(self) -> QRectF:
        """The crop rectangle in source image pixels."""
        dpr = self.device_pixel_ratio
        return QRectF(self.x * dpr, self.y * dpr, self.width * dpr, self.height * dpr)


def crop_image(image: QImage, region: CropRegion) -> QImage:
    """
    Copy ``region`` of ``image`` into a new surface of the same size.

    Parts of the region outside the source image stay transparent. Returns a
    null QImage if the region is empty.
    """
    source = region.source_rect()
    width = int(round(source.width()))
    height = int(round(source.height()))
    if width <= 0 or height <= 0:
        return QImage()

    result = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
    result.fill(Qt.GlobalColor.transparent)

    painter = QPainter(result)
    painter.drawImage(QRectF(0, 0, width, height), image, source)
    painter.end()
    return result
