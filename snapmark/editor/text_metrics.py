"""
Font handling shared by hit-testing and rendering.

Text labels are selected by a box whose width comes from measure_text(),
and painted with annotation_font(). Both go through the same QFont so the
selection box always matches what is drawn.

A QGuiApplication (or QApplication) must exist before measuring.
"""

from functools import lru_cache
from typing import Callable

from PySide6.QtGui import QFont, QFontMetricsF

FONT_FAMILY = "sans-serif"
FONT_WEIGHT = QFont.Weight.DemiBold

TextMeasure = Callable[[str, int], float]


def annotation_font(font_size: int) -> QFont:
    """Return the font used to draw a text label of the given pixel size."""
    font = QFont(FONT_FAMILY)
    font.setStyleHint(QFont.StyleHint.SansSerif)
    font.setPixelSize(max(1, int(font_size)))
    font.setWeight(FONT_WEIGHT)
    return font


@lru_cache(maxsize=32)
def _metrics(font_size: int) -> QFontMetricsF:
    return QFontMetricsF(annotation_font(font_size))


def measure_text(text: str, font_size: int) -> float:
    """Width in pixels of ``text`` drawn with the annotation font."""
    return _metrics(max(1, int(font_size))).horizontalAdvance(text)
