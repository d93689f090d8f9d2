"""
Shared fixtures for SnapMark tests.

Qt runs on the offscreen platform so tests work without a display.
"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from snapmark.editor.coordinates import CoordinateMapper
from snapmark.editor.hit_testing import HitTester
from snapmark.editor.interaction import InteractionController
from snapmark.editor.store import AnnotationStore
from snapmark.editor.tools import ToolStyle

# Every character is 10px wide, so text boxes are predictable
CHAR_WIDTH = 10.0


def fixed_measure(text, font_size):
    return CHAR_WIDTH * len(text)


def P(x, y):
    """Shorthand for QPointF in tests."""
    return QPointF(x, y)


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Single QApplication for the whole test session."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def sample_image():
    """400x300 opaque mid-gray image."""
    image = QImage(400, 300, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(QColor(128, 128, 128))
    return image


@pytest.fixture
def large_image():
    """2000x1000 opaque image, larger than the default viewport."""
    image = QImage(2000, 1000, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(QColor(40, 40, 40))
    return image


@pytest.fixture
def png_bytes(sample_image):
    from PySide6.QtCore import QBuffer, QByteArray, QIODevice

    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    sample_image.save(buffer, "PNG")
    buffer.close()
    return bytes(data.data())


@pytest.fixture
def store():
    return AnnotationStore()


@pytest.fixture
def hit_tester():
    return HitTester(fixed_measure)


@pytest.fixture
def controller(store, hit_tester):
    """Controller at scale 1 with a fixed-width text measure."""
    return InteractionController(
        store,
        hit_tester,
        CoordinateMapper(400, 300),
        ToolStyle(color=QColor("#ff3b3b"), stroke_width=3, font_size=16),
    )


@pytest.fixture
def draw():
    """Helper performing a full press-move-release gesture."""
    def _draw(controller, start, end):
        controller.pointer_down(P(*start))
        controller.pointer_move(P(*end))
        controller.pointer_up(P(*end))
    return _draw
