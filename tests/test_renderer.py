"""
Tests for layered rendering
"""
import math

import pytest
from PySide6.QtGui import QColor, QFontDatabase

from conftest import P, fixed_measure
from snapmark.editor.annotations import ArrowAnnotation, RectangleAnnotation, TextAnnotation
from snapmark.editor.hit_testing import TEXT_PADDING, HitTester
from snapmark.editor.interaction import Preview
from snapmark.editor.renderer import TEXT_SHADOW_COLOR, Renderer, arrow_head
from snapmark.editor.text_metrics import measure_text
from snapmark.editor.tools import ToolType

RED = QColor(255, 0, 0)
BLUE = QColor(0, 0, 255)
WHITE = QColor(255, 255, 255)


def is_white(color):
    return color.alpha() == 255 and (color.red(), color.green(), color.blue()) == (255, 255, 255)


def column(image, x, y_range):
    return [image.pixelColor(x, y) for y in y_range]


@pytest.fixture
def renderer(sample_image):
    r = Renderer(HitTester(fixed_measure))
    r.set_background(sample_image)
    return r


class TestArrowHead:
    """Tests for arrowhead geometry"""

    def test_minimum_head_length(self):
        """Test thin arrows use a 15px head at +/-0.4 rad"""
        tip, left, right = arrow_head(0, 0, 100, 0, 3)

        assert (tip.x(), tip.y()) == (100, 0)
        assert left.x() == pytest.approx(100 - 15 * math.cos(0.4))
        assert left.y() == pytest.approx(15 * math.sin(0.4))
        assert right.x() == pytest.approx(100 - 15 * math.cos(0.4))
        assert right.y() == pytest.approx(-15 * math.sin(0.4))

    def test_head_grows_with_width(self):
        """Test head length is width * 5 for thick arrows"""
        tip, left, _ = arrow_head(0, 0, 0, 100, 6)
        back = math.hypot(left.x() - tip.x(), left.y() - tip.y())

        assert back == pytest.approx(30)


class TestSurfaces:
    """Tests for background and shape layers"""

    def test_render_requires_background(self):
        """Test rendering before an image is set fails"""
        with pytest.raises(RuntimeError):
            Renderer().render([])

    def test_layers_match_image_size(self, renderer):
        """Test both surfaces use native size"""
        assert renderer.size.width() == 400
        assert renderer.shape_layer.size() == renderer.background.size()

    def test_empty_frame_is_transparent(self, renderer):
        """Test the shape layer is cleared each frame"""
        renderer.render([RectangleAnnotation(10, 10, 50, 50, RED)])
        layer = renderer.render([])

        assert layer.pixelColor(10, 30).alpha() == 0

    def test_unknown_kind_raises(self, renderer):
        """Test unsupported objects are rejected"""
        with pytest.raises(TypeError):
            renderer.render([object()])


class TestShapes:
    """Tests for painted shapes"""

    def test_rectangle_outline(self, renderer):
        """Test a rectangle is stroked, not filled"""
        layer = renderer.render([RectangleAnnotation(50, 50, 100, 100, RED, 3)])

        assert layer.pixelColor(50, 100) == RED
        assert layer.pixelColor(100, 100).alpha() == 0

    def test_arrow_shaft_and_head(self, renderer):
        """Test the shaft and the filled head are painted"""
        layer = renderer.render([ArrowAnnotation(50, 150, 350, 150, BLUE, 3)])

        assert layer.pixelColor(200, 150) == BLUE
        # Inside the head triangle, clear of the shaft
        assert layer.pixelColor(340, 152) == BLUE
        assert layer.pixelColor(200, 160).alpha() == 0

    def test_later_shapes_paint_on_top(self, renderer):
        """Test insertion order is z-order"""
        layer = renderer.render([
            RectangleAnnotation(50, 50, 100, 100, RED, 5),
            RectangleAnnotation(50, 50, 100, 100, BLUE, 5),
        ])

        assert layer.pixelColor(50, 100) == BLUE


def painted(image, x_range, y_range, predicate):
    return [
        (x, y)
        for x in x_range
        for y in y_range
        if predicate(image.pixelColor(x, y))
    ]


def is_shadow(color):
    return color.alpha() > 0 and (color.red(), color.green(), color.blue()) == (0, 0, 0)


@pytest.fixture
def text_renderer(sample_image):
    """Renderer measuring text with the real annotation font."""
    if not QFontDatabase.families():
        pytest.skip("no fonts available")
    r = Renderer()
    r.set_background(sample_image)
    return r


class TestText:
    """Tests for painted text labels"""

    def test_label_color_and_shadow(self, text_renderer):
        """Test a label is drawn in its color over a shadow offset by one pixel"""
        layer = text_renderer.render([TextAnnotation(100, 150, "HH", RED, 40)])
        xs, ys = range(95, 185), range(115, 160)

        label = painted(layer, xs, ys, lambda c: c == RED)
        shadow = painted(layer, xs, ys, is_shadow)

        assert label
        assert shadow
        assert max(layer.pixelColor(x, y).alpha() for x, y in shadow) <= TEXT_SHADOW_COLOR.alpha() + 1
        assert max(x for x, _ in shadow) > max(x for x, _ in label)
        assert max(y for _, y in shadow) > max(y for _, y in label)
        # Every uncovered shadow pixel has glyph ink one pixel up and left
        assert all(layer.pixelColor(x - 1, y - 1).red() > 0 for x, y in shadow)

    def test_selection_box_matches_painted_width(self, text_renderer):
        """Test the hit box covers the painted glyphs and ends where they end"""
        label = TextAnnotation(100, 150, "Hello", RED, 16)
        layer = text_renderer.render([label])
        bounds = HitTester().text_bounds(label)
        width = measure_text(label.text, label.font_size)

        ink = painted(layer, range(90, 160), range(130, 160), lambda c: c.alpha() > 0)
        left = min(x for x, _ in ink)
        right = max(x for x, _ in ink)

        assert bounds.left() <= left
        assert right < bounds.right()
        assert right >= label.x + width * 0.75
        assert bounds.width() == pytest.approx(width + 2 * TEXT_PADDING)
        assert HitTester().hit_test(label, P(right, label.y - 5))


class TestSelectionHighlight:
    """Tests for the selection decoration"""

    def test_selected_rectangle_has_white_dashes(self, renderer):
        """Test a dashed white outline sits just outside the shape"""
        rect = RectangleAnnotation(50, 50, 100, 100, RED, 3)

        plain = renderer.render([rect]).copy()
        selected = renderer.render([rect], selected_index=0)

        assert not any(is_white(c) for c in column(plain, 47, range(60, 140)))
        assert any(is_white(c) for c in column(selected, 47, range(60, 140)))

    def test_selected_text_has_box(self, renderer):
        """Test a selected label gets a box matching its hit area"""
        label = TextAnnotation(100, 100, "abc", RED)

        plain = renderer.render([label]).copy()
        selected = renderer.render([label], selected_index=0)

        def marked(image):
            return any(
                image.pixelColor(x, y).alpha() > 0
                for x in range(90, 99)
                for y in range(78, 83)
            )

        assert not marked(plain)
        assert marked(selected)

    def test_flatten_excludes_selection(self, renderer, sample_image):
        """Test the exported image has no highlight"""
        rect = RectangleAnnotation(50, 50, 100, 100, RED, 3)
        renderer.render([rect], selected_index=0)

        flat = renderer.flatten([rect])

        assert flat.size() == sample_image.size()
        assert flat.pixelColor(50, 100) == RED
        assert not any(is_white(c) for c in column(flat, 47, range(60, 140)))
        assert flat.pixelColor(10, 10) == QColor(128, 128, 128)


class TestPreview:
    """Tests for live preview"""

    def test_rectangle_preview(self, renderer):
        """Test the preview is drawn from its two corners"""
        preview = Preview(ToolType.RECTANGLE, P(150, 150), P(50, 50), RED, 3)
        layer = renderer.render([], preview=preview)

        assert layer.pixelColor(50, 100) == RED

    def test_arrow_preview(self, renderer):
        """Test an arrow preview is drawn with its head"""
        preview = Preview(ToolType.ARROW, P(50, 150), P(350, 150), BLUE, 3)
        layer = renderer.render([], preview=preview)

        assert layer.pixelColor(340, 152) == BLUE
