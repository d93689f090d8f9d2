"""
Tests for viewport fitting, coordinate mapping and cropping
"""
import pytest
from PySide6.QtGui import QColor, QImage, QPainter

from conftest import P
from snapmark.editor.coordinates import CoordinateMapper, CropRegion, crop_image, fit


class TestFit:
    """Tests for fitting an image into a viewport"""

    def test_small_image_not_upscaled(self):
        """Test images smaller than the viewport keep their size"""
        result = fit(400, 300, 1600, 1000)

        assert (result.display_width, result.display_height) == (400, 300)
        assert result.scale == 1.0

    def test_wide_image_limited_by_width(self):
        """Test the tighter dimension decides the factor"""
        result = fit(3200, 1000, 1600, 1000)

        assert result.scale == 0.5
        assert (result.display_width, result.display_height) == (1600, 500)

    def test_display_size_is_floored(self):
        """Test fractional sizes round down"""
        result = fit(1000, 333, 500, 1000)

        assert (result.display_width, result.display_height) == (500, 166)

    def test_invalid_native_size(self):
        """Test zero-sized images are rejected"""
        with pytest.raises(ValueError):
            fit(0, 100, 100, 100)


class TestCoordinateMapper:
    """Tests for display/native mapping"""

    def test_default_scale_is_one(self):
        """Test a fresh mapper maps points unchanged"""
        mapper = CoordinateMapper()

        assert mapper.scale == 1.0
        assert mapper.to_canvas_space(P(12, 34)) == P(12, 34)

    def test_scale_is_native_over_display(self):
        """Test scale is native width divided by display width"""
        mapper = CoordinateMapper.from_fit(3200, 2000, 1600, 1000)

        assert mapper.scale == 2.0
        assert mapper.display_size == (1600, 1000)
        assert mapper.native_size == (3200, 2000)
        assert mapper.to_canvas_space(P(10, 20)) == P(20, 40)

    def test_round_trip(self):
        """Test display -> native -> display recovers the point"""
        mapper = CoordinateMapper.from_fit(1921, 1081, 1600, 1000)
        point = P(123.4, 567.8)
        back = mapper.to_display_space(mapper.to_canvas_space(point))

        assert back.x() == pytest.approx(point.x())
        assert back.y() == pytest.approx(point.y())


class TestCrop:
    """Tests for cropping the source image"""

    @pytest.fixture
    def quadrants(self):
        """200x200 image, left half red and right half blue"""
        image = QImage(200, 200, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(QColor("red"))
        painter = QPainter(image)
        painter.fillRect(100, 0, 100, 200, QColor("blue"))
        painter.end()
        return image

    def test_source_rect_scaled_by_dpr(self):
        """Test display crop is converted to source pixels"""
        rect = CropRegion(10, 20, 30, 40, device_pixel_ratio=2).source_rect()

        assert (rect.x(), rect.y(), rect.width(), rect.height()) == (20, 40, 60, 80)

    def test_crop_size_and_content(self, quadrants):
        """Test the cropped image has the source size and content"""
        cropped = crop_image(quadrants, CropRegion(50, 0, 50, 50, device_pixel_ratio=2))

        assert (cropped.width(), cropped.height()) == (100, 100)
        assert cropped.pixelColor(10, 10) == QColor("blue")

    def test_crop_outside_source_is_transparent(self, quadrants):
        """Test areas beyond the source stay transparent"""
        cropped = crop_image(quadrants, CropRegion(150, 150, 100, 100))

        assert cropped.pixelColor(10, 10) == QColor("blue")
        assert cropped.pixelColor(90, 90).alpha() == 0

    def test_empty_crop(self, quadrants):
        """Test an empty region gives a null image"""
        assert crop_image(quadrants, CropRegion(0, 0, 0, 10)).isNull()
