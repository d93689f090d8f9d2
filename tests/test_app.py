"""
Tests for command-line parsing and application wiring
"""
import argparse
import json

import pytest

from snapmark.app import build_parser, parse_crop
from snapmark.core.app_core import AppCore
from snapmark.editor.coordinates import CropRegion
from snapmark.editor.tools import ToolType
from snapmark.services.config_service import ConfigService


class TestParseCrop:
    """Tests for --crop parsing"""

    def test_without_ratio(self):
        assert parse_crop("10,20,30,40") == CropRegion(10, 20, 30, 40, 1.0)

    def test_with_ratio(self):
        assert parse_crop("1, 2, 3, 4, 2") == CropRegion(1, 2, 3, 4, 2.0)

    @pytest.mark.parametrize("value", ["1,2,3", "a,b,c,d", "0,0,0,10", "0,0,10,10,0"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_crop(value)


class TestParser:
    """Tests for the argument parser"""

    def test_arguments(self, tmp_path):
        args = build_parser().parse_args(
            ["shot.png", "--crop", "0,0,10,10", "--output-dir", str(tmp_path), "--debug"]
        )

        assert args.image == "shot.png"
        assert args.crop == CropRegion(0, 0, 10, 10)
        assert args.output_dir == tmp_path
        assert args.debug


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "default_tool": "arrow",
        "default_color": "#00ff00",
        "default_stroke_width": 5,
        "log_level": "WARNING",
    }))
    return ConfigService(path)


class TestAppCore:
    """Tests for AppCore wiring"""

    def test_engine_uses_config(self, qapp, config, tmp_path):
        """Test tool and style come from config"""
        core = AppCore(qapp, config, output_dir=tmp_path / "out", log_to_file=False)
        controller = core.engine.controller

        assert controller.tool == ToolType.ARROW
        assert controller.style.stroke_width == 5
        assert controller.style.color.name() == "#00ff00"
        assert core.sink.folder == tmp_path / "out"

    def test_open_loads_image(self, qapp, config, tmp_path, sample_image):
        """Test open shows the editor with the image"""
        core = AppCore(qapp, config, output_dir=tmp_path, log_to_file=False)

        assert core.open(sample_image)
        assert core.engine.is_ready
        core.main_window.close()

    def test_open_failure(self, qapp, config, tmp_path, monkeypatch):
        """Test a missing image is reported as fatal"""
        shown = []
        monkeypatch.setattr(
            "snapmark.core.app_core.QMessageBox.critical",
            lambda *args: shown.append(args),
        )
        core = AppCore(qapp, config, output_dir=tmp_path, log_to_file=False)

        assert not core.open(tmp_path / "missing.png")
        assert len(shown) == 1
        core.main_window.close()
