"""
Tests for logging setup
"""
import logging

import pytest

from snapmark.services import logging_service
from snapmark.services.logging_service import get_logger, parse_log_level, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = set(root.handlers), root.level
    initialized = logging_service._logging_initialized
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging_service._logging_initialized = initialized


class TestParseLogLevel:
    """Tests for level parsing"""

    def test_names(self):
        assert parse_log_level("debug") == logging.DEBUG
        assert parse_log_level("WARNING") == logging.WARNING

    def test_int_passthrough(self):
        assert parse_log_level(logging.ERROR) == logging.ERROR

    def test_unknown_name_uses_default(self):
        assert parse_log_level("chatty") == logging.INFO


class TestSetupLogging:
    """Tests for handler configuration"""

    def test_file_handler_created(self, tmp_path, restore_logging):
        """Test a dated log file is created in the log dir"""
        setup_logging("DEBUG", log_dir=tmp_path, force=True)
        get_logger("snapmark.test").info("hello file")

        for handler in logging.getLogger().handlers:
            handler.flush()

        files = list(tmp_path.glob("snapmark_*.log"))
        assert len(files) == 1
        assert "hello file" in files[0].read_text(encoding="utf-8")
        assert logging.getLogger().level == logging.DEBUG

    def test_console_only(self, tmp_path, restore_logging):
        """Test file logging can be disabled"""
        setup_logging(log_to_file=False, log_dir=tmp_path, force=True)

        assert not list(tmp_path.iterdir())
        assert len(logging.getLogger().handlers) == 1

    def test_second_call_ignored_without_force(self, tmp_path, restore_logging):
        """Test setup runs once unless forced"""
        setup_logging("INFO", log_to_file=False, force=True)
        setup_logging("DEBUG", log_to_file=False)

        assert logging.getLogger().level == logging.INFO
