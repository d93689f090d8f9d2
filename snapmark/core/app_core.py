"""
Application core for SnapMark.

This module contains the AppCore class which is responsible for:
- Initializing services (config, logging)
- Applying global styling (dark theme)
- Building the annotation engine and delivery sink
- Creating the main window and loading the image into it

This is the central orchestration point for the application.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, Slot
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox

from snapmark.core.image_loader import ImageSource
from snapmark.editor.coordinates import CropRegion
from snapmark.editor.engine import AnnotationEngine
from snapmark.editor.tools import ToolStyle, ToolType, tool_from_name
from snapmark.services.config_service import ConfigService
from snapmark.services.delivery_service import FolderDeliverySink
from snapmark.services.logging_service import get_logger, setup_logging
from snapmark.ui.main_window import MainWindow


class AppCore(QObject):
    """
    Central application core that wires together all components.

    The startup flow:
    1. Load config and configure logging from it
    2. Apply the dark theme
    3. Build the engine with the configured tool style
    4. Show the window and load the image; a load failure is fatal
    """

    def __init__(
        self,
        app: QApplication,
        config_service: Optional[ConfigService] = None,
        output_dir: Optional[Path] = None,
        debug: bool = False,
        log_to_file: bool = True,
    ) -> None:
        """
        Initialize the application core.

        Args:
            app: The QApplication instance.
            config_service: Config to use; loaded from the default path if None.
            output_dir: Overrides the configured output folder.
            debug: Force DEBUG logging.
            log_to_file: Also write the log file.
        """
        super().__init__()
        self._app = app
        self._config_service = config_service or ConfigService()

        setup_logging(
            "DEBUG" if debug else self._config_service.log_level,
            log_to_file=log_to_file,
            force=True,
        )
        self._logger = get_logger(__name__)
        self._logger.info("Initializing SnapMark application core...")

        self._apply_dark_theme()

        self._engine = AnnotationEngine(self._build_style(), parent=self)
        self._apply_default_tool()

        folder = Path(output_dir) if output_dir else self._config_service.output_folder
        self._sink = FolderDeliverySink(folder)
        self._logger.info(f"Snapshots will be saved to {folder}")

        self._main_window = MainWindow(self._engine, self._sink)
        self._engine.image_failed.connect(self._on_image_failed)

    def _build_style(self) -> ToolStyle:
        config = self._config_service
        return ToolStyle(
            color=config.default_color,
            stroke_width=config.default_stroke_width,
            font_size=config.default_font_size,
        )

    def _apply_default_tool(self) -> None:
        name = self._config_service.default_tool
        try:
            tool = tool_from_name(name)
        except ValueError:
            self._logger.warning(f"Unknown default tool '{name}', using select")
            tool = ToolType.SELECT
        self._engine.controller.set_tool(tool)

    def _apply_dark_theme(self) -> None:
        """
        Apply a dark color palette to the application.

        Uses Qt's QPalette for a native-looking dark theme.
        """
        palette = QPalette()

        palette.setColor(QPalette.ColorRole.Window, QColor(45, 45, 45))
        palette.setColor(QPalette.ColorRole.WindowText, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.Base, QColor(35, 35, 35))
        palette.setColor(QPalette.ColorRole.AlternateBase, QColor(50, 50, 50))
        palette.setColor(QPalette.ColorRole.Text, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.Button, QColor(55, 55, 55))
        palette.setColor(QPalette.ColorRole.ButtonText, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.Highlight, QColor(80, 120, 180))
        palette.setColor(QPalette.ColorRole.HighlightedText, QColor(255, 255, 255))

        for role in (
            QPalette.ColorRole.WindowText,
            QPalette.ColorRole.Text,
            QPalette.ColorRole.ButtonText,
        ):
            palette.setColor(QPalette.ColorGroup.Disabled, role, QColor(127, 127, 127))

        self._app.setPalette(palette)
        self._app.setStyleSheet("""
            QToolTip {
                background-color: #3d3d3d;
                color: #dcdcdc;
                border: 1px solid #5a5a5a;
                padding: 4px;
            }
        """)
        self._logger.debug("Dark theme applied")

    # ─── Editor Integration ───────────────────────────────────────────────

    def open(self, source: ImageSource, crop: Optional[CropRegion] = None) -> bool:
        """
        Show the editor and load the image into it.

        Returns:
            True if editing could start.
        """
        self._main_window.present()
        return self._engine.load_image(source, crop, self._config_service.viewport)

    @Slot(str)
    def _on_image_failed(self, reason: str) -> None:
        QMessageBox.critical(
            self._main_window,
            "SnapMark",
            f"No image to annotate.\n\n{reason}",
        )

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def config(self) -> ConfigService:
        return self._config_service

    @property
    def engine(self) -> AnnotationEngine:
        return self._engine

    @property
    def sink(self) -> FolderDeliverySink:
        return self._sink

    @property
    def main_window(self) -> MainWindow:
        return self._main_window
