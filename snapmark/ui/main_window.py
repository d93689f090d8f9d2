"""
Main window for SnapMark application.

The window hosts the EditorWidget and closes itself shortly after the
annotated image has been delivered.
"""

from typing import Optional

from PySide6.QtCore import QTimer, Slot
from PySide6.QtWidgets import QMainWindow, QWidget

from snapmark.editor.editor_widget import EditorWidget
from snapmark.editor.engine import AnnotationEngine
from snapmark.services.delivery_service import DeliveryResult, DeliverySink
from snapmark.services.logging_service import get_logger

# Time the "Sent" status stays visible before the window closes
CLOSE_DELAY_MS = 1500


class MainWindow(QMainWindow):
    """
    Main application window for SnapMark.

    Features:
    - Dark themed UI
    - Editor with toolbar, canvas and send bar
    - Closes after a successful Send
    """

    def __init__(
        self,
        engine: AnnotationEngine,
        sink: DeliverySink,
        parent: Optional[QWidget] = None,
    ) -> None:
        """
        Initialize the MainWindow.

        Args:
            engine: The annotation engine driving the editor.
            sink: Where finished snapshots are delivered.
            parent: Optional parent widget.
        """
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._engine = engine

        self._setup_window()

        self._editor = EditorWidget(engine, sink, self)
        self.setCentralWidget(self._editor)
        self._editor.delivered.connect(self._on_delivered)
        engine.image_loaded.connect(self._update_title_for_image)

        self._close_timer = QTimer(self)
        self._close_timer.setSingleShot(True)
        self._close_timer.timeout.connect(self.close)

        self._logger.info("MainWindow initialized")

    def _setup_window(self) -> None:
        """Configure main window properties."""
        self.setWindowTitle("SnapMark")
        self.setMinimumSize(640, 480)
        self.resize(1200, 800)

    @property
    def editor(self) -> EditorWidget:
        return self._editor

    @property
    def is_closing(self) -> bool:
        return self._close_timer.isActive()

    def present(self) -> None:
        """Show the window and bring it to front."""
        self.show()
        self.raise_()
        self.activateWindow()

    @Slot(int, int)
    def _update_title_for_image(self, width: int, height: int) -> None:
        self.setWindowTitle(f"SnapMark - {width}×{height}")

    @Slot(object)
    def _on_delivered(self, result: DeliveryResult) -> None:
        self._logger.info("Delivery complete, closing editor")
        self._close_timer.start(CLOSE_DELAY_MS)

    def closeEvent(self, event) -> None:
        self._logger.info("MainWindow closing")
        super().closeEvent(event)
