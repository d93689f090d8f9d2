"""
Editor canvas widget for SnapMark.

The EditorCanvas is the drawing area that displays:
- The background image, scaled to fit the widget
- The annotation layer rendered by the engine
- The text draft being typed, with a blinking cursor

Mouse and keyboard events are translated into engine input events. The
canvas itself holds no document state.
"""

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, QTimer
from PySide6.QtGui import (
    QColor,
    QFocusEvent,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPen,
)
from PySide6.QtWidgets import QWidget

from snapmark.editor.engine import AnnotationEngine
from snapmark.editor.text_metrics import annotation_font, measure_text
from snapmark.editor.tools import ToolType
from snapmark.services.logging_service import get_logger

# Space kept free around the image when fitting it into the widget
FIT_PADDING = 20
CURSOR_BLINK_MS = 500

_TOOL_CURSORS = {
    ToolType.SELECT: Qt.CursorShape.ArrowCursor,
    ToolType.RECTANGLE: Qt.CursorShape.CrossCursor,
    ToolType.ARROW: Qt.CursorShape.CrossCursor,
    ToolType.TEXT: Qt.CursorShape.IBeamCursor,
}


class EditorCanvas(QWidget):
    """
    Widget hosting an AnnotationEngine.

    Positions are converted from widget coordinates to display space (the
    top-left of the shown image is the origin); the engine maps display
    space to image pixels.
    """

    def __init__(self, engine: AnnotationEngine, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._engine = engine

        self._cursor_visible: bool = False
        self._cursor_timer = QTimer(self)
        self._cursor_timer.timeout.connect(self._toggle_cursor)

        self._setup_widget()

        controller = engine.controller
        engine.changed.connect(self.update)
        engine.image_loaded.connect(self._on_image_loaded)
        controller.text_edit_started.connect(self._on_text_edit_started)
        controller.text_edit_finished.connect(self._on_text_edit_finished)

    def _setup_widget(self) -> None:
        """Configure widget properties."""
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(200, 200)
        self.setStyleSheet("background-color: #1a1a1a;")

    @property
    def engine(self) -> AnnotationEngine:
        return self._engine

    # ─── Geometry ─────────────────────────────────────────────────────────

    def image_rect(self) -> QRectF:
        """Where the image is drawn, in widget coordinates."""
        width, height = self._engine.mapper.display_size
        return QRectF(
            (self.width() - width) / 2,
            (self.height() - height) / 2,
            width,
            height,
        )

    def widget_to_display(self, pos: QPointF) -> QPointF:
        """Convert widget coordinates to display space."""
        origin = self.image_rect().topLeft()
        return QPointF(pos.x() - origin.x(), pos.y() - origin.y())

    def display_to_widget(self, pos: QPointF) -> QPointF:
        origin = self.image_rect().topLeft()
        return QPointF(pos.x() + origin.x(), pos.y() + origin.y())

    def refit(self) -> None:
        """Fit the image into the current widget size."""
        self._engine.fit_to_viewport(
            max(1, self.width() - 2 * FIT_PADDING),
            max(1, self.height() - 2 * FIT_PADDING),
        )

    def set_tool(self, tool: ToolType) -> bool:
        switched = self._engine.controller.set_tool(tool)
        if switched:
            self.setCursor(_TOOL_CURSORS[tool])
        return switched

    # ─── Text Editing ─────────────────────────────────────────────────────

    def _on_text_edit_started(self, session) -> None:
        self._cursor_visible = True
        self._cursor_timer.start(CURSOR_BLINK_MS)
        self.setFocus()
        self.update()

    def _on_text_edit_finished(self) -> None:
        self._cursor_timer.stop()
        self._cursor_visible = False
        self.update()

    def _toggle_cursor(self) -> None:
        self._cursor_visible = not self._cursor_visible
        self.update()

    def _handle_text_input(self, event: QKeyEvent) -> bool:
        """Handle keyboard input for text editing. Returns True if handled."""
        controller = self._engine.controller
        if controller.text_session is None:
            return False

        key = event.key()

        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            controller.key_commit()
            return True

        if key == Qt.Key.Key_Escape:
            controller.key_cancel()
            return True

        if key == Qt.Key.Key_Backspace:
            controller.text_backspace()
            return True

        text = event.text()
        if text and text.isprintable():
            controller.text_input(text)
            return True

        return False

    # ─── Painting ─────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        """Paint the canvas."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        painter.fillRect(self.rect(), QColor(26, 26, 26))

        if not self._engine.is_ready:
            painter.setPen(QColor(100, 100, 100))
            message = self._engine.error or "No image loaded"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, message)
            painter.end()
            return

        target = self.image_rect()
        painter.drawImage(target, self._engine.background)
        painter.drawImage(target, self._engine.render())

        session = self._engine.controller.text_session
        if session is not None:
            self._draw_text_draft(painter, session)

        painter.end()

    def _draw_text_draft(self, painter: QPainter, session) -> None:
        """Draw the draft text and cursor at the label position."""
        scale = self._engine.mapper.scale
        style = self._engine.controller.style
        # The draft is drawn in display space, so shrink the font to match
        font_size = max(1, round(style.font_size / scale))
        anchor = self.display_to_widget(self._engine.mapper.to_display_space(session.position))

        painter.save()
        painter.setFont(annotation_font(font_size))
        painter.setPen(style.color)
        painter.drawText(anchor, session.draft)

        if self._cursor_visible:
            cursor_x = anchor.x() + measure_text(session.draft, font_size)
            painter.setPen(QPen(style.color, 1))
            painter.drawLine(
                QPointF(cursor_x, anchor.y() - font_size),
                QPointF(cursor_x, anchor.y() + font_size * 0.25),
            )
        painter.restore()

    # ─── Event Handlers ───────────────────────────────────────────────────

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.setFocus()
            self._engine.controller.pointer_down(self.widget_to_display(event.position()))

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        self._engine.controller.pointer_move(self.widget_to_display(event.position()))

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self._engine.controller.pointer_up(self.widget_to_display(event.position()))

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self._engine.controller.double_click(self.widget_to_display(event.position()))

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle key press."""
        if self._handle_text_input(event):
            return

        key = event.key()
        modifiers = event.modifiers()
        controller = self._engine.controller

        if key == Qt.Key.Key_Z and modifiers & Qt.KeyboardModifier.ControlModifier:
            controller.undo()
            return

        if key in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            if controller.delete_selected():
                return

        super().keyPressEvent(event)

    def focusOutEvent(self, event: QFocusEvent) -> None:
        # Leaving the canvas confirms the text being typed
        if self._engine.controller.text_session is not None:
            self._engine.controller.blur()
        super().focusOutEvent(event)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        if self._engine.is_ready:
            self.refit()

    def _on_image_loaded(self, width: int, height: int) -> None:
        self.refit()
        self._logger.info(f"Canvas showing {width}x{height} image")
