"""
Editor widget for SnapMark - the main editor UI component.

This widget composes the complete editor interface:
- Top toolbar with tool buttons, color, stroke width and edit commands
- Center canvas for image display and annotation
- Bottom bar with the notes box, Send button and status text
"""

from typing import Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QButtonGroup,
    QColorDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QPushButton,
    QSizePolicy,
    QSpinBox,
    QToolBar,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from snapmark.editor.editor_canvas import EditorCanvas
from snapmark.editor.engine import AnnotationEngine
from snapmark.editor.tools import ToolType
from snapmark.services.delivery_service import DeliveryResult, DeliverySink
from snapmark.services.logging_service import get_logger

MAX_STROKE_WIDTH = 20

TOOL_BUTTONS = [
    (ToolType.SELECT, "Select", "V"),
    (ToolType.RECTANGLE, "Rectangle", "R"),
    (ToolType.ARROW, "Arrow", "A"),
    (ToolType.TEXT, "Text", "T"),
]

TOOL_SHORTCUTS = {
    Qt.Key.Key_V: ToolType.SELECT,
    Qt.Key.Key_R: ToolType.RECTANGLE,
    Qt.Key.Key_A: ToolType.ARROW,
    Qt.Key.Key_T: ToolType.TEXT,
}


class ColorButton(QPushButton):
    """Button that shows a color and opens color picker on click."""

    color_changed = Signal(QColor)

    def __init__(self, color: QColor, parent=None):
        super().__init__(parent)
        self._color = QColor(color)
        self.setFixedSize(28, 28)
        self.setToolTip("Color")
        self.clicked.connect(self._on_click)
        self._update_style()

    @property
    def color(self) -> QColor:
        return self._color

    @color.setter
    def color(self, value: QColor) -> None:
        self._color = QColor(value)
        self._update_style()

    def _update_style(self) -> None:
        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {self._color.name()};
                border: 2px solid #555;
                border-radius: 4px;
            }}
            QPushButton:hover {{
                border-color: #888;
            }}
        """)

    def _on_click(self) -> None:
        color = QColorDialog.getColor(self._color, self, "Select Color")
        if color.isValid():
            self.color = color
            self.color_changed.emit(color)


class EditorWidget(QWidget):
    """
    Main editor widget composing toolbar, canvas and the send bar.

    Signals:
        delivered: Emitted with the DeliveryResult after a successful Send.
    """

    delivered = Signal(object)

    def __init__(
        self,
        engine: AnnotationEngine,
        sink: DeliverySink,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._engine = engine
        self._sink = sink

        self._setup_ui()
        self._connect_signals()
        self._sync_tool_buttons(engine.controller.tool)
        self._update_command_buttons()

    def _setup_ui(self) -> None:
        """Build the UI layout."""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # ─── Top Toolbar ──────────────────────────────────────────────
        self._toolbar = QToolBar()
        self._toolbar.setMovable(False)
        self._toolbar.setStyleSheet("""
            QToolBar {
                background-color: #2a2a2a;
                border-bottom: 1px solid #3a3a3a;
                padding: 6px 8px;
                spacing: 4px;
            }
            QToolButton {
                background-color: transparent;
                color: #ddd;
                border: none;
                border-radius: 8px;
                padding: 6px 10px;
            }
            QToolButton:hover {
                background-color: rgba(255, 255, 255, 0.1);
            }
            QToolButton:checked {
                background-color: rgba(74, 144, 226, 0.3);
            }
            QToolButton:disabled {
                color: #666;
            }
        """)

        self._tool_group = QButtonGroup(self)
        self._tool_group.setExclusive(True)

        for tool_type, label, shortcut in TOOL_BUTTONS:
            btn = QToolButton()
            btn.setText(label)
            btn.setToolTip(f"{label} ({shortcut})")
            btn.setCheckable(True)
            btn.setProperty("tool_type", tool_type)
            btn.clicked.connect(lambda checked, t=tool_type: self.select_tool(t))
            self._tool_group.addButton(btn)
            self._toolbar.addWidget(btn)

        self._toolbar.addSeparator()

        style = self._engine.controller.style
        self._color_btn = ColorButton(style.color)
        self._toolbar.addWidget(self._color_btn)

        self._stroke_width = QSpinBox()
        self._stroke_width.setRange(1, MAX_STROKE_WIDTH)
        self._stroke_width.setValue(min(style.stroke_width, MAX_STROKE_WIDTH))
        self._stroke_width.setToolTip("Stroke Width")
        self._toolbar.addWidget(self._stroke_width)

        self._toolbar.addSeparator()

        self._undo_btn = QToolButton()
        self._undo_btn.setText("Undo")
        self._undo_btn.setToolTip("Undo (Ctrl+Z)")
        self._toolbar.addWidget(self._undo_btn)

        self._delete_btn = QToolButton()
        self._delete_btn.setText("Delete")
        self._delete_btn.setToolTip("Delete selected (Del)")
        self._toolbar.addWidget(self._delete_btn)

        self._clear_btn = QToolButton()
        self._clear_btn.setText("Clear")
        self._clear_btn.setToolTip("Remove all annotations")
        self._toolbar.addWidget(self._clear_btn)

        main_layout.addWidget(self._toolbar)

        # ─── Canvas ───────────────────────────────────────────────────
        self._canvas = EditorCanvas(self._engine)
        main_layout.addWidget(self._canvas, 1)

        # ─── Send Bar ─────────────────────────────────────────────────
        send_bar = QFrame()
        send_bar.setStyleSheet("""
            QFrame {
                background-color: #2a2a2a;
                border-top: 1px solid #3a3a3a;
            }
            QPlainTextEdit {
                background-color: #3a3a3a;
                color: #ddd;
                border: 1px solid #555;
            }
            QLabel {
                color: #aaa;
                font-size: 11px;
            }
        """)
        send_layout = QHBoxLayout(send_bar)
        send_layout.setContentsMargins(12, 8, 12, 8)

        self._notes = QPlainTextEdit()
        self._notes.setPlaceholderText("Notes (optional)")
        self._notes.setFixedHeight(56)
        send_layout.addWidget(self._notes, 1)

        right = QVBoxLayout()
        self._send_btn = QPushButton("Send")
        self._send_btn.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        right.addWidget(self._send_btn)
        self._status = QLabel("")
        right.addWidget(self._status)
        send_layout.addLayout(right)

        main_layout.addWidget(send_bar)

    def _connect_signals(self) -> None:
        """Connect widget signals."""
        controller = self._engine.controller
        self._color_btn.color_changed.connect(self._on_color_changed)
        self._stroke_width.valueChanged.connect(self._on_stroke_width_changed)
        self._undo_btn.clicked.connect(controller.undo)
        self._delete_btn.clicked.connect(controller.delete_selected)
        self._clear_btn.clicked.connect(controller.clear)
        self._send_btn.clicked.connect(self.send)
        self._engine.changed.connect(self._update_command_buttons)
        self._engine.image_loaded.connect(self._on_image_loaded)

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def canvas(self) -> EditorCanvas:
        return self._canvas

    @property
    def notes(self) -> str:
        return self._notes.toPlainText()

    @notes.setter
    def notes(self, text: str) -> None:
        self._notes.setPlainText(text)

    @property
    def status_text(self) -> str:
        return self._status.text()

    # ─── Tool Management ──────────────────────────────────────────────────

    def select_tool(self, tool_type: ToolType) -> None:
        """Select a tool; the buttons follow the tool actually active."""
        if not self._canvas.set_tool(tool_type):
            self._logger.debug(f"Tool switch to {tool_type.name} refused")
        self._sync_tool_buttons(self._engine.controller.tool)

    def _sync_tool_buttons(self, tool_type: ToolType) -> None:
        for btn in self._tool_group.buttons():
            if btn.property("tool_type") == tool_type:
                btn.setChecked(True)
                break

    # ─── Signal Handlers ──────────────────────────────────────────────────

    @Slot(QColor)
    def _on_color_changed(self, color: QColor) -> None:
        self._engine.controller.set_color(color)

    @Slot(int)
    def _on_stroke_width_changed(self, value: int) -> None:
        self._engine.controller.set_stroke_width(value)

    @Slot()
    def _update_command_buttons(self) -> None:
        store = self._engine.store
        ready = self._engine.is_ready
        self._undo_btn.setEnabled(ready and len(store) > 0)
        self._clear_btn.setEnabled(ready and len(store) > 0)
        self._delete_btn.setEnabled(ready and store.selected is not None)
        self._send_btn.setEnabled(ready)

    @Slot(int, int)
    def _on_image_loaded(self, width: int, height: int) -> None:
        self._status.setText(f"{width} × {height}")
        self._update_command_buttons()

    # ─── Delivery ─────────────────────────────────────────────────────────

    def send(self) -> DeliveryResult:
        """Flatten the annotations and hand them to the sink."""
        if not self._engine.is_ready:
            result = DeliveryResult.failed("No image loaded")
        else:
            self._send_btn.setEnabled(False)
            self._status.setText("Sending...")
            result = self._engine.deliver(self._sink, self.notes)
            self._send_btn.setEnabled(True)

        if result.success:
            self._status.setText("Sent")
            self.delivered.emit(result)
        else:
            self._status.setText(f"Failed: {result.error}")
        return result

    # ─── Key Events ───────────────────────────────────────────────────────

    def keyPressEvent(self, event) -> None:
        """Handle tool shortcuts."""
        key = event.key()
        if key in TOOL_SHORTCUTS and not event.modifiers():
            self.select_tool(TOOL_SHORTCUTS[key])
            return
        super().keyPressEvent(event)
