"""
Pointer and keyboard interaction for the SnapMark editor.

The InteractionController is an explicit state machine fed with discrete
input events. Gesture states:

- Idle: nothing in progress
- Drawing: a rectangle or arrow is being dragged out (preview only)
- Dragging: a selected annotation follows the pointer
- EditingText: a text label draft is open

Every document change goes through this controller. Pointer positions
arrive in display space and are mapped to image space first.
"""

from dataclasses import dataclass
from typing import Optional, Union

from PySide6.QtCore import QObject, QPointF, Signal
from PySide6.QtGui import QColor

from snapmark.editor.annotations import (
    AnnotationType,
    ArrowAnnotation,
    RectangleAnnotation,
    TextAnnotation,
)
from snapmark.editor.coordinates import CoordinateMapper
from snapmark.editor.hit_testing import NO_HIT, HitTester
from snapmark.editor.store import NO_SELECTION, AnnotationStore
from snapmark.editor.text_edit import TextEditSession
from snapmark.editor.tools import DRAWING_TOOLS, ToolStyle, ToolType
from snapmark.services.logging_service import get_logger

# Shapes at or below these sizes are treated as accidental clicks
MIN_RECT_SIZE = 5
MIN_ARROW_LENGTH = 10


# ─── Gesture States ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Drawing:
    tool: ToolType
    anchor: QPointF


@dataclass
class Dragging:
    index: int
    offset: QPointF


@dataclass
class EditingText:
    session: TextEditSession


GestureState = Union[Idle, Drawing, Dragging, EditingText]


@dataclass(frozen=True)
class Preview:
    """In-progress shape shown while drawing; never stored in the document."""
    tool: ToolType
    start: QPointF
    end: QPointF
    color: QColor
    stroke_width: int


# ─── Controller ───────────────────────────────────────────────────────────────

class InteractionController(QObject):
    """
    Turns input events into document mutations.

    Signals:
        changed: Emitted whenever the document, selection, preview or
            text draft changes and the canvas should be redrawn.
        selection_changed: Emitted with the new selected index.
        text_edit_started: Emitted with the TextEditSession when editing opens.
        text_edit_finished: Emitted when the text edit is committed or cancelled.
    """

    changed = Signal()
    selection_changed = Signal(int)
    text_edit_started = Signal(object)
    text_edit_finished = Signal()

    def __init__(
        self,
        store: AnnotationStore,
        hit_tester: Optional[HitTester] = None,
        mapper: Optional[CoordinateMapper] = None,
        style: Optional[ToolStyle] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._store = store
        self._hit_tester = hit_tester or HitTester()
        self._mapper = mapper or CoordinateMapper()
        self._style = style or ToolStyle()
        self._tool = ToolType.SELECT
        self._state: GestureState = Idle()
        self._preview: Optional[Preview] = None
        self.enabled = True

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def tool(self) -> ToolType:
        return self._tool

    @property
    def style(self) -> ToolStyle:
        return self._style

    @property
    def preview(self) -> Optional[Preview]:
        return self._preview

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    @mapper.setter
    def mapper(self, mapper: CoordinateMapper) -> None:
        self._mapper = mapper

    @property
    def text_session(self) -> Optional[TextEditSession]:
        if isinstance(self._state, EditingText):
            return self._state.session
        return None

    @property
    def is_mid_gesture(self) -> bool:
        return isinstance(self._state, (Drawing, Dragging))

    # ─── Tool & Style ─────────────────────────────────────────────────────

    def set_tool(self, tool: ToolType) -> bool:
        """
        Switch the active tool, clearing the selection.

        An open text edit is committed first. Returns False (and changes
        nothing) while a pointer gesture is in progress.
        """
        if self.is_mid_gesture:
            self._logger.debug(f"Ignoring switch to {tool.name} during a gesture")
            return False

        if isinstance(self._state, EditingText):
            self._commit_text()

        self._tool = tool
        self._state = Idle()
        self._preview = None
        self._select(NO_SELECTION)
        self.changed.emit()
        return True

    def set_color(self, color: QColor) -> None:
        self._style.color = QColor(color)

    def set_stroke_width(self, width: int) -> None:
        if width < 1:
            raise ValueError(f"Stroke width must be positive: {width}")
        self._style.stroke_width = int(width)

    def set_font_size(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"Font size must be positive: {size}")
        self._style.font_size = int(size)

    # ─── Pointer Events ───────────────────────────────────────────────────

    def pointer_down(self, pos: QPointF) -> None:
        """Handle a primary button press at a display-space position."""
        if not self.enabled:
            return

        # Clicking the canvas takes focus away from an open text edit
        if isinstance(self._state, EditingText):
            self._commit_text()

        point = self._mapper.to_canvas_space(pos)

        if self._tool == ToolType.SELECT:
            index = self._hit_tester.find_topmost(self._store.iterate(), point)
            if index == NO_HIT:
                self._select(NO_SELECTION)
                self._state = Idle()
            else:
                anchor = self._store.get(index).anchor
                self._select(index)
                self._state = Dragging(index, point - anchor)
            self.changed.emit()
            return

        self._select(NO_SELECTION)

        if self._tool == ToolType.TEXT:
            self._begin_text_edit(TextEditSession(position=point))
            return

        if self._tool in DRAWING_TOOLS:
            self._state = Drawing(self._tool, point)
            self._preview = None
            self.changed.emit()

    def pointer_move(self, pos: QPointF) -> None:
        """Handle pointer movement (with or without a button held)."""
        if not self.enabled:
            return

        state = self._state
        if isinstance(state, Dragging):
            self._drag_to(state, self._mapper.to_canvas_space(pos))
        elif isinstance(state, Drawing):
            point = self._mapper.to_canvas_space(pos)
            self._preview = Preview(
                tool=state.tool,
                start=QPointF(state.anchor),
                end=point,
                color=QColor(self._style.color),
                stroke_width=self._style.stroke_width,
            )
            self.changed.emit()

    def pointer_up(self, pos: QPointF) -> None:
        """Handle a primary button release, resolving the current gesture."""
        if not self.enabled:
            return

        state = self._state
        if isinstance(state, Drawing):
            self._finish_drawing(state, self._mapper.to_canvas_space(pos))
            self._state = Idle()
            self._preview = None
            self.changed.emit()
        elif isinstance(state, Dragging):
            # Selection is kept after a drag
            self._state = Idle()
            self.changed.emit()

    def double_click(self, pos: QPointF) -> None:
        """Open the topmost text label under the pointer for editing."""
        if not self.enabled or self._tool != ToolType.SELECT:
            return

        if isinstance(self._state, EditingText):
            self._commit_text()
            self.changed.emit()

        point = self._mapper.to_canvas_space(pos)
        index = self._hit_tester.find_topmost(
            self._store.iterate(), point, kinds=(AnnotationType.TEXT,)
        )
        if index == NO_HIT:
            return

        label = self._store.get(index)
        self._select(index)
        self._begin_text_edit(
            TextEditSession(position=label.anchor, target_index=index, draft=label.text)
        )

    def _drag_to(self, state: Dragging, point: QPointF) -> None:
        if not self._store.is_valid_index(state.index):
            self._state = Idle()
            return

        annotation = self._store.get(state.index)
        target = point - state.offset
        if isinstance(annotation, ArrowAnnotation):
            annotation.move_by(target.x() - annotation.x1, target.y() - annotation.y1)
            state.offset = point - annotation.anchor
        else:
            annotation.move_to(target.x(), target.y())
        self.changed.emit()

    def _finish_drawing(self, state: Drawing, end: QPointF) -> None:
        start = state.anchor
        dx = end.x() - start.x()
        dy = end.y() - start.y()

        if state.tool == ToolType.RECTANGLE:
            if abs(dx) > MIN_RECT_SIZE and abs(dy) > MIN_RECT_SIZE:
                self._store.append(RectangleAnnotation.from_corners(
                    start.x(), start.y(), end.x(), end.y(),
                    self._style.color, self._style.stroke_width,
                ))
            else:
                self._logger.debug(f"Discarded rectangle {abs(dx):.1f}x{abs(dy):.1f}")
        elif state.tool == ToolType.ARROW:
            arrow = ArrowAnnotation(
                start.x(), start.y(), end.x(), end.y(),
                QColor(self._style.color), self._style.stroke_width,
            )
            if arrow.length > MIN_ARROW_LENGTH:
                self._store.append(arrow)
            else:
                self._logger.debug(f"Discarded arrow of length {arrow.length:.1f}")

    # ─── Text Editing ─────────────────────────────────────────────────────

    def _begin_text_edit(self, session: TextEditSession) -> None:
        self._state = EditingText(session)
        self._preview = None
        self.text_edit_started.emit(session)
        self.changed.emit()

    def text_input(self, text: str) -> None:
        """Append typed characters to the open draft."""
        session = self.text_session
        if session is None:
            return
        session.insert(text)
        self.changed.emit()

    def text_backspace(self) -> None:
        session = self.text_session
        if session is None:
            return
        session.backspace()
        self.changed.emit()

    def set_draft(self, text: str) -> None:
        """Replace the whole draft (e.g. from an input widget)."""
        session = self.text_session
        if session is None:
            return
        session.set_text(text)
        self.changed.emit()

    def key_commit(self) -> None:
        """Explicit confirm (Enter)."""
        if isinstance(self._state, EditingText):
            self._commit_text()
            self.changed.emit()

    def blur(self) -> None:
        """The text entry lost focus; same as confirming."""
        self.key_commit()

    def key_cancel(self) -> None:
        """Explicit cancel (Escape): drop the draft without touching the document."""
        if isinstance(self._state, EditingText):
            self._state = Idle()
            self.text_edit_finished.emit()
            self.changed.emit()

    def _commit_text(self) -> None:
        session = self._state.session
        self._state = Idle()
        text = session.committed_text

        if not text:
            self._logger.debug("Discarded empty text edit")
        elif session.is_new:
            self._store.append(TextAnnotation(
                session.position.x(),
                session.position.y(),
                text,
                QColor(self._style.color),
                self._style.font_size,
            ))
        else:
            index = session.target_index
            target = (
                self._store.get(index) if self._store.is_valid_index(index) else None
            )
            if isinstance(target, TextAnnotation):
                target.text = text
                target.color = QColor(self._style.color)
            else:
                self._logger.warning(f"Text label {index} no longer exists; edit dropped")

        self.text_edit_finished.emit()

    # ─── Commands ─────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Drop any gesture or draft in progress, keeping tool and style."""
        if isinstance(self._state, EditingText):
            self.text_edit_finished.emit()
        self._state = Idle()
        self._preview = None
        self._select(NO_SELECTION)

    def undo(self) -> bool:
        """Remove the most recently added annotation."""
        removed = self._store.remove_last()
        if removed is None:
            return False
        self._after_structural_change(len(self._store))
        return True

    def clear(self) -> None:
        self._store.clear()
        self._after_structural_change()

    def delete_selected(self) -> bool:
        """Remove the selected annotation, if there is one."""
        index = self._store.selected_index
        if index == NO_SELECTION:
            return False
        self._store.remove_at(index)
        self._after_structural_change(index)
        return True

    def _after_structural_change(self, removed_index: Optional[int] = None) -> None:
        """
        Reconcile the gesture state after annotations were removed.

        Args:
            removed_index: Index of the single removed annotation, or None
                when the whole document was cleared.
        """
        if isinstance(self._state, Dragging):
            self._state = Idle()
        elif isinstance(self._state, EditingText):
            self._retarget_text_edit(removed_index)
        self.selection_changed.emit(NO_SELECTION)
        self.changed.emit()

    def _retarget_text_edit(self, removed_index: Optional[int]) -> None:
        session = self._state.session
        if session.is_new:
            return

        target = session.target_index
        if removed_index is not None and removed_index < target:
            session.target_index = target - 1
        elif removed_index is None or removed_index == target:
            self._logger.debug(f"Text label {target} removed while editing; edit dropped")
            self._state = Idle()
            self.text_edit_finished.emit()
            return

        if not self._store.is_valid_index(session.target_index):
            self._state = Idle()
            self.text_edit_finished.emit()

    def _select(self, index: int) -> None:
        if self._store.selected_index == index:
            return
        self._store.set_selected(index)
        self.selection_changed.emit(index)
