"""
The annotation engine: one editing session over one image.

AnnotationEngine owns the document, the interaction state machine, the
coordinate mapping and the renderer. Hosts (the Qt canvas, tests) feed it
input events through ``controller`` and read frames from ``render()``.
"""

from enum import Enum, auto
from typing import Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from snapmark.core.image_loader import ImageLoadError, ImageSource, load_background
from snapmark.editor.coordinates import CoordinateMapper, CropRegion
from snapmark.editor.hit_testing import HitTester
from snapmark.editor.interaction import InteractionController
from snapmark.editor.renderer import Renderer
from snapmark.editor.store import AnnotationStore
from snapmark.editor.text_metrics import TextMeasure, measure_text
from snapmark.editor.tools import ToolStyle
from snapmark.services.delivery_service import (
    DeliveryError,
    DeliveryResult,
    DeliverySink,
    Snapshot,
)
from snapmark.services.logging_service import get_logger

DEFAULT_VIEWPORT = (1600, 1000)


class EngineState(Enum):
    """Lifecycle of the engine's image."""
    NO_IMAGE = auto()
    READY = auto()
    FAILED = auto()


class AnnotationEngine(QObject):
    """
    One annotation session.

    Signals:
        image_loaded: Emitted with (width, height) once editing is enabled.
        image_failed: Emitted with the reason when the image cannot be loaded.
        changed: Emitted when a redraw is needed.
    """

    image_loaded = Signal(int, int)
    image_failed = Signal(str)
    changed = Signal()

    def __init__(
        self,
        style: Optional[ToolStyle] = None,
        measure: TextMeasure = measure_text,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)

        self._store = AnnotationStore()
        self._hit_tester = HitTester(measure)
        self._renderer = Renderer(self._hit_tester)
        self._controller = InteractionController(
            self._store, self._hit_tester, CoordinateMapper(), style, parent=self
        )
        self._controller.enabled = False
        self._controller.changed.connect(self.changed)

        self._state = EngineState.NO_IMAGE
        self._viewport = DEFAULT_VIEWPORT
        self._error: Optional[str] = None

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    @property
    def hit_tester(self) -> HitTester:
        return self._hit_tester

    @property
    def mapper(self) -> CoordinateMapper:
        return self._controller.mapper

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == EngineState.READY

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def background(self) -> Optional[QImage]:
        return self._renderer.background

    # ─── Image ────────────────────────────────────────────────────────────

    def load_image(
        self,
        source: ImageSource,
        crop: Optional[CropRegion] = None,
        viewport: Optional[tuple] = None,
    ) -> bool:
        """
        Decode (and optionally crop) the image, then enable editing.

        Any previous annotations are discarded. On failure the engine is
        left in the FAILED state with editing disabled.

        Returns:
            True if the image was loaded.
        """
        self._controller.enabled = False
        if viewport is not None:
            self._viewport = viewport

        try:
            background = load_background(source, crop)
        except ImageLoadError as e:
            self._state = EngineState.FAILED
            self._error = str(e)
            self._logger.error(f"Cannot start editing: {e}")
            self.image_failed.emit(self._error)
            return False

        self._controller.reset()
        self._store.clear()
        self._renderer.set_background(background)
        self._controller.mapper = CoordinateMapper.from_fit(
            background.width(), background.height(), *self._viewport
        )
        self._state = EngineState.READY
        self._error = None
        self._controller.enabled = True

        self._logger.info(
            f"Editing enabled: {background.width()}x{background.height()}, "
            f"scale {self.mapper.scale:.3f}"
        )
        self.image_loaded.emit(background.width(), background.height())
        self.changed.emit()
        return True

    def fit_to_viewport(self, max_width: float, max_height: float) -> CoordinateMapper:
        """Re-fit the image into a new viewport size (e.g. on window resize)."""
        self._viewport = (max_width, max_height)
        if self.is_ready:
            size = self._renderer.size
            self._controller.mapper = CoordinateMapper.from_fit(
                size.width(), size.height(), max_width, max_height
            )
            self.changed.emit()
        return self.mapper

    # ─── Output ───────────────────────────────────────────────────────────

    def render(self) -> QImage:
        """Repaint and return the shape layer for the current frame."""
        return self._renderer.render(
            self._store.iterate(),
            self._store.selected_index,
            self._controller.preview,
        )

    def finalize(self, notes: str = "") -> Snapshot:
        """
        Flatten background and annotations into one image.

        An open text edit is committed first.

        Raises:
            RuntimeError: If no image is loaded.
        """
        if not self.is_ready:
            raise RuntimeError("No image loaded")

        self._controller.blur()
        image = self._renderer.flatten(self._store.iterate())
        self._logger.info(
            f"Finalized {len(self._store)} annotation(s) on "
            f"{image.width()}x{image.height()} image"
        )
        return Snapshot(image=image, notes=notes)

    def deliver(self, sink: DeliverySink, notes: str = "") -> DeliveryResult:
        """Finalize and hand the snapshot to ``sink``."""
        snapshot = self.finalize(notes)
        try:
            result = sink.deliver(snapshot)
        except (DeliveryError, OSError) as e:
            self._logger.error(f"Delivery failed: {e}", exc_info=True)
            return DeliveryResult.failed(str(e))

        if result.success:
            self._logger.info(f"Delivered snapshot ({result.location or 'no location'})")
        else:
            self._logger.warning(f"Delivery rejected: {result.error}")
        return result
