"""
Ordered annotation storage with a single selection.

Insertion order is z-order: the last annotation is drawn on top. The
selection is either NO_SELECTION or a valid index, and any structural
removal resets it.
"""

from typing import Iterator, List, Optional, Tuple

from snapmark.editor.annotations import Annotation
from snapmark.services.logging_service import get_logger

NO_SELECTION = -1


class AnnotationStore:
    """The annotation document of one editing session."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)
        self._annotations: List[Annotation] = []
        self._selected_index: int = NO_SELECTION

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(tuple(self._annotations))

    def __getitem__(self, index: int) -> Annotation:
        return self.get(index)

    # ─── Queries ──────────────────────────────────────────────────────────

    def get(self, index: int) -> Annotation:
        """Return the annotation at ``index``; raises IndexError if invalid."""
        if not 0 <= index < len(self._annotations):
            raise IndexError(f"Annotation index out of range: {index}")
        return self._annotations[index]

    def iterate(self) -> Tuple[Annotation, ...]:
        """Annotations front-to-back (insertion order)."""
        return tuple(self._annotations)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def selected(self) -> Optional[Annotation]:
        if self._selected_index == NO_SELECTION:
            return None
        return self._annotations[self._selected_index]

    def is_valid_index(self, index: int) -> bool:
        return 0 <= index < len(self._annotations)

    # ─── Mutation ─────────────────────────────────────────────────────────

    def append(self, annotation: Annotation) -> int:
        """Add an annotation on top. Selection is left untouched."""
        self._annotations.append(annotation)
        self._logger.debug(
            f"Appended {annotation.annotation_type.name.lower()} "
            f"(count={len(self._annotations)})"
        )
        return len(self._annotations) - 1

    def remove_at(self, index: int) -> Optional[Annotation]:
        """Remove the annotation at ``index``. Out-of-range is a no-op."""
        if not self.is_valid_index(index):
            return None
        removed = self._annotations.pop(index)
        self._selected_index = NO_SELECTION
        return removed

    def remove_last(self) -> Optional[Annotation]:
        """Remove the most recently appended annotation, if any."""
        if not self._annotations:
            return None
        removed = self._annotations.pop()
        self._selected_index = NO_SELECTION
        return removed

    def clear(self) -> None:
        self._annotations.clear()
        self._selected_index = NO_SELECTION

    def set_selected(self, index: Optional[int]) -> None:
        """Select ``index``; None or NO_SELECTION clears the selection."""
        if index is None or index == NO_SELECTION:
            self._selected_index = NO_SELECTION
            return
        if not self.is_valid_index(index):
            raise IndexError(f"Cannot select annotation {index}")
        self._selected_index = index
