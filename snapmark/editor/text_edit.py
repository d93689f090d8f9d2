"""
Transient text entry for creating or editing a text label.

A session holds the draft while the user types. It never touches the
document itself; InteractionController decides what a commit does.
"""

from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QPointF


@dataclass
class TextEditSession:
    """
    Draft state of one text edit.

    Attributes:
        position: Baseline anchor of the label, in image coordinates.
        target_index: Index of the label being edited, or None for a new one.
        draft: Text typed so far.
    """
    position: QPointF
    target_index: Optional[int] = None
    draft: str = ""

    @property
    def is_new(self) -> bool:
        return self.target_index is None

    @property
    def committed_text(self) -> str:
        """The draft as it would be committed (surrounding whitespace trimmed)."""
        return self.draft.strip()

    def insert(self, text: str) -> None:
        # Single-line labels
        self.draft += text.replace("\r", "").replace("\n", "")

    def backspace(self) -> None:
        self.draft = self.draft[:-1]

    def set_text(self, text: str) -> None:
        self.draft = ""
        self.insert(text)
