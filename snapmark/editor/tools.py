"""
Tool types and the drawing style used for new annotations.

Tools:
- SELECT: Select and drag annotations; double-click a label to edit it
- RECTANGLE: Draw rectangle annotations
- ARROW: Draw arrow annotations
- TEXT: Place text labels
"""

from dataclasses import dataclass, field
from enum import Enum, auto

from PySide6.QtGui import QColor

from snapmark.editor.annotations import (
    DEFAULT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_STROKE_WIDTH,
)


class ToolType(Enum):
    """Enum for tool types."""
    SELECT = auto()
    RECTANGLE = auto()
    ARROW = auto()
    TEXT = auto()


# Tools that create a shape by dragging
DRAWING_TOOLS = frozenset({ToolType.RECTANGLE, ToolType.ARROW})


def tool_from_name(name: str) -> ToolType:
    """
    Look up a tool by its name ("select", "rectangle", "arrow", "text").

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return ToolType[name.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown tool type: {name}") from None


@dataclass
class ToolStyle:
    """
    Style applied to annotations created by the active tool.
    """
    color: QColor = field(default_factory=lambda: QColor(DEFAULT_COLOR))
    stroke_width: int = DEFAULT_STROKE_WIDTH
    font_size: int = DEFAULT_FONT_SIZE

    def __post_init__(self) -> None:
        if self.stroke_width < 1:
            raise ValueError(f"Stroke width must be positive: {self.stroke_width}")
        if self.font_size < 1:
            raise ValueError(f"Font size must be positive: {self.font_size}")
