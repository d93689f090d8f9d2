"""
Delivery of finished annotations for SnapMark.

When the user presses Send, the editor flattens the image and hands a
Snapshot (image + notes) to a DeliverySink. Sinks report back with a
DeliveryResult; the editor shows the outcome and stays usable on failure.

FolderDeliverySink writes the PNG (and the notes as a sibling .txt file)
into a folder, by default ~/Pictures/SnapMark.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage

from snapmark.services.logging_service import get_logger


class DeliveryError(Exception):
    """The snapshot could not be delivered."""


@dataclass(frozen=True)
class Snapshot:
    """Flattened image plus the user's notes."""
    image: QImage
    notes: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    def to_png_bytes(self) -> bytes:
        """Encode the image as PNG."""
        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        ok = self.image.save(buffer, "PNG")
        buffer.close()
        if not ok:
            raise DeliveryError("Could not encode image as PNG")
        return bytes(data.data())


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a delivery attempt."""
    success: bool
    error: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def ok(cls, location: Optional[str] = None) -> "DeliveryResult":
        return cls(True, None, location)

    @classmethod
    def failed(cls, error: str) -> "DeliveryResult":
        return cls(False, error, None)


class DeliverySink(Protocol):
    """Anything that accepts a finished snapshot."""

    def deliver(self, snapshot: Snapshot) -> DeliveryResult:
        ...


class FolderDeliverySink:
    """
    Saves snapshots into a folder.

    Files are named ``snapmark_YYYYmmdd_HHMMSS.png``; notes, when present,
    go into a ``.txt`` file with the same stem.
    """

    def __init__(self, folder: Path) -> None:
        self._logger = get_logger(__name__)
        self._folder = Path(folder)

    @property
    def folder(self) -> Path:
        return self._folder

    def _unique_stem(self, created_at: datetime) -> str:
        base = f"snapmark_{created_at.strftime('%Y%m%d_%H%M%S')}"
        stem = base
        counter = 1
        while (self._folder / f"{stem}.png").exists():
            stem = f"{base}_{counter}"
            counter += 1
        return stem

    def deliver(self, snapshot: Snapshot) -> DeliveryResult:
        """
        Write the snapshot to disk.

        Raises:
            DeliveryError: If the folder or files cannot be written.
        """
        try:
            self._folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DeliveryError(f"Cannot create output folder {self._folder}: {e}") from e

        stem = self._unique_stem(snapshot.created_at)
        image_path = self._folder / f"{stem}.png"

        if not snapshot.image.save(str(image_path), "PNG"):
            raise DeliveryError(f"Failed to save image to {image_path}")

        notes = snapshot.notes.strip()
        if notes:
            notes_path = self._folder / f"{stem}.txt"
            try:
                notes_path.write_text(notes + "\n", encoding="utf-8")
            except OSError as e:
                raise DeliveryError(f"Failed to save notes to {notes_path}: {e}") from e

        self._logger.info(f"Saved to {image_path}")
        return DeliveryResult.ok(str(image_path))
