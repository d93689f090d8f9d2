"""
Image loading for SnapMark.

The editor accepts the captured image in whatever form the capture side
produced it:

- a QImage that is already decoded
- encoded bytes (PNG, JPEG, ...)
- a ``data:image/...;base64,`` URL
- a path to an image file

The load chain is: decode the original, apply the optional crop, and use
the cropped copy as the background. Each step finishes before the next one
starts; any failure raises ImageLoadError.
"""

import base64
import binascii
from pathlib import Path
from typing import Optional, Union

from PySide6.QtGui import QImage

from snapmark.editor.coordinates import CropRegion, crop_image
from snapmark.services.logging_service import get_logger

ImageSource = Union[QImage, bytes, bytearray, str, Path]

DATA_URL_PREFIX = "data:"

_logger = get_logger(__name__)


class ImageLoadError(Exception):
    """The source image could not be decoded or cropped."""


def _decode_data_url(url: str) -> QImage:
    header, sep, payload = url.partition(",")
    if not sep or ";base64" not in header:
        raise ImageLoadError("Unsupported data URL: expected base64 payload")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Invalid base64 image data: {e}") from e
    return QImage.fromData(data)


def decode_image(source: ImageSource) -> QImage:
    """
    Decode ``source`` into a QImage.

    Raises:
        ImageLoadError: If nothing usable could be decoded.
    """
    if isinstance(source, QImage):
        image = QImage(source)
    elif isinstance(source, (bytes, bytearray)):
        image = QImage.fromData(bytes(source))
    elif isinstance(source, str) and source.startswith(DATA_URL_PREFIX):
        image = _decode_data_url(source)
    elif isinstance(source, (str, Path)):
        path = Path(source).expanduser()
        if not path.is_file():
            raise ImageLoadError(f"Image file not found: {path}")
        image = QImage(str(path))
    else:
        raise ImageLoadError(f"Unsupported image source: {type(source).__name__}")

    if image.isNull() or image.width() == 0 or image.height() == 0:
        raise ImageLoadError("Could not decode image")
    return image


def load_background(source: ImageSource, crop: Optional[CropRegion] = None) -> QImage:
    """
    Decode ``source`` and apply ``crop``, returning the editor background.

    Raises:
        ImageLoadError: If decoding fails or the crop is empty.
    """
    image = decode_image(source)
    _logger.info(f"Decoded source image: {image.width()}x{image.height()}")

    if crop is not None:
        cropped = crop_image(image, crop)
        if cropped.isNull():
            raise ImageLoadError(f"Crop region is empty: {crop}")
        _logger.info(
            f"Cropped to {cropped.width()}x{cropped.height()} "
            f"(dpr={crop.device_pixel_ratio})"
        )
        image = cropped

    return image.convertToFormat(QImage.Format.Format_ARGB32_Premultiplied)
