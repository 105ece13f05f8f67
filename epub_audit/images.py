"""Image dimension probing with Pillow."""

from __future__ import annotations

import io
import threading
import warnings
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from .errors import ImageProbeError

RASTER_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif")

_PIXEL_LIMIT_LOCK = threading.Lock()


def _open_size(data: bytes) -> Tuple[int, int]:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", Image.DecompressionBombWarning)
        with Image.open(io.BytesIO(data)) as img:
            return img.size


def _open_size_unlimited(data: bytes) -> Tuple[int, int]:
    # Pillow's pixel limit is process-wide; lift it only for this header read.
    # Other threads opening images meanwhile are unguarded for that moment.
    with _PIXEL_LIMIT_LOCK:
        saved = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = None
        try:
            return _open_size(data)
        finally:
            Image.MAX_IMAGE_PIXELS = saved


def image_dimensions(data: bytes) -> Tuple[int, int]:
    """Return (width, height) read from the image header.

    Pixel data is never decoded. Images past Pillow's decompression-bomb
    limit are the largest ones to report, so the header is read again with
    the limit lifted instead of skipping them.

    Raises ImageProbeError for empty, corrupt or unsupported data.
    """
    if not data:
        raise ImageProbeError("empty file")
    try:
        try:
            width, height = _open_size(data)
        except Image.DecompressionBombError:
            width, height = _open_size_unlimited(data)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        raise ImageProbeError(str(e) or type(e).__name__) from e
    if width <= 0 or height <= 0:
        raise ImageProbeError(f"invalid dimensions {width}x{height}")
    return width, height
