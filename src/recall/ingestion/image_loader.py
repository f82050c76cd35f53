"""Image decoding utilities.

Uses Pillow to decode any format it has a codec for. Formats without an
installed codec fail with ``ExtractionError`` like any other bad image.
"""

from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from recall.exceptions import ExtractionError

LOGGER = logging.getLogger(__name__)


def load_image(data: bytes) -> Image.Image:
    """Decode image bytes into an upright RGB Pillow image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image = ImageOps.exif_transpose(image)
            return image.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ExtractionError(f"Failed to decode image: {exc}") from exc


def to_bgr_array(image: Image.Image) -> np.ndarray:
    """Convert an RGB Pillow image to the BGR uint8 array ONNX OCR models expect."""
    rgb = np.asarray(image, dtype=np.uint8)
    return np.ascontiguousarray(rgb[:, :, ::-1])
