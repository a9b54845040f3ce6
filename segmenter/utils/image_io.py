"""Image codec helpers — decode raster files into PixelGrids and encode overlays, via Pillow."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from segmenter.engine.errors import InvalidInputError
from segmenter.engine.grid import PixelGrid

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, BinaryIO]


def decode_image(source: ImageSource) -> NDArray[np.uint8]:
    """Decode any Pillow-readable image to an ``(H, W, 3)`` RGB array."""
    fp = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        with Image.open(fp) as img:
            return np.array(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInputError(f"Could not decode image: {e}") from e


def load_grid(source: ImageSource, order: int) -> PixelGrid:
    """Decode ``source`` and take its top-left 2^order × 2^order window."""
    rgb = decode_image(source)
    logger.info("Decoded %d×%d image for %d×%d grid", rgb.shape[1], rgb.shape[0], 1 << order, 1 << order)
    return PixelGrid.from_array(rgb, order)


def encode_image(array: NDArray, format: str = "PNG") -> bytes:
    """Encode an ``(H, W, 3)`` or ``(H, W, 1)`` uint8 array (PNG, TIFF, ...)."""
    arr = np.asarray(array, dtype=np.uint8)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format=format)
    return buf.getvalue()
