"""Tests for Pillow-backed image decoding and encoding."""

import io

import numpy as np
import pytest
from PIL import Image

from segmenter.engine.errors import InvalidInputError
from segmenter.utils.image_io import decode_image, encode_image, load_grid


def _png_bytes(array: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(array.astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def test_load_grid_from_png_bytes():
    arr = np.zeros((5, 6, 3), dtype=np.uint8)
    arr[1, 2] = (9, 8, 7)
    grid = load_grid(_png_bytes(arr), 2)
    assert grid.side == 4
    assert grid.color_at((2, 1)) == (9, 8, 7)


def test_load_grid_from_path(tmp_path):
    arr = np.full((4, 4, 3), 120, dtype=np.uint8)
    path = tmp_path / "flat.tif"
    Image.fromarray(arr).save(path, format="TIFF")
    grid = load_grid(path, 2)
    assert grid.color_at((3, 3)) == (120, 120, 120)


def test_grayscale_converted_to_rgb():
    rgb = decode_image(_png_bytes(np.full((2, 2), 50)))
    assert rgb.shape == (2, 2, 3)
    assert (rgb == 50).all()


def test_too_small_image_rejected():
    with pytest.raises(InvalidInputError):
        load_grid(_png_bytes(np.zeros((3, 3, 3))), 2)


def test_garbage_rejected():
    with pytest.raises(InvalidInputError):
        decode_image(b"definitely not an image")


def test_encode_formats():
    arr = np.arange(4 * 4 * 3, dtype=np.uint8).reshape(4, 4, 3)
    assert encode_image(arr).startswith(b"\x89PNG")
    assert encode_image(arr, format="TIFF")[:2] in (b"II", b"MM")
    assert np.array_equal(decode_image(encode_image(arr)), arr)


def test_encode_single_band():
    data = encode_image(np.full((2, 2, 1), 33, dtype=np.uint8))
    with Image.open(io.BytesIO(data)) as img:
        assert img.mode == "L"
