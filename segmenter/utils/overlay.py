"""Boundary overlay — paints segment boundaries over the source image."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from segmenter.engine.grid import PixelGrid


def boundary_mask(labels: NDArray) -> NDArray[np.bool_]:
    """True where a pixel is on the grid border or has a 4-neighbor in another segment."""
    mask = np.zeros(labels.shape, dtype=bool)
    mask[0, :] = mask[-1, :] = True
    mask[:, 0] = mask[:, -1] = True

    vertical = labels[1:, :] != labels[:-1, :]
    mask[1:, :] |= vertical
    mask[:-1, :] |= vertical

    horizontal = labels[:, 1:] != labels[:, :-1]
    mask[:, 1:] |= horizontal
    mask[:, :-1] |= horizontal
    return mask


def render_overlay(
    grid: PixelGrid,
    labels: NDArray,
    boundary_color: Sequence[int] = (0, 0, 255),
) -> NDArray[np.uint8]:
    """Copy of the grid colours with boundary pixels set to ``boundary_color``.

    ``labels`` is any ``[y, x]`` segment map (raw ids or compact labels).
    """
    if labels.shape != (grid.side, grid.side):
        raise ValueError(f"labels shape {labels.shape} does not match {grid.side}×{grid.side} grid")

    sentinel = np.asarray(boundary_color, dtype=np.int64)
    if sentinel.shape != (grid.bands,):
        # Single-band images take the sentinel's first component
        sentinel = np.resize(sentinel, grid.bands)

    out = np.clip(grid.colors, 0, 255).astype(np.uint8)
    out[boundary_mask(labels)] = np.clip(sentinel, 0, 255).astype(np.uint8)
    return out
