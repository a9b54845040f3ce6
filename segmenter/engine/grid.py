"""PixelGrid — immutable 2^N × 2^N store of per-pixel colour vectors.

Coordinates are ``(x, y)`` pairs; the backing array is indexed ``[y, x]``
like every image array in this package.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import numpy as np
from numpy.typing import NDArray

from segmenter.engine.errors import InvalidInputError, OutOfBoundsError

Coord = tuple[int, int]
ColorVector = tuple[int, ...]

# Up, down, left, right
_OFFSETS = ((0, -1), (0, 1), (-1, 0), (1, 0))

# Band values are stored as int64
_MAX_BAND_VALUE = int(np.iinfo(np.int64).max)


class PixelGrid:
    """Read-only colour grid with 4-connected neighbor lookup."""

    def __init__(self, colors: NDArray[np.int64], order: int) -> None:
        if not _is_index(order) or order < 0:
            raise InvalidInputError(f"Grid order must be a non-negative integer, got {order!r}")
        side = 1 << order
        if colors.ndim != 3 or colors.shape[0] != side or colors.shape[1] != side:
            raise InvalidInputError(
                f"Expected a ({side}, {side}, bands) array, got shape {colors.shape}"
            )
        if colors.shape[2] == 0:
            raise InvalidInputError("Colour vectors must have at least one band")
        if colors.dtype == np.bool_ or not np.issubdtype(colors.dtype, np.integer):
            raise InvalidInputError(f"Pixel values must be integers, got dtype {colors.dtype}")
        if int(colors.min()) < 0:
            raise InvalidInputError("Pixel values must be non-negative")
        if int(colors.max()) > _MAX_BAND_VALUE:
            raise InvalidInputError(f"Pixel values must not exceed {_MAX_BAND_VALUE}")
        self._colors = colors.astype(np.int64, copy=True)
        self._colors.setflags(write=False)
        self.order = order
        self.side = side

    @classmethod
    def from_array(cls, source: Any, order: int) -> PixelGrid:
        """Build a grid from the top-left 2^order × 2^order window of ``source``.

        ``source`` is an ``(H, W, bands)`` or ``(H, W)`` integer array (or the
        equivalent nested lists). Coverage smaller than the grid is an
        ``InvalidInputError`` raised before any segmentation work starts.
        """
        if not _is_index(order) or order < 0:
            raise InvalidInputError(f"Grid order must be a non-negative integer, got {order!r}")
        try:
            arr = np.asarray(source)
        except ValueError as e:
            raise InvalidInputError(f"Ragged pixel data: {e}") from e

        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3:
            raise InvalidInputError(f"Pixel data must be 2-D or 3-D, got {arr.ndim}-D")

        side = 1 << order
        h, w = arr.shape[:2]
        if h < side or w < side:
            raise InvalidInputError(
                f"Image {w}×{h} does not cover the {side}×{side} grid (order {order})"
            )
        # Value checks happen in __init__, on the window only
        return cls(arr[:side, :side, :], order)

    @property
    def bands(self) -> int:
        return int(self._colors.shape[2])

    @property
    def colors(self) -> NDArray[np.int64]:
        """Read-only ``(side, side, bands)`` view, indexed ``[y, x]``."""
        return self._colors

    def __len__(self) -> int:
        return self.side * self.side

    def contains(self, coord: Coord) -> bool:
        x, y = coord
        if not (_is_index(x) and _is_index(y)):
            return False
        return 0 <= x < self.side and 0 <= y < self.side

    def color_at(self, coord: Coord) -> ColorVector:
        if not self.contains(coord):
            raise OutOfBoundsError(coord, self.side)
        x, y = coord
        return tuple(int(v) for v in self._colors[y, x])

    def neighbors_of(self, coord: Coord) -> set[Coord]:
        if not self.contains(coord):
            raise OutOfBoundsError(coord, self.side)
        x, y = coord
        side = self.side
        return {
            (x + dx, y + dy)
            for dx, dy in _OFFSETS
            if 0 <= x + dx < side and 0 <= y + dy < side
        }

    def coordinates(self) -> Iterator[Coord]:
        """Every coordinate, x outer and y inner."""
        for x in range(self.side):
            for y in range(self.side):
                yield (x, y)


def _is_index(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))
