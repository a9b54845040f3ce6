"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from segmenter.engine.grid import PixelGrid


# Scenario grids

# 2×2, one flat colour
UNIFORM_2X2 = [
    [[10, 20, 30], [10, 20, 30]],
    [[10, 20, 30], [10, 20, 30]],
]

# 4×4 flat grey with a single bright outlier at (x=1, y=1)
OUTLIER_POS = (1, 1)


def outlier_4x4() -> list[list[list[int]]]:
    rows = [[[10, 10, 10] for _ in range(4)] for _ in range(4)]
    x, y = OUTLIER_POS
    rows[y][x] = [250, 250, 250]
    return rows


# 4×4 split vertically: left half dark, right half light
def halves_4x4() -> list[list[list[int]]]:
    return [[[0, 0, 0] if x < 2 else [200, 200, 200] for x in range(4)] for _ in range(4)]


def random_grid(order: int, seed: int = 7, levels: int = 4) -> PixelGrid:
    """Noisy grid with a few flat colour levels so merges actually happen."""
    rng = np.random.default_rng(seed)
    side = 1 << order
    base = rng.integers(0, levels, size=(side, side, 1)) * 60
    noise = rng.integers(0, 3, size=(side, side, 3))
    return PixelGrid.from_array(base + noise, order)


@pytest.fixture
def uniform_grid() -> PixelGrid:
    return PixelGrid.from_array(UNIFORM_2X2, 1)


@pytest.fixture
def outlier_grid() -> PixelGrid:
    return PixelGrid.from_array(outlier_4x4(), 2)


@pytest.fixture
def halves_grid() -> PixelGrid:
    return PixelGrid.from_array(halves_4x4(), 2)
