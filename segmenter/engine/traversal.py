"""Traversal registry — every sweep order is a standalone function registered via decorator.

Usage:
    @traversal(name="raster", description="x outer, y inner")
    def raster_order(order: int) -> list[Coord]:
        ...

A traversal must return every coordinate of the 2^order grid exactly once and
must be deterministic: the driver computes it once and replays it each sweep.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from segmenter.engine.grid import Coord

logger = logging.getLogger(__name__)


@dataclass
class TraversalSpec:
    name: str
    fn: Callable[[int], list[Coord]]
    description: str = ""


class TraversalRegistry:
    """Named coordinate orders for the sweep driver."""

    def __init__(self) -> None:
        self._orders: dict[str, TraversalSpec] = {}

    def register(self, spec: TraversalSpec) -> None:
        if spec.name in self._orders:
            raise ValueError(f"Duplicate traversal name: {spec.name}")
        self._orders[spec.name] = spec
        logger.debug("Registered traversal %s", spec.name)

    def get(self, name: str) -> TraversalSpec:
        try:
            return self._orders[name]
        except KeyError:
            raise KeyError(f"Unknown traversal {name!r}; known: {', '.join(self.names())}") from None

    def names(self) -> list[str]:
        return sorted(self._orders)

    def coordinates(self, name: str, order: int) -> list[Coord]:
        return self.get(name).fn(order)

    @property
    def count(self) -> int:
        return len(self._orders)


# Module-level singleton
_registry = TraversalRegistry()


def get_registry() -> TraversalRegistry:
    return _registry


def traversal(*, name: str, description: str = ""):
    """Decorator to register a traversal order."""

    def decorator(fn: Callable[[int], list[Coord]]):
        _registry.register(TraversalSpec(name=name, fn=fn, description=description))
        return fn

    return decorator


# ---------------------------------------------------------------------------
# Built-in orders
# ---------------------------------------------------------------------------

@traversal(name="raster", description="Column by column: x outer, y inner")
def raster_order(order: int) -> list[Coord]:
    side = 1 << order
    return [(x, y) for x in range(side) for y in range(side)]


def dither_rank(x: int, y: int, order: int) -> int:
    """Rank of (x, y) in the 2^order ordered-dither (Bayer) matrix.

    bit_reverse(interleave(x XOR y, y)) over 2·order bits; for order 1 the
    matrix is [[0, 2], [3, 1]] (rows are y).
    """
    xor = x ^ y
    rank = 0
    for bit in range(order):
        rank = (rank << 2) | (((xor >> bit) & 1) << 1) | ((y >> bit) & 1)
    return rank


@traversal(name="dither", description="Ordered-dither (Bayer) rank, spreads visits across the grid")
def dither_order(order: int) -> list[Coord]:
    return sorted(raster_order(order), key=lambda c: dither_rank(c[0], c[1], order))
