"""Segmentation errors.

Each error also derives from the closest builtin so callers that only know
about ``IndexError``/``KeyError``/``ValueError`` still catch it.
"""

from __future__ import annotations


class SegmentationError(Exception):
    """Base class for every error raised by the segmentation engine."""


class OutOfBoundsError(SegmentationError, IndexError):
    """Coordinate lies outside the ``[0, 2^N)²`` grid."""

    def __init__(self, coord: tuple[int, int], side: int) -> None:
        super().__init__(f"Coordinate {coord} outside {side}×{side} grid")
        self.coord = coord
        self.side = side


class SegmentNotFoundError(SegmentationError, KeyError):
    """Coordinate or segment is unknown to the segmentation index."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class InvalidStateError(SegmentationError, RuntimeError):
    """Partition invariant broken (empty or overlapping segments). Fatal."""


class InvalidInputError(SegmentationError, ValueError):
    """Image source does not cover the requested grid, or bad parameters."""


class ChaseLimitExceeded(SegmentationError):
    """The neighbor chase revisited a segment or ran out of steps."""

    def __init__(self, start_id: int, steps: int) -> None:
        super().__init__(f"Neighbor chase from segment {start_id} abandoned after {steps} steps")
        self.start_id = start_id
        self.steps = steps
