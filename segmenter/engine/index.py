"""SegmentationIndex — owns the live partition of a PixelGrid into segments.

Membership is a direct ``[y, x]`` → segment-id array rewritten on every
merge, so ``segment_of`` never scans segments or pixels. Adjacency is always
derived from the current map and never cached across merges; each segment
keeps only a bounding box so that lookups scan a small window of the map.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from segmenter.engine.errors import InvalidStateError, SegmentNotFoundError
from segmenter.engine.grid import Coord, PixelGrid
from segmenter.engine.segment import Segment

logger = logging.getLogger(__name__)

# (xmin, ymin, xmax, ymax), inclusive
Bounds = tuple[int, int, int, int]


class SegmentationIndex:
    """Live segments plus the coordinate → segment map for one image."""

    def __init__(self, grid: PixelGrid) -> None:
        self.grid = grid
        self._owner: NDArray[np.int64] = np.empty((grid.side, grid.side), dtype=np.int64)
        self._segments: dict[int, Segment] = {}
        self._bounds: dict[int, Bounds] = {}
        for coord in grid.coordinates():
            seg = Segment.singleton(coord, grid.color_at(coord))
            self._segments[seg.id] = seg
            x, y = coord
            self._owner[y, x] = seg.id
            self._bounds[seg.id] = (x, y, x, y)
        logger.debug("Populated %d singleton segments (%d×%d)", len(self._segments), grid.side, grid.side)

    # -- queries --------------------------------------------------------

    def __len__(self) -> int:
        return len(self._segments)

    def __contains__(self, segment: object) -> bool:
        return isinstance(segment, Segment) and self._segments.get(segment.id) is segment

    @property
    def segments(self) -> list[Segment]:
        """Live segments, oldest first."""
        return [self._segments[k] for k in sorted(self._segments)]

    def segment_of(self, coord: Coord) -> Segment:
        if not self.grid.contains(coord):
            raise SegmentNotFoundError(f"Coordinate {coord} is not in the {self.grid.side}×{self.grid.side} grid")
        x, y = coord
        return self._segments[int(self._owner[y, x])]

    def neighbors_of(self, segment: Segment) -> set[Segment]:
        """Distinct live segments 4-adjacent to ``segment``."""
        self._require_live(segment)
        window = self._window(self._bounds[segment.id], margin=1)
        inside = window == segment.id

        # Pixels one step up/down/left/right of the segment
        touched = np.zeros_like(inside)
        touched[1:, :] |= inside[:-1, :]
        touched[:-1, :] |= inside[1:, :]
        touched[:, 1:] |= inside[:, :-1]
        touched[:, :-1] |= inside[:, 1:]

        ids = np.unique(window[touched & ~inside])
        return {self._segments[int(i)] for i in ids}

    def eligible_neighbors(self, segment: Segment, threshold: float) -> set[Segment]:
        """Every neighbor whose merge cost with ``segment`` is ≤ threshold.

        Not only the cheapest one: the mutual test downstream needs the set.
        """
        return {n for n in self.neighbors_of(segment) if segment.merge_cost(n) <= threshold}

    def mutual_eligible_neighbors(
        self,
        segment: Segment,
        candidates: Iterable[Segment],
        threshold: float,
    ) -> set[Segment]:
        """Candidates that also count ``segment`` among their eligible neighbors."""
        return {n for n in candidates if segment in self.eligible_neighbors(n, threshold)}

    def labels(self) -> NDArray[np.int64]:
        """Copy of the ``[y, x]`` segment-id map."""
        return self._owner.copy()

    def compact_labels(self) -> NDArray[np.int64]:
        """Segment ids renumbered 0..k-1 in order of first appearance (row-major)."""
        flat = self._owner.ravel()
        _, first, inverse = np.unique(flat, return_index=True, return_inverse=True)
        rank = np.argsort(np.argsort(first))
        return rank[inverse].reshape(self._owner.shape)

    # -- mutation -------------------------------------------------------

    def apply_merge(self, s1: Segment, s2: Segment) -> Segment:
        """Replace ``s1`` and ``s2`` with their union; returns the new segment."""
        self._require_live(s1)
        self._require_live(s2)
        if s1 == s2:
            raise InvalidStateError(f"Cannot merge {s1!r} with itself")

        # Built first: a failing merge leaves the partition untouched
        merged = s1.merge(s2)

        bounds = _union(self._bounds[s1.id], self._bounds[s2.id])

        del self._segments[s1.id]
        del self._segments[s2.id]
        del self._bounds[s1.id]
        del self._bounds[s2.id]
        self._segments[merged.id] = merged
        self._bounds[merged.id] = bounds
        window = self._window(bounds)
        window[(window == s1.id) | (window == s2.id)] = merged.id
        return merged

    def verify_partition(self) -> None:
        """Raise InvalidStateError unless every pixel maps to exactly one live segment."""
        seen = 0
        for seg in self._segments.values():
            if seg.is_empty:
                raise InvalidStateError(f"{seg!r} is empty")
            if len(seg.coords) != seg.count:
                raise InvalidStateError(f"{seg!r} counts {seg.count} pixels but holds {len(seg.coords)}")
            for x, y in seg.coords:
                if int(self._owner[y, x]) != seg.id:
                    raise InvalidStateError(f"Pixel {(x, y)} of {seg!r} maps to {int(self._owner[y, x])}")
            seen += seg.count
        if seen != len(self.grid):
            raise InvalidStateError(f"Segments cover {seen} pixels, grid has {len(self.grid)}")

    def _require_live(self, segment: Segment) -> None:
        if segment not in self:
            raise SegmentNotFoundError(f"{segment!r} is not a live segment")

    def _window(self, bounds: Bounds, margin: int = 0) -> NDArray[np.int64]:
        """View of the id map over ``bounds`` grown by ``margin``, clipped to the grid."""
        x0, y0, x1, y1 = bounds
        side = self.grid.side
        return self._owner[
            max(y0 - margin, 0):min(y1 + margin + 1, side),
            max(x0 - margin, 0):min(x1 + margin + 1, side),
        ]


def _union(a: Bounds, b: Bounds) -> Bounds:
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[2], b[2]), max(a[3], b[3]))
