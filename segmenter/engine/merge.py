"""MergeEngine — mutual-best-neighbor growth of a single segment.

grow(S):
1. eligible = neighbors of S with merge cost ≤ threshold; none → no change.
2. mutual = eligible neighbors that also find S eligible.
3. mutual empty → continue from one eligible neighbor (the chase); no merge.
4. otherwise merge S with one mutual neighbor → changed.

The chase is an explicit loop over a visited set, bounded by
``max_chase_steps``. Revisiting a segment or running out of steps abandons
the attempt and reports no change.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from segmenter.engine.errors import ChaseLimitExceeded, InvalidInputError
from segmenter.engine.index import SegmentationIndex
from segmenter.engine.segment import Segment

logger = logging.getLogger(__name__)


def _pick(segments: Iterable[Segment]) -> Segment:
    # Lowest id: keeps runs reproducible regardless of set ordering
    return min(segments, key=lambda s: s.id)


class MergeEngine:
    def __init__(self, index: SegmentationIndex, threshold: float, max_chase_steps: int = 10_000) -> None:
        if threshold < 0:
            raise InvalidInputError(f"Merge threshold must be non-negative, got {threshold}")
        if max_chase_steps < 1:
            raise InvalidInputError(f"max_chase_steps must be at least 1, got {max_chase_steps}")
        self.index = index
        self.threshold = float(threshold)
        self.max_chase_steps = max_chase_steps
        self.chase_trips = 0

    def grow(self, segment: Segment) -> bool:
        """Try to merge ``segment`` (or a segment reached by chasing). True if merged."""
        try:
            return self._chase(segment)
        except ChaseLimitExceeded as e:
            self.chase_trips += 1
            logger.debug("%s", e)
            return False

    def _chase(self, start: Segment) -> bool:
        index = self.index
        threshold = self.threshold
        visited: set[int] = set()
        current = start

        while True:
            if current.id in visited or len(visited) >= self.max_chase_steps:
                raise ChaseLimitExceeded(start.id, len(visited))
            visited.add(current.id)

            eligible = index.eligible_neighbors(current, threshold)
            if not eligible:
                return False

            mutual = index.mutual_eligible_neighbors(current, eligible, threshold)
            if mutual:
                index.apply_merge(current, _pick(mutual))
                return True

            current = _pick(eligible)
