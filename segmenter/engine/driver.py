"""Sweep driver — runs MergeEngine over every coordinate until a sweep merges nothing."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from segmenter.engine.config import SegmentationConfig
from segmenter.engine.grid import Coord, PixelGrid
from segmenter.engine.index import SegmentationIndex
from segmenter.engine.merge import MergeEngine
from segmenter.engine.traversal import TraversalRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass
class SegmentationResult:
    """Converged partition plus run statistics."""

    index: SegmentationIndex
    sweeps: int = 0
    merges: int = 0
    merges_per_sweep: list[int] = field(default_factory=list)
    chase_trips: int = 0
    elapsed_ms: float = 0.0

    @property
    def segment_count(self) -> int:
        return len(self.index)

    @property
    def labels(self) -> NDArray[np.int64]:
        return self.index.compact_labels()


class Segmenter:
    """Drives sweeps to a fixed point."""

    def __init__(
        self,
        config: SegmentationConfig | None = None,
        registry: TraversalRegistry | None = None,
    ) -> None:
        self.config = config or SegmentationConfig()
        self.registry = registry or get_registry()

    def sweep(self, index: SegmentationIndex, engine: MergeEngine, order: list[Coord]) -> int:
        """One pass over ``order``; returns the number of merges performed."""
        merges = 0
        for coord in order:
            if engine.grow(index.segment_of(coord)):
                merges += 1
        return merges

    def run(self, index: SegmentationIndex) -> SegmentationResult:
        """Sweep ``index`` in place until stable."""
        start = time.perf_counter()
        result = SegmentationResult(index=index)

        logger.info(
            "Segmenting %d×%d grid: threshold=%.2f traversal=%s",
            index.grid.side,
            index.grid.side,
            self.config.threshold,
            self.config.traversal,
        )

        for progress in self.run_streaming(index):
            result.sweeps = progress["sweep"]
            result.merges_per_sweep.append(progress["merges"])
            result.chase_trips = progress["chase_trips"]

        result.merges = sum(result.merges_per_sweep)
        result.elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.info(
            "Segmentation complete: %d segments after %d sweeps (%d merges) in %.0fms",
            result.segment_count,
            result.sweeps,
            result.merges,
            result.elapsed_ms,
        )
        return result

    def run_streaming(self, index: SegmentationIndex) -> Generator[dict[str, Any], None, None]:
        """Sweep to a fixed point, yielding a progress dict after each sweep.

        The caller's ``index`` is mutated in place, so after the generator is
        exhausted it holds the converged partition (same as ``run()``).
        """
        engine = MergeEngine(index, self.config.threshold, self.config.max_chase_steps)
        order = self.registry.coordinates(self.config.traversal, index.grid.order)

        sweep_no = 0
        while True:
            sweep_no += 1
            t0 = time.perf_counter()
            merges = self.sweep(index, engine, order)
            elapsed_ms = round((time.perf_counter() - t0) * 1000, 1)
            logger.debug("  sweep %d: %d merges, %d segments, %.1fms", sweep_no, merges, len(index), elapsed_ms)

            yield {
                "sweep": sweep_no,
                "merges": merges,
                "segment_count": len(index),
                "chase_trips": engine.chase_trips,
                "elapsed_ms": elapsed_ms,
                "status": "running" if merges else "converged",
            }

            if merges == 0:
                return


def segment_grid(grid: PixelGrid, config: SegmentationConfig | None = None) -> SegmentationResult:
    """Factory: build an index over ``grid`` and run it to convergence."""
    return Segmenter(config=config).run(SegmentationIndex(grid))
