"""Region-merging segmentation engine."""

from segmenter.engine.config import SegmentationConfig
from segmenter.engine.driver import SegmentationResult, Segmenter, segment_grid
from segmenter.engine.grid import PixelGrid
from segmenter.engine.index import SegmentationIndex
from segmenter.engine.merge import MergeEngine
from segmenter.engine.segment import Segment
from segmenter.engine.traversal import get_registry, traversal

__all__ = [
    "SegmentationConfig",
    "SegmentationResult",
    "Segmenter",
    "segment_grid",
    "PixelGrid",
    "SegmentationIndex",
    "MergeEngine",
    "Segment",
    "get_registry",
    "traversal",
]
