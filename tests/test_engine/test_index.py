"""Tests for SegmentationIndex — membership, adjacency and merging."""

import numpy as np
import pytest

from segmenter.engine.errors import InvalidStateError, SegmentNotFoundError
from segmenter.engine.index import SegmentationIndex
from tests.conftest import OUTLIER_POS, random_grid


def test_populate_singletons(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    assert len(index) == 16
    for coord in outlier_grid.coordinates():
        seg = index.segment_of(coord)
        assert seg.coords == {coord}
    index.verify_partition()


def test_segment_of_outside_grid(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    with pytest.raises(SegmentNotFoundError):
        index.segment_of((4, 0))
    with pytest.raises(KeyError):
        index.segment_of((0, -1))
    with pytest.raises(SegmentNotFoundError):
        index.segment_of((0.5, 0))


def test_neighbors_of_singleton(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    seg = index.segment_of((0, 0))
    neighbors = index.neighbors_of(seg)
    assert neighbors == {index.segment_of((1, 0)), index.segment_of((0, 1))}
    assert seg not in neighbors


def test_neighbors_after_merge_are_distinct(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    a = index.apply_merge(index.segment_of((0, 0)), index.segment_of((1, 0)))
    b = index.apply_merge(index.segment_of((0, 1)), index.segment_of((1, 1)))
    # b touches a along two pixel pairs but appears once
    assert index.neighbors_of(a) == {b, index.segment_of((2, 0))}


def test_eligible_returns_every_neighbor_under_threshold(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    seg = index.segment_of((1, 0))
    eligible = index.eligible_neighbors(seg, threshold=1.0)
    # (1, 1) is the outlier; both flat neighbors qualify
    assert eligible == {index.segment_of((0, 0)), index.segment_of((2, 0))}
    assert index.segment_of(OUTLIER_POS) not in eligible

    everything = index.eligible_neighbors(seg, threshold=1e9)
    assert everything == index.neighbors_of(seg)


def test_outlier_has_no_eligible_neighbors(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    assert index.eligible_neighbors(index.segment_of(OUTLIER_POS), threshold=1.0) == set()


def test_mutual_eligible_neighbors(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    seg = index.segment_of((0, 0))
    eligible = index.eligible_neighbors(seg, 1.0)
    assert index.mutual_eligible_neighbors(seg, eligible, 1.0) == eligible

    # The outlier never considers a flat pixel eligible, so it is filtered
    outlier = index.segment_of(OUTLIER_POS)
    assert index.mutual_eligible_neighbors(index.segment_of((1, 0)), {outlier}, 1.0) == set()


def test_apply_merge_updates_partition(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    s1 = index.segment_of((2, 2))
    s2 = index.segment_of((2, 3))
    merged = index.apply_merge(s1, s2)

    assert len(index) == 15
    assert s1 not in index and s2 not in index
    assert merged in index
    assert index.segment_of((2, 2)) is merged
    assert index.segment_of((2, 3)) is merged
    assert merged.coords == {(2, 2), (2, 3)}
    index.verify_partition()


def test_apply_merge_rejects_dead_and_self(outlier_grid):
    index = SegmentationIndex(outlier_grid)
    s1 = index.segment_of((0, 0))
    s2 = index.segment_of((0, 1))
    index.apply_merge(s1, s2)
    with pytest.raises(SegmentNotFoundError):
        index.apply_merge(s1, index.segment_of((3, 3)))
    with pytest.raises(SegmentNotFoundError):
        index.neighbors_of(s2)

    live = index.segment_of((3, 3))
    with pytest.raises(InvalidStateError):
        index.apply_merge(live, live)
    assert len(index) == 15
    index.verify_partition()


def test_partition_invariant_holds_after_every_merge():
    grid = random_grid(3, seed=11)
    index = SegmentationIndex(grid)
    rng = np.random.default_rng(3)
    while len(index) > 1:
        seg = index.segments[int(rng.integers(len(index)))]
        other = sorted(index.neighbors_of(seg), key=lambda s: s.id)[0]
        before = len(index)
        index.apply_merge(seg, other)
        assert len(index) == before - 1
        index.verify_partition()
    assert index.segments[0].count == 64


def test_compact_labels(halves_grid):
    index = SegmentationIndex(halves_grid)
    left = index.segment_of((0, 0))
    for coord in [(1, 0), (0, 1), (1, 1), (0, 2), (1, 2), (0, 3), (1, 3)]:
        left = index.apply_merge(left, index.segment_of(coord))
    labels = index.compact_labels()
    assert labels.shape == (4, 4)
    assert (labels[:, :2] == 0).all()
    # Right half is still 8 singletons, numbered in row-major first appearance
    assert labels[0, 2] == 1 and labels[0, 3] == 2 and labels[1, 2] == 3
    assert len(np.unique(labels)) == 9


def test_neighbors_match_pixel_scan_after_merges():
    grid = random_grid(3, seed=11)
    index = SegmentationIndex(grid)
    rng = np.random.default_rng(3)
    for _ in range(40):
        seg = index.segments[int(rng.integers(len(index)))]
        other = sorted(index.neighbors_of(seg), key=lambda s: s.id)[-1]
        index.apply_merge(seg, other)

    for seg in index.segments:
        expected = {
            index.segment_of(n)
            for coord in seg.coords
            for n in grid.neighbors_of(coord)
        } - {seg}
        assert index.neighbors_of(seg) == expected
