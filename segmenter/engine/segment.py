"""Segment — a set of grid coordinates plus per-band homogeneity statistics.

Statistics are kept as running aggregates (pixel count, per-band sum and
sum of squares) in exact Python integers. The population standard deviation
then follows without rescanning member colours:

    σ_i = √(n·Σc_i² − (Σc_i)²) / n

which equals √(Σ(c_i − μ_i)² / n) exactly, since n·Σc² − (Σc)² = n²·Var is
an integer identity and is never negative.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from segmenter.engine.errors import InvalidStateError
from segmenter.engine.grid import ColorVector, Coord

# Process-wide id source; ids are never reused
_segment_ids = itertools.count()


def next_segment_id() -> int:
    return next(_segment_ids)


@dataclass(frozen=True, eq=False)
class Segment:
    """Identified, immutable region. Equal only to a segment with the same id."""

    id: int
    coords: frozenset[Coord]
    count: int
    sums: tuple[int, ...]
    sq_sums: tuple[int, ...]

    @classmethod
    def singleton(cls, coord: Coord, color: ColorVector, segment_id: int | None = None) -> Segment:
        values = tuple(int(c) for c in color)
        return cls(
            id=next_segment_id() if segment_id is None else segment_id,
            coords=frozenset((coord,)),
            count=1,
            sums=values,
            sq_sums=tuple(v * v for v in values),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"Segment(id={self.id}, pixels={self.count})"

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @property
    def bands(self) -> int:
        return len(self.sums)

    def mean(self) -> NDArray[np.float64]:
        self._require_pixels()
        return np.array(self.sums, dtype=np.float64) / self.count

    def standard_deviation(self) -> NDArray[np.float64]:
        """Per-band population standard deviation of the member colours."""
        self._require_pixels()
        return _stddev(self.count, self.sums, self.sq_sums)

    def merge(self, other: Segment, segment_id: int | None = None) -> Segment:
        """New segment covering both inputs; neither input is modified."""
        self._check_mergeable(other)
        if not self.coords.isdisjoint(other.coords):
            raise InvalidStateError(f"{self!r} and {other!r} share coordinates")
        return Segment(
            id=next_segment_id() if segment_id is None else segment_id,
            coords=self.coords | other.coords,
            count=self.count + other.count,
            sums=tuple(a + b for a, b in zip(self.sums, other.sums)),
            sq_sums=tuple(a + b for a, b in zip(self.sq_sums, other.sq_sums)),
        )

    def merge_cost(self, other: Segment) -> float:
        """Increase in size-weighted dispersion caused by merging.

        Σ_bands [σ(m)·|m| − (σ(a)·|a| + σ(b)·|b|)]. The inner sum is
        commutative in floating point, so the cost is bitwise symmetric.
        """
        self._check_mergeable(other)
        n = self.count + other.count
        sums = tuple(a + b for a, b in zip(self.sums, other.sums))
        sq_sums = tuple(a + b for a, b in zip(self.sq_sums, other.sq_sums))

        merged = _stddev(n, sums, sq_sums) * n
        parts = (self.standard_deviation() * self.count
                 + other.standard_deviation() * other.count)
        return float(np.sum(merged - parts))

    def _require_pixels(self) -> None:
        if self.count == 0:
            raise InvalidStateError(f"{self!r} has no pixels")

    def _check_mergeable(self, other: Segment) -> None:
        self._require_pixels()
        other._require_pixels()
        if self.bands != other.bands:
            raise InvalidStateError(
                f"Band mismatch: {self!r} has {self.bands}, {other!r} has {other.bands}"
            )


def _stddev(n: int, sums: tuple[int, ...], sq_sums: tuple[int, ...]) -> NDArray[np.float64]:
    numer = np.array([n * sq - s * s for s, sq in zip(sums, sq_sums)], dtype=np.float64)
    return np.sqrt(numer) / n
