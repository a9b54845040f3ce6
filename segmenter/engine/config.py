"""Segmentation configuration — grid size, merge threshold, sweep order."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SegmentationConfig:
    """Parameters consumed by the segmentation core."""

    # Grid side = 2^order
    order: int = 5
    # Upper bound on merge cost for two segments to be merge-compatible
    threshold: float = 800.0
    # Registered traversal name used for every sweep
    traversal: str = "dither"
    # Bound on segments visited while chasing one-sided preferences
    max_chase_steps: int = 10_000
    # Sentinel colour for overlay boundary pixels (blue)
    boundary_color: tuple[int, ...] = (0, 0, 255)

    @classmethod
    def from_settings(cls, settings=None, **overrides) -> SegmentationConfig:
        """Defaults from application settings; ``None`` overrides are ignored."""
        if settings is None:
            from segmenter.config import settings

        values = {
            "order": settings.default_order,
            "threshold": settings.default_threshold,
            "traversal": settings.default_traversal,
            "max_chase_steps": settings.max_chase_steps,
            "boundary_color": tuple(settings.boundary_color),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
