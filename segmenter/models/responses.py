"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    traversals: list[str] = Field(default_factory=list)


class SegmentResponse(BaseModel):
    side: int
    segment_count: int
    sweeps: int = 0
    merges: int = 0
    labels: list[list[int]] = Field(default_factory=list)
    overlay_png_base64: str = ""
    processing_time_ms: float = 0.0
