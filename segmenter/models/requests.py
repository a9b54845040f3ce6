"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SegmentRequest(BaseModel):
    pixels: list[list[list[int]]] | None = Field(
        default=None,
        description="Pixel rows indexed [y][x], each a colour vector of band intensities",
    )
    image_base64: str | None = Field(
        default=None,
        description="Base64-encoded raster file (PNG, TIFF, ...) used when pixels is omitted",
    )
    order: int | None = Field(default=None, ge=0, description="Grid side is 2^order; defaults to settings")
    threshold: float | None = Field(default=None, ge=0, description="Merge-cost threshold")
    traversal: str | None = Field(default=None, description="Registered sweep order name")
