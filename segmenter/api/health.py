"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from segmenter import __version__
from segmenter.engine.traversal import get_registry
from segmenter.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        traversals=get_registry().names(),
    )
