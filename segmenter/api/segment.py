"""POST /api/segment — region-merging segmentation of a pixel grid."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import time
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from segmenter.config import Settings
from segmenter.dependencies import get_settings
from segmenter.engine.config import SegmentationConfig
from segmenter.engine.driver import SegmentationResult, Segmenter
from segmenter.engine.errors import InvalidInputError
from segmenter.engine.grid import PixelGrid
from segmenter.engine.index import SegmentationIndex
from segmenter.engine.traversal import get_registry
from segmenter.models.requests import SegmentRequest
from segmenter.models.responses import SegmentResponse
from segmenter.utils.image_io import encode_image, load_grid
from segmenter.utils.overlay import render_overlay

logger = logging.getLogger(__name__)

router = APIRouter()


_SENTINEL = object()  # marks end of queue


def _prepare(req: SegmentRequest, settings: Settings) -> tuple[PixelGrid, SegmentationConfig]:
    """Validate the request and load its grid. Raises InvalidInputError."""
    config = SegmentationConfig.from_settings(
        settings,
        order=req.order,
        threshold=req.threshold,
        traversal=req.traversal,
    )
    if config.order > settings.max_order:
        raise InvalidInputError(f"Grid order {config.order} exceeds the limit of {settings.max_order}")
    if config.traversal not in get_registry().names():
        raise InvalidInputError(f"Unknown traversal {config.traversal!r}")

    if req.pixels is not None and req.image_base64 is not None:
        raise InvalidInputError("Provide only one of pixels or image_base64")
    if req.pixels is not None:
        grid = PixelGrid.from_array(req.pixels, config.order)
    elif req.image_base64:
        try:
            raw = base64.b64decode(req.image_base64, validate=True)
        except binascii.Error as e:
            raise InvalidInputError(f"image_base64 is not valid base64: {e}") from e
        grid = load_grid(raw, config.order)
    else:
        raise InvalidInputError("Provide either pixels or image_base64")
    return grid, config


def _to_response(result: SegmentationResult, config: SegmentationConfig, elapsed_ms: float) -> SegmentResponse:
    grid = result.index.grid
    overlay = render_overlay(grid, result.index.labels(), config.boundary_color)
    return SegmentResponse(
        side=grid.side,
        segment_count=result.segment_count,
        sweeps=result.sweeps,
        merges=result.merges,
        labels=result.labels.tolist(),
        overlay_png_base64=base64.b64encode(encode_image(overlay)).decode("ascii"),
        processing_time_ms=round(elapsed_ms, 1),
    )


@router.post("/segment", response_model=SegmentResponse)
def segment(req: SegmentRequest, settings: Settings = Depends(get_settings)) -> SegmentResponse:
    start = time.perf_counter()
    try:
        grid, config = _prepare(req, settings)
    except InvalidInputError as e:
        logger.warning("Rejected segment request: %s", e)
        raise HTTPException(status_code=422, detail=str(e)) from e

    result = Segmenter(config=config).run(SegmentationIndex(grid))
    return _to_response(result, config, (time.perf_counter() - start) * 1000)


async def _stream_segment(req: SegmentRequest, settings: Settings) -> AsyncGenerator[str, None]:
    """Drive Segmenter.run_streaming() in a thread, yielding SSE events as they arrive."""
    start = time.perf_counter()

    try:
        grid, config = _prepare(req, settings)
    except InvalidInputError as e:
        data = json.dumps({"type": "error", "message": str(e)})
        yield f"event: error\ndata: {data}\n\n"
        return

    index = SegmentationIndex(grid)
    segmenter = Segmenter(config=config)
    result = SegmentationResult(index=index)
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _run_sweeps() -> None:
        """Sync sweeps in thread — pushes progress dicts onto the async queue."""
        try:
            for progress in segmenter.run_streaming(index):
                loop.call_soon_threadsafe(queue.put_nowait, progress)
        finally:
            loop.call_soon_threadsafe(queue.put_nowait, _SENTINEL)

    # Sweeps run in a thread so the event loop stays free to flush SSE
    worker = loop.run_in_executor(None, _run_sweeps)

    while True:
        item = await queue.get()
        if item is _SENTINEL:
            break
        result.sweeps = item["sweep"]
        result.merges_per_sweep.append(item["merges"])
        result.chase_trips = item["chase_trips"]
        yield f"event: progress\ndata: {json.dumps(item)}\n\n"

    # Re-raises anything the sweeps raised
    await worker
    result.merges = sum(result.merges_per_sweep)

    response = _to_response(result, config, (time.perf_counter() - start) * 1000)
    yield f"event: result\ndata: {json.dumps(response.model_dump())}\n\n"

    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/segment/stream")
async def segment_stream(req: SegmentRequest, settings: Settings = Depends(get_settings)) -> StreamingResponse:
    return StreamingResponse(
        _stream_segment(req, settings),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
