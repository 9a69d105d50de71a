"""POST /api/outline — compute a bubble set outline."""

from __future__ import annotations

import time

from fastapi import APIRouter

from bubblesets.engine.context import OutlineContext
from bubblesets.engine.pipeline import create_pipeline
from bubblesets.models.requests import EdgeModel, OutlineRequest
from bubblesets.models.responses import OutlineResponse
from bubblesets.utils.contour import bspline_path, simplify_path

router = APIRouter()


@router.post("/outline", response_model=OutlineResponse)
async def outline(req: OutlineRequest) -> OutlineResponse:
    start = time.perf_counter()

    ctx = OutlineContext(
        members=[m.to_shape() for m in req.members],
        non_members=[n.to_shape() for n in req.non_members],
        edges=[e.to_line() for e in req.edges],
    )
    pipeline = create_pipeline(req.options.to_config())
    ctx = pipeline.run(ctx)

    path = ctx.outline
    if req.simplify_tolerance is not None:
        path = simplify_path(path, req.simplify_tolerance)
    if req.smooth_granularity is not None:
        path = bspline_path(path, req.smooth_granularity)

    elapsed = (time.perf_counter() - start) * 1000

    return OutlineResponse(
        points=path.to_list(),
        outcome=ctx.outcome.value if ctx.outcome else "",
        iterations=ctx.iterations,
        threshold=ctx.threshold,
        virtual_edges=[EdgeModel.from_line(line) for line in ctx.routing.edges],
        area=path.area,
        processing_time_ms=round(elapsed, 1),
        diagnostics=ctx.diagnostics,
    )
