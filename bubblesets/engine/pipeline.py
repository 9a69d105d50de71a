"""Pipeline orchestrator — route, build the field, refine until a contour fits."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from bubblesets.engine.config import OutlineConfig
from bubblesets.engine.containment import check_containment
from bubblesets.engine.context import OutlineContext, RefinementOutcome
from bubblesets.engine.marching import trace_contour
from bubblesets.engine.potential import (
    InfluenceArea,
    PotentialArea,
    TemplateCache,
    line_influence,
    shape_influence,
)
from bubblesets.engine.routing import route_virtual_edges
from bubblesets.utils.contour import PointPath, sample_contour
from bubblesets.utils.geometry import Line, Rectangle, Shape, bounding_box_of

logger = logging.getLogger(__name__)

# Receives the final field and threshold; never read back.
DebugSink = Callable[[PotentialArea, float], None]

# Refinement step sizes
_THRESHOLD_DECAY = 0.95
_ATTRACTION_GROWTH = 1.2
_REPULSION_DECAY = 0.8
# Fraction of the iteration budget spent growing attraction
_GROWTH_PHASE = 0.5


@dataclass
class FieldAreas:
    """Unit-weight influence templates placed on the current field."""

    members: list[InfluenceArea] = field(default_factory=list)
    edges: list[InfluenceArea] = field(default_factory=list)
    non_members: list[InfluenceArea] = field(default_factory=list)


def compute_active_region(
    members: Sequence[Shape], edges: Sequence[Line], config: OutlineConfig
) -> Rectangle:
    """Bounding box of members and edges, padded by the largest influence reach."""
    region = bounding_box_of(list(members))
    if region is None:
        raise ValueError("active region needs at least one member")
    for line in edges:
        region = region.union(line.as_rect())
    return region.pad(config.region_padding)


def fill_potential(
    potential: PotentialArea,
    areas: FieldAreas,
    ctx: OutlineContext,
    config: OutlineConfig,
) -> None:
    """Accumulate positive energy first; negative energy only erodes it."""
    if ctx.member_factor != 0:
        f = ctx.member_factor / config.node_normalizer
        for area in areas.members:
            potential.add_influence(area, f)
    if ctx.edge_factor != 0 and areas.edges:
        f = ctx.edge_factor / config.edge_normalizer
        for area in areas.edges:
            potential.add_influence(area, f)
    if ctx.non_member_factor != 0:
        f = ctx.non_member_factor / config.node_normalizer
        for area in areas.non_members:
            potential.add_influence(area, f)


class BubbleSetPipeline:
    """Runs one outline computation over an ``OutlineContext``."""

    def __init__(
        self,
        config: OutlineConfig | None = None,
        cache: TemplateCache | None = None,
        debug: DebugSink | None = None,
    ) -> None:
        self.config = config or OutlineConfig()
        self.cache = cache if cache is not None else TemplateCache()
        self.debug = debug

    def run(self, ctx: OutlineContext) -> OutlineContext:
        start = time.perf_counter()
        if not ctx.members:
            ctx.outcome = RefinementOutcome.NO_MEMBERS
            ctx.outline = PointPath()
            return ctx

        self.check_factors(ctx)
        self.route(ctx)
        self.prepare_field(ctx)
        areas = self.build_areas(ctx)
        self.refine(ctx, areas)
        self.post_process(ctx)

        logger.info(
            "Outline: %d members, %d non-members, %d edges -> %s after %d iteration(s), "
            "%d points in %.0fms",
            len(ctx.members),
            len(ctx.non_members),
            len(ctx.all_edges),
            ctx.outcome.value if ctx.outcome else "none",
            ctx.iterations,
            len(ctx.outline),
            (time.perf_counter() - start) * 1000,
        )
        return ctx

    def check_factors(self, ctx: OutlineContext) -> None:
        """Report influence factors with the wrong sign. Never fatal."""
        cfg = self.config
        if cfg.non_member_factor > 0:
            self._diagnose(ctx, f"non_member_factor {cfg.non_member_factor} is positive")
        if cfg.member_factor < 0:
            self._diagnose(ctx, f"member_factor {cfg.member_factor} is negative")
        if cfg.edge_factor < 0:
            self._diagnose(ctx, f"edge_factor {cfg.edge_factor} is negative")

    def route(self, ctx: OutlineContext) -> None:
        ctx.routing = route_virtual_edges(
            ctx.members,
            ctx.non_members,
            self.config.max_routing_iterations,
            self.config.morph_buffer,
        )
        if ctx.routing.exhausted_count:
            self._diagnose(
                ctx, f"{ctx.routing.exhausted_count} virtual edge(s) still cross an obstacle"
            )

    def prepare_field(self, ctx: OutlineContext) -> None:
        region = compute_active_region(ctx.members, ctx.all_edges, self.config)
        ctx.active_region = region
        ctx.potential = PotentialArea.for_region(region, self.config.pixel_group)
        ctx.non_members_in_region = [
            n for n in ctx.non_members if region.intersects(n.bounding_box)
        ]
        logger.debug(
            "Active region %.1fx%.1f at (%.1f, %.1f), grid %dx%d",
            region.width, region.height, region.x, region.y,
            ctx.potential.width, ctx.potential.height,
        )

    def build_areas(self, ctx: OutlineContext) -> FieldAreas:
        cfg = self.config
        potential = ctx.potential
        assert potential is not None
        return FieldAreas(
            members=[shape_influence(m, potential, cfg.node_r1, self.cache) for m in ctx.members],
            edges=[line_influence(line, potential, cfg.edge_r1) for line in ctx.all_edges],
            non_members=[
                shape_influence(n, potential, cfg.node_r1, self.cache)
                for n in ctx.non_members_in_region
            ],
        )

    def refine(self, ctx: OutlineContext, areas: FieldAreas) -> None:
        """Trace, validate, adjust weights; stop on success or when out of options."""
        cfg = self.config
        potential = ctx.potential
        region = ctx.active_region
        assert potential is not None and region is not None
        origin = (region.x, region.y)

        ctx.threshold = cfg.threshold
        ctx.member_factor = cfg.member_factor
        ctx.edge_factor = cfg.edge_factor
        ctx.non_member_factor = cfg.non_member_factor
        ctx.raw_contour = []
        iterations = 0

        potential.clear()
        fill_potential(potential, areas, ctx, cfg)

        while True:
            if iterations >= cfg.max_marching_iterations:
                ctx.outcome = RefinementOutcome.EXHAUSTED_ITERATIONS
                break

            contour = trace_contour(potential, ctx.threshold)
            if contour:
                check = check_containment(
                    contour, origin, ctx.members, ctx.non_members, cfg.skip
                )
                # leakage is informational; the levers below never read it
                ctx.contains_extra = check.contains_extra
                if check.contains_all:
                    ctx.raw_contour = contour
                    ctx.outcome = RefinementOutcome.FOUND
                    break

            iterations += 1
            ctx.threshold *= _THRESHOLD_DECAY
            if iterations <= cfg.max_marching_iterations * _GROWTH_PHASE:
                ctx.member_factor *= _ATTRACTION_GROWTH
                ctx.edge_factor *= _ATTRACTION_GROWTH
            elif ctx.non_member_factor != 0 and ctx.non_members_in_region:
                ctx.non_member_factor *= _REPULSION_DECAY
            else:
                ctx.outcome = RefinementOutcome.NO_MORE_LEVERS
                break
            logger.debug(
                "Iteration %d: threshold=%.4f member=%.3f edge=%.3f non_member=%.3f",
                iterations, ctx.threshold, ctx.member_factor,
                ctx.edge_factor, ctx.non_member_factor,
            )

            potential.clear()
            fill_potential(potential, areas, ctx, cfg)

        ctx.iterations = iterations
        if ctx.contains_extra:
            logger.debug("Contour encloses at least one non-member center")
        if self.debug is not None:
            self.debug(potential, ctx.threshold)

    def post_process(self, ctx: OutlineContext) -> None:
        if not ctx.found or ctx.active_region is None:
            ctx.outline = PointPath()
            return
        origin = (ctx.active_region.x, ctx.active_region.y)
        ctx.outline = sample_contour(ctx.raw_contour, self.config.skip, origin)

    def _diagnose(self, ctx: OutlineContext, message: str) -> None:
        ctx.diagnostics.append(message)
        logger.warning(message)


def create_pipeline(
    config: OutlineConfig | None = None, debug: DebugSink | None = None
) -> BubbleSetPipeline:
    """Factory function for creating a pipeline instance."""
    return BubbleSetPipeline(config=config, debug=debug)


def create_outline(
    members: Sequence[Shape],
    non_members: Sequence[Shape] = (),
    edges: Sequence[Line] = (),
    config: OutlineConfig | None = None,
    debug: DebugSink | None = None,
) -> PointPath:
    """Closed outline around ``members``; empty if none was found in budget."""
    ctx = OutlineContext(
        members=list(members),
        non_members=list(non_members),
        edges=list(edges),
    )
    return create_pipeline(config, debug).run(ctx).outline
