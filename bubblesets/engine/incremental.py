"""Incremental outline — recompute after small edits without rebuilding everything.

Items live in an arena keyed by stable ids. Each record keeps its placed
influence template; only records marked dirty are rebuilt, unless the active
region moved or resized, in which case the whole field is re-placed.
"""

from __future__ import annotations

import enum
import itertools
import logging
from dataclasses import dataclass

from bubblesets.engine.config import OutlineConfig
from bubblesets.engine.context import OutlineContext, RefinementOutcome
from bubblesets.engine.pipeline import (
    BubbleSetPipeline,
    FieldAreas,
    compute_active_region,
)
from bubblesets.engine.potential import (
    InfluenceArea,
    PotentialArea,
    TemplateCache,
    line_influence,
    shape_influence,
)
from bubblesets.utils.contour import PointPath
from bubblesets.utils.geometry import Line, Shape

logger = logging.getLogger(__name__)


class RecordKind(enum.Enum):
    MEMBER = "member"
    NON_MEMBER = "non_member"
    EDGE = "edge"


@dataclass
class ItemRecord:
    kind: RecordKind
    item: Shape | Line
    area: InfluenceArea | None = None
    dirty: bool = True


class IncrementalOutline:
    """Stateful bubble set for interactive editing.

    ``compute()`` returns the same outline ``create_outline`` would for the
    current items, in insertion order.
    """

    def __init__(self, config: OutlineConfig | None = None) -> None:
        self.config = config or OutlineConfig()
        self.cache = TemplateCache()
        self.records: dict[str, ItemRecord] = {}
        self.last_context: OutlineContext | None = None
        # Full field re-placements so far
        self.rebuilds = 0
        self._potential: PotentialArea | None = None
        self._ids = itertools.count()

    # --- Editing ---

    def add_member(self, shape: Shape, key: str | None = None) -> str:
        return self._add(RecordKind.MEMBER, shape, key)

    def add_non_member(self, shape: Shape, key: str | None = None) -> str:
        return self._add(RecordKind.NON_MEMBER, shape, key)

    def add_edge(self, line: Line, key: str | None = None) -> str:
        return self._add(RecordKind.EDGE, line, key)

    def update(self, key: str, item: Shape | Line) -> None:
        record = self.records[key]
        if (record.kind is RecordKind.EDGE) != isinstance(item, Line):
            raise TypeError(f"cannot replace {record.kind.value} {key!r} with {type(item).__name__}")
        record.item = item
        record.dirty = True

    def remove(self, key: str) -> None:
        del self.records[key]

    def mark_dirty(self, key: str | None = None) -> None:
        """Force a template rebuild for one record, or all of them."""
        if key is not None:
            self.records[key].dirty = True
            return
        for record in self.records.values():
            record.dirty = True

    def set_config(self, config: OutlineConfig) -> None:
        self.config = config
        self.cache.clear()
        self._potential = None
        self.mark_dirty()

    # --- Computation ---

    def items(self, kind: RecordKind) -> list[tuple[str, ItemRecord]]:
        return [(k, r) for k, r in self.records.items() if r.kind is kind]

    def compute(self) -> PointPath:
        members = self.items(RecordKind.MEMBER)
        non_members = self.items(RecordKind.NON_MEMBER)
        edges = self.items(RecordKind.EDGE)

        ctx = OutlineContext(
            members=[r.item for _, r in members],
            non_members=[r.item for _, r in non_members],
            edges=[r.item for _, r in edges],
        )
        self.last_context = ctx
        if not ctx.members:
            ctx.outcome = RefinementOutcome.NO_MEMBERS
            ctx.outline = PointPath()
            return ctx.outline

        pipeline = BubbleSetPipeline(self.config, self.cache)
        pipeline.check_factors(ctx)
        pipeline.route(ctx)

        region = compute_active_region(ctx.members, ctx.all_edges, self.config)
        ctx.active_region = region
        self._place_field(PotentialArea.for_region(region, self.config.pixel_group))
        ctx.potential = self._potential

        in_region = [
            (k, r) for k, r in non_members if region.intersects(r.item.bounding_box)
        ]
        ctx.non_members_in_region = [r.item for _, r in in_region]

        rebuilt = 0
        for _, record in members + in_region + edges:
            if record.dirty or record.area is None:
                record.area = self._influence(record)
                record.dirty = False
                rebuilt += 1
        logger.debug(
            "Incremental compute: %d of %d template(s) rebuilt",
            rebuilt, len(members) + len(in_region) + len(edges),
        )

        edge_r1 = self.config.edge_r1
        areas = FieldAreas(
            members=[r.area for _, r in members],
            # virtual edges follow the members, so they are placed fresh every time
            edges=[line_influence(line, ctx.potential, edge_r1) for line in ctx.routing.edges]
            + [r.area for _, r in edges],
            non_members=[r.area for _, r in in_region],
        )
        pipeline.refine(ctx, areas)
        pipeline.post_process(ctx)
        return ctx.outline

    def _place_field(self, grid: PotentialArea) -> None:
        current = self._potential
        if (
            current is not None
            and current.origin_x == grid.origin_x
            and current.origin_y == grid.origin_y
            and current.width == grid.width
            and current.height == grid.height
        ):
            return
        logger.debug(
            "Rebuilding field: %dx%d at (%.1f, %.1f)",
            grid.width, grid.height, grid.origin_x, grid.origin_y,
        )
        self._potential = grid
        self.rebuilds += 1
        self.mark_dirty()

    def _influence(self, record: ItemRecord) -> InfluenceArea:
        assert self._potential is not None
        if record.kind is RecordKind.EDGE:
            return line_influence(record.item, self._potential, self.config.edge_r1)
        return shape_influence(record.item, self._potential, self.config.node_r1, self.cache)

    def _add(self, kind: RecordKind, item: Shape | Line, key: str | None) -> str:
        if key is None:
            key = f"{kind.value}-{next(self._ids)}"
            while key in self.records:
                key = f"{kind.value}-{next(self._ids)}"
        elif key in self.records:
            raise ValueError(f"duplicate item id {key!r}")
        self.records[key] = ItemRecord(kind, item)
        return key
