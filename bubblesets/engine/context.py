"""OutlineContext — the state of one bubble set computation.

Inputs (members, non-members, explicit edges) go in; routing, the active
region, the potential field, the refinement trace and the final outline are
filled in by ``BubbleSetPipeline``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from bubblesets.engine.potential import PotentialArea
from bubblesets.engine.routing import RoutingResult
from bubblesets.utils.contour import PointPath
from bubblesets.utils.geometry import Line, Rectangle, Shape


class RefinementOutcome(enum.Enum):
    FOUND = "found"
    EXHAUSTED_ITERATIONS = "exhausted_iterations"
    NO_MORE_LEVERS = "no_more_levers"
    NO_MEMBERS = "no_members"


@dataclass
class OutlineContext:
    """Shared state flowing through the pipeline stages."""

    members: list[Shape] = field(default_factory=list)
    non_members: list[Shape] = field(default_factory=list)
    # Caller-supplied edges, unioned with the routed virtual edges
    edges: list[Line] = field(default_factory=list)

    # --- Routing ---
    routing: RoutingResult = field(default_factory=RoutingResult)

    # --- Field ---
    active_region: Rectangle | None = None
    potential: PotentialArea | None = None
    # Non-members overlapping the active region; only these shape the field
    non_members_in_region: list[Shape] = field(default_factory=list)

    # --- Refinement state (final values) ---
    threshold: float = 1.0
    member_factor: float = 1.0
    edge_factor: float = 1.0
    non_member_factor: float = -0.8
    iterations: int = 0
    outcome: RefinementOutcome | None = None
    contains_extra: bool = False

    # Grid-space contour accepted by the validator
    raw_contour: list[tuple[float, float]] = field(default_factory=list)
    outline: PointPath = field(default_factory=PointPath)

    # Non-fatal diagnostics, in order of occurrence
    diagnostics: list[str] = field(default_factory=list)

    @property
    def all_edges(self) -> list[Line]:
        return self.routing.edges + self.edges

    @property
    def found(self) -> bool:
        return self.outcome is RefinementOutcome.FOUND
