"""Outline configuration — parameters of one bubble set computation."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class OutlineConfig:
    """Immutable algorithm parameters. Supplied once per computation."""

    # Iteration caps
    max_routing_iterations: int = 100
    max_marching_iterations: int = 20

    # Screen units per potential-field cell
    pixel_group: int = 4

    # Influence radii: full strength at r0, zero at r1
    edge_r0: float = 10.0
    edge_r1: float = 20.0
    node_r0: float = 15.0
    node_r1: float = 50.0

    # Offset used when routing an edge around an obstacle corner
    morph_buffer: float = 10.0

    # Contour sampling stride
    skip: int = 8

    # Starting point of the refinement search
    threshold: float = 1.0
    member_factor: float = 1.0
    edge_factor: float = 1.0
    non_member_factor: float = -0.8

    @property
    def region_padding(self) -> float:
        return max(self.edge_r1, self.node_r1) + self.morph_buffer

    @property
    def node_normalizer(self) -> float:
        """(r0 - r1)^2 for nodes; divides weights for numerical stability."""
        return (self.node_r0 - self.node_r1) ** 2

    @property
    def edge_normalizer(self) -> float:
        return (self.edge_r0 - self.edge_r1) ** 2

    def with_options(self, **options: float) -> OutlineConfig:
        return replace(self, **options)

    def validate(self) -> OutlineConfig:
        """Raise ValueError for parameters the algorithm cannot work with."""
        if self.pixel_group < 1:
            raise ValueError(f"pixel_group must be >= 1, got {self.pixel_group}")
        if self.skip < 1:
            raise ValueError(f"skip must be >= 1, got {self.skip}")
        if self.max_routing_iterations < 0 or self.max_marching_iterations < 0:
            raise ValueError("iteration caps must be non-negative")
        if self.node_r0 == self.node_r1:
            raise ValueError("node_r0 and node_r1 must differ")
        if self.edge_r0 == self.edge_r1:
            raise ValueError("edge_r0 and edge_r1 must differ")
        if self.node_r1 <= 0 or self.edge_r1 <= 0:
            raise ValueError("falloff radii must be positive")
        if self.morph_buffer < 0:
            raise ValueError(f"morph_buffer must be >= 0, got {self.morph_buffer}")
        if self.threshold <= 0:
            raise ValueError(f"threshold must be positive, got {self.threshold}")
        if self.member_factor < 0 or self.edge_factor < 0:
            raise ValueError("member and edge factors must be non-negative")
        if self.non_member_factor > 0:
            raise ValueError(
                f"non_member_factor must be <= 0, got {self.non_member_factor}"
            )
        return self
