"""API request models."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bubblesets.config import settings
from bubblesets.engine.config import OutlineConfig
from bubblesets.engine.pipeline import compute_active_region
from bubblesets.engine.potential import grid_size
from bubblesets.utils.geometry import Circle, Line, Rectangle


class RectModel(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    kind: Literal["rect"]
    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)

    def to_shape(self) -> Rectangle:
        return Rectangle(self.x, self.y, self.width, self.height)


class CircleModel(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    kind: Literal["circle"]
    cx: float
    cy: float
    radius: float = Field(..., ge=0)

    def to_shape(self) -> Circle:
        return Circle(self.cx, self.cy, self.radius)


ShapeModel = Annotated[Union[RectModel, CircleModel], Field(discriminator="kind")]


class EdgeModel(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    x1: float
    y1: float
    x2: float
    y2: float

    def to_line(self) -> Line:
        return Line(self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_line(cls, line: Line) -> EdgeModel:
        return cls(x1=line.x1, y1=line.y1, x2=line.x2, y2=line.y2)


class OutlineOptions(BaseModel):
    """Overrides for ``OutlineConfig``; unset fields keep the configured defaults."""

    model_config = ConfigDict(allow_inf_nan=False)

    max_routing_iterations: int | None = Field(None, ge=0)
    max_marching_iterations: int | None = Field(None, ge=0)
    pixel_group: int | None = Field(None, ge=1)
    edge_r0: float | None = None
    edge_r1: float | None = Field(None, gt=0)
    node_r0: float | None = None
    node_r1: float | None = Field(None, gt=0)
    morph_buffer: float | None = Field(None, ge=0)
    skip: int | None = Field(None, ge=1)
    threshold: float | None = Field(None, gt=0)
    member_factor: float | None = Field(None, ge=0)
    edge_factor: float | None = Field(None, ge=0)
    non_member_factor: float | None = Field(None, le=0)

    @model_validator(mode="after")
    def _check_config(self) -> OutlineOptions:
        # ValueError here surfaces as a 422
        self.to_config()
        return self

    def to_config(self, base: OutlineConfig | None = None) -> OutlineConfig:
        base = base or settings.outline_config()
        return base.with_options(**self.model_dump(exclude_none=True)).validate()


class OutlineRequest(BaseModel):
    members: list[ShapeModel] = Field(default_factory=list, description="Shapes to enclose")
    non_members: list[ShapeModel] = Field(
        default_factory=list, description="Shapes the outline should avoid"
    )
    edges: list[EdgeModel] = Field(
        default_factory=list, description="Extra segments the outline should follow"
    )
    options: OutlineOptions = Field(default_factory=OutlineOptions)
    simplify_tolerance: float | None = Field(
        None, ge=0, allow_inf_nan=False, description="Simplify the outline with this tolerance"
    )
    smooth_granularity: int | None = Field(
        None, ge=1, le=64, description="B-spline samples per control point"
    )

    @model_validator(mode="after")
    def _check_grid_size(self) -> OutlineRequest:
        if not self.members:
            return self
        config = self.options.to_config()
        region = compute_active_region(
            [m.to_shape() for m in self.members], [e.to_line() for e in self.edges], config
        )
        width, height = grid_size(region, config.pixel_group)
        limit = settings.outline_max_grid_cells
        if width * height > limit:
            raise ValueError(
                f"layout needs a {width}x{height} potential grid, more than {limit} cells"
            )
        return self
