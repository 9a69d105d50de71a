"""Potential field — energy grid over the active region and per-shape influence.

Every shape contributes ``(sqrt(d) - r1)^2`` to each cell whose center lies
within ``r1`` of it (``d`` the squared distance). Templates are stored at unit
weight; the caller scales them when adding them to the field.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from bubblesets.utils.geometry import Line, Rectangle, Shape

logger = logging.getLogger(__name__)

# Sub-cell alignment is rounded to this many decimals for template reuse.
_ALIGNMENT_DECIMALS = 6


@dataclass
class InfluenceArea:
    """Unit-weight falloff of one shape, anchored at grid cell (x, y).

    The anchor may be negative or past the field edge; ``PotentialArea``
    clips when adding.
    """

    values: NDArray[np.float64]
    x: int
    y: int

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])


def grid_size(region: Rectangle, pixel_group: int) -> tuple[int, int]:
    """Columns and rows of the field covering ``region``."""
    return math.ceil(region.width / pixel_group), math.ceil(region.height / pixel_group)


class PotentialArea:
    """Dense energy grid. Cell (i, j) samples screen point origin + (i, j) * pixel_group."""

    def __init__(
        self,
        width: int,
        height: int,
        origin_x: float = 0.0,
        origin_y: float = 0.0,
        pixel_group: int = 4,
    ) -> None:
        self.values: NDArray[np.float64] = np.zeros((max(height, 0), max(width, 0)))
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.pixel_group = pixel_group

    @classmethod
    def for_region(cls, region: Rectangle, pixel_group: int) -> PotentialArea:
        width, height = grid_size(region, pixel_group)
        return cls(width, height, region.x, region.y, pixel_group)

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def scale_x(self, v: float) -> int:
        return math.floor((v - self.origin_x) / self.pixel_group)

    def scale_y(self, v: float) -> int:
        return math.floor((v - self.origin_y) / self.pixel_group)

    def invert_scale_x(self, i: int) -> float:
        return i * self.pixel_group + self.origin_x

    def invert_scale_y(self, j: int) -> float:
        return j * self.pixel_group + self.origin_y

    def get(self, x: int, y: int) -> float:
        """Cell value, NaN outside the grid."""
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return math.nan
        return float(self.values[y, x])

    def clear(self) -> None:
        self.values.fill(0.0)

    def add_influence(self, area: InfluenceArea, factor: float) -> None:
        """Add ``factor * area`` to the overlapping cells.

        Negative factors only erode cells that are already positive.
        """
        if factor == 0 or area.width <= 0 or area.height <= 0:
            return
        x0 = max(area.x, 0)
        y0 = max(area.y, 0)
        x1 = min(area.x + area.width, self.width)
        y1 = min(area.y + area.height, self.height)
        if x0 >= x1 or y0 >= y1:
            return
        src = area.values[y0 - area.y : y1 - area.y, x0 - area.x : x1 - area.x]
        dst = self.values[y0:y1, x0:x1]
        if factor < 0:
            mask = dst > 0
            dst[mask] += factor * src[mask]
        else:
            dst += factor * src

    def debug_cells(self, threshold: float) -> list[dict[str, Any]]:
        """Per-cell records in screen space, for external visualization."""
        pg = self.pixel_group
        cells: list[dict[str, Any]] = []
        for x in range(self.width):
            for y in range(self.height):
                cells.append({
                    "x": x * pg + math.floor(self.origin_x),
                    "y": y * pg + math.floor(self.origin_y),
                    "width": pg,
                    "height": pg,
                    "value": float(self.values[y, x]),
                    "threshold": threshold,
                })
        return cells


def _falloff(distance_sq: NDArray[np.float64], r1: float) -> NDArray[np.float64]:
    inside = distance_sq < r1 * r1
    dr = np.sqrt(np.where(inside, distance_sq, 0.0)) - r1
    return np.where(inside, dr * dr, 0.0)


class TemplateCache:
    """Size-keyed memo of unit-weight shape templates.

    Keys cover shape kind, dimensions, falloff radius, pixel group and the
    shape's sub-cell alignment, so a hit is bit-identical to a fresh build.
    """

    def __init__(self) -> None:
        self._templates: dict[tuple, NDArray[np.float64]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._templates)

    def clear(self) -> None:
        self._templates.clear()
        self.hits = 0
        self.misses = 0

    def get_or_build(self, key: tuple, build) -> NDArray[np.float64]:
        cached = self._templates.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        values = build()
        logger.debug("Template %s built: %dx%d", key[:2], values.shape[1], values.shape[0])
        self._templates[key] = values
        return values


def shape_influence(
    shape: Shape,
    potential: PotentialArea,
    r1: float,
    cache: TemplateCache | None = None,
) -> InfluenceArea:
    """Unit-weight influence template of ``shape`` placed on ``potential``."""
    pg = potential.pixel_group
    bb = shape.bounding_box
    start_x = math.floor((bb.x - r1 - potential.origin_x) / pg)
    start_y = math.floor((bb.y - r1 - potential.origin_y) / pg)
    align_x = round(bb.x - r1 - potential.origin_x - start_x * pg, _ALIGNMENT_DECIMALS)
    align_y = round(bb.y - r1 - potential.origin_y - start_y * pg, _ALIGNMENT_DECIMALS)

    def build() -> NDArray[np.float64]:
        # Local frame: cell i samples x = i * pg
        local = shape.moved_to(align_x + r1, align_y + r1)
        lbb = local.bounding_box
        w = math.ceil((lbb.x2 + r1) / pg)
        h = math.ceil((lbb.y2 + r1) / pg)
        xs, ys = np.meshgrid(np.arange(w) * float(pg), np.arange(h) * float(pg))
        return _falloff(local.distance_sq_grid(xs, ys), r1)

    key = (shape.kind, shape.dims, r1, pg, align_x, align_y)
    values = cache.get_or_build(key, build) if cache is not None else build()
    return InfluenceArea(values, start_x, start_y)


def line_influence(line: Line, potential: PotentialArea, r1: float) -> InfluenceArea:
    """Unit-weight influence of an edge, restricted to its padded bounding box."""
    pg = potential.pixel_group
    lr = line.as_rect()
    start_x = math.floor((lr.x - r1 - potential.origin_x) / pg)
    start_y = math.floor((lr.y - r1 - potential.origin_y) / pg)
    end_x = math.ceil((lr.x2 + r1 - potential.origin_x) / pg)
    end_y = math.ceil((lr.y2 + r1 - potential.origin_y) / pg)
    xs, ys = np.meshgrid(
        potential.invert_scale_x(np.arange(start_x, end_x)),
        potential.invert_scale_y(np.arange(start_y, end_y)),
    )
    return InfluenceArea(_falloff(line.distance_sq_grid(xs, ys), r1), start_x, start_y)
