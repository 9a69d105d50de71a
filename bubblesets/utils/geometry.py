"""Leaf-node geometry primitives. No engine imports.

Shapes are a closed variant: ``Rectangle`` or ``Circle``. Both expose the same
capability set (center, bounding box, squared distance, line intersection,
point containment) so callers never branch on the concrete type.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Union

import numpy as np
from numpy.typing import NDArray

# Cohen-Sutherland outcode flags.
OUT_LEFT = 1
OUT_TOP = 2
OUT_RIGHT = 4
OUT_BOTTOM = 8


def points_distance_sq(x1: float, y1: float, x2: float, y2: float) -> float:
    return (x1 - x2) * (x1 - x2) + (y1 - y2) * (y1 - y2)


def points_equal(x1: float, y1: float, x2: float, y2: float, delta: float) -> bool:
    """True if the two points are closer than ``delta``."""
    return points_distance_sq(x1, y1, x2, y2) < delta * delta


def segment_distance_sq(
    x1: float, y1: float, x2: float, y2: float, px: float, py: float
) -> float:
    """Squared distance from (px, py) to the segment (x1, y1)-(x2, y2)."""
    dx = x2 - x1
    dy = y2 - y1
    vx = px - x1
    vy = py - y1
    dot = vx * dx + vy * dy
    if dot <= 0:
        proj_sq = 0.0
    else:
        # measure from the far end instead
        vx = dx - vx
        vy = dy - vy
        dot = vx * dx + vy * dy
        proj_sq = 0.0 if dot <= 0 else dot * dot / (dx * dx + dy * dy)
    dist_sq = vx * vx + vy * vy - proj_sq
    return max(dist_sq, 0.0)


def segment_distance_sq_grid(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    xs: NDArray[np.float64],
    ys: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Vectorized ``segment_distance_sq`` over arrays of points."""
    dx = x2 - x1
    dy = y2 - y1
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return (xs - x1) ** 2 + (ys - y1) ** 2
    t = np.clip(((xs - x1) * dx + (ys - y1) * dy) / len_sq, 0.0, 1.0)
    return (xs - (x1 + t * dx)) ** 2 + (ys - (y1 + t * dy)) ** 2


@dataclass(frozen=True)
class Rectangle:
    x: float
    y: float
    width: float
    height: float

    kind = "rect"

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def bounding_box(self) -> Rectangle:
        return self

    @property
    def dims(self) -> tuple[float, ...]:
        return (self.width, self.height)

    @classmethod
    def from_bounds(cls, xmin: float, ymin: float, xmax: float, ymax: float) -> Rectangle:
        return cls(xmin, ymin, xmax - xmin, ymax - ymin)

    def union(self, other: Rectangle) -> Rectangle:
        return Rectangle.from_bounds(
            min(self.x, other.x),
            min(self.y, other.y),
            max(self.x2, other.x2),
            max(self.y2, other.y2),
        )

    def add_point(self, px: float, py: float) -> Rectangle:
        return Rectangle.from_bounds(
            min(self.x, px), min(self.y, py), max(self.x2, px), max(self.y2, py)
        )

    def intersection(self, other: Rectangle) -> Rectangle | None:
        """Overlapping region of two rectangles, or None if they are disjoint."""
        xmin = max(self.x, other.x)
        ymin = max(self.y, other.y)
        xmax = min(self.x2, other.x2)
        ymax = min(self.y2, other.y2)
        if xmax < xmin or ymax < ymin:
            return None
        return Rectangle.from_bounds(xmin, ymin, xmax, ymax)

    def intersects(self, other: Rectangle) -> bool:
        """Strict overlap test; zero-area rectangles never intersect."""
        if self.area <= 0 or other.area <= 0:
            return False
        return other.x2 > self.x and other.y2 > self.y and other.x < self.x2 and other.y < self.y2

    def moved_to(self, x: float, y: float) -> Rectangle:
        """Same rectangle with its top-left corner at (x, y)."""
        return Rectangle(x, y, self.width, self.height)

    def pad(self, padding: float) -> Rectangle:
        return Rectangle(
            self.x - padding,
            self.y - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x2 and self.y <= py <= self.y2

    def outcode(self, px: float, py: float) -> int:
        out = 0
        if self.width <= 0:
            out |= OUT_LEFT | OUT_RIGHT
        elif px < self.x:
            out |= OUT_LEFT
        elif px > self.x2:
            out |= OUT_RIGHT
        if self.height <= 0:
            out |= OUT_TOP | OUT_BOTTOM
        elif py < self.y:
            out |= OUT_TOP
        elif py > self.y2:
            out |= OUT_BOTTOM
        return out

    def intersects_line(self, line: Line) -> bool:
        """Cohen-Sutherland clip test: does the segment touch this rectangle?"""
        x1, y1, x2, y2 = line.x1, line.y1, line.x2, line.y2
        out2 = self.outcode(x2, y2)
        if out2 == 0:
            return True
        out1 = self.outcode(x1, y1)
        while out1 != 0:
            if out1 & out2:
                return False
            if out1 & (OUT_LEFT | OUT_RIGHT):
                x = self.x2 if out1 & OUT_RIGHT else self.x
                y1 = y1 + (x - x1) * (y2 - y1) / (x2 - x1)
                x1 = x
            else:
                y = self.y2 if out1 & OUT_BOTTOM else self.y
                x1 = x1 + (y - y1) * (x2 - x1) / (y2 - y1)
                y1 = y
            out1 = self.outcode(x1, y1)
        return True

    def distance_sq(self, px: float, py: float) -> float:
        """Squared distance to the nearest point of the rectangle (0 inside)."""
        if self.contains_point(px, py):
            return 0.0
        code = self.outcode(px, py)
        if code & OUT_TOP:
            if code & OUT_LEFT:
                return points_distance_sq(px, py, self.x, self.y)
            if code & OUT_RIGHT:
                return points_distance_sq(px, py, self.x2, self.y)
            return (self.y - py) * (self.y - py)
        if code & OUT_BOTTOM:
            if code & OUT_LEFT:
                return points_distance_sq(px, py, self.x, self.y2)
            if code & OUT_RIGHT:
                return points_distance_sq(px, py, self.x2, self.y2)
            return (py - self.y2) * (py - self.y2)
        if code & OUT_LEFT:
            return (self.x - px) * (self.x - px)
        if code & OUT_RIGHT:
            return (px - self.x2) * (px - self.x2)
        return 0.0

    def distance_sq_grid(
        self, xs: NDArray[np.float64], ys: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        dx = np.maximum(np.maximum(self.x - xs, xs - self.x2), 0.0)
        dy = np.maximum(np.maximum(self.y - ys, ys - self.y2), 0.0)
        return dx * dx + dy * dy

    def edges(self) -> tuple[Line, Line, Line, Line]:
        """Top, left, bottom, right edges."""
        return (
            Line(self.x, self.y, self.x2, self.y),
            Line(self.x, self.y, self.x, self.y2),
            Line(self.x, self.y2, self.x2, self.y2),
            Line(self.x2, self.y, self.x2, self.y2),
        )


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    radius: float

    kind = "circle"

    @property
    def bounding_box(self) -> Rectangle:
        r = self.radius
        return Rectangle(self.cx - r, self.cy - r, 2 * r, 2 * r)

    @property
    def dims(self) -> tuple[float, ...]:
        return (self.radius,)

    @property
    def area(self) -> float:
        return math.pi * self.radius * self.radius

    def moved_to(self, x: float, y: float) -> Circle:
        """Same circle with its bounding box corner at (x, y)."""
        return Circle(x + self.radius, y + self.radius, self.radius)

    def contains_point(self, px: float, py: float) -> bool:
        return points_distance_sq(px, py, self.cx, self.cy) <= self.radius * self.radius

    def intersects_line(self, line: Line) -> bool:
        return line.distance_sq(self.cx, self.cy) <= self.radius * self.radius

    def distance_sq(self, px: float, py: float) -> float:
        d = math.sqrt(points_distance_sq(px, py, self.cx, self.cy)) - self.radius
        return d * d if d > 0 else 0.0

    def distance_sq_grid(
        self, xs: NDArray[np.float64], ys: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        d = np.maximum(np.hypot(xs - self.cx, ys - self.cy) - self.radius, 0.0)
        return d * d


Shape = Union[Rectangle, Circle]


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def start(self) -> tuple[float, float]:
        return (self.x1, self.y1)

    @property
    def end(self) -> tuple[float, float]:
        return (self.x2, self.y2)

    def as_rect(self) -> Rectangle:
        return Rectangle.from_bounds(
            min(self.x1, self.x2),
            min(self.y1, self.y2),
            max(self.x1, self.x2),
            max(self.y1, self.y2),
        )

    def cuts(self, px: float, py: float) -> bool:
        """Whether the ray from (px, py) towards +x crosses this segment.

        Half-open in y so a vertex shared by two edges is counted once.
        """
        if self.y1 == self.y2:
            return False
        if (py < self.y1 and py <= self.y2) or (py > self.y1 and py >= self.y2):
            return False
        if px > self.x1 and px >= self.x2:
            return False
        if px < self.x1 and px <= self.x2:
            return True
        cross = self.x1 + (py - self.y1) * (self.x2 - self.x1) / (self.y2 - self.y1)
        return px <= cross

    def distance_sq(self, px: float, py: float) -> float:
        return segment_distance_sq(self.x1, self.y1, self.x2, self.y2, px, py)

    def distance_sq_grid(
        self, xs: NDArray[np.float64], ys: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        return segment_distance_sq_grid(self.x1, self.y1, self.x2, self.y2, xs, ys)


class IntersectionState(enum.Enum):
    POINT = 1
    PARALLEL = 2
    COINCIDENT = 3
    NONE = 4


@dataclass(frozen=True)
class Intersection:
    state: IntersectionState
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class RectIntersections:
    """How a line crosses the four edges of a rectangle."""

    top: Intersection
    left: Intersection
    bottom: Intersection
    right: Intersection

    @property
    def count(self) -> int:
        return sum(
            1
            for i in (self.top, self.left, self.bottom, self.right)
            if i.state is IntersectionState.POINT
        )


def _line_params(la: Line, lb: Line) -> tuple[float, float, float]:
    ua_t = (lb.x2 - lb.x1) * (la.y1 - lb.y1) - (lb.y2 - lb.y1) * (la.x1 - lb.x1)
    ub_t = (la.x2 - la.x1) * (la.y1 - lb.y1) - (la.y2 - la.y1) * (la.x1 - lb.x1)
    u_b = (lb.y2 - lb.y1) * (la.x2 - la.x1) - (lb.x2 - lb.x1) * (la.y2 - la.y1)
    return ua_t, ub_t, u_b


def intersect_lines(la: Line, lb: Line) -> Intersection:
    ua_t, ub_t, u_b = _line_params(la, lb)
    if u_b:
        ua = ua_t / u_b
        ub = ub_t / u_b
        if 0 <= ua <= 1 and 0 <= ub <= 1:
            return Intersection(
                IntersectionState.POINT,
                la.x1 + ua * (la.x2 - la.x1),
                la.y1 + ua * (la.y2 - la.y1),
            )
        return Intersection(IntersectionState.NONE)
    if ua_t == 0 or ub_t == 0:
        return Intersection(IntersectionState.COINCIDENT)
    return Intersection(IntersectionState.PARALLEL)


def fraction_along_line(la: Line, lb: Line) -> float | None:
    """Parameter along ``la`` where it crosses ``lb``, or None."""
    ua_t, ub_t, u_b = _line_params(la, lb)
    if u_b:
        ua = ua_t / u_b
        ub = ub_t / u_b
        if 0 <= ua <= 1 and 0 <= ub <= 1:
            return ua
    return None


def line_rect_intersections(line: Line, rect: Rectangle) -> RectIntersections:
    top, left, bottom, right = (intersect_lines(line, edge) for edge in rect.edges())
    return RectIntersections(top=top, left=left, bottom=bottom, right=right)


def fraction_to_line_center(rect: Rectangle, line: Line) -> float | None:
    """Smallest |t - 0.5| over the rectangle edges the line crosses.

    Returns None if the line crosses no edge. Scanning stops early once two
    crossings were seen.
    """
    best: float | None = None
    count = 0
    top, left, bottom, right = rect.edges()
    for i, edge in enumerate((top, left, bottom, right)):
        t = fraction_along_line(line, edge)
        if t is not None:
            count += 1
            distance = abs(t - 0.5)
            if best is None or distance < best:
                best = distance
        if i >= 1 and count > 1:
            break
    return best


def bounding_box_of(shapes: list[Shape]) -> Rectangle | None:
    """Union of the shapes' bounding boxes."""
    region: Rectangle | None = None
    for shape in shapes:
        bb = shape.bounding_box
        region = bb if region is None else region.union(bb)
    return region
