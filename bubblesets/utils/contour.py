"""Contour post-processing — sampling, simplification, B-spline smoothing."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import Polygon

from bubblesets.utils.geometry import segment_distance_sq

# Fewest vertices that still describe an area.
MIN_POLYGON_POINTS = 3

# Cubic B-spline: order 3, basis evaluated over control points i-2 .. i+1.
_BSPLINE_ORDER = 3
_BSPLINE_REL_START = 1 - _BSPLINE_ORDER
_BSPLINE_REL_END = 1


class PointPath:
    """Ordered sequence of (x, y) points, closed by default.

    Index access wraps around for closed paths and clamps to the end points
    for open paths, so curve evaluation can look past either end.
    """

    def __init__(
        self,
        points: NDArray[np.float64] | Sequence[tuple[float, float]] = (),
        closed: bool = True,
    ) -> None:
        arr = np.asarray(points, dtype=np.float64)
        self.points: NDArray[np.float64] = arr.reshape(-1, 2)
        self.closed = closed

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[tuple[float, float]]:
        for x, y in self.points:
            yield (float(x), float(y))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PointPath):
            return NotImplemented
        return self.closed == other.closed and np.array_equal(self.points, other.points)

    def __repr__(self) -> str:
        return f"PointPath({len(self)} points, closed={self.closed})"

    def get(self, index: int) -> NDArray[np.float64]:
        n = len(self.points)
        if self.closed:
            return self.points[index % n]
        return self.points[min(max(index, 0), n - 1)]

    def to_list(self) -> list[tuple[float, float]]:
        return list(self)

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """(xmin, ymin, xmax, ymax); zeros for an empty path."""
        if len(self.points) == 0:
            return (0.0, 0.0, 0.0, 0.0)
        return (
            float(np.min(self.points[:, 0])),
            float(np.min(self.points[:, 1])),
            float(np.max(self.points[:, 0])),
            float(np.max(self.points[:, 1])),
        )

    @property
    def polygon(self) -> Polygon | None:
        if len(self.points) < MIN_POLYGON_POINTS:
            return None
        return Polygon(self.points)

    @property
    def area(self) -> float:
        poly = self.polygon
        return float(poly.area) if poly is not None else 0.0

    def apply(self, fn: Callable[[PointPath], PointPath]) -> PointPath:
        return fn(self)


def effective_skip(length: int, skip: int) -> int:
    """Reduce the sampling stride until at least three samples remain."""
    while skip > 1 and length // skip < MIN_POLYGON_POINTS:
        skip -= 1
    return max(skip, 1)


def sample_contour(
    contour: Sequence[tuple[float, float]],
    skip: int,
    origin: tuple[float, float] = (0.0, 0.0),
) -> PointPath:
    """Take every ``skip``-th contour point and shift it by ``origin``."""
    n = len(contour)
    if n == 0:
        return PointPath()
    stride = effective_skip(n, skip)
    size = n // stride if stride > 1 else n
    pts = np.asarray(contour, dtype=np.float64)[: size * stride : stride]
    return PointPath(pts + np.asarray(origin, dtype=np.float64))


class _SimplifyState:
    def __init__(self, path: PointPath, start: int) -> None:
        self.path = path
        self.start = start
        self.end = start + 1

    def valid_end(self) -> bool:
        if self.path.closed:
            return self.end < len(self.path)
        return self.end < len(self.path) - 1

    def line_dist_sq(self, ix: int) -> float:
        p = self.path.get(ix)
        s = self.path.get(self.start)
        e = self.path.get(self.end)
        return segment_distance_sq(s[0], s[1], e[0], e[1], p[0], p[1])

    def can_take_next(self, tolerance_sq: float) -> bool:
        if not self.valid_end():
            return False
        self.end += 1
        try:
            return all(
                self.line_dist_sq(ix) <= tolerance_sq for ix in range(self.start + 1, self.end)
            )
        finally:
            self.end -= 1


def _simplify_once(path: PointPath, tolerance_sq: float) -> PointPath:
    kept: list[NDArray[np.float64]] = []
    start = 0
    while start < len(path):
        state = _SimplifyState(path, start)
        while state.can_take_next(tolerance_sq):
            state.end += 1
        kept.append(path.get(start))
        start = state.end
    return PointPath(np.array(kept), closed=path.closed)


def simplify_path(path: PointPath, tolerance: float = 0.0) -> PointPath:
    """Drop points that lie within ``tolerance`` of the segment around them.

    Each pass extends a segment from every start point as long as every
    skipped point stays within ``tolerance`` of it, emits the start point and
    continues from the segment's end. Passes repeat until one drops nothing,
    so the result is a fixed point: simplifying it again returns it unchanged.
    """
    if tolerance < 0 or len(path) < MIN_POLYGON_POINTS:
        return path
    tolerance_sq = tolerance * tolerance
    out = _simplify_once(path, tolerance_sq)
    # a pass only removes points, so an unchanged count means an unchanged path
    while len(out) != len(path) and len(out) >= MIN_POLYGON_POINTS:
        path, out = out, _simplify_once(out, tolerance_sq)
    return out


def _bspline_basis(i: int, t: float) -> float:
    if i == -2:
        return (((-t + 3.0) * t - 3.0) * t + 1.0) / 6.0
    if i == -1:
        return ((3.0 * t - 6.0) * t * t + 4.0) / 6.0
    if i == 0:
        return (((-3.0 * t + 3.0) * t + 3.0) * t + 1.0) / 6.0
    if i == 1:
        return t * t * t / 6.0
    raise ValueError(f"No cubic B-spline basis for offset {i}")


def _bspline_point(path: PointPath, i: int, t: float) -> tuple[float, float]:
    px = 0.0
    py = 0.0
    for j in range(_BSPLINE_REL_START, _BSPLINE_REL_END + 1):
        p = path.get(i + j)
        bf = _bspline_basis(j, t)
        px += bf * p[0]
        py += bf * p[1]
    return (px, py)


def bspline_path(path: PointPath, granularity: int = 6) -> PointPath:
    """Uniform cubic B-spline through the path's control polygon.

    Closed paths yield ``1 + len(path) * granularity`` samples. Open paths are
    clamped at both ends.
    """
    if len(path) < MIN_POLYGON_POINTS:
        return path
    start_index = _BSPLINE_ORDER - 1
    count = len(path) + _BSPLINE_ORDER - 1
    first = start_index - (0 if path.closed else 2)
    stop = count + (0 if path.closed else 2)

    samples = [_bspline_point(path, first, 0.0)]
    for ix in range(first, stop):
        for k in range(1, granularity + 1):
            samples.append(_bspline_point(path, ix, k / granularity))
    return PointPath(samples, closed=path.closed)
