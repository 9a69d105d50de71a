"""Containment validator — are all member centers inside a candidate contour?"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from bubblesets.utils.contour import sample_contour
from bubblesets.utils.geometry import Line, Shape


@dataclass(frozen=True)
class ContainmentResult:
    contains_all: bool
    # A non-member center fell inside; reported only, never a refinement lever
    contains_extra: bool


def point_in_polygon(points: Sequence[tuple[float, float]], px: float, py: float) -> bool:
    """Even-odd ray-crossing test against the closed polygon ``points``."""
    n = len(points)
    if n == 0:
        return False
    crossings = 0
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        if Line(x1, y1, x2, y2).cuts(px, py):
            crossings += 1
    return crossings % 2 == 1


def _inside(
    points: list[tuple[float, float]],
    bounds: tuple[float, float, float, float],
    px: float,
    py: float,
) -> bool:
    xmin, ymin, xmax, ymax = bounds
    # rough bounds first
    if not (xmin <= px <= xmax and ymin <= py <= ymax):
        return False
    return point_in_polygon(points, px, py)


def check_containment(
    contour: Sequence[tuple[float, float]],
    origin: tuple[float, float],
    members: Sequence[Shape],
    non_members: Sequence[Shape],
    skip: int,
) -> ContainmentResult:
    """Check member (and non-member) centers against the downsampled contour.

    ``contour`` is in grid space; ``origin`` shifts it to screen space.
    """
    path = sample_contour(contour, skip, origin)
    if len(path) == 0:
        return ContainmentResult(contains_all=False, contains_extra=False)
    bounds = path.bbox
    points = path.to_list()

    contains_all = all(_inside(points, bounds, m.cx, m.cy) for m in members)
    contains_extra = any(_inside(points, bounds, n.cx, n.cy) for n in non_members)
    return ContainmentResult(contains_all=contains_all, contains_extra=contains_extra)

