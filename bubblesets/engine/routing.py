"""Virtual edge router — connect all members into one group around obstacles.

Members are visited in order of distance to their common centroid. Each one
is linked to the closest already-visited member (distance inflated by the
number of obstacles in the way). The straight link is then bent around the
corners of every obstacle it passes through, and finally straightened again
wherever that no longer hits anything.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from bubblesets.utils.geometry import (
    IntersectionState,
    Line,
    Rectangle,
    RectIntersections,
    Shape,
    fraction_to_line_center,
    line_rect_intersections,
    points_distance_sq,
    points_equal,
)

logger = logging.getLogger(__name__)

# Two detour points closer than this are the same point.
_POINT_EPS = 1e-3
# Buffer shrink factor while a detour point lands inside an obstacle.
_BUFFER_SHRINK = 1.5
# Stop shrinking once the buffer drops below one screen unit.
_MIN_BUFFER = 1.0


class Corner(enum.Enum):
    TOP_LEFT = (-1, -1)
    TOP_RIGHT = (1, -1)
    BOTTOM_LEFT = (-1, 1)
    BOTTOM_RIGHT = (1, 1)

    @property
    def opposite(self) -> Corner:
        sx, sy = self.value
        return Corner((-sx, -sy))

    def point(self, rect: Rectangle, buffer: float) -> tuple[float, float]:
        sx, sy = self.value
        x = rect.x - buffer if sx < 0 else rect.x2 + buffer
        y = rect.y - buffer if sy < 0 else rect.y2 + buffer
        return (x, y)


@dataclass
class VirtualRoute:
    """Polyline linking member ``source`` to the visited member ``target``."""

    source: int
    target: int
    lines: list[Line] = field(default_factory=list)
    iterations: int = 0
    # Gave up with a crossing left (budget spent or no usable detour)
    exhausted: bool = False

    @property
    def points(self) -> list[tuple[float, float]]:
        if not self.lines:
            return []
        return [self.lines[0].start] + [line.end for line in self.lines]

    @property
    def rerouted(self) -> bool:
        return len(self.lines) > 1


@dataclass
class RoutingResult:
    routes: list[VirtualRoute] = field(default_factory=list)

    @property
    def edges(self) -> list[Line]:
        return [line for route in self.routes for line in route.lines]

    @property
    def exhausted_count(self) -> int:
        return sum(1 for route in self.routes if route.exhausted)


def _is_point(state: IntersectionState) -> bool:
    return state is IntersectionState.POINT


def preferred_corner(rect: Rectangle, crossings: RectIntersections) -> Corner:
    """Corner to wrap around, chosen by which side the line cuts off less of.

    Exact ties go to the bottom / right corner.
    """
    top, left, bottom, right = crossings.top, crossings.left, crossings.bottom, crossings.right
    total_area = rect.width * rect.height

    if _is_point(left.state):
        if _is_point(top.state):
            return Corner.TOP_LEFT
        if _is_point(bottom.state):
            return Corner.BOTTOM_LEFT
        # left to right
        top_area = rect.width * ((left.y - rect.y) + (right.y - rect.y)) * 0.5
        if top_area < total_area * 0.5:
            return Corner.TOP_LEFT if left.y > right.y else Corner.TOP_RIGHT
        return Corner.BOTTOM_LEFT if left.y < right.y else Corner.BOTTOM_RIGHT

    if _is_point(right.state):
        if _is_point(top.state):
            return Corner.TOP_RIGHT
        if _is_point(bottom.state):
            return Corner.BOTTOM_RIGHT

    # top to bottom
    left_area = rect.height * ((top.x - rect.x) + (bottom.x - rect.x)) * 0.5
    if left_area < total_area * 0.5:
        return Corner.TOP_LEFT if top.x > bottom.x else Corner.BOTTOM_LEFT
    return Corner.TOP_RIGHT if top.x < bottom.x else Corner.BOTTOM_RIGHT


def _point_exists(point: tuple[float, float], lines: Sequence[Line]) -> bool:
    px, py = point
    return any(
        points_equal(line.x1, line.y1, px, py, _POINT_EPS)
        or points_equal(line.x2, line.y2, px, py, _POINT_EPS)
        for line in lines
    )


def _inside_any(point: tuple[float, float], obstacles: Sequence[Shape]) -> bool:
    return any(o.contains_point(point[0], point[1]) for o in obstacles)


def _center_item(obstacles: Sequence[Shape], line: Line) -> Shape | None:
    """Obstacle hit by ``line`` whose crossing lies closest to the line's middle."""
    best: Shape | None = None
    best_distance = float("inf")
    for obstacle in obstacles:
        if not obstacle.intersects_line(line):
            continue
        distance = fraction_to_line_center(obstacle.bounding_box, line)
        if distance is not None and distance < best_distance:
            best = obstacle
            best_distance = distance
    return best


def _blocking_item(
    obstacles: Sequence[Shape], line: Line
) -> tuple[Shape, RectIntersections] | None:
    """Like ``_center_item`` but only obstacles the line passes straight through."""
    best: tuple[Shape, RectIntersections] | None = None
    best_distance = float("inf")
    for obstacle in obstacles:
        if not obstacle.intersects_line(line):
            continue
        crossings = line_rect_intersections(line, obstacle.bounding_box)
        if crossings.count != 2:
            continue
        distance = fraction_to_line_center(obstacle.bounding_box, line)
        if distance is not None and distance < best_distance:
            best = (obstacle, crossings)
            best_distance = distance
    return best


def count_interference(obstacles: Sequence[Shape], line: Line) -> int:
    return sum(
        1
        for o in obstacles
        if o.intersects_line(line) and fraction_to_line_center(o.bounding_box, line) is not None
    )


def _closest_neighbor(
    cx: float,
    cy: float,
    visited: Sequence[int],
    members: Sequence[Shape],
    obstacles: Sequence[Shape],
) -> int | None:
    best: int | None = None
    best_score = float("inf")
    for idx in visited:
        neighbor = members[idx]
        distance_sq = points_distance_sq(cx, cy, neighbor.cx, neighbor.cy)
        if distance_sq > best_score:
            # interference can only make it worse
            continue
        k = count_interference(obstacles, Line(cx, cy, neighbor.cx, neighbor.cy))
        score = distance_sq * (k + 1) * (k + 1)
        if score < best_score:
            best = idx
            best_score = score
    return best


def _find_detour(
    rect: Rectangle,
    crossings: RectIntersections,
    obstacles: Sequence[Shape],
    pending: Sequence[Line],
    finished: Sequence[Line],
    morph_buffer: float,
) -> tuple[float, float] | None:
    corner = preferred_corner(rect, crossings)
    for candidate in (corner, corner.opposite):
        buffer = morph_buffer
        point = candidate.point(rect, buffer)
        exists = _point_exists(point, pending) or _point_exists(point, finished)
        inside = _inside_any(point, obstacles)
        while not exists and inside and buffer >= _MIN_BUFFER:
            buffer /= _BUFFER_SHRINK
            point = candidate.point(rect, buffer)
            exists = _point_exists(point, pending) or _point_exists(point, finished)
            inside = _inside_any(point, obstacles)
        if candidate is corner:
            if not exists and not inside:
                return point
        elif not exists:
            # last resort: accept the opposite corner even inside an obstacle
            return point
    return None


def compute_route(
    direct: Line,
    obstacles: Sequence[Shape],
    max_routing_iterations: int,
    morph_buffer: float,
) -> tuple[list[Line], int, bool]:
    """Bend ``direct`` around obstacles.

    Returns the segments in reverse path order, the iterations spent, and
    whether a crossing was left unresolved.
    """
    pending: list[Line] = [direct]
    finished: list[Line] = []
    unresolved = False
    has_intersection = True
    iterations = 0

    while iterations < max_routing_iterations and has_intersection:
        has_intersection = False
        while not has_intersection and pending:
            line = pending.pop()
            blocking = _blocking_item(obstacles, line)
            if blocking is None:
                finished.append(line)
                continue
            obstacle, crossings = blocking
            detour = _find_detour(
                obstacle.bounding_box, crossings, obstacles, pending, finished, morph_buffer
            )
            if detour is None:
                unresolved = True
                finished.append(line)
                continue
            dx, dy = detour
            pending.append(Line(line.x1, line.y1, dx, dy))
            pending.append(Line(dx, dy, line.x2, line.y2))
            has_intersection = True
        iterations += 1

    if has_intersection:
        unresolved = True
    while pending:
        finished.append(pending.pop())
    return finished, iterations, unresolved


def merge_lines(scanned: list[Line], obstacles: Sequence[Shape]) -> list[Line]:
    """Join consecutive segments whenever the joined line hits no obstacle.

    ``scanned`` is in reverse path order; the result is in path order.
    """
    scanned = list(scanned)
    merged: list[Line] = []
    while scanned:
        line1 = scanned.pop()
        if not scanned:
            merged.append(line1)
            break
        line2 = scanned.pop()
        joined = Line(line1.x1, line1.y1, line2.x2, line2.y2)
        if _center_item(obstacles, joined) is None:
            scanned.append(joined)
        else:
            merged.append(line1)
            scanned.append(line2)
    return merged


def sort_by_centroid_distance(members: Sequence[Shape]) -> list[int]:
    n = len(members)
    mean_x = sum(m.cx for m in members) / n
    mean_y = sum(m.cy for m in members) / n
    return sorted(range(n), key=lambda i: points_distance_sq(mean_x, mean_y, members[i].cx, members[i].cy))


def route_virtual_edges(
    members: Sequence[Shape],
    non_members: Sequence[Shape] = (),
    max_routing_iterations: int = 100,
    morph_buffer: float = 10.0,
) -> RoutingResult:
    """Connect every member to the group with obstacle-avoiding polylines."""
    result = RoutingResult()
    if not members:
        return result

    visited: list[int] = []
    for idx in sort_by_centroid_distance(members):
        item = members[idx]
        target = _closest_neighbor(item.cx, item.cy, visited, members, non_members)
        visited.append(idx)
        if target is None:
            continue
        neighbor = members[target]
        direct = Line(item.cx, item.cy, neighbor.cx, neighbor.cy)
        scanned, iterations, unresolved = compute_route(
            direct, non_members, max_routing_iterations, morph_buffer
        )
        route = VirtualRoute(
            source=idx,
            target=target,
            lines=merge_lines(scanned, non_members),
            iterations=iterations,
            exhausted=unresolved,
        )
        if route.exhausted:
            logger.warning(
                "Route %d -> %d left a crossing after %d iterations",
                idx, target, iterations,
            )
        logger.debug("Route %d -> %d: %d segment(s)", idx, target, len(route.lines))
        result.routes.append(route)

    logger.debug(
        "Routed %d virtual edge(s) for %d members (%d unresolved)",
        len(result.edges), len(members), result.exhausted_count,
    )
    return result
