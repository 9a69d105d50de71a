"""Tests for the virtual edge router."""

from bubblesets.engine.routing import (
    Corner,
    compute_route,
    count_interference,
    merge_lines,
    preferred_corner,
    route_virtual_edges,
    sort_by_centroid_distance,
)
from bubblesets.utils.geometry import Circle, Line, Rectangle, line_rect_intersections
from tests.conftest import BLOCKER, LEFT_MEMBER, RIGHT_MEMBER


SQUARE = Rectangle(0, 0, 10, 10)


def _corner_for(line: Line) -> Corner:
    return preferred_corner(SQUARE, line_rect_intersections(line, SQUARE))


def test_corner_geometry():
    assert Corner.TOP_LEFT.opposite is Corner.BOTTOM_RIGHT
    assert Corner.BOTTOM_LEFT.opposite is Corner.TOP_RIGHT
    assert Corner.TOP_LEFT.point(SQUARE, 5) == (-5, -5)
    assert Corner.BOTTOM_RIGHT.point(SQUARE, 5) == (15, 15)


def test_preferred_corner_adjacent_edges():
    assert _corner_for(Line(-5, 8, 8, -5)) is Corner.TOP_LEFT
    assert _corner_for(Line(15, 8, 2, -5)) is Corner.TOP_RIGHT
    assert _corner_for(Line(-5, 2, 8, 15)) is Corner.BOTTOM_LEFT


def test_preferred_corner_left_to_right():
    assert _corner_for(Line(-5, 2, 15, 2)) is Corner.TOP_RIGHT
    assert _corner_for(Line(-5, 8, 15, 8)) is Corner.BOTTOM_RIGHT
    # exact tie goes bottom right
    assert _corner_for(Line(-5, 5, 15, 5)) is Corner.BOTTOM_RIGHT


def test_preferred_corner_top_to_bottom():
    assert _corner_for(Line(3, -5, 3, 15)) is Corner.BOTTOM_LEFT
    assert _corner_for(Line(7, -5, 7, 15)) is Corner.BOTTOM_RIGHT


def test_sort_by_centroid_distance():
    members = [Circle(0, 0, 1), Circle(100, 0, 1), Circle(40, 0, 1)]
    assert sort_by_centroid_distance(members) == [2, 0, 1]


def test_count_interference():
    obstacles = [Rectangle(10, -5, 10, 10), Rectangle(30, -5, 10, 10), Rectangle(0, 50, 5, 5)]
    assert count_interference(obstacles, Line(0, 0, 50, 0)) == 2


def test_single_member_has_no_routes():
    assert route_virtual_edges([Rectangle(0, 0, 10, 10)]).routes == []


def test_unobstructed_pair_is_a_direct_edge():
    result = route_virtual_edges([Rectangle(0, 0, 10, 10), Rectangle(50, 0, 10, 10)])
    assert len(result.routes) == 1
    route = result.routes[0]
    assert not route.rerouted
    assert not route.exhausted
    assert route.lines[0] in (Line(5, 5, 55, 5), Line(55, 5, 5, 5))


def test_obstacle_between_members_is_routed_around():
    result = route_virtual_edges([LEFT_MEMBER, RIGHT_MEMBER], [BLOCKER])
    assert len(result.routes) == 1
    route = result.routes[0]
    assert route.rerouted
    assert len(route.points) > 2
    assert not route.exhausted
    direct = {Line(10, 10, 210, 10), Line(210, 10, 10, 10)}
    assert not any(line in direct for line in route.lines)
    # the detour passes below the obstacle
    assert route.points == [(210, 10), (140, 40), (80, 40), (10, 10)]


def test_routed_edges_never_pass_straight_through_obstacles():
    members = [LEFT_MEMBER, RIGHT_MEMBER, Rectangle(100, 120, 20, 20)]
    obstacles = [BLOCKER, Rectangle(95, 60, 30, 20)]
    result = route_virtual_edges(members, obstacles)
    for route in result.routes:
        if route.exhausted:
            continue
        for line in route.lines:
            for obstacle in obstacles:
                assert line_rect_intersections(line, obstacle.bounding_box).count != 2


def test_zero_budget_leaves_crossing_flagged():
    result = route_virtual_edges([LEFT_MEMBER, RIGHT_MEMBER], [BLOCKER], max_routing_iterations=0)
    route = result.routes[0]
    assert route.exhausted
    assert result.exhausted_count == 1
    assert len(route.lines) == 1


def test_compute_route_without_obstacles():
    direct = Line(0, 0, 10, 0)
    scanned, iterations, unresolved = compute_route(direct, [], 100, 10.0)
    assert scanned == [direct]
    assert iterations == 1
    assert not unresolved


def test_merge_lines_joins_free_segments():
    scanned = [Line(10, 0, 20, 0), Line(0, 0, 10, 0)]
    assert merge_lines(scanned, []) == [Line(0, 0, 20, 0)]
    assert merge_lines(scanned, [Rectangle(8, -5, 4, 10)]) == [Line(0, 0, 10, 0), Line(10, 0, 20, 0)]
