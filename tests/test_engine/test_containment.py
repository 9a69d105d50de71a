"""Tests for the even-odd containment validator."""

from bubblesets.engine.containment import check_containment, point_in_polygon
from bubblesets.utils.geometry import Circle, Rectangle
from tests.conftest import SQUARE_CONTOUR


def test_point_in_polygon_square():
    assert point_in_polygon(SQUARE_CONTOUR, 5, 5)
    assert not point_in_polygon(SQUARE_CONTOUR, 15, 5)
    assert not point_in_polygon(SQUARE_CONTOUR, 5, -1)
    assert not point_in_polygon([], 0, 0)


def test_point_in_polygon_concave():
    # U shape open at the top
    u_shape = [(0, 0), (3, 0), (3, 8), (7, 8), (7, 0), (10, 0), (10, 10), (0, 10)]
    assert point_in_polygon(u_shape, 1.5, 5)
    assert not point_in_polygon(u_shape, 5, 4)
    assert point_in_polygon(u_shape, 5, 9)


def test_check_containment_shifts_by_origin():
    members = [Rectangle(102, 102, 6, 6)]
    result = check_containment(SQUARE_CONTOUR, (100.0, 100.0), members, [], skip=1)
    assert result.contains_all
    assert not result.contains_extra


def test_check_containment_detects_missing_member():
    members = [Rectangle(102, 102, 6, 6), Rectangle(0, 0, 2, 2)]
    result = check_containment(SQUARE_CONTOUR, (100.0, 100.0), members, [], skip=1)
    assert not result.contains_all


def test_check_containment_reports_non_members():
    result = check_containment(
        SQUARE_CONTOUR, (0.0, 0.0), [Rectangle(1, 1, 2, 2)], [Circle(5, 5, 1)], skip=1
    )
    assert result.contains_all
    assert result.contains_extra


def test_check_containment_empty_contour():
    result = check_containment([], (0.0, 0.0), [Rectangle(0, 0, 1, 1)], [], skip=8)
    assert not result.contains_all
    assert not result.contains_extra
