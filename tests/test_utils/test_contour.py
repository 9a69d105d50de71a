"""Tests for contour sampling, simplification and smoothing."""

import numpy as np
import pytest

from bubblesets.utils.contour import (
    PointPath,
    _bspline_basis,
    bspline_path,
    effective_skip,
    sample_contour,
    simplify_path,
)
from tests.conftest import SQUARE_CONTOUR, SQUARE_WITH_MIDPOINTS


def test_point_path_wraps_when_closed():
    path = PointPath(SQUARE_CONTOUR)
    assert tuple(path.get(4)) == (0.0, 0.0)
    assert tuple(path.get(-1)) == (0.0, 10.0)


def test_point_path_clamps_when_open():
    path = PointPath(SQUARE_CONTOUR, closed=False)
    assert tuple(path.get(7)) == (0.0, 10.0)
    assert tuple(path.get(-3)) == (0.0, 0.0)


def test_point_path_geometry():
    path = PointPath(SQUARE_CONTOUR)
    assert path.bbox == (0.0, 0.0, 10.0, 10.0)
    assert path.area == pytest.approx(100.0)
    assert PointPath([(0, 0), (1, 1)]).polygon is None
    assert len(PointPath()) == 0


def test_effective_skip():
    assert effective_skip(40, 8) == 8
    assert effective_skip(20, 8) == 6
    assert effective_skip(2, 8) == 1


def test_sample_contour_takes_every_nth_point_and_shifts():
    contour = [(float(i), 0.0) for i in range(40)]
    path = sample_contour(contour, 8, origin=(100.0, 50.0))
    assert path.to_list() == [(100.0, 50.0), (108.0, 50.0), (116.0, 50.0), (124.0, 50.0), (132.0, 50.0)]
    assert path.closed


def test_sample_contour_empty():
    assert len(sample_contour([], 8)) == 0


def test_simplify_drops_collinear_points():
    path = simplify_path(PointPath(SQUARE_WITH_MIDPOINTS), 0.1)
    assert path.to_list() == SQUARE_CONTOUR


def test_simplify_is_idempotent_on_its_output():
    once = simplify_path(PointPath(SQUARE_WITH_MIDPOINTS), 0.1)
    assert simplify_path(once, 0.1) == once


NOISY_RING = [
    (51.2, -0.0), (47.0, 21.6), (34.1, 39.7), (15.9, 48.1), (-4.3, 50.6),
    (-22.5, 45.8), (-38.9, 33.4), (-48.3, 14.9), (-50.9, -4.7), (-44.6, -24.4),
    (-33.1, -38.6), (-14.1, -48.9), (5.2, -50.3), (25.8, -43.1), (47.2, -18.5),
]


def test_simplify_noisy_ring_is_a_fixed_point():
    once = simplify_path(PointPath(NOISY_RING), 4.0)
    assert len(once) < len(NOISY_RING)
    assert simplify_path(once, 4.0) == once


def test_simplify_jittered_circles_are_fixed_points():
    rng = np.random.default_rng(7)
    for _ in range(300):
        n = int(rng.integers(5, 41))
        angles = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
        radius = 50.0 + rng.uniform(-3.0, 3.0, n)
        points = np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])
        once = simplify_path(PointPath(points), 4.0)
        assert simplify_path(once, 4.0) == once


def test_point_path_apply():
    path = PointPath(SQUARE_WITH_MIDPOINTS)
    assert path.apply(lambda p: simplify_path(p, 1.0)).to_list() == SQUARE_CONTOUR
    assert path.apply(lambda p: bspline_path(p, 3)) == bspline_path(path, 3)


def test_simplify_leaves_short_paths():
    path = PointPath([(0, 0), (1, 0)])
    assert simplify_path(path, 1.0) is path


def test_bspline_basis_partition_of_unity():
    for t in np.linspace(0.0, 1.0, 7):
        total = sum(_bspline_basis(i, t) for i in (-2, -1, 0, 1))
        assert total == pytest.approx(1.0)


def test_bspline_basis_rejects_unknown_offset():
    with pytest.raises(ValueError):
        _bspline_basis(2, 0.5)


def test_bspline_closed_sample_count():
    path = PointPath(SQUARE_CONTOUR)
    smooth = bspline_path(path, 6)
    assert len(smooth) == 1 + len(path) * 6
    assert smooth.closed


def test_bspline_closed_ends_meet():
    smooth = bspline_path(PointPath(SQUARE_CONTOUR), 4)
    first = smooth.get(0)
    last = smooth.points[-1]
    assert tuple(last) == pytest.approx(tuple(first))


def test_bspline_is_deterministic():
    path = PointPath(SQUARE_WITH_MIDPOINTS)
    assert bspline_path(path, 5) == bspline_path(path, 5)


def test_bspline_stays_inside_control_polygon():
    smooth = bspline_path(PointPath(SQUARE_CONTOUR), 6)
    xmin, ymin, xmax, ymax = smooth.bbox
    assert xmin >= 0.0 and ymin >= 0.0
    assert xmax <= 10.0 and ymax <= 10.0
