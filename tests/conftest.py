"""Shared test fixtures."""

from __future__ import annotations

import pytest

from bubblesets.engine.config import OutlineConfig
from bubblesets.utils.geometry import Circle, Line, Rectangle


# Layouts in screen units

SINGLE_RECT = Rectangle(0, 0, 10, 10)

WIDE_RECT = Rectangle(0, 0, 100, 60)

# Two members with an obstacle squarely between their centers
LEFT_MEMBER = Rectangle(0, 0, 20, 20)
RIGHT_MEMBER = Rectangle(200, 0, 20, 20)
BLOCKER = Rectangle(90, -10, 40, 40)

CLUSTER = [
    Rectangle(0, 0, 20, 20),
    Rectangle(60, 0, 20, 20),
    Circle(30, 80, 10),
]

SQUARE_CONTOUR = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]

SQUARE_WITH_MIDPOINTS = [
    (0.0, 0.0), (5.0, 0.0), (10.0, 0.0), (10.0, 5.0),
    (10.0, 10.0), (5.0, 10.0), (0.0, 10.0), (0.0, 5.0),
]


@pytest.fixture
def config() -> OutlineConfig:
    return OutlineConfig()


@pytest.fixture
def single_rect() -> Rectangle:
    return SINGLE_RECT


@pytest.fixture
def blocked_pair() -> tuple[list[Rectangle], list[Rectangle]]:
    return [LEFT_MEMBER, RIGHT_MEMBER], [BLOCKER]


@pytest.fixture
def cluster() -> list:
    return list(CLUSTER)


@pytest.fixture
def diagonal() -> Line:
    return Line(0, 0, 30, 30)
