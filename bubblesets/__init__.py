"""BubbleSets — outlines around set members in a 2-D layout."""

from bubblesets.engine import (
    BubbleSetPipeline,
    IncrementalOutline,
    OutlineConfig,
    OutlineContext,
    RefinementOutcome,
    create_outline,
)
from bubblesets.utils.contour import PointPath, bspline_path, simplify_path
from bubblesets.utils.geometry import Circle, Line, Rectangle

__all__ = [
    "BubbleSetPipeline",
    "IncrementalOutline",
    "OutlineConfig",
    "OutlineContext",
    "RefinementOutcome",
    "create_outline",
    "PointPath",
    "bspline_path",
    "simplify_path",
    "Circle",
    "Line",
    "Rectangle",
]
