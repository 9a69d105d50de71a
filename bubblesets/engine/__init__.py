"""Bubble set outline engine."""

from bubblesets.engine.config import OutlineConfig
from bubblesets.engine.context import OutlineContext, RefinementOutcome
from bubblesets.engine.incremental import IncrementalOutline
from bubblesets.engine.pipeline import BubbleSetPipeline, create_outline, create_pipeline

__all__ = [
    "OutlineConfig",
    "OutlineContext",
    "RefinementOutcome",
    "BubbleSetPipeline",
    "IncrementalOutline",
    "create_outline",
    "create_pipeline",
]
