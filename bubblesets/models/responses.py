"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from bubblesets.models.requests import EdgeModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"


class OutlineResponse(BaseModel):
    points: list[tuple[float, float]] = Field(default_factory=list)
    outcome: str
    iterations: int = 0
    threshold: float = 0.0
    virtual_edges: list[EdgeModel] = Field(default_factory=list)
    area: float = 0.0
    processing_time_ms: float = 0.0
    diagnostics: list[str] = Field(default_factory=list)
