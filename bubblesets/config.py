"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from bubblesets.engine.config import OutlineConfig


class Settings(BaseSettings):
    bubblesets_env: str = "development"
    bubblesets_log_level: str = "info"

    # Outline defaults for options a request leaves unset
    outline_pixel_group: int = 4
    outline_skip: int = 8
    outline_max_routing_iterations: int = 100
    outline_max_marching_iterations: int = 20

    # Largest potential grid a single request may allocate
    outline_max_grid_cells: int = 4_000_000

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def outline_config(self) -> OutlineConfig:
        return OutlineConfig(
            pixel_group=self.outline_pixel_group,
            skip=self.outline_skip,
            max_routing_iterations=self.outline_max_routing_iterations,
            max_marching_iterations=self.outline_max_marching_iterations,
        )


settings = Settings()
