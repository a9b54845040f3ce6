"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    segmenter_env: str = "development"
    segmenter_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Segmentation defaults
    default_order: int = 5
    default_threshold: float = 800.0
    default_traversal: str = "dither"
    max_chase_steps: int = 10_000
    boundary_color: list[int] = [0, 0, 255]

    # Largest grid order the API accepts (2^6 = 64 px side); sweeps grow
    # roughly quadratically with the pixel count
    max_order: int = 6

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
