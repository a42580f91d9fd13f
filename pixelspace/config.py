"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    pixelspace_env: str = "development"
    pixelspace_log_level: str = "info"

    # Layout
    pixelspace_projector: str = "umap"
    pixelspace_layout_mode: str = "cluster"
    pixelspace_debounce_seconds: float = 0.5
    pixelspace_incremental_max_new_items: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
