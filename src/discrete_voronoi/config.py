"""Configuration management."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .metric import get_metric


class Settings(BaseSettings):
    """Library defaults, overridable through DISCRETE_VORONOI_* environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=True, description="Render log events as JSON")

    # Tessellation
    default_metric: str = Field(
        default="euclidean", description="Metric used when the builder is given none"
    )
    parallel_boundaries: bool = Field(
        default=False, description="Expand site frontiers on a thread pool"
    )
    max_workers: Optional[int] = Field(
        default=None, ge=1, description="Thread pool size for frontier expansion"
    )

    model_config = SettingsConfigDict(env_prefix="DISCRETE_VORONOI_", env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("default_metric")
    @classmethod
    def _known_metric(cls, value: str) -> str:
        return get_metric(value).name


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
