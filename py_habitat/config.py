"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_HABITAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Flatness
    default_sea_level: float = Field(default=0.0, description="Default sea level")
    default_steepness: float = Field(
        default=5.0, gt=0, description="Gradient at which the default flatness reaches zero"
    )
    default_minimum_neighbor_num: int = Field(
        default=0, ge=0, description="Default neighbor-density threshold"
    )

    # Tessellation
    default_map_width: float = Field(default=100.0, gt=0, description="Default map width")
    default_map_height: float = Field(default=100.0, gt=0, description="Default map height")
    default_scale: float = Field(default=5.0, gt=0, description="Default site spacing")
    default_jitter: float = Field(
        default=0.9, ge=0, le=1, description="Site jitter as a fraction of half-spacing"
    )


settings = Settings()
