"""Configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Generation settings pulled from environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="TECTONICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # World Configuration
    map_width: int = Field(default=1024, gt=0, description="World width")
    map_height: int = Field(default=1024, gt=0, description="World height")
    section_count: int = Field(default=8000, ge=3, description="Number of sites")
    relaxation_iterations: int = Field(default=2, ge=0, description="Lloyd relaxation passes")
    seed: Optional[str] = Field(default=None, description="PRNG seed, random when unset")

    # Plate Configuration
    plate_count: int = Field(default=20, gt=0, description="Number of tectonic plates")
    oceanic_ratio: float = Field(default=0.7, ge=0.0, le=1.0, description="Fraction of oceanic plates")

    # Elevation Configuration
    seafloor: float = Field(default=0.365, description="Average seafloor elevation")
    sealevel: float = Field(default=0.55, description="Sea level elevation")
    elevation_cutoff: float = Field(default=0.01, ge=0.0, description="Propagation cutoff")
    blob_decay: float = Field(default=0.95, gt=0.0, lt=1.0, description="Per-hop decay in blob mode")
    stress_threshold: float = Field(default=0.1, ge=0.0, description="Minimum stress for uplift")

    # Geometry Configuration
    region_epsilon: float = Field(default=0.005, gt=0.0, description="Point coincidence tolerance")


# Instantiate singleton settings object
settings = Settings()
