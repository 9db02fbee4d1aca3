"""Runtime configuration."""

from datetime import timedelta
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .analysis.timestamps import TimestampSource
from .models.run import NoisePolicy


class Settings(BaseSettings):
    # Grouping
    policy: Literal["gap", "density"] = "density"
    gap_hours: float = Field(default=3.0, ge=0)
    min_points: int = Field(default=2, ge=1)
    epsilon_hours: float = Field(default=4.0, ge=0)
    noise_policy: NoisePolicy = NoisePolicy.SINGLETON

    # Scanning
    timestamp_source: TimestampSource = TimestampSource.AUTO

    # Copying
    max_workers: int = Field(default=1, ge=1)
    preserve_metadata: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="SESSIONSORT_",
        extra="ignore",
    )

    @property
    def gap(self) -> timedelta:
        """Gap threshold for the sequential-gap policy."""
        return timedelta(hours=self.gap_hours)

    @property
    def epsilon_seconds(self) -> float:
        """Neighbourhood radius for the density policy, in seconds."""
        return self.epsilon_hours * 3600.0
