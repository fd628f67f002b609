"""Runtime configuration for the projection engine and its API."""

from __future__ import annotations

from typing import List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YIELD_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Daily points between sparse snapshots; smoothing only, not raw data.
    gap_fill_enabled: bool = True
    gap_fill_threshold_seconds: int = Field(default=86400, gt=0)

    projection_step_days: int = Field(default=1, ge=1)
    max_projection_days: int = Field(default=365, ge=1, le=365)
    max_display_points: int = Field(default=180, ge=2)
    display_timezone: str = "UTC"

    # "additive": base + emission summed before compounding.
    # "independent": each source compounds on its own and the interest is summed.
    compounding: Literal["additive", "independent"] = "additive"

    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    @field_validator("display_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.display_timezone)


# Built-in defaults, never read from the environment or .env. Only the app
# factory loads EngineSettings() from the process environment.
DEFAULT_SETTINGS = EngineSettings.model_construct()
