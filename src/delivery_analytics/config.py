"""Application configuration and settings management."""

from typing import Any

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DEPOT_PREFIXES: dict[str, tuple[str, ...]] = {
    "Aix": ("Aix",),
    "Castries": ("Cast",),
    "Rungis": ("Rung",),
    "Antibes": ("Solo",),
    "VLG": ("Villeneuve", "Vill"),
    "Vitry": ("Vitr",),
}


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DA_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Analytics API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")
    punctuality_threshold_seconds: int = Field(
        default=959,
        ge=0,
        description="Tolerance window (seconds) around the promised slot.",
    )
    rollover_threshold_seconds: int = Field(
        default=12 * 3600,
        ge=0,
        description="A closure this far before its tour start is assumed to belong to the next day.",
    )
    weight_overrun_ratio: float = Field(default=1.1, ge=1.0)
    duration_overrun_ratio: float = Field(default=1.2, ge=1.0)
    late_tour_tolerance_minutes: float = Field(
        default=15.0,
        ge=0.0,
        description="First-task delay (minutes) above which an on-time departure counts as a late tour.",
    )
    backup_tour_prefix: str = Field(default="R", description="Tour names starting with this are backup tours.")
    completed_status_values: tuple[str, ...] = Field(default=("complétée", "completee", "completed"))
    mobile_channel_marker: str = Field(default="mobile")
    simulation_start_hour: int = Field(default=6, ge=0, le=23)
    simulation_end_hour: int = Field(default=22, ge=1, le=24)
    depot_prefixes: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: dict(DEFAULT_DEPOT_PREFIXES),
        description="Depot name -> warehouse name prefixes.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:9002",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", "completed_status_values", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("depot_prefixes", mode="before")
    @classmethod
    def _parse_depot_prefixes(cls, value: Any) -> dict[str, tuple[str, ...]]:
        """Accept a mapping or a JSON object of depot -> prefix list."""
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("depot_prefixes must be a JSON object") from exc
        if not isinstance(value, dict):
            raise ValueError("depot_prefixes must be a mapping")
        parsed: dict[str, tuple[str, ...]] = {}
        for depot, prefixes in value.items():
            if isinstance(prefixes, str):
                prefixes = [prefixes]
            parsed[str(depot)] = tuple(str(prefix) for prefix in prefixes)
        return parsed


settings = Settings()
