"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time
from pathlib import Path
from typing import Literal, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import OperatingHours, parse_wall_clock


class OperatingHoursConfig(BaseModel):
    """Bookable window and slot size."""
    open_time: str = "08:00"
    close_time: str = "18:00"
    slot_minutes: int = 30

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Ensure times are zero-padded HH:MM."""
        parse_wall_clock(value)
        return value

    @field_validator("slot_minutes")
    @classmethod
    def validate_slot_minutes(cls, value: int) -> int:
        """Ensure slot size is positive."""
        if value <= 0:
            raise ValueError("slot_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "OperatingHoursConfig":
        """Ensure the window opens before it closes and splits into whole slots."""
        opening = parse_wall_clock(self.open_time)
        closing = parse_wall_clock(self.close_time)
        if closing <= opening:
            raise ValueError("close_time must be later than open_time")
        if (closing - opening) % self.slot_minutes:
            raise ValueError("Operating window must divide evenly into slot_minutes")
        return self

    def to_operating_hours(self) -> OperatingHours:
        opening = parse_wall_clock(self.open_time)
        closing = parse_wall_clock(self.close_time)
        return OperatingHours(
            open_time=time(opening // 60, opening % 60),
            close_time=time(closing // 60, closing % 60),
            slot_minutes=self.slot_minutes,
        )


class SupabaseConfig(BaseModel):
    """Connection settings for the hosted backend."""
    url: str = ""
    api_key: str = ""
    timeout_seconds: float = 10.0
    assets_table: str = "assets"
    bookings_table: str = "bookings"

    @model_validator(mode="after")
    def fill_from_environment(self) -> "SupabaseConfig":
        """Use SUPABASE_URL / SUPABASE_API_KEY for blank settings."""
        if not self.url:
            self.url = os.getenv("SUPABASE_URL", "")
        if not self.api_key:
            self.api_key = os.getenv("SUPABASE_API_KEY", "")
        return self

    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)


class LocalStoreConfig(BaseModel):
    """Location of the local fallback store."""
    path: Path = Field(default_factory=lambda: Path.home() / ".assetbooking_store.json")


class AppConfig(BaseModel):
    """Application configuration."""
    backend: Literal["supabase", "local"] = "supabase"
    timezone: str = "UTC"
    calendar_days: int = 14
    failover_cooldown_seconds: float = 30.0
    seed_default_assets: bool = True
    operating_hours: OperatingHoursConfig = Field(default_factory=OperatingHoursConfig)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    local_store: LocalStoreConfig = Field(default_factory=LocalStoreConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("calendar_days")
    @classmethod
    def validate_calendar_days(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("calendar_days must be greater than zero")
        return value

    @field_validator("failover_cooldown_seconds")
    @classmethod
    def validate_cooldown(cls, value: float) -> float:
        if value < 0:
            raise ValueError("failover_cooldown_seconds cannot be negative")
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppConfig":
        """
        Load an explicit config file, or the default one if it exists.

        Falls back to built-in defaults when no config file is given and the
        default location has none.
        """
        if config_path is not None:
            return cls.load_from_yaml(config_path)

        default_path = get_default_config_path()
        if default_path.exists():
            return cls.load_from_yaml(default_path)
        return cls()


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
