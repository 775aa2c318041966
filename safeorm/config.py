"""Runtime configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """safeorm settings loaded from ``SAFEORM_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SAFEORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_path: str = ":memory:"

    # "strict" raises ForbiddenAttributeError, "logger" drops and logs
    mass_assignment_sanitizer: Literal["strict", "logger"] = "strict"
    # Models without attr_accessible/attr_protected accept no mass assignment
    whitelist_attributes: bool = True
    default_role: str = "default"

    log_sql: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure(**overrides) -> Settings:
    """Replace the cached settings, e.g. from a test fixture or app startup."""
    get_settings.cache_clear()
    settings = get_settings()
    for key, value in overrides.items():
        if key not in Settings.model_fields:
            raise ValueError(f"Unknown setting: {key}")
        setattr(settings, key, value)
    return settings
