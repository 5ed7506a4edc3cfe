"""Configuration management for kit-sync."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REGISTRY_FILE_NAME = "registry.json"
LOCK_DIR_NAME = "locks"
LOG_FILE_NAME = "kit-sync.log"

DEFAULT_CONCURRENCY = 50
DEFAULT_LOCK_STALE_TIMEOUT = 30.0
DEFAULT_MAX_DISPLAY_ITEMS = 20


class SyncConfig(BaseSettings):
    """Configuration for a kit-sync installation."""

    # Default to ~/.kit-sync but allow override with env var
    home: Path = Field(
        default_factory=lambda: Path.home() / ".kit-sync",
        description="Base path for kit-sync state (registry, locks, logs)",
    )

    env: Literal["user", "dev", "test"] = Field(
        default="user", description="Environment name, 'test' disables file logging"
    )

    log_level: str = Field(default="INFO", description="Log level for the file sink")

    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        gt=0,
        description="Maximum number of in-flight hashing or write operations",
    )

    lock_stale_timeout: float = Field(
        default=DEFAULT_LOCK_STALE_TIMEOUT,
        gt=0,
        description="Seconds after which a held sync lock is considered abandoned",
    )

    lock_poll_interval: float = Field(
        default=0.1,
        gt=0,
        description="Upper bound in seconds for a single wait on the lock directory watcher",
    )

    max_display_items: int = Field(
        default=DEFAULT_MAX_DISPLAY_ITEMS,
        gt=0,
        description="Items listed per action group before the plan display truncates",
    )

    color: bool = Field(default=True, description="Colorize plan and diff output")

    model_config = SettingsConfigDict(
        env_prefix="KIT_SYNC_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def registry_path(self) -> Path:
        """Get baseline registry file path."""
        return self.home / REGISTRY_FILE_NAME

    @property
    def lock_dir(self) -> Path:
        """Get directory holding advisory lock markers."""
        return self.home / LOCK_DIR_NAME

    @property
    def log_path(self) -> Path:
        return self.home / LOG_FILE_NAME

    @field_validator("home")
    @classmethod
    def ensure_path_exists(cls, v: Path) -> Path:
        """Ensure home path exists."""
        v = v.expanduser()
        if not v.exists():
            v.mkdir(parents=True)
        return v
