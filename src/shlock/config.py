"""Configuration management for shlock."""

import os
import tomllib
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    CONFIG_ENV,
    DEFAULT_LOCK_DIRS,
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_POLL_INTERVAL,
)
from .errors import InvalidArgumentsError


class ShlockConfig(BaseModel):
    """Root configuration for shlock.

    Example config.toml:

        lock_dirs = ["/run/lock", "/var/lock"]
        max_age_hours = 12
        poll_interval = 0.1
    """

    lock_dirs: list[Path] = Field(
        default_factory=lambda: list(DEFAULT_LOCK_DIRS),
        description="Candidate lock directories, in preference order",
    )
    max_age_hours: int = Field(
        default=DEFAULT_MAX_AGE_HOURS,
        ge=0,
        description="Age after which an unowned lock is considered stale",
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL,
        gt=0,
        description="Seconds between lock attempts for timed waits outside the main thread",
    )

    @field_validator("lock_dirs")
    @classmethod
    def lock_dirs_not_empty(cls, value: list[Path]) -> list[Path]:
        if not value:
            raise ValueError("lock_dirs must list at least one directory")
        return value

    @property
    def stale_after(self) -> timedelta:
        return timedelta(hours=self.max_age_hours)


def find_config_path() -> Path:
    """Locate the config file.

    $SHLOCK_CONFIG wins; otherwise $XDG_CONFIG_HOME/shlock/config.toml,
    falling back to ~/.config/shlock/config.toml.
    """
    explicit = os.environ.get(CONFIG_ENV)
    if explicit:
        return Path(explicit).expanduser()
    config_home = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(config_home) / "shlock" / "config.toml"


def load_config(config_path: Path | None = None) -> ShlockConfig:
    """Load config from a TOML file.

    Args:
        config_path: Path to config.toml (defaults to find_config_path())

    Returns:
        Loaded configuration, or defaults if the file doesn't exist

    Raises:
        InvalidArgumentsError: If the file is not valid TOML or has invalid values
    """
    if config_path is None:
        config_path = find_config_path()
    if not config_path.exists():
        return ShlockConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise InvalidArgumentsError(f"Invalid config file {config_path}: {e}") from e
    except OSError as e:
        raise InvalidArgumentsError(f"Cannot read config file {config_path}: {e}") from e

    try:
        return ShlockConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidArgumentsError(f"Invalid config file {config_path}: {e}") from e
