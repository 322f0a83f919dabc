"""Configuration management for pnpm-injected-sync."""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from .constants import (
    CONFIG_FILE_NAME,
    DEBOUNCE_MS,
    DISABLE_ENV_VAR,
    FORCE_EXIT_TIMEOUT,
    LOCK_FILE_NAME,
    PROMOTION_INTERVAL,
    REAPER_INTERVAL,
    TRUTHY_VALUES,
)


class TimingConfig(BaseModel):
    """Timer settings for the shared watcher."""

    debounce_ms: int = Field(default=DEBOUNCE_MS, ge=0, description="Quiet period per entry")
    promotion_interval: float = Field(
        default=PROMOTION_INTERVAL, gt=0, description="Seconds between promotion checks"
    )
    reaper_interval: float = Field(
        default=REAPER_INTERVAL, gt=0, description="Seconds between client reaper ticks"
    )
    force_exit_timeout: float = Field(
        default=FORCE_EXIT_TIMEOUT, gt=0, description="Grace period after a forwarded signal"
    )


class SyncConfig(BaseModel):
    """Root configuration for pnpm-injected-sync."""

    disabled: bool = False
    lock_file: str = LOCK_FILE_NAME
    timing: TimingConfig = Field(default_factory=TimingConfig)

    def lock_path(self, workspace_dir: Path) -> Path:
        """Get the lock file path for a workspace."""
        return workspace_dir / self.lock_file


def is_truthy(value: str | None) -> bool:
    """Return True if value is one of the accepted truthy spellings."""
    if not value:
        return False
    return value.lower() in TRUTHY_VALUES


def is_sync_disabled(environ: Mapping[str, str] | None = None) -> bool:
    """Check whether syncing is disabled through the environment.

    Args:
        environ: Environment mapping, defaults to os.environ

    Returns:
        True if PNPM_INJECTED_SYNC_DISABLED holds a truthy value
    """
    env = os.environ if environ is None else environ
    return is_truthy(env.get(DISABLE_ENV_VAR))


def load_config(workspace_dir: Path, environ: Mapping[str, str] | None = None) -> SyncConfig:
    """Load config from <workspace>/.pnpm-injected-sync.toml.

    The environment flag always wins over the file: a truthy
    PNPM_INJECTED_SYNC_DISABLED forces ``disabled``.

    Args:
        workspace_dir: Workspace root directory
        environ: Environment mapping, defaults to os.environ

    Returns:
        Loaded configuration, or defaults if the file doesn't exist
    """
    config_path = workspace_dir / CONFIG_FILE_NAME
    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        config = SyncConfig.model_validate(data)
    else:
        config = SyncConfig()

    if is_sync_disabled(environ):
        config = config.model_copy(update={"disabled": True})
    return config
