"""
Run configuration for Jaguar.

Provides a Pydantic-validated ``RunConfig``, environment loading through
``JaguarSettings`` (``JAGUAR_`` prefix) and an optional YAML config file.
A process-wide default config backs the module-level API; a run resolves
its config when it starts, not when suites are built.
"""

from __future__ import annotations

import re
from enum import StrEnum
from pathlib import Path
from typing import Any, Self

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

DEFAULT_CONCURRENCY = 50

STANDARD_CONFIG_PATHS = (
    Path(".jaguar.yaml"),
    Path(".jaguar.yml"),
    Path("jaguar.yaml"),
    Path("jaguar.yml"),
)


class ReporterMode(StrEnum):
    """Output styles for the built-in reporters."""

    VERBOSE = "verbose"
    MINIMAL = "minimal"
    JSON = "json"


def _default_snapshot_dir() -> Path:
    return Path.cwd() / "__snapshots__"


class RunConfig(BaseModel):
    """Configuration read by a run at dispatch time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1, le=10000)
    snapshot_dir: Path = Field(default_factory=_default_snapshot_dir)
    reporter: ReporterMode = ReporterMode.VERBOSE
    grep: str | None = None
    default_timeout_ms: float | None = Field(default=None, gt=0)
    watch: bool = False
    disable_snapshots: bool = False

    @field_validator("grep")
    @classmethod
    def validate_grep(cls, v: str | None) -> str | None:
        """Reject title filters that are not valid regular expressions."""
        if v is None or v == "":
            return None
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"grep is not a valid regular expression: {e}") from e
        return v

    @property
    def grep_pattern(self) -> re.Pattern[str] | None:
        """Compiled title filter, if one is configured."""
        return re.compile(self.grep) if self.grep else None

    def with_overrides(self, **overrides: Any) -> Self:
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(overrides)
        return type(self).model_validate(data)


class JaguarSettings(BaseSettings):
    """
    Environment-based settings.

    Loads values from environment variables with the JAGUAR_ prefix,
    e.g. ``JAGUAR_CONCURRENCY=8`` or ``JAGUAR_GREP=^Math``.
    """

    model_config = SettingsConfigDict(
        env_prefix="JAGUAR_",
        case_sensitive=False,
        extra="ignore",
    )

    concurrency: int | None = None
    snapshot_dir: Path | None = None
    reporter: ReporterMode | None = None
    grep: str | None = None
    default_timeout_ms: float | None = None
    watch: bool | None = None
    disable_snapshots: bool | None = None

    def overrides(self) -> dict[str, Any]:
        """Values explicitly provided through the environment."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


def _read_config_file(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    # Accept a top-level "jaguar:" section as well as a flat file
    section = data.get("jaguar", data)
    return dict(section)


def load_run_config(
    config_file: Path | str | None = None,
    env_override: bool = True,
) -> RunConfig:
    """
    Load run configuration from file and/or environment.

    Priority (highest to lowest):
    1. Environment variables (if env_override=True)
    2. Config file (explicit path, else the first standard location found)
    3. Defaults

    Args:
        config_file: Optional path to a YAML config file
        env_override: Whether environment variables override file config

    Returns:
        Validated RunConfig
    """
    file_config: dict[str, Any] = {}

    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        file_config = _read_config_file(path)
    else:
        for path in STANDARD_CONFIG_PATHS:
            if path.exists():
                file_config = _read_config_file(path)
                logger.debug("Loaded config file", path=str(path))
                break

    data = dict(file_config)
    if env_override:
        data.update(JaguarSettings().overrides())

    return RunConfig.model_validate(data)


_active_config: RunConfig | None = None


def get_config() -> RunConfig:
    """Return the process-wide default config, creating it on first use."""
    global _active_config
    if _active_config is None:
        _active_config = RunConfig()
    return _active_config


def set_config(config: RunConfig | None = None, **overrides: Any) -> RunConfig:
    """
    Replace or update the process-wide default config.

    Args:
        config: Complete config to install (defaults to the current one)
        **overrides: Fields to change on top of it

    Returns:
        The newly active config
    """
    global _active_config
    base = config if config is not None else get_config()
    _active_config = base.with_overrides(**overrides) if overrides else base
    return _active_config


def reset_config() -> None:
    """Restore the process-wide default config to defaults."""
    global _active_config
    _active_config = None
