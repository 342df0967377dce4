################################################################################
# DOCKUP
#
# @file:        config.py
# @module:      dockup.helpers.config
# @description: Pydantic configuration models with environment overrides
# @repository:  https://github.com/dockup/dockup
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT License: see LICENSE or https://opensource.org/licenses/MIT
################################################################################

"""
Configuration for dockup.

Type-safe, validated JSON configuration. Values from the config file are
overridden by DOCKUP_* environment variables. The resulting model is
immutable and handed explicitly to every component.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import (
    BACKUP_OPERATION_TIMEOUT,
    BUCKET_DAILY,
    BUCKET_HOURLY,
    BUCKET_WEEKLY,
    DEFAULT_CONFIG_PATHS,
    DEFAULT_HELPER_IMAGE,
    DEFAULT_KEEP_DAILY,
    DEFAULT_KEEP_HOURLY,
    DEFAULT_KEEP_WEEKLY,
    ENV_PREFIX,
)
from .errors import ConfigError
from .logging import get_logger

logger = get_logger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class RetentionConfig(BaseModel):
    """Number of slots to keep per bucket kind"""

    model_config = ConfigDict(frozen=True)

    hourly: int = Field(default=DEFAULT_KEEP_HOURLY, ge=0, description="Hourly slots to keep")
    daily: int = Field(default=DEFAULT_KEEP_DAILY, ge=0, description="Daily slots to keep")
    weekly: int = Field(default=DEFAULT_KEEP_WEEKLY, ge=0, description="Weekly slots to keep")

    def keep_count(self, bucket_kind: str) -> Optional[int]:
        """Keep count for a bucket kind, None for unbucketed slots."""
        return {
            BUCKET_HOURLY: self.hourly,
            BUCKET_DAILY: self.daily,
            BUCKET_WEEKLY: self.weekly,
        }.get(bucket_kind)


class RemoteConfig(BaseModel):
    """Replication of finished slots over scp"""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False, description="Copy every new slot to a remote host")
    key_file: Optional[Path] = Field(default=None, description="SSH private key used for scp")
    destination: Optional[str] = Field(
        default=None,
        description="Remote target in user@host:/path form"
    )

    @field_validator("key_file", mode="before")
    @classmethod
    def validate_key_file(cls, v: Any) -> Optional[Path]:
        """Convert string to Path"""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: Optional[str]) -> Optional[str]:
        """Validate user@host:/path format"""
        if v is None or v == "":
            return None
        if not re.match(r"^[^@\s:]+@[^@\s:]+:\S+$", v):
            raise ValueError("destination must look like user@host:/path")
        return v

    @model_validator(mode="after")
    def validate_remote(self) -> RemoteConfig:
        """Destination is mandatory once replication is enabled"""
        if self.enabled and not self.destination:
            raise ValueError("destination required when remote sync is enabled")
        return self

    @property
    def host(self) -> str:
        return self.destination.split(":", 1)[0] if self.destination else ""

    @property
    def path(self) -> str:
        return self.destination.split(":", 1)[1] if self.destination else ""


class DockupConfig(BaseModel):
    """Main dockup configuration"""

    model_config = ConfigDict(frozen=True)

    blacklist: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Container and volume names excluded from every operation"
    )
    helper_image: str = Field(
        default=DEFAULT_HELPER_IMAGE,
        description="Image used for ephemeral tar/cp helper containers"
    )
    docker_host: Optional[str] = Field(
        default=None,
        description="Docker daemon URL, defaults to the environment (DOCKER_HOST)"
    )
    operation_timeout: int = Field(
        default=BACKUP_OPERATION_TIMEOUT,
        gt=0,
        description="Seconds a single helper container may run"
    )
    failure_hook: Optional[Path] = Field(
        default=None,
        description="Executable invoked with line number and exit code on failure"
    )
    log_file: Optional[Path] = Field(default=None, description="Optional log file")
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)

    @field_validator("blacklist", mode="before")
    @classmethod
    def validate_blacklist(cls, v: Any) -> Any:
        """Accept a comma or whitespace separated string"""
        if isinstance(v, str):
            return frozenset(item for item in re.split(r"[,\s]+", v) if item)
        return v

    @field_validator("failure_hook", "log_file", mode="before")
    @classmethod
    def validate_paths(cls, v: Any) -> Optional[Path]:
        """Convert string to Path"""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @classmethod
    def get_default_path(cls) -> Path:
        """Get default configuration path"""
        if os.geteuid() == 0:  # Running as root
            return DEFAULT_CONFIG_PATHS['root']
        return DEFAULT_CONFIG_PATHS['user']

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> DockupConfig:
        """
        Load configuration from a JSON file and the environment.

        A missing file at the default location is not an error: defaults
        apply. A missing file that was explicitly requested is.

        Args:
            path: Explicit config file path
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Validated, immutable configuration

        Raises:
            ConfigError: If the file cannot be read or a value is invalid
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        config_path = Path(path).expanduser() if path else cls.get_default_path()
        if config_path.exists():
            try:
                data = json.loads(config_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"Cannot read configuration {config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Configuration {config_path} must contain a JSON object")
            logger.debug(f"Configuration loaded from {config_path}")
        elif path:
            raise ConfigError(f"Configuration file not found: {config_path}")

        data = apply_env_overrides(data, environ)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def apply_env_overrides(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Merge DOCKUP_* environment variables over file values.

    Args:
        data: Raw configuration dictionary from the file
        environ: Environment mapping

    Returns:
        New dictionary with overrides applied
    """
    merged = dict(data)
    retention = dict(merged.get("retention") or {})
    remote = dict(merged.get("remote") or {})

    def env(key: str) -> Optional[str]:
        return environ.get(f"{ENV_PREFIX}{key}")

    if env("BLACKLIST") is not None:
        merged["blacklist"] = env("BLACKLIST")
    if env("HELPER_IMAGE"):
        merged["helper_image"] = env("HELPER_IMAGE")
    if env("DOCKER_HOST"):
        merged["docker_host"] = env("DOCKER_HOST")
    if env("TIMEOUT"):
        merged["operation_timeout"] = env("TIMEOUT")
    if env("FAILURE_HOOK") is not None:
        merged["failure_hook"] = env("FAILURE_HOOK")
    if env("LOG_FILE") is not None:
        merged["log_file"] = env("LOG_FILE")

    for kind in ("HOURLY", "DAILY", "WEEKLY"):
        value = env(f"KEEP_{kind}")
        if value is not None:
            retention[kind.lower()] = value

    if env("REMOTE_ENABLED") is not None:
        remote["enabled"] = _parse_bool(f"{ENV_PREFIX}REMOTE_ENABLED", env("REMOTE_ENABLED"))
    if env("REMOTE_KEY_FILE") is not None:
        remote["key_file"] = env("REMOTE_KEY_FILE")
    if env("REMOTE_DESTINATION") is not None:
        remote["destination"] = env("REMOTE_DESTINATION")

    if retention:
        merged["retention"] = retention
    if remote:
        merged["remote"] = remote
    return merged
