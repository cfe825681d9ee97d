"""
Housekeeper configuration.

Loads a YAML document into validated pydantic models. Defaults are
resolved at load time, and relative paths are resolved against the
directory of the configuration file.
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from housekeeper.core.exceptions import ConfigurationError
from housekeeper.retention.models import RetentionPolicy
from housekeeper.retention.usage import Thresholds
from housekeeper.sources.directory import DEFAULT_COMPRESS_EXTS

CONFIG_ENV_VAR = "HOUSEKEEPER_CONFIG"

CONFIG_SEARCH_PATHS = (
    Path("housekeeper.yml"),
    Path("/etc/housekeeper.yml"),
    Path("/usr/local/etc/housekeeper.yml"),
)


class SourceConfig(BaseModel):
    """Where artifacts and capacity figures come from."""

    kind: Literal["vss", "directory", "memory"] = "vss"
    drive: str = Field(default="C:", description="Drive letter for the vss source")
    root_dir: Path | None = Field(default=None, description="Root for the directory source")
    includes: list[str] | None = Field(default=None, description="File name glob patterns to manage")
    excludes: list[str] = Field(default_factory=lambda: [".*"], description="File name glob patterns to skip")
    compress_exts: list[str] = Field(default_factory=lambda: list(DEFAULT_COMPRESS_EXTS))
    max_bytes: int | None = Field(default=None, ge=1, description="Capacity of managed files")

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def check_root_dir(self) -> "SourceConfig":
        if self.kind == "directory" and self.root_dir is None:
            raise ValueError("root_dir is required for the directory source")
        return self


class KeepConfig(BaseModel):
    """Number of buckets each tier keeps; missing or 0 disables the tier."""

    yearly: int | None = Field(default=None, ge=0)
    monthly: int | None = Field(default=None, ge=0)
    weekly: int | None = Field(default=None, ge=0)
    daily: int | None = Field(default=None, ge=0)
    hourly: int | None = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}

    def to_policy(self) -> RetentionPolicy:
        return RetentionPolicy.from_quotas(self.model_dump())


class SmtpConfig(BaseModel):
    """SMTP server settings."""

    server: str = "localhost"
    port: int = 25
    use_tls: bool = False
    username: str | None = None
    password: str | None = None
    timeout_seconds: int = 30

    model_config = {"extra": "forbid"}


class MailConfig(BaseModel):
    """Report mail settings."""

    enabled: bool = True
    from_address: str = Field(alias="from")
    to: list[str]
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @field_validator("to", mode="before")
    @classmethod
    def split_recipients(cls, v):
        """Accept a single address or a comma separated string."""
        if isinstance(v, str):
            return [addr.strip() for addr in v.split(",") if addr.strip()]
        return v


class WebhookConfig(BaseModel):
    """Report webhook settings."""

    enabled: bool = True
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: int = 30

    model_config = {"extra": "forbid"}


class LogConfig(BaseModel):
    """Log file settings."""

    file: Path | None = Field(default=None, description="Log file; stderr when unset")
    level: str = "INFO"
    max_bytes: int = Field(default=1048576, ge=0, description="Rotate after this size (0 = never)")
    backup_count: int = Field(default=1, ge=0, description="Rotated files to keep")

    model_config = {"extra": "forbid"}

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, int):
            return {0: "DEBUG", 1: "INFO", 2: "WARNING", 3: "ERROR", 4: "CRITICAL"}.get(v, "INFO")
        level = str(v).upper()
        if level == "WARN":
            level = "WARNING"
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class HousekeeperConfig(BaseModel):
    """Complete run configuration."""

    source: SourceConfig = Field(default_factory=SourceConfig)
    keep: KeepConfig = Field(default_factory=KeepConfig)
    threshold: Thresholds = Field(default_factory=Thresholds)
    mail: MailConfig | None = None
    webhook: WebhookConfig | None = None
    log: LogConfig = Field(default_factory=LogConfig)
    data_file: Path = Path("housekeeper.jsonl")
    dry_run: bool = False

    model_config = {"extra": "forbid"}

    @model_validator(mode="before")
    @classmethod
    def lift_drive(cls, data: Any) -> Any:
        """Accept a top-level ``drive`` key as shorthand for a vss source."""
        if isinstance(data, dict) and "drive" in data:
            data = dict(data)
            source = dict(data.get("source") or {})
            source.setdefault("drive", data.pop("drive"))
            data["source"] = source
        return data

    def policy(self) -> RetentionPolicy:
        return self.keep.to_policy()

    def resolve_paths(self, base_dir: Path) -> "HousekeeperConfig":
        """Return a copy with relative paths anchored at base_dir."""

        def anchor(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return base_dir / path

        return self.model_copy(
            update={
                "data_file": anchor(self.data_file),
                "log": self.log.model_copy(update={"file": anchor(self.log.file)}),
                "source": self.source.model_copy(update={"root_dir": anchor(self.source.root_dir)}),
            }
        )

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json", by_alias=True)
        if data.get("mail") and data["mail"]["smtp"].get("password"):
            data["mail"]["smtp"]["password"] = "********"
        return yaml.safe_dump(data, sort_keys=False)


def find_config_path() -> Path | None:
    """Return the first existing configuration file in the search order."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    for path in CONFIG_SEARCH_PATHS:
        if path.is_file():
            return path
    return None


def load_config(path: Path | str | None = None) -> HousekeeperConfig:
    """
    Load and validate the configuration file.

    Args:
        path: Configuration file (default: search the standard locations)

    Returns:
        Validated HousekeeperConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_path = Path(path) if path else find_config_path()
    if config_path is None:
        raise ConfigurationError(
            "No configuration file found",
            details={"searched": [str(p) for p in CONFIG_SEARCH_PATHS]},
        )
    if not config_path.is_file():
        raise ConfigurationError(
            f"Config file {config_path} is missing or not a file",
            config_file=str(config_path),
        )

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to load config file: {e}",
            config_file=str(config_path),
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Config file must contain a mapping",
            config_file=str(config_path),
        )

    try:
        config = HousekeeperConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            config_file=str(config_path),
            details={"errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]},
        ) from e

    return config.resolve_paths(config_path.resolve().parent)
