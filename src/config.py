"""Configuration loading for Lightsync."""

import ipaddress
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

TOKEN_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")


class DeviceConfig(BaseModel):
    """A lamp entry from the config file."""

    name: str = Field(min_length=1)
    ip: str
    token: str
    model: str = Field(min_length=1)

    @field_validator("ip")
    @classmethod
    def validate_ip(cls, value: str) -> str:
        ipaddress.ip_address(value)
        return value

    @field_validator("token")
    @classmethod
    def validate_token(cls, value: str) -> str:
        if not TOKEN_PATTERN.match(value):
            raise ValueError("token must be 32 hexadecimal characters")
        return value.lower()


class LightsyncConfig(BaseModel):
    """Main configuration model.

    Device entries stay raw here so one broken entry cannot prevent the
    others from loading; they are validated one by one at start-up.
    """

    polling_interval: float | None = None
    transport_timeout: float = 5.0
    log_level: str = "INFO"
    devices: list[dict[str, Any]] = Field(default_factory=list)


def find_config_dir() -> Path:
    """Find the config directory.

    Looks for config directory in the following order:
    1. ./config (relative to cwd)
    2. ../config (parent of cwd)
    3. ~/.config/lightsync
    """
    cwd = Path.cwd()

    if (cwd / "config").is_dir():
        return cwd / "config"

    if (cwd.parent / "config").is_dir():
        return cwd.parent / "config"

    home_config = Path.home() / ".config" / "lightsync"
    if home_config.is_dir():
        return home_config

    return cwd / "config"


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(config_dir: Path | None = None) -> LightsyncConfig:
    """Load the main configuration."""
    if config_dir is None:
        config_dir = find_config_dir()

    config_path = config_dir / "config.yaml"
    data = load_yaml(config_path)
    return LightsyncConfig.model_validate(data)
