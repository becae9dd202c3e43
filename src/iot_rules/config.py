"""Configuration loading and validation."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = "~/.iot-rules/config.yaml"


class NotificationsConfig(BaseModel):
    webhook_url: str = ""  # Used when a webhook action has no URL of its own
    webhook_timeout_seconds: float = 15.0
    device_control_url: str = ""  # Endpoint that accepts {device_id, command}
    device_control_token: str = ""  # Bearer token for the device-control endpoint
    log_alerts: bool = True


class MonitorConfig(BaseModel):
    alert_queue_size: int = 50
    alert_ttl_seconds: int = 300


class IoTRulesConfig(BaseModel):
    rules_file: str = "~/.iot-rules/rules.json"
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    log_level: str = "INFO"


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} with environment variable values."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return re.sub(r"\$\{(\w+)\}", replacer, text)


def _config_from_env() -> IoTRulesConfig:
    """Build config from environment variables (for container deployment).

    Falls back to sane defaults when env vars are not set.
    """
    return IoTRulesConfig(
        rules_file=os.environ.get("IOT_RULES_FILE", "~/.iot-rules/rules.json"),
        notifications=NotificationsConfig(
            webhook_url=os.environ.get("IOT_RULES_WEBHOOK_URL", ""),
            device_control_url=os.environ.get("IOT_RULES_DEVICE_CONTROL_URL", ""),
            device_control_token=os.environ.get("IOT_RULES_DEVICE_CONTROL_TOKEN", ""),
        ),
        log_level=os.environ.get("IOT_RULES_LOG_LEVEL", "INFO"),
    )


def load_config(path: str | Path | None = None) -> IoTRulesConfig:
    """Load config from YAML file, env vars, or defaults.

    Priority: config.yaml (with ${ENV} interpolation) > env vars > defaults.
    """
    path = Path(path or DEFAULT_CONFIG_PATH).expanduser()

    if not path.exists():
        if os.environ.get("IOT_RULES_HEADLESS") or os.environ.get("IOT_RULES_FILE"):
            return _config_from_env()
        return IoTRulesConfig()

    try:
        raw_text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigError(f"{path} is not UTF-8 text: {e}") from e
    interpolated = _interpolate_env_vars(raw_text)
    try:
        data = yaml.safe_load(interpolated)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return IoTRulesConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    try:
        return IoTRulesConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e


def save_config(config: IoTRulesConfig, path: str | Path | None = None) -> Path:
    """Save config to YAML file."""
    path = Path(path or DEFAULT_CONFIG_PATH).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump()
    path.write_text(
        yaml.dump(data, default_flow_style=False, sort_keys=False), encoding="utf-8"
    )
    return path
