"""iot-rules: threshold rule evaluation for IoT telemetry."""

__version__ = "0.3.0"

from .exceptions import (
    ConfigError,
    DeliveryError,
    InvalidFormatError,
    IoTRulesError,
    RuleNotFoundError,
)

__all__ = [
    "__version__",
    "IoTRulesError",
    "RuleNotFoundError",
    "InvalidFormatError",
    "ConfigError",
    "DeliveryError",
]
