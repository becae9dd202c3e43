"""Custom exception hierarchy for iot-rules.

All iot-rules exceptions inherit from IoTRulesError, allowing callers
to catch broad or specific errors:

    try:
        store.import_json(text)
    except InvalidFormatError as e:
        print(f"Bad rules file: {e}")
    except IoTRulesError as e:
        print(f"iot-rules error: {e}")
"""

from __future__ import annotations


class IoTRulesError(Exception):
    """Base exception for all iot-rules errors."""


class RuleNotFoundError(IoTRulesError, KeyError):
    """Raised when a store mutation references an unknown rule id."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(rule_id)
        self.rule_id = rule_id

    def __str__(self) -> str:
        return f"Rule not found: {self.rule_id}"


class InvalidFormatError(IoTRulesError, ValueError):
    """Raised when imported rules or telemetry cannot be parsed."""


class ConfigError(IoTRulesError):
    """Raised when configuration is invalid or missing."""


class DeliveryError(IoTRulesError):
    """Raised when an action intent cannot be delivered."""
