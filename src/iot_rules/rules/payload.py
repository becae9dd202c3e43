"""Form-level text helpers for rule authoring.

The dashboard collects an action as one free-text payload whose meaning
depends on the action type ("fan1:on" for device control, a URL for a
webhook, a message for an alert) and conditions as short phrases. These
helpers convert between that text and the typed models.
"""

from __future__ import annotations

from pydantic import ValidationError

from ..exceptions import InvalidFormatError
from .models import (
    AlertAction,
    Condition,
    DeviceControlAction,
    Operator,
    Sensor,
    WebhookAction,
)

ACTION_TYPES = ("alert", "device_control", "webhook")
DEFAULT_ALERT_MESSAGE = "Alert triggered"
DEFAULT_COMMAND = "toggle"


def parse_action_payload(
    action_type: str, payload: str = ""
) -> AlertAction | DeviceControlAction | WebhookAction:
    """Build an action from its type and the single-string form payload."""
    payload = payload.strip()
    if action_type == "alert":
        return AlertAction(message=payload or DEFAULT_ALERT_MESSAGE)
    if action_type == "device_control":
        target, _, command = payload.partition(":")
        if not target.strip():
            raise InvalidFormatError(
                f"Device control payload must look like 'deviceId:command', got {payload!r}"
            )
        return DeviceControlAction(
            target_device_id=target.strip(),
            command=command.strip() or DEFAULT_COMMAND,
        )
    if action_type == "webhook":
        if not payload:
            raise InvalidFormatError("Webhook action requires a URL")
        return WebhookAction(url=payload)
    raise InvalidFormatError(
        f"Unknown action type {action_type!r} (expected one of: {', '.join(ACTION_TYPES)})"
    )


def format_action_payload(action: AlertAction | DeviceControlAction | WebhookAction) -> str:
    """Inverse of parse_action_payload, for pre-filling an edit form."""
    if isinstance(action, DeviceControlAction):
        return f"{action.target_device_id}:{action.command}"
    if isinstance(action, WebhookAction):
        return action.url
    return action.message


def describe_action(action: AlertAction | DeviceControlAction | WebhookAction) -> str:
    return f"{action.type} - {format_action_payload(action)}"


def _number(token: str, text: str) -> float:
    try:
        return float(token)
    except ValueError:
        raise InvalidFormatError(f"Not a number: {token!r} in {text!r}") from None


def parse_condition(text: str) -> Condition:
    """Parse "temperature > 30" or "humidity between 40 60" into a Condition."""
    tokens = text.replace(" and ", " ").split()
    if len(tokens) < 3:
        raise InvalidFormatError(
            f"Condition must look like '<sensor> <operator> <value>', got {text!r}"
        )

    sensor_name, operator_name, *operands = tokens
    try:
        sensor = Sensor(sensor_name.lower())
    except ValueError:
        choices = ", ".join(s.value for s in Sensor)
        raise InvalidFormatError(
            f"Unknown sensor {sensor_name!r} (expected one of: {choices})"
        ) from None
    try:
        operator = Operator(operator_name.lower())
    except ValueError:
        choices = ", ".join(o.value for o in Operator)
        raise InvalidFormatError(
            f"Unknown operator {operator_name!r} (expected one of: {choices})"
        ) from None

    try:
        if operator is Operator.BETWEEN:
            if len(operands) != 2:
                raise InvalidFormatError(
                    f"'between' takes two bounds, got {text!r}"
                )
            return Condition(
                sensor=sensor,
                operator=operator,
                value_min=_number(operands[0], text),
                value_max=_number(operands[1], text),
            )
        if len(operands) != 1:
            raise InvalidFormatError(f"Operator {operator.value!r} takes one value, got {text!r}")
        return Condition(sensor=sensor, operator=operator, value=_number(operands[0], text))
    except ValidationError as e:
        raise InvalidFormatError(f"Invalid condition {text!r}: {e.errors()[0]['msg']}") from e
