"""Tests for form payload helpers."""

import pytest

from iot_rules.exceptions import InvalidFormatError
from iot_rules.rules.models import (
    AlertAction,
    DeviceControlAction,
    Operator,
    Sensor,
    WebhookAction,
)
from iot_rules.rules.payload import (
    describe_action,
    format_action_payload,
    parse_action_payload,
    parse_condition,
)


class TestActionPayload:
    def test_alert_message(self):
        assert parse_action_payload("alert", "Too hot") == AlertAction(message="Too hot")

    def test_alert_default_message(self):
        assert parse_action_payload("alert", "") == AlertAction(message="Alert triggered")

    def test_device_control(self):
        action = parse_action_payload("device_control", "fan1:on")
        assert action == DeviceControlAction(target_device_id="fan1", command="on")

    def test_device_control_default_command(self):
        action = parse_action_payload("device_control", "fan1")
        assert action.command == "toggle"

    def test_device_control_requires_target(self):
        with pytest.raises(InvalidFormatError, match="deviceId:command"):
            parse_action_payload("device_control", ":on")

    def test_webhook(self):
        assert parse_action_payload("webhook", " https://h.test/x ") == WebhookAction(
            url="https://h.test/x"
        )

    def test_webhook_requires_url(self):
        with pytest.raises(InvalidFormatError):
            parse_action_payload("webhook", "")

    def test_unknown_type(self):
        with pytest.raises(InvalidFormatError, match="Unknown action type"):
            parse_action_payload("sms", "123")

    def test_format_inverts_parse(self):
        for action_type, payload in [
            ("alert", "Too hot"),
            ("device_control", "fan1:on"),
            ("webhook", "https://h.test/x"),
        ]:
            assert format_action_payload(parse_action_payload(action_type, payload)) == payload

    def test_describe_action(self):
        action = DeviceControlAction(target_device_id="fan1", command="on")
        assert describe_action(action) == "device_control - fan1:on"


class TestParseCondition:
    def test_comparison(self):
        cond = parse_condition("temperature >= 30.5")
        assert cond.sensor is Sensor.TEMPERATURE
        assert cond.operator is Operator.GE
        assert cond.value == 30.5

    def test_between(self):
        cond = parse_condition("humidity between 40 60")
        assert cond.operator is Operator.BETWEEN
        assert (cond.value_min, cond.value_max) == (40, 60)

    def test_between_with_and(self):
        cond = parse_condition("humidity between 40 and 60")
        assert (cond.value_min, cond.value_max) == (40, 60)

    def test_case_insensitive_sensor(self):
        assert parse_condition("Temperature < 0").sensor is Sensor.TEMPERATURE

    @pytest.mark.parametrize(
        "text, fragment",
        [
            ("temperature >", "must look like"),
            ("pressure > 3", "Unknown sensor"),
            ("temperature != 3", "Unknown operator"),
            ("temperature > hot", "Not a number"),
            ("temperature > 1 2", "takes one value"),
            ("humidity between 40", "two bounds"),
            ("humidity between 60 40", "Invalid condition"),
        ],
    )
    def test_rejects(self, text, fragment):
        with pytest.raises(InvalidFormatError, match=fragment):
            parse_condition(text)
