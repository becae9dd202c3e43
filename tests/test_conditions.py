"""Tests for single-condition evaluation."""

import pytest

from iot_rules.rules.conditions import evaluate_condition
from iot_rules.rules.models import Condition, Operator, Sensor, TelemetrySample


def _sample(temperature=None, humidity=None) -> TelemetrySample:
    return TelemetrySample(device_id="dev1", temperature=temperature, humidity=humidity)


def _cond(operator: str, value=None, value_min=None, value_max=None, sensor="temperature"):
    return Condition(
        sensor=Sensor(sensor),
        operator=Operator(operator),
        value=value,
        value_min=value_min,
        value_max=value_max,
    )


class TestComparisonOperators:
    @pytest.mark.parametrize(
        "operator, reading, expected",
        [
            (">", 31, True),
            (">", 30, False),
            ("<", 29, True),
            ("<", 30, False),
            (">=", 30, True),
            (">=", 29.9, False),
            ("<=", 30, True),
            ("<=", 30.1, False),
            ("==", 30, True),
            ("==", 30.0000001, False),
        ],
    )
    def test_against_threshold_30(self, operator, reading, expected):
        assert evaluate_condition(_cond(operator, value=30), _sample(reading)) is expected

    def test_humidity_sensor_is_resolved(self):
        cond = _cond("<", value=40, sensor="humidity")
        assert evaluate_condition(cond, _sample(temperature=99, humidity=35)) is True
        assert evaluate_condition(cond, _sample(temperature=1, humidity=45)) is False

    def test_equality_is_exact(self):
        cond = _cond("==", value=0.3)
        assert evaluate_condition(cond, _sample(0.1 + 0.2)) is False
        assert evaluate_condition(cond, _sample(0.3)) is True


class TestBetween:
    @pytest.mark.parametrize("reading", [18, 18.5, 21, 23.99, 24])
    def test_inside_inclusive_range(self, reading):
        cond = _cond("between", value_min=18, value_max=24)
        assert evaluate_condition(cond, _sample(reading)) is True

    @pytest.mark.parametrize("reading", [-5, 17.99, 24.01, 100])
    def test_outside_range(self, reading):
        cond = _cond("between", value_min=18, value_max=24)
        assert evaluate_condition(cond, _sample(reading)) is False

    def test_degenerate_range(self):
        cond = _cond("between", value_min=20, value_max=20)
        assert evaluate_condition(cond, _sample(20)) is True
        assert evaluate_condition(cond, _sample(20.5)) is False


class TestFailsOpenToNoMatch:
    def test_missing_sensor_reading(self):
        cond = _cond(">", value=30, sensor="humidity")
        assert evaluate_condition(cond, _sample(temperature=50)) is False

    def test_missing_value_on_comparison(self):
        cond = Condition.model_construct(sensor=Sensor.TEMPERATURE, operator=Operator.GT, value=None)
        assert evaluate_condition(cond, _sample(50)) is False

    def test_missing_bounds_on_between(self):
        cond = Condition.model_construct(
            sensor=Sensor.TEMPERATURE, operator=Operator.BETWEEN, value_min=10, value_max=None
        )
        assert evaluate_condition(cond, _sample(15)) is False

    def test_inverted_bounds(self):
        cond = Condition.model_construct(
            sensor=Sensor.TEMPERATURE, operator=Operator.BETWEEN, value_min=30, value_max=10
        )
        assert evaluate_condition(cond, _sample(20)) is False

    def test_unknown_operator(self):
        cond = Condition.model_construct(sensor=Sensor.TEMPERATURE, operator="!=", value=1)
        assert evaluate_condition(cond, _sample(5)) is False

    def test_unknown_sensor(self):
        cond = Condition.model_construct(sensor="pressure", operator=Operator.GT, value=1)
        assert evaluate_condition(cond, _sample(5)) is False

    def test_non_numeric_threshold(self):
        cond = Condition.model_construct(sensor=Sensor.TEMPERATURE, operator=Operator.GT, value="30")
        assert evaluate_condition(cond, _sample(50)) is False

    def test_plain_string_enums_still_evaluate(self):
        cond = Condition.model_construct(sensor="temperature", operator=">", value=30)
        assert evaluate_condition(cond, _sample(31)) is True
