"""Single-condition evaluation against one telemetry sample.

Evaluation fails open to inaction: anything that cannot be resolved
(missing reading, missing threshold, inverted bounds, unknown operator)
is a non-match rather than an error, so one bad condition never breaks
the rest of a pass.
"""

from __future__ import annotations

import logging
import operator as op
from typing import Any, Callable

from .models import Condition, Operator, TelemetrySample

logger = logging.getLogger("iot-rules")

_COMPARATORS: dict[str, Callable[[float, float], bool]] = {
    Operator.GT.value: op.gt,
    Operator.LT.value: op.lt,
    Operator.GE.value: op.ge,
    Operator.LE.value: op.le,
    Operator.EQ.value: op.eq,  # exact, no epsilon
}


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _enum_value(value: Any) -> str:
    return getattr(value, "value", value)


def evaluate_condition(condition: Condition, sample: TelemetrySample) -> bool:
    """Return True if ``sample`` satisfies ``condition``. Never raises."""
    try:
        reading = _as_number(sample.reading(_enum_value(condition.sensor)))
        if reading is None:
            return False

        operator_name = _enum_value(condition.operator)
        if operator_name == Operator.BETWEEN.value:
            low = _as_number(condition.value_min)
            high = _as_number(condition.value_max)
            if low is None or high is None or low > high:
                return False
            return low <= reading <= high

        compare = _COMPARATORS.get(operator_name)
        threshold = _as_number(condition.value)
        if compare is None or threshold is None:
            return False
        return compare(reading, threshold)
    except Exception as e:
        logger.debug(f"Condition evaluation failed, treating as non-match: {e}")
        return False
