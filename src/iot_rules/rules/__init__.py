"""Threshold rules: models, evaluation, dispatch, and storage."""

from .conditions import evaluate_condition
from .dispatcher import ActionDispatcher, DispatchState
from .engine import RulesEngine
from .models import (
    ActionIntent,
    AlertAction,
    Condition,
    DeviceControlAction,
    Logic,
    Operator,
    Rule,
    Sensor,
    TelemetrySample,
    TriggerResult,
    WebhookAction,
)
from .store import JsonRulesFile, RuleStore, export_rules, import_rules

__all__ = [
    "evaluate_condition",
    "RulesEngine",
    "ActionDispatcher",
    "DispatchState",
    "RuleStore",
    "JsonRulesFile",
    "export_rules",
    "import_rules",
    "Rule",
    "Condition",
    "Sensor",
    "Operator",
    "Logic",
    "AlertAction",
    "DeviceControlAction",
    "WebhookAction",
    "TelemetrySample",
    "TriggerResult",
    "ActionIntent",
]
