"""Rules engine: combines condition results per rule across target devices."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .conditions import evaluate_condition
from .models import Logic, Rule, TelemetrySample, TriggerResult

logger = logging.getLogger("iot-rules")


class RulesEngine:
    """Evaluates threshold rules against the latest sample of each device.

    The engine is stateless: it reads rules and samples and never mutates
    either. Edge detection lives in ActionDispatcher.
    """

    def matches(self, rule: Rule, sample: TelemetrySample) -> bool:
        """Combine every condition of ``rule`` for one sample."""
        if not rule.conditions:
            return False
        outcomes = (evaluate_condition(c, sample) for c in rule.conditions)
        if getattr(rule.logic, "value", rule.logic) == Logic.OR.value:
            return any(outcomes)
        return all(outcomes)

    def evaluate(
        self,
        rule: Rule,
        samples_by_device: Mapping[str, TelemetrySample],
    ) -> list[TriggerResult]:
        """One result per target device that has a sample.

        Devices without a sample are skipped entirely; they do not count
        as a non-match. Disabled rules yield nothing.
        """
        if not rule.enabled:
            return []
        if not rule.device_ids:
            logger.debug(f"Rule {rule.name!r} targets no devices, skipping")
            return []

        results = []
        for device_id in rule.device_ids:
            sample = samples_by_device.get(device_id)
            if sample is None:
                continue
            results.append(
                TriggerResult(
                    rule_id=rule.id,
                    device_id=device_id,
                    matched=self.matches(rule, sample),
                    sample=sample,
                )
            )
        return results

    def evaluate_all(
        self,
        rules: Iterable[Rule],
        samples_by_device: Mapping[str, TelemetrySample],
    ) -> dict[str, list[TriggerResult]]:
        """Evaluate a rule snapshot. Keys are ids of enabled rules, in order."""
        evaluated: dict[str, list[TriggerResult]] = {}
        for rule in rules:
            if not rule.enabled:
                continue
            results = self.evaluate(rule, samples_by_device)
            matched = sum(1 for r in results if r.matched)
            logger.debug(
                f"EVAL: {rule.name}: devices={len(results)}, matched={matched}"
            )
            evaluated[rule.id] = results
        return evaluated
