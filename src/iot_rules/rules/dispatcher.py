"""Edge-triggered action dispatch.

An ActionIntent is emitted only when a (rule, device) pair goes from
not matching to matching. While the match persists nothing more is
emitted, so a polling loop does not produce an alert per tick.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..exceptions import InvalidFormatError
from .models import ActionIntent, Rule, TriggerResult

logger = logging.getLogger("iot-rules")

Pair = tuple[str, str]  # (rule_id, device_id)


class DispatchState:
    """Per (rule, device) watermark of the last observed match.

    Callers may persist it with to_dict()/from_dict() and query it to
    build status views. Falling edges are collected in a buffer that
    pop_resolved() drains; nothing is delivered for them yet.
    """

    def __init__(self) -> None:
        self._matched: dict[Pair, bool] = {}
        self._last_fired: dict[Pair, datetime] = {}
        self._resolved: list[TriggerResult] = []

    def is_active(self, rule_id: str, device_id: str) -> bool:
        return self._matched.get((rule_id, device_id), False)

    def last_fired(self, rule_id: str, device_id: str) -> datetime | None:
        return self._last_fired.get((rule_id, device_id))

    def active_pairs(self) -> list[Pair]:
        return [pair for pair, matched in self._matched.items() if matched]

    def record(self, result: TriggerResult, fired_at: datetime | None = None) -> bool:
        """Store ``result`` and return True on a rising edge."""
        pair = (result.rule_id, result.device_id)
        previous = self._matched.get(pair, False)
        self._matched[pair] = result.matched
        if result.matched and not previous:
            self._last_fired[pair] = fired_at or datetime.now()
            return True
        if previous and not result.matched:
            self._resolved.append(result)
        return False

    def pop_resolved(self) -> list[TriggerResult]:
        """Drain true→false transitions observed since the last call."""
        resolved, self._resolved = self._resolved, []
        return resolved

    def clear_rule(self, rule_id: str) -> int:
        """Drop every watermark held for ``rule_id``. Returns pairs removed."""
        pairs = [p for p in self._matched if p[0] == rule_id]
        for pair in pairs:
            self._matched.pop(pair, None)
            self._last_fired.pop(pair, None)
        return len(pairs)

    def rule_ids(self) -> set[str]:
        return {rule_id for rule_id, _ in self._matched}

    def to_dict(self) -> dict[str, Any]:
        return {
            "pairs": [
                {
                    "rule_id": rule_id,
                    "device_id": device_id,
                    "matched": matched,
                    "last_fired": (
                        self._last_fired[(rule_id, device_id)].isoformat()
                        if (rule_id, device_id) in self._last_fired
                        else None
                    ),
                }
                for (rule_id, device_id), matched in self._matched.items()
            ]
        }

    @classmethod
    def from_dict(cls, data: Any) -> DispatchState:
        """Rebuild state saved by to_dict(). Raises InvalidFormatError."""
        if not isinstance(data, dict) or not isinstance(data.get("pairs", []), list):
            raise InvalidFormatError("Dispatch state must be an object with a 'pairs' array")
        state = cls()
        for index, entry in enumerate(data.get("pairs", [])):
            try:
                pair = (str(entry["rule_id"]), str(entry["device_id"]))
                matched = bool(entry.get("matched", False))
                last_fired = entry.get("last_fired")
                fired_at = datetime.fromisoformat(last_fired) if last_fired else None
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                raise InvalidFormatError(f"Dispatch state pair #{index + 1}: {e!r}") from e
            state._matched[pair] = matched
            if fired_at is not None:
                state._last_fired[pair] = fired_at
        return state


class ActionDispatcher:
    """Turns TriggerResults into ActionIntents on rising edges only."""

    def __init__(self, state: DispatchState | None = None) -> None:
        self._state = state or DispatchState()

    @property
    def state(self) -> DispatchState:
        return self._state

    def dispatch(self, rule: Rule, results: list[TriggerResult]) -> list[ActionIntent]:
        if not rule.enabled:
            # Re-enabling starts from the initial not-matched state
            self._state.clear_rule(rule.id)
            return []

        now = datetime.now()
        intents = []
        for result in results:
            if result.rule_id != rule.id:
                logger.warning(
                    f"Ignoring result for rule {result.rule_id} passed with rule {rule.id}"
                )
                continue
            if not self._state.record(result, fired_at=now):
                continue
            logger.info(
                f"TRIGGER: {rule.name} on {result.device_id} "
                f"(action={rule.action.type})"
            )
            intents.append(
                ActionIntent(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    device_id=result.device_id,
                    action=rule.action,
                    sample=result.sample,
                    triggered_at=now,
                )
            )
        return intents

    def forget(self, rule_id: str) -> None:
        """Drop watermarks for a deleted rule."""
        removed = self._state.clear_rule(rule_id)
        if removed:
            logger.debug(f"Forgot {removed} watermark(s) for rule {rule_id}")
