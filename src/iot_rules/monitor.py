"""Rule monitor: one evaluation pass per telemetry tick.

Each pass takes a snapshot of the rule store, evaluates it against the
tick's samples, and runs edge detection. The pass itself is synchronous
and does no I/O; delivering the resulting intents happens afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .exceptions import DeliveryError
from .notifications import NotificationDispatcher
from .rules.dispatcher import ActionDispatcher
from .rules.engine import RulesEngine
from .rules.models import ActionIntent, TelemetrySample
from .rules.store import RuleStore
from .stats import MonitorStats
from .telemetry import group_by_device

logger = logging.getLogger("iot-rules")


class RuleMonitor:
    """Ties the rule store, engine, dispatcher, and delivery together."""

    def __init__(
        self,
        store: RuleStore,
        engine: RulesEngine | None = None,
        dispatcher: ActionDispatcher | None = None,
        notifier: NotificationDispatcher | None = None,
        stats: MonitorStats | None = None,
    ) -> None:
        self._store = store
        self._engine = engine or RulesEngine()
        self._dispatcher = dispatcher or ActionDispatcher()
        self._notifier = notifier
        self._stats = stats or MonitorStats()

    @property
    def dispatcher(self) -> ActionDispatcher:
        return self._dispatcher

    @property
    def stats(self) -> MonitorStats:
        return self._stats

    def run_pass(self, samples: Iterable[TelemetrySample]) -> list[ActionIntent]:
        """Evaluate one tick against a snapshot of the rules."""
        snapshot = self._store.snapshot()
        live_ids = {rule.id for rule in snapshot}
        for stale_id in self._dispatcher.state.rule_ids() - live_ids:
            self._dispatcher.forget(stale_id)

        samples = list(samples)
        by_device = group_by_device(samples)

        intents: list[ActionIntent] = []
        evaluations = 0
        matches = 0
        for rule in snapshot:
            results = self._engine.evaluate(rule, by_device)
            evaluations += len(results)
            matches += sum(1 for r in results if r.matched)
            intents.extend(self._dispatcher.dispatch(rule, results))

        resolved = self._dispatcher.state.pop_resolved()
        for result in resolved:
            logger.info(f"RESOLVED: rule {result.rule_id} on {result.device_id}")

        self._stats.record_pass(
            samples=len(samples),
            evaluations=evaluations,
            matches=matches,
            intents=len(intents),
            resolved=len(resolved),
        )
        return intents

    async def deliver(self, intents: list[ActionIntent]) -> int:
        """Hand intents to the notifier. Returns the number delivered."""
        if self._notifier is None:
            return 0
        delivered = 0
        for intent in intents:
            try:
                ok = await self._notifier.dispatch(intent)
            except DeliveryError as e:
                logger.error(f"Delivery failed for {intent.rule_name}: {e}")
                ok = False
            self._stats.record_delivery(ok)
            delivered += int(ok)
        return delivered

    async def process(self, samples: Iterable[TelemetrySample]) -> list[ActionIntent]:
        """Run a pass and deliver whatever it triggered."""
        intents = self.run_pass(samples)
        if intents:
            await self.deliver(intents)
        return intents

    async def close(self) -> None:
        if self._notifier is not None:
            await self._notifier.close()
