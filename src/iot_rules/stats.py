"""Evaluation and delivery statistics."""

from __future__ import annotations

from datetime import datetime


class MonitorStats:
    """Track evaluation passes, triggers, and delivery outcomes."""

    def __init__(self) -> None:
        self._start_time = datetime.now()
        self.passes = 0
        self.samples = 0
        self.evaluations = 0
        self.matches = 0
        self.intents = 0
        self.resolved = 0
        self.delivered = 0
        self.failed = 0
        self.last_pass_at: datetime | None = None

    def record_pass(
        self, samples: int, evaluations: int, matches: int, intents: int, resolved: int
    ) -> None:
        self.passes += 1
        self.samples += samples
        self.evaluations += evaluations
        self.matches += matches
        self.intents += intents
        self.resolved += resolved
        self.last_pass_at = datetime.now()

    def record_delivery(self, ok: bool) -> None:
        if ok:
            self.delivered += 1
        else:
            self.failed += 1

    def summary(self) -> dict:
        uptime = (datetime.now() - self._start_time).total_seconds()
        return {
            "uptime_seconds": round(uptime, 1),
            "passes": self.passes,
            "samples": self.samples,
            "evaluations": self.evaluations,
            "matches": self.matches,
            "intents": self.intents,
            "resolved": self.resolved,
            "delivered": self.delivered,
            "failed": self.failed,
            "last_pass_at": self.last_pass_at.isoformat() if self.last_pass_at else None,
        }
