"""Bounded alert queue for dashboard polling.

Alert-type intents are queued here and drained by whatever shows them to
an operator (a dashboard toast, a CLI printout). Entries expire after a
TTL so a consumer that stops polling does not get a flood on return.
"""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime, timedelta

from .rules.models import ActionIntent


class AlertQueue:
    """Async-safe bounded queue of pending alert intents.

    Features:
    - Bounded size (oldest entries are dropped first)
    - TTL-based expiration, measured from the intent's trigger time
    - Drain semantics (pop_all clears the queue)
    """

    def __init__(self, max_size: int = 50, ttl_seconds: int = 300):
        self._queue: deque[ActionIntent] = deque(maxlen=max_size)
        self._ttl = timedelta(seconds=ttl_seconds)
        self._lock = asyncio.Lock()

    async def push(self, intent: ActionIntent) -> None:
        async with self._lock:
            self._prune_expired()
            self._queue.append(intent)

    async def pop_all(self) -> list[ActionIntent]:
        """Drain and return all pending alerts."""
        async with self._lock:
            self._prune_expired()
            alerts = list(self._queue)
            self._queue.clear()
            return alerts

    async def has_pending(self) -> bool:
        async with self._lock:
            self._prune_expired()
            return len(self._queue) > 0

    async def size(self) -> int:
        async with self._lock:
            self._prune_expired()
            return len(self._queue)

    async def flush_rule(self, rule_id: str) -> int:
        """Remove pending alerts raised by a specific rule."""
        async with self._lock:
            before = len(self._queue)
            self._queue = deque(
                (a for a in self._queue if a.rule_id != rule_id),
                maxlen=self._queue.maxlen,
            )
            return before - len(self._queue)

    def _prune_expired(self) -> None:
        now = datetime.now()
        while self._queue and self._queue[0].triggered_at + self._ttl < now:
            self._queue.popleft()
