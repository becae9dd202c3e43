"""Webhook delivery for rules whose action is a webhook call.

POSTs a structured JSON payload describing the trigger to the URL stored
on the rule's action (or the configured fallback URL).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import aiohttp

from ..rules.models import ActionIntent, WebhookAction

logger = logging.getLogger("iot-rules")


class WebhookNotifier:
    """POST structured JSON to a URL when a rule fires."""

    def __init__(self, default_url: str = "", timeout_seconds: float = 15.0):
        self._default_url = default_url
        self._timeout = timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _build_payload(self, intent: ActionIntent) -> dict:
        sample = intent.sample
        payload: dict = {
            "event": "rule_triggered",
            "intent_id": intent.id,
            "rule_id": intent.rule_id,
            "rule_name": intent.rule_name,
            "device_id": intent.device_id,
            "sample": {
                "temperature": sample.temperature,
                "humidity": sample.humidity,
                "timestamp": sample.timestamp.isoformat(),
            },
            "triggered_at": intent.triggered_at.isoformat(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return payload

    async def notify(self, intent: ActionIntent, url: str = "") -> bool:
        """POST the trigger to the webhook URL. Returns True on success."""
        action_url = intent.action.url if isinstance(intent.action, WebhookAction) else ""
        target_url = url or action_url or self._default_url
        if not target_url:
            return False

        session = self._get_session()
        payload = self._build_payload(intent)

        try:
            async with session.post(target_url, json=payload) as resp:
                ok = resp.status < 400

            if ok:
                logger.info(f"Webhook sent: {intent.rule_name} → {target_url}")
            else:
                logger.warning(f"Webhook failed: HTTP {resp.status} → {target_url}")
            return ok

        except Exception as e:
            logger.warning(f"Webhook error: {e}")
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
