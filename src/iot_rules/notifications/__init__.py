"""Action delivery for triggered rules.

Routes each ActionIntent by its action type:
- "alert": queued for dashboard polling and logged
- "webhook": HTTP POST of a JSON payload to the action's URL
- "device_control": HTTP POST of {device_id, command} to the device-control endpoint
"""

from __future__ import annotations

__all__ = ["NotificationDispatcher"]

import logging

from ..alert_queue import AlertQueue
from ..config import NotificationsConfig
from ..exceptions import DeliveryError
from ..rules.models import ActionIntent
from .device_control import DeviceControlNotifier
from .webhook import WebhookNotifier

logger = logging.getLogger("iot-rules")


class NotificationDispatcher:
    """Routes action intents to the appropriate delivery channel."""

    def __init__(
        self,
        config: NotificationsConfig | None = None,
        alert_queue: AlertQueue | None = None,
    ):
        self._config = config or NotificationsConfig()
        self._alert_queue = alert_queue
        self._webhook = WebhookNotifier(
            default_url=self._config.webhook_url,
            timeout_seconds=self._config.webhook_timeout_seconds,
        )
        self._device_control = DeviceControlNotifier(
            endpoint_url=self._config.device_control_url,
            auth_token=self._config.device_control_token,
            timeout_seconds=self._config.webhook_timeout_seconds,
        )

    @property
    def alert_queue(self) -> AlertQueue | None:
        return self._alert_queue

    async def dispatch(self, intent: ActionIntent) -> bool:
        """Deliver one intent. Returns True if the channel accepted it."""
        action_type = intent.action.type
        logger.debug(
            f"Dispatching: type={action_type}, rule={intent.rule_name}, "
            f"device={intent.device_id}"
        )
        if action_type == "alert":
            if self._config.log_alerts:
                logger.warning(
                    f"ALERT [{intent.rule_name}] {intent.device_id}: "
                    f"{intent.action.message}"
                )
            if self._alert_queue is not None:
                await self._alert_queue.push(intent)
            return True
        if action_type == "webhook":
            return await self._webhook.notify(intent)
        if action_type == "device_control":
            return await self._device_control.notify(intent)
        raise DeliveryError(f"No delivery channel for action type {action_type!r}")

    async def close(self) -> None:
        """Clean up resources."""
        await self._webhook.close()
        await self._device_control.close()
