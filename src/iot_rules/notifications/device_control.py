"""Device-control delivery.

Sends ``{device_id, command}`` to the configured device-control endpoint
(typically the dashboard backend or a gateway that relays the command to
the device).
"""

from __future__ import annotations

import logging

import aiohttp

from ..rules.models import ActionIntent, DeviceControlAction

logger = logging.getLogger("iot-rules")


class DeviceControlNotifier:
    """POST device commands produced by triggered rules."""

    def __init__(
        self,
        endpoint_url: str = "",
        auth_token: str = "",
        timeout_seconds: float = 15.0,
    ):
        self._endpoint_url = endpoint_url
        self._auth_token = auth_token
        self._timeout = timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            headers = {}
            if self._auth_token:
                headers["Authorization"] = f"Bearer {self._auth_token}"
            self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        return self._session

    async def notify(self, intent: ActionIntent) -> bool:
        if not isinstance(intent.action, DeviceControlAction):
            return False
        if not self._endpoint_url:
            logger.warning(
                f"Device control for {intent.action.target_device_id} skipped: "
                "no device_control_url configured"
            )
            return False

        payload = {
            "device_id": intent.action.target_device_id,
            "command": intent.action.command,
            "rule_id": intent.rule_id,
            "source_device_id": intent.device_id,
        }
        session = self._get_session()
        try:
            async with session.post(self._endpoint_url, json=payload) as resp:
                ok = resp.status < 400

            if ok:
                logger.info(
                    f"Device command sent: {intent.action.target_device_id} "
                    f"← {intent.action.command}"
                )
            else:
                logger.warning(
                    f"Device command failed: HTTP {resp.status} → {self._endpoint_url}"
                )
            return ok

        except Exception as e:
            logger.warning(f"Device command error: {e}")
            return False

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None
