"""Tests for webhook delivery."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from iot_rules.notifications.webhook import WebhookNotifier
from iot_rules.rules.models import (
    ActionIntent,
    AlertAction,
    TelemetrySample,
    WebhookAction,
)


def _make_intent(url: str = "https://example.com/hook") -> ActionIntent:
    return ActionIntent(
        rule_id="r_test",
        rule_name="Test Rule",
        device_id="dev1",
        action=WebhookAction(url=url),
        sample=TelemetrySample(device_id="dev1", temperature=32.5, humidity=41),
    )


def _mock_session(captured: dict, status: int = 200) -> AsyncMock:
    @asynccontextmanager
    async def mock_post(url, json=None):
        captured["url"] = url
        captured["json"] = json
        resp = AsyncMock()
        resp.status = status
        yield resp

    session = AsyncMock()
    session.post = mock_post
    return session


class TestWebhookNotifier:
    @pytest.mark.asyncio
    async def test_no_url_returns_false(self):
        notifier = WebhookNotifier()
        intent = ActionIntent(
            rule_id="r",
            device_id="dev1",
            action=AlertAction(),
            sample=TelemetrySample(device_id="dev1"),
        )
        assert await notifier.notify(intent) is False
        await notifier.close()

    @pytest.mark.asyncio
    async def test_json_payload_structure(self):
        notifier = WebhookNotifier()
        captured: dict = {}
        notifier._session = _mock_session(captured)

        intent = _make_intent()
        result = await notifier.notify(intent)

        assert result is True
        assert captured["url"] == "https://example.com/hook"
        payload = captured["json"]
        assert payload["event"] == "rule_triggered"
        assert payload["intent_id"] == intent.id
        assert payload["rule_id"] == "r_test"
        assert payload["rule_name"] == "Test Rule"
        assert payload["device_id"] == "dev1"
        assert payload["sample"]["temperature"] == 32.5
        assert payload["sample"]["humidity"] == 41
        assert "timestamp" in payload
        assert "triggered_at" in payload
        await notifier.close()

    @pytest.mark.asyncio
    async def test_explicit_url_overrides_action_url(self):
        notifier = WebhookNotifier()
        captured: dict = {}
        notifier._session = _mock_session(captured)
        await notifier.notify(_make_intent(), url="https://other.test/x")
        assert captured["url"] == "https://other.test/x"

    @pytest.mark.asyncio
    async def test_default_url_used_for_non_webhook_actions(self):
        notifier = WebhookNotifier(default_url="https://fallback.test")
        captured: dict = {}
        notifier._session = _mock_session(captured)
        intent = ActionIntent(
            rule_id="r",
            device_id="dev1",
            action=AlertAction(),
            sample=TelemetrySample(device_id="dev1"),
        )
        assert await notifier.notify(intent) is True
        assert captured["url"] == "https://fallback.test"

    @pytest.mark.asyncio
    async def test_http_error_returns_false(self):
        notifier = WebhookNotifier()
        notifier._session = _mock_session({}, status=500)
        assert await notifier.notify(_make_intent()) is False

    @pytest.mark.asyncio
    async def test_exception_returns_false(self):
        notifier = WebhookNotifier()
        session = AsyncMock()
        session.post = MagicMock(side_effect=ConnectionError("down"))
        notifier._session = session
        assert await notifier.notify(_make_intent()) is False

    @pytest.mark.asyncio
    async def test_close_resets_session(self):
        notifier = WebhookNotifier()
        session = AsyncMock()
        notifier._session = session
        await notifier.close()
        session.close.assert_awaited_once()
        assert notifier._session is None
