"""Tests for choosing the alert sink from settings."""

import pytest

from smart_alerts.core.errors import ConfigurationError
from smart_alerts.core.settings import load_settings
from smart_alerts.framework.alerts import ConsoleChannel, TelegramChannel, WebhookChannel, build_channel


class TestBuildChannel:
    def test_nothing_configured(self):
        assert build_channel(load_settings()) is None

    def test_telegram(self):
        settings = load_settings(telegram_bot_token="123:abc", telegram_chat_id="-100", delivery_timeout_seconds=4)
        channel = build_channel(settings)
        assert isinstance(channel, TelegramChannel)
        assert channel.chat_id == "-100"
        assert channel._timeout == 4

    def test_telegram_wins_over_webhook(self):
        settings = load_settings(
            telegram_bot_token="123:abc", telegram_chat_id="-100", webhook_url="https://example.com"
        )
        assert isinstance(build_channel(settings), TelegramChannel)

    def test_webhook(self):
        channel = build_channel(load_settings(webhook_url="https://example.com/hook"))
        assert isinstance(channel, WebhookChannel)
        assert channel.url == "https://example.com/hook"

    def test_console_override(self):
        settings = load_settings(telegram_bot_token="123:abc", telegram_chat_id="-100")
        assert isinstance(build_channel(settings, console=True), ConsoleChannel)

    @pytest.mark.parametrize(
        "overrides",
        [{"telegram_bot_token": "123:abc"}, {"telegram_chat_id": "-100"}],
    )
    def test_half_configured_telegram_is_an_error(self, overrides):
        with pytest.raises(ConfigurationError):
            build_channel(load_settings(**overrides))
