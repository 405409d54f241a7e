"""Unit tests for rubick.app — RubickConsole wiring and lifecycle."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, patch

import pytest

from rubick.app import ConsoleNotStartedError, RubickConsole
from rubick.models.config import NotificationConfig, RubickConfig
from rubick.notifications.manager import LogNotificationChannel
from rubick.notifications.webhook import WebhookNotificationChannel


@pytest.fixture(autouse=True)
def _no_logging_setup() -> Iterator[None]:
    with patch("rubick.app.setup_logging"):
        yield


def _config(log_enabled: bool = True, webhook_url: str = "") -> RubickConfig:
    return RubickConfig(notifications=NotificationConfig(log_enabled=log_enabled, webhook_url=webhook_url))


# ---------------------------------------------------------------------------
# Component access
# ---------------------------------------------------------------------------


class TestComponentAccess:
    def test_components_unavailable_before_start(self) -> None:
        console = RubickConsole(_config())

        for name in ("client", "cache", "hosts", "tree"):
            with pytest.raises(ConsoleNotStartedError, match=name):
                getattr(console, name)

    @pytest.mark.asyncio
    async def test_components_available_after_start(self) -> None:
        console = RubickConsole(_config())
        await console.start()
        try:
            assert console.running is True
            assert console.client.base_url == "http://localhost:8080/api/v1"
            assert len(console.cache) == 0
            assert console.hosts.hosts == []
            assert console.tree.selection is None
        finally:
            await console.stop()

    @pytest.mark.asyncio
    async def test_stop_releases_components(self) -> None:
        console = RubickConsole(_config())
        await console.start()
        await console.stop()

        assert console.running is False
        with pytest.raises(ConsoleNotStartedError):
            _ = console.cache


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        console = RubickConsole(_config())
        await console.start()
        cache = console.cache
        await console.start()
        try:
            assert console.cache is cache
        finally:
            await console.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start_is_safe(self) -> None:
        await RubickConsole(_config()).stop()

    @pytest.mark.asyncio
    async def test_start_loads_config_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUBICK_API_URL", "https://rubick.example.com/")
        console = RubickConsole()
        await console.start()
        try:
            assert console.config is not None
            assert console.client.base_url == "https://rubick.example.com/api/v1"
        finally:
            await console.stop()

    @pytest.mark.asyncio
    async def test_cache_close_error_does_not_block_client_close(self) -> None:
        console = RubickConsole(_config())
        await console.start()
        client = console.client

        with (
            patch.object(console.cache, "close", AsyncMock(side_effect=RuntimeError("boom"))),
            patch.object(client, "close", AsyncMock()) as mock_close,
        ):
            await console.stop()

        mock_close.assert_awaited_once()
        assert console.running is False


# ---------------------------------------------------------------------------
# Notification channels
# ---------------------------------------------------------------------------


class TestChannels:
    def test_log_channel_only_by_default(self) -> None:
        channels = RubickConsole()._build_channels(_config())
        assert [type(ch) for ch in channels] == [LogNotificationChannel]

    def test_webhook_channel_when_url_set(self) -> None:
        channels = RubickConsole()._build_channels(_config(webhook_url="https://hooks.example.com/x"))
        assert [type(ch) for ch in channels] == [LogNotificationChannel, WebhookNotificationChannel]

    def test_no_channels_when_all_disabled(self) -> None:
        assert RubickConsole()._build_channels(_config(log_enabled=False)) == []
