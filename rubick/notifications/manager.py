"""Notification dispatch for host load diagnostics.

A :class:`NotificationDispatcher` fans each :class:`LoadDiagnostic` out to
every configured :class:`NotificationChannel`. A failing or raising channel
never affects the others, and nothing raised by a channel reaches the
caller: diagnostics are advisory.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog

from rubick.models.resources import LoadDiagnostic
from rubick.observability.metrics import notifications_total

_log = structlog.get_logger(component="notifications.manager")


class NotificationChannel(ABC):
    """A destination for load diagnostics."""

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Short identifier used in log and metric labels."""

    @abstractmethod
    async def send(self, diagnostic: LoadDiagnostic) -> bool:
        """Deliver *diagnostic*. Returns True on success."""


class LogNotificationChannel(NotificationChannel):
    """Writes diagnostics to the structured log.

    The fallback channel when no interactive surface is attached.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger(component="notifications.log")

    @property
    def channel_name(self) -> str:
        return "log"

    async def send(self, diagnostic: LoadDiagnostic) -> bool:
        self._log.warning(
            "host_resources_partially_loaded",
            host_id=diagnostic.host_id,
            failed_kinds=[kind.value for kind in diagnostic.failed_kinds],
            message=diagnostic.summary(),
        )
        return True


class NotificationDispatcher:
    """Sends each diagnostic to all channels concurrently."""

    def __init__(self, channels: Sequence[NotificationChannel]) -> None:
        self._channels = list(channels)

    @property
    def channels(self) -> list[NotificationChannel]:
        return list(self._channels)

    async def dispatch(self, diagnostic: LoadDiagnostic) -> None:
        """Deliver *diagnostic* to every channel; never raises."""
        if not self._channels:
            return
        await asyncio.gather(*(self._send_one(channel, diagnostic) for channel in self._channels))

    async def _send_one(self, channel: NotificationChannel, diagnostic: LoadDiagnostic) -> None:
        try:
            success = await channel.send(diagnostic)
        except Exception as exc:
            _log.error(
                "notification_channel_error",
                channel=channel.channel_name,
                host_id=diagnostic.host_id,
                error=str(exc),
            )
            success = False
        notifications_total.labels(channel=channel.channel_name, success=str(success).lower()).inc()
