"""Application wiring for the rubick console.

Startup order: config → logging → REST client → notifications → host cache
              → host directory → resource tree

Shutdown runs in reverse order. Each component's teardown error is caught and
logged independently so one failure does not leave the others open.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from rubick.api.client import ApiClient
from rubick.cache.host_cache import HostResourceCache
from rubick.config import load_config
from rubick.console.hosts import HostDirectory
from rubick.console.tree import ResourceTree
from rubick.models.config import RubickConfig
from rubick.notifications.manager import LogNotificationChannel, NotificationChannel, NotificationDispatcher
from rubick.notifications.webhook import WebhookNotificationChannel
from rubick.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_T = TypeVar("_T")


class ConsoleNotStartedError(RuntimeError):
    """Raised when a component is accessed before :meth:`RubickConsole.start`."""


class RubickConsole:
    """Application root. Owns every component and coordinates their lifecycle.

    ``start()`` and ``stop()`` are idempotent; stopping a console that was
    never started is safe.

    Example::

        console = RubickConsole()
        await console.start()
        try:
            await console.cache.load("host-1")
        finally:
            await console.stop()
    """

    def __init__(self, config: RubickConfig | None = None, json_logs: bool = True) -> None:
        self.config = config
        self._json_logs = json_logs

        self._client: ApiClient | None = None
        self._dispatcher: NotificationDispatcher | None = None
        self._cache: HostResourceCache | None = None
        self._hosts: HostDirectory | None = None
        self._tree: ResourceTree | None = None

        self._running = False
        self._log: FilteringBoundLogger | None = None

    # ------------------------------------------------------------------
    # Component access
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def client(self) -> ApiClient:
        return _require(self._client, "client")

    @property
    def cache(self) -> HostResourceCache:
        return _require(self._cache, "cache")

    @property
    def hosts(self) -> HostDirectory:
        return _require(self._hosts, "hosts")

    @property
    def tree(self) -> ResourceTree:
        return _require(self._tree, "tree")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Build all components in dependency order.

        Raises:
            ValueError: if the environment configuration is invalid.
        """
        if self._running:
            return

        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, json_output=self._json_logs)
        self._log = get_logger("app")

        # --- 3. REST client ---------------------------------------------
        self._client = ApiClient(
            base_url=self.config.api.url,
            timeout=float(self.config.api.timeout_seconds),
            token=self.config.api.token,
        )

        # --- 4. Notifications -------------------------------------------
        self._dispatcher = NotificationDispatcher(self._build_channels(self.config))

        # --- 5. Host resource cache -------------------------------------
        self._cache = HostResourceCache(self._client.fetchers(), on_diagnostic=self._dispatcher.dispatch)

        # --- 6. Console state -------------------------------------------
        self._hosts = HostDirectory(self._client)
        self._tree = ResourceTree(self._cache)

        self._running = True
        self._log.info(
            "rubick console started",
            api_url=self.config.api.url,
            channels=[channel.channel_name for channel in self._dispatcher.channels],
        )

    async def stop(self) -> None:
        """Tear down components in reverse startup order."""
        if not self._running:
            return
        log = self._log or get_logger("app")
        self._running = False

        self._tree = None
        self._hosts = None
        if self._cache is not None:
            try:
                await self._cache.close()
            except Exception as exc:
                log.error("component stop raised an error", component="cache", error=str(exc))
            self._cache = None
        self._dispatcher = None
        if self._client is not None:
            try:
                await self._client.close()
            except Exception as exc:
                log.error("component stop raised an error", component="client", error=str(exc))
            self._client = None

        log.info("rubick console stopped")

    def _build_channels(self, config: RubickConfig) -> list[NotificationChannel]:
        channels: list[NotificationChannel] = []
        if config.notifications.log_enabled:
            channels.append(LogNotificationChannel())
        if config.notifications.webhook_url:
            channels.append(
                WebhookNotificationChannel(
                    url=config.notifications.webhook_url,
                    timeout=float(config.notifications.webhook_timeout_seconds),
                )
            )
        return channels


def _require(component: _T | None, name: str) -> _T:
    if component is None:
        raise ConsoleNotStartedError(f"Console component '{name}' is not available; call start() first")
    return component
