"""Registered hosts and the console's current host."""

from __future__ import annotations

from rubick.api.client import ApiClient
from rubick.api.schemas import Host
from rubick.observability.logging import get_logger


class HostDirectory:
    """In-memory list of hosts known to the backend.

    After :meth:`load_hosts`, the default host (``is_default``, else the
    first host) becomes current unless a host was already chosen.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._hosts: list[Host] = []
        self._current_host_id: str = ""
        self.loading: bool = False
        self._log = get_logger("console.hosts")

    @property
    def hosts(self) -> list[Host]:
        return list(self._hosts)

    @property
    def current_host_id(self) -> str:
        return self._current_host_id

    @property
    def current_host(self) -> Host | None:
        return self.find(self._current_host_id)

    @property
    def default_host(self) -> Host | None:
        for host in self._hosts:
            if host.is_default:
                return host
        return self._hosts[0] if self._hosts else None

    def find(self, host_id: str) -> Host | None:
        for host in self._hosts:
            if host.id == host_id:
                return host
        return None

    def set_current_host(self, host_id: str) -> None:
        self._current_host_id = host_id

    async def load_hosts(self) -> list[Host]:
        """Fetch the host list from the backend.

        Raises:
            TransportError: if the backend cannot be reached.
        """
        self.loading = True
        try:
            self._hosts = await self._client.list_hosts()
        finally:
            self.loading = False

        if not self._current_host_id and self._hosts:
            default = self.default_host
            self._current_host_id = default.id if default is not None else self._hosts[0].id
        self._log.debug("hosts_loaded", count=len(self._hosts), current_host_id=self._current_host_id)
        return self.hosts
