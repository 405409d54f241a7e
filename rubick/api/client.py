"""Async REST client for the container platform backend.

Wraps ``httpx.AsyncClient`` and decodes the backend's uniform response
envelope. Only read operations are exposed: host lookup and the five
per-host resource listings that feed the host resource cache.

Every failure (connection error, timeout, non-2xx status, non-success
envelope code, undecodable payload) is raised as :class:`TransportError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from rubick.api.schemas import (
    ApiEnvelope,
    ComposeProject,
    Container,
    Host,
    Image,
    Network,
    Volume,
)
from rubick.models.resources import ResourceKind
from rubick.observability.logging import get_logger
from rubick.observability.metrics import api_requests_total

if TYPE_CHECKING:
    from rubick.cache.host_cache import Fetcher

_API_PREFIX = "/api/v1"
_DEFAULT_TIMEOUT_S: float = 30.0

_M = TypeVar("_M", bound=BaseModel)

_log = get_logger("api.client")


class TransportError(Exception):
    """A backend request failed at the network, HTTP or envelope level.

    Attributes:
        status_code: HTTP status, when a response was received.
        code: Envelope ``code``, when the backend answered with an error envelope.
    """

    def __init__(self, message: str, status_code: int | None = None, code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ApiClient:
    """Read-only client for the backend REST API.

    Example::

        client = ApiClient("http://localhost:8080")
        containers = await client.list_containers("host-1")
        await client.close()

    An externally created ``httpx.AsyncClient`` may be injected; it must
    already carry the ``/api/v1`` base URL and is not closed by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = _DEFAULT_TIMEOUT_S,
        token: str = "",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        if client is None:
            headers = {"Accept": "application/json"}
            if token:
                headers["Authorization"] = f"Bearer {token}"
            client = httpx.AsyncClient(
                base_url=base_url.rstrip("/") + _API_PREFIX,
                timeout=timeout,
                headers=headers,
            )
        self._client = client

    @property
    def base_url(self) -> str:
        return str(self._client.base_url).rstrip("/")

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Hosts
    # ------------------------------------------------------------------

    async def health(self) -> bool:
        """Return True when the backend answers its health endpoint."""
        try:
            response = await self._client.get("/health")
        except httpx.HTTPError as exc:
            _log.debug("api_health_unreachable", error=str(exc))
            return False
        return response.status_code == 200

    async def list_hosts(self) -> list[Host]:
        return await self._get_list("/hosts", Host, label="/hosts")

    async def get_host(self, host_id: str) -> Host:
        data = await self._request(f"/hosts/{host_id}", label="/hosts/{id}")
        return _validate(Host, data, "/hosts/{id}")

    # ------------------------------------------------------------------
    # Per-host resource listings
    # ------------------------------------------------------------------

    async def list_containers(self, host_id: str, all: bool = True) -> list[Container]:  # noqa: A002
        """List containers on *host_id*; stopped containers are included unless ``all`` is False."""
        params = {"host_id": host_id, "all": "true" if all else "false"}
        return await self._get_list("/containers", Container, params=params)

    async def list_images(self, host_id: str) -> list[Image]:
        return await self._get_list("/images", Image, params={"host_id": host_id})

    async def list_volumes(self, host_id: str) -> list[Volume]:
        return await self._get_list("/volumes", Volume, params={"host_id": host_id})

    async def list_networks(self, host_id: str) -> list[Network]:
        return await self._get_list("/networks", Network, params={"host_id": host_id})

    async def list_compose_projects(self, host_id: str) -> list[ComposeProject]:
        return await self._get_list("/compose/projects", ComposeProject, params={"host_id": host_id})

    def fetchers(self) -> dict[ResourceKind, Fetcher]:
        """Return the five listing calls keyed by resource kind, for ``HostResourceCache``."""
        return {
            ResourceKind.CONTAINER: self.list_containers,
            ResourceKind.IMAGE: self.list_images,
            ResourceKind.VOLUME: self.list_volumes,
            ResourceKind.NETWORK: self.list_networks,
            ResourceKind.COMPOSE_PROJECT: self.list_compose_projects,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_list(
        self,
        path: str,
        model: type[_M],
        params: Mapping[str, str] | None = None,
        label: str | None = None,
    ) -> list[_M]:
        label = label or path
        data = await self._request(path, params=params, label=label)
        if data is None:
            return []
        if not isinstance(data, list):
            raise TransportError(f"Expected a list from {path}, got {type(data).__name__}")
        return [_validate(model, item, label) for item in data]

    async def _request(
        self,
        path: str,
        params: Mapping[str, str] | None = None,
        label: str | None = None,
    ) -> object:
        """GET *path* and return the envelope's ``data`` field."""
        label = label or path
        try:
            response = await self._client.get(path, params=dict(params or {}))
        except httpx.TimeoutException as exc:
            api_requests_total.labels(path=label, outcome="timeout").inc()
            raise TransportError(f"Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            api_requests_total.labels(path=label, outcome="network_error").inc()
            raise TransportError(f"Request to {path} failed: {exc}") from exc

        envelope = _decode_envelope(response, path)
        if response.is_error:
            api_requests_total.labels(path=label, outcome="http_error").inc()
            message = envelope.message if envelope is not None and envelope.message else response.reason_phrase
            raise TransportError(
                f"HTTP {response.status_code} from {path}: {message}",
                status_code=response.status_code,
                code=envelope.code if envelope is not None else None,
            )
        if envelope is None:
            api_requests_total.labels(path=label, outcome="bad_payload").inc()
            raise TransportError(f"Undecodable response from {path}", status_code=response.status_code)
        if not envelope.ok:
            api_requests_total.labels(path=label, outcome="api_error").inc()
            raise TransportError(
                envelope.message or "Request failed",
                status_code=response.status_code,
                code=envelope.code,
            )

        api_requests_total.labels(path=label, outcome="ok").inc()
        return envelope.data


def _decode_envelope(response: httpx.Response, path: str) -> ApiEnvelope | None:
    """Parse the response body as an envelope; None if it is not one."""
    try:
        return ApiEnvelope.model_validate(response.json())
    except (ValueError, ValidationError):
        _log.debug("api_envelope_undecodable", path=path, status_code=response.status_code, body=response.text[:200])
        return None


def _validate(model: type[_M], item: object, path: str) -> _M:
    try:
        return model.model_validate(item)
    except ValidationError as exc:
        raise TransportError(f"Invalid {model.__name__} record from {path}: {exc.error_count()} error(s)") from exc
