"""Generic JSON webhook notification channel.

POSTs each load diagnostic as a flat JSON object, for chat bridges or
incident tooling that accept arbitrary webhooks.
"""

from __future__ import annotations

import structlog

from rubick.models.resources import LoadDiagnostic
from rubick.notifications.manager import NotificationChannel

_log = structlog.get_logger(component="notifications.webhook")


class WebhookNotificationChannel(NotificationChannel):
    """Delivers diagnostics to an HTTP endpoint.

    Args:
        url: Destination URL.
        timeout: HTTP request timeout in seconds. Defaults to 10.
    """

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._timeout = timeout

    @property
    def channel_name(self) -> str:
        return "webhook"

    async def send(self, diagnostic: LoadDiagnostic) -> bool:
        """POST *diagnostic*. Returns True on any 2xx response."""
        import httpx

        payload = self._build_payload(diagnostic)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload)
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_unexpected_status",
                    status_code=response.status_code,
                    body=response.text[:200],
                    host_id=diagnostic.host_id,
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", host_id=diagnostic.host_id)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc), host_id=diagnostic.host_id)
            return False

    def _build_payload(self, diagnostic: LoadDiagnostic) -> dict[str, object]:
        return {
            "event": "host_resources_partially_loaded",
            "host_id": diagnostic.host_id,
            "generation": diagnostic.generation,
            "failed_kinds": [kind.value for kind in diagnostic.failed_kinds],
            "errors": {kind.value: diagnostic.failures[kind] for kind in diagnostic.failed_kinds},
            "summary": diagnostic.summary(),
            "occurred_at": diagnostic.occurred_at.isoformat(),
        }
