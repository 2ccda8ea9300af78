"""Notification sink port and its Slack incoming-webhook adapter.

The orchestrator only depends on :class:`NotificationSink`, so tests and
alternative chat backends can supply their own adapter.

Usage
-----
>>> sink = SlackWebhookSink(SlackWebhookConfig(webhook_url="https://hooks.slack.com/..."))
>>> isinstance(sink, NotificationSink)
True

"""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

from .errors import WebhookConfigError, WebhookDeliveryError

if typ.TYPE_CHECKING:
    from .blocks import NotificationDocument

_HTTP_ERROR_STATUS_THRESHOLD = 400
_DEFAULT_TIMEOUT_S = 10.0


@typ.runtime_checkable
class NotificationSink(typ.Protocol):
    """Port for delivering a rendered notification."""

    async def deliver(self, document: NotificationDocument) -> None:
        """Send ``document``, raising ``WebhookDeliveryError`` on failure."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class SlackWebhookConfig:
    """Endpoint and deadline for the Slack incoming webhook."""

    webhook_url: str
    timeout_s: float = _DEFAULT_TIMEOUT_S


class SlackWebhookSink:
    """POST notifications to a Slack incoming webhook."""

    def __init__(
        self,
        config: SlackWebhookConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the sink; an injected ``http_client`` is not closed."""
        if not config.webhook_url.strip():
            raise WebhookConfigError.empty_url()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def deliver(self, document: NotificationDocument) -> None:
        """POST ``document`` once; there is no retry."""
        try:
            response = await self._client.post(
                self._config.webhook_url,
                content=document.to_json(),
                headers={"Content-Type": "application/json"},
                timeout=self._config.timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise WebhookDeliveryError.timeout() from exc
        except httpx.RequestError as exc:
            raise WebhookDeliveryError.network_error(str(exc)) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise WebhookDeliveryError.http_error(response.status_code, response.text)
