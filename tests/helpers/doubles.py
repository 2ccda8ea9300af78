"""Test doubles for the notification pipeline's ports."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

from buildherald.cloudflare.client import BuildDetails, WorkersSubdomain

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from buildherald.slack.blocks import NotificationDocument
    from buildherald.slack.errors import WebhookDeliveryError

type Handler = cabc.Callable[[httpx.Request], httpx.Response]


@dataclasses.dataclass(slots=True)
class RecordingSink:
    """Notification sink that stores documents instead of posting them."""

    documents: list[NotificationDocument] = dataclasses.field(default_factory=list)
    fail_with: WebhookDeliveryError | None = None

    async def deliver(self, document: NotificationDocument) -> None:
        """Record ``document`` or raise the configured failure."""
        if self.fail_with is not None:
            raise self.fail_with
        self.documents.append(document)


@dataclasses.dataclass(slots=True)
class FakeQueueMessage:
    """Queue message double that records acknowledgement."""

    body: object
    acked: bool = False

    def ack(self) -> None:
        """Mark the message acknowledged."""
        self.acked = True


@dataclasses.dataclass(slots=True)
class FakeBuildsAPI:
    """In-memory ``BuildsAPI`` with per-call failures and a call log."""

    preview_url: str | None = None
    subdomain: str | None = "acme"
    logs: list[str] = dataclasses.field(default_factory=list)
    failures: dict[str, Exception] = dataclasses.field(default_factory=dict)
    calls: list[str] = dataclasses.field(default_factory=list)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    async def get_build(self, account_id: str, build_uuid: str) -> BuildDetails:
        """Return the configured preview URL."""
        self._record("get_build")
        return BuildDetails(preview_url=self.preview_url)

    async def get_workers_subdomain(self, account_id: str) -> WorkersSubdomain:
        """Return the configured subdomain."""
        self._record("get_workers_subdomain")
        return WorkersSubdomain(subdomain=self.subdomain)

    async def fetch_build_logs(self, account_id: str, build_uuid: str) -> list[str]:
        """Return the configured log lines."""
        self._record("fetch_build_logs")
        return list(self.logs)


@dataclasses.dataclass(slots=True)
class RecordedRequests:
    """Requests observed by a mock transport."""

    requests: list[httpx.Request] = dataclasses.field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        """Return request paths in call order."""
        return [request.url.path for request in self.requests]


def make_http_client(handler: Handler) -> tuple[httpx.AsyncClient, RecordedRequests]:
    """Return an ``AsyncClient`` backed by ``handler`` plus its request log."""
    recorded = RecordedRequests()

    def _recording_handler(request: httpx.Request) -> httpx.Response:
        recorded.requests.append(request)
        return handler(request)

    transport = httpx.MockTransport(_recording_handler)
    return httpx.AsyncClient(transport=transport), recorded
