"""Best-effort enrichment of build events with Cloudflare API data.

Successful builds get a preview or live URL; failed builds get their full
log transcript. Every API failure is caught here, logged, and turned into
"no data" so a flaky API only ever makes a notification less detailed.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from buildherald.events.state import BuildState

from .errors import CloudflareError
from .observability import EnrichmentEventLogger

if typ.TYPE_CHECKING:
    from .client import BuildsAPI

_LIVE_URL_TEMPLATE = "https://{worker_name}.{subdomain}.workers.dev"


@dataclasses.dataclass(frozen=True, slots=True)
class EnrichmentResult:
    """Out-of-band data gathered for one message.

    Attributes
    ----------
    preview_url
        Preview deployment URL for non-production builds.
    live_url
        ``workers.dev`` URL synthesized from the account subdomain.
    logs
        Full log transcript in order; empty when not fetched or on failure.

    """

    preview_url: str | None = None
    live_url: str | None = None
    logs: tuple[str, ...] = ()


EMPTY_ENRICHMENT = EnrichmentResult()


def live_url_for(worker_name: str, subdomain: str) -> str:
    """Return the ``workers.dev`` URL for a Worker on an account subdomain."""
    return _LIVE_URL_TEMPLATE.format(worker_name=worker_name, subdomain=subdomain)


class BuildEnricher:
    """Fetch deployment URLs and logs for a classified build.

    Parameters
    ----------
    api
        Cloudflare API client, or ``None`` when no API token is configured,
        in which case enrichment is skipped entirely.
    event_logger
        Structured logger for enrichment events.

    """

    def __init__(
        self,
        api: BuildsAPI | None,
        *,
        event_logger: EnrichmentEventLogger | None = None,
    ) -> None:
        """Store the API client and event logger."""
        self._api = api
        self._events = event_logger or EnrichmentEventLogger()

    @property
    def enabled(self) -> bool:
        """Return True when an API client is available."""
        return self._api is not None

    async def enrich(
        self,
        state: BuildState,
        *,
        account_id: str | None,
        build_uuid: str | None,
        worker_name: str | None,
    ) -> EnrichmentResult:
        """Return enrichment data appropriate for ``state``.

        Canceled and unknown builds need neither URLs nor logs, so no calls
        are made for them. This method never raises ``CloudflareError``.
        """
        if state not in (BuildState.SUCCEEDED, BuildState.FAILED):
            return EMPTY_ENRICHMENT
        if self._api is None:
            self._events.log_skipped(build_uuid=build_uuid, reason="no_api_token")
            return EMPTY_ENRICHMENT
        if not account_id or not build_uuid:
            self._events.log_skipped(build_uuid=build_uuid, reason="missing_identifiers")
            return EMPTY_ENRICHMENT

        if state is BuildState.SUCCEEDED:
            return await self._resolve_urls(self._api, account_id, build_uuid, worker_name)
        return await self._fetch_logs(self._api, account_id, build_uuid)

    async def _resolve_urls(
        self,
        api: BuildsAPI,
        account_id: str,
        build_uuid: str,
        worker_name: str | None,
    ) -> EnrichmentResult:
        preview_url: str | None = None
        try:
            details = await api.get_build(account_id, build_uuid)
        except CloudflareError as exc:
            self._events.log_failed(build_uuid=build_uuid, operation="get_build", error=exc)
        else:
            preview_url = details.preview_url or None

        live_url: str | None = None
        if preview_url is None and worker_name:
            live_url = await self._resolve_live_url(api, account_id, build_uuid, worker_name)

        self._events.log_urls_resolved(
            build_uuid=build_uuid, preview_url=preview_url, live_url=live_url
        )
        return EnrichmentResult(preview_url=preview_url, live_url=live_url)

    async def _resolve_live_url(
        self,
        api: BuildsAPI,
        account_id: str,
        build_uuid: str,
        worker_name: str,
    ) -> str | None:
        try:
            subdomain = await api.get_workers_subdomain(account_id)
        except CloudflareError as exc:
            self._events.log_failed(
                build_uuid=build_uuid, operation="get_workers_subdomain", error=exc
            )
            return None
        if not subdomain.subdomain:
            return None
        return live_url_for(worker_name, subdomain.subdomain)

    async def _fetch_logs(
        self,
        api: BuildsAPI,
        account_id: str,
        build_uuid: str,
    ) -> EnrichmentResult:
        try:
            lines = await api.fetch_build_logs(account_id, build_uuid)
        except CloudflareError as exc:
            self._events.log_failed(
                build_uuid=build_uuid, operation="fetch_build_logs", error=exc
            )
            return EMPTY_ENRICHMENT
        self._events.log_logs_fetched(build_uuid=build_uuid, line_count=len(lines))
        return EnrichmentResult(logs=tuple(lines))
