"""Cloudflare Builds API client used for notification enrichment."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

import httpx
import msgspec

from buildherald.logging import get_logger, log_warning

from .errors import CloudflareAPIError, CloudflareConfigError, CloudflareResponseShapeError

logger = get_logger(__name__)

DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"
_DEFAULT_TIMEOUT_S = 10.0
_DEFAULT_MAX_LOG_PAGES = 50
_HTTP_ERROR_STATUS_THRESHOLD = 400

# A log line is ``[lineNumber_or_timestamp, text]``.
_LOG_LINE_TEXT_INDEX = 1


class BuildsAPI(typ.Protocol):
    """Interface the enricher needs from the Cloudflare API."""

    async def get_build(self, account_id: str, build_uuid: str) -> BuildDetails:
        """Return details for one build."""
        ...

    async def get_workers_subdomain(self, account_id: str) -> WorkersSubdomain:
        """Return the account's ``workers.dev`` subdomain."""
        ...

    async def fetch_build_logs(self, account_id: str, build_uuid: str) -> list[str]:
        """Return every log line for one build."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class CloudflareBuildsConfig:
    """Configuration for :class:`CloudflareBuildsClient`.

    Attributes
    ----------
    token
        API token with Workers Builds read permission.
    api_base
        Base URL of the v4 API.
    timeout_s
        Deadline applied to every request.
    max_log_pages
        Upper bound on log pages fetched for one build, so a misbehaving
        cursor cannot keep the loop alive.
    user_agent
        ``User-Agent`` header sent with every request.

    """

    token: str
    api_base: str = DEFAULT_API_BASE
    timeout_s: float = _DEFAULT_TIMEOUT_S
    max_log_pages: int = _DEFAULT_MAX_LOG_PAGES
    user_agent: str = "buildherald/0.1"


class BuildDetails(msgspec.Struct, kw_only=True, frozen=True):
    """Subset of ``GET /builds/builds/{uuid}`` the notifier uses."""

    preview_url: str | None = None


class WorkersSubdomain(msgspec.Struct, kw_only=True, frozen=True):
    """Result of ``GET /workers/subdomain``."""

    subdomain: str | None = None


class BuildLogPage(msgspec.Struct, kw_only=True, frozen=True):
    """One page of ``GET /builds/builds/{uuid}/logs``."""

    lines: list[typ.Any] | None = None
    truncated: bool | None = None
    cursor: str | None = None

    def texts(self) -> list[str]:
        """Return the text of each line, skipping entries without text."""
        texts: list[str] = []
        for entry in self.lines or ():
            if isinstance(entry, str):
                texts.append(entry)
            elif (
                isinstance(entry, list)
                and len(entry) > _LOG_LINE_TEXT_INDEX
                and isinstance(entry[_LOG_LINE_TEXT_INDEX], str)
            ):
                texts.append(entry[_LOG_LINE_TEXT_INDEX])
        return texts

    def next_cursor(self) -> str | None:
        """Return the cursor for the next page, or ``None`` at end of stream.

        A page that claims to be truncated but carries no cursor is treated
        as the last page rather than re-requested.
        """
        if not self.truncated:
            return None
        return self.cursor or None


def _parse_envelope(body: bytes) -> dict[str, typ.Any]:
    """Decode a v4 API envelope and return its ``result`` object."""
    try:
        payload = msgspec.json.decode(body)
    except msgspec.DecodeError as exc:
        raise CloudflareResponseShapeError.invalid_json(body) from exc

    if not isinstance(payload, dict):
        raise CloudflareResponseShapeError.missing("response")

    if payload.get("success") is False:
        raise CloudflareAPIError.unsuccessful(payload.get("errors"))

    result = payload.get("result")
    if not isinstance(result, dict):
        raise CloudflareResponseShapeError.missing("result")
    return result


def _convert[T](result: dict[str, typ.Any], model: type[T], *, field: str) -> T:
    try:
        return msgspec.convert(result, type=model)
    except msgspec.ValidationError as exc:
        raise CloudflareResponseShapeError.invalid(field, str(exc)) from exc


class CloudflareBuildsClient:
    """httpx implementation of :class:`BuildsAPI`."""

    def __init__(
        self,
        config: CloudflareBuildsConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an injected ``http_client`` is not closed."""
        if not config.token.strip():
            raise CloudflareConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }

    @property
    def config(self) -> CloudflareBuildsConfig:
        """Return the client configuration."""
        return self._config

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_build(self, account_id: str, build_uuid: str) -> BuildDetails:
        """Return build details, including the preview URL when there is one."""
        result = await self._get(f"/accounts/{account_id}/builds/builds/{build_uuid}")
        return _convert(result, BuildDetails, field="build")

    async def get_workers_subdomain(self, account_id: str) -> WorkersSubdomain:
        """Return the account's ``workers.dev`` subdomain."""
        result = await self._get(f"/accounts/{account_id}/workers/subdomain")
        return _convert(result, WorkersSubdomain, field="subdomain")

    async def iter_build_log_lines(
        self, account_id: str, build_uuid: str
    ) -> cabc.AsyncIterator[str]:
        """Yield every log line for a build, following the page cursor.

        Pagination continues while a page is flagged ``truncated`` and
        supplies a cursor that has not been seen before, up to
        ``max_log_pages`` pages.
        """
        path = f"/accounts/{account_id}/builds/builds/{build_uuid}/logs"
        cursor: str | None = None
        seen_cursors: set[str] = set()

        for _ in range(self._config.max_log_pages):
            params = {"cursor": cursor} if cursor else None
            result = await self._get(path, params=params)
            page = _convert(result, BuildLogPage, field="logs")
            for text in page.texts():
                yield text

            cursor = page.next_cursor()
            if cursor is None or cursor in seen_cursors:
                return
            seen_cursors.add(cursor)

        log_warning(
            logger,
            "Stopped fetching logs for build %s after %d page(s)",
            build_uuid,
            self._config.max_log_pages,
        )

    async def fetch_build_logs(self, account_id: str, build_uuid: str) -> list[str]:
        """Return the complete log transcript for a build."""
        return [line async for line in self.iter_build_log_lines(account_id, build_uuid)]

    async def _get(
        self,
        path: str,
        *,
        params: dict[str, str] | None = None,
    ) -> dict[str, typ.Any]:
        """Issue a GET with the configured deadline and return ``result``."""
        url = f"{self._config.api_base.rstrip('/')}{path}"
        try:
            response = await self._client.get(
                url,
                params=params,
                headers=self._headers,
                timeout=self._config.timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise CloudflareAPIError.timeout(path) from exc
        except httpx.RequestError as exc:
            raise CloudflareAPIError.network_error(str(exc)) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise CloudflareAPIError.http_error(response.status_code)
        return _parse_envelope(response.content)
