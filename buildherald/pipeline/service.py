"""Batch orchestration for build notifications.

This module provides :class:`BuildNotificationService`, which runs each
queued build event through decode, classification, enrichment, formatting
and delivery, then acknowledges it.

Usage
-----
>>> service = build_notification_service(NotifierConfig.from_env())
>>> summary = await service.process_batch(messages)
>>> summary.count(MessageOutcome.DELIVERED)
3
>>> await service.aclose()

"""

from __future__ import annotations

import collections
import collections.abc as cabc
import dataclasses as dc
import enum
import typing as typ

from buildherald.cloudflare.client import CloudflareBuildsClient
from buildherald.cloudflare.enrichment import BuildEnricher
from buildherald.events.errors import InvalidBuildEventError
from buildherald.events.models import decode_build_event
from buildherald.events.state import is_in_progress_event, normalize_build_state
from buildherald.links import known_worker_name, resolve_worker_name
from buildherald.slack.blocks import build_notification
from buildherald.slack.errors import WebhookDeliveryError
from buildherald.slack.sink import SlackWebhookSink

from .config import NotifierConfig
from .observability import PipelineEventLogger

if typ.TYPE_CHECKING:
    from buildherald.slack.sink import NotificationSink


class QueueMessage(typ.Protocol):
    """One inbound queue message: a JSON body plus an acknowledgement hook."""

    @property
    def body(self) -> object:
        """Return the raw event body (mapping, JSON text or bytes)."""
        ...

    def ack(self) -> None:
        """Acknowledge the message so it is never redelivered."""
        ...


class _SupportsAclose(typ.Protocol):
    async def aclose(self) -> None: ...


class MessageOutcome(enum.StrEnum):
    """How processing of one message ended."""

    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"
    SKIPPED = "skipped"
    DROPPED = "dropped"
    ERRORED = "errored"
    UNCONFIGURED = "unconfigured"


@dc.dataclass(frozen=True, slots=True)
class BatchSummary:
    """Outcomes recorded for one batch, in message order."""

    outcomes: tuple[MessageOutcome, ...] = ()

    @property
    def total(self) -> int:
        """Return the number of messages in the batch."""
        return len(self.outcomes)

    def count(self, outcome: MessageOutcome) -> int:
        """Return how many messages ended with ``outcome``."""
        return sum(1 for recorded in self.outcomes if recorded is outcome)

    def counts(self) -> dict[str, int]:
        """Return per-outcome counts keyed by outcome value."""
        return dict(collections.Counter(str(outcome) for outcome in self.outcomes))


class BuildNotificationService:
    """Turn queued build events into delivered notifications.

    Parameters
    ----------
    config
        Pipeline settings; only the branch, extraction and in-progress
        options are read here.
    enricher
        Fetches preview URLs, live URLs and logs. Defaults to a disabled
        enricher that makes no calls.
    sink
        Delivery target. ``None`` means no webhook is configured and every
        batch is acknowledged without processing.
    event_logger
        Structured logger for lifecycle events.
    owned_resources
        Clients created on the service's behalf and closed by
        :meth:`aclose`.

    """

    def __init__(
        self,
        config: NotifierConfig | None = None,
        *,
        enricher: BuildEnricher | None = None,
        sink: NotificationSink | None = None,
        event_logger: PipelineEventLogger | None = None,
        owned_resources: cabc.Sequence[_SupportsAclose] = (),
    ) -> None:
        """Configure the service with its collaborators."""
        self._config = config or NotifierConfig()
        self._enricher = enricher or BuildEnricher(None)
        self._sink = sink
        self._events = event_logger or PipelineEventLogger()
        self._owned_resources = tuple(owned_resources)
        self._branch_policy = self._config.branch_policy()
        self._extraction_config = self._config.extraction_config()

    async def aclose(self) -> None:
        """Close the HTTP clients this service owns."""
        for resource in self._owned_resources:
            await resource.aclose()

    async def process_message(self, body: object) -> MessageOutcome:
        """Run one message body through the pipeline without acknowledging it.

        Parameters
        ----------
        body
            The raw event: a mapping, or JSON text or bytes.

        Returns
        -------
        MessageOutcome
            ``dropped`` for malformed bodies, ``skipped`` for in-progress
            events, otherwise ``delivered`` or ``delivery_failed``.

        Raises
        ------
        RuntimeError
            When no sink is configured.

        """
        if self._sink is None:
            msg = "No notification sink configured"
            raise RuntimeError(msg)

        try:
            event = decode_build_event(body)
        except InvalidBuildEventError as exc:
            self._events.log_dropped(error=exc)
            return MessageOutcome.DROPPED

        if not self._config.notify_in_progress and is_in_progress_event(event):
            self._events.log_skipped(build_uuid=event.build_uuid, event_type=event.type)
            return MessageOutcome.SKIPPED

        state = normalize_build_state(event)
        enrichment = await self._enricher.enrich(
            state,
            account_id=event.account_id,
            build_uuid=event.build_uuid,
            worker_name=known_worker_name(event),
        )
        document = build_notification(
            event,
            state,
            enrichment,
            branch_policy=self._branch_policy,
            extraction_config=self._extraction_config,
        )

        try:
            await self._sink.deliver(document)
        except WebhookDeliveryError as exc:
            self._events.log_delivery_failed(
                build_uuid=event.build_uuid, state=state, error=exc
            )
            return MessageOutcome.DELIVERY_FAILED

        self._events.log_delivered(
            build_uuid=event.build_uuid,
            worker_name=resolve_worker_name(event),
            state=state,
        )
        return MessageOutcome.DELIVERED

    async def process_batch(
        self, messages: cabc.Iterable[QueueMessage]
    ) -> BatchSummary:
        """Process ``messages`` in order and acknowledge every one of them.

        A failure in one message never affects the others: anything raised
        while processing is logged and the message is acknowledged anyway.
        """
        batch = list(messages)
        if self._sink is None:
            self._events.log_batch_unconfigured(message_count=len(batch))
            for message in batch:
                message.ack()
            return BatchSummary(outcomes=(MessageOutcome.UNCONFIGURED,) * len(batch))

        outcomes: list[MessageOutcome] = []
        for message in batch:
            try:
                outcome = await self.process_message(message.body)
            except Exception as exc:  # noqa: BLE001  # per-message boundary
                self._events.log_errored(error=exc)
                outcome = MessageOutcome.ERRORED
            message.ack()
            outcomes.append(outcome)

        summary = BatchSummary(outcomes=tuple(outcomes))
        self._events.log_batch_completed(counts=summary.counts())
        return summary


def build_notification_service(config: NotifierConfig) -> BuildNotificationService:
    """Wire a service with HTTP adapters for ``config``.

    The Cloudflare client is only created when an API token is set and the
    Slack sink only when a webhook URL is set. Both are closed by the
    returned service's :meth:`~BuildNotificationService.aclose`.
    """
    owned: list[_SupportsAclose] = []

    api: CloudflareBuildsClient | None = None
    cloudflare_config = config.cloudflare_config()
    if cloudflare_config is not None:
        api = CloudflareBuildsClient(cloudflare_config)
        owned.append(api)

    sink: SlackWebhookSink | None = None
    webhook_config = config.webhook_config()
    if webhook_config is not None:
        sink = SlackWebhookSink(webhook_config)
        owned.append(sink)

    return BuildNotificationService(
        config,
        enricher=BuildEnricher(api),
        sink=sink,
        owned_resources=owned,
    )
