"""Emit structured observability events for notification processing.

Every message in a batch ends in exactly one of these events, so an
operator can reconstruct what happened to a build notification from the
log alone.

Usage
-----
>>> event_logger = PipelineEventLogger()
>>> event_logger.log_delivered(
...     build_uuid="build-xyz",
...     worker_name="my-worker",
...     state=BuildState.SUCCEEDED,
... )

"""

from __future__ import annotations

import enum
import typing as typ

from buildherald.logging import (
    format_log_message,
    get_logger,
    log_error,
    log_exception,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    from buildherald.events.state import BuildState

logger = get_logger(__name__)


class PipelineEventType(enum.StrEnum):
    """Structured log event types for notification processing."""

    MESSAGE_SKIPPED = "notification.skipped"
    MESSAGE_DROPPED = "notification.dropped"
    MESSAGE_DELIVERED = "notification.delivered"
    DELIVERY_FAILED = "notification.delivery_failed"
    MESSAGE_ERRORED = "notification.errored"
    BATCH_UNCONFIGURED = "notification.batch.unconfigured"
    BATCH_COMPLETED = "notification.batch.completed"


class PipelineEventLogger:
    """Emit notification lifecycle events via femtologging."""

    def log_skipped(self, *, build_uuid: str | None, event_type: str) -> None:
        """Log an in-progress event acknowledged without a notification."""
        log_info(
            logger,
            "[%s] build_uuid=%s event_type=%s",
            PipelineEventType.MESSAGE_SKIPPED,
            build_uuid,
            event_type,
        )

    def log_dropped(self, *, error: BaseException) -> None:
        """Log a malformed message that could not be decoded.

        Parameters
        ----------
        error
            The decode error describing what was wrong with the body.

        """
        log_warning(
            logger,
            "[%s] error_type=%s error_message=%s",
            PipelineEventType.MESSAGE_DROPPED,
            type(error).__name__,
            str(error),
        )

    def log_delivered(
        self,
        *,
        build_uuid: str | None,
        worker_name: str,
        state: BuildState,
    ) -> None:
        """Log a notification accepted by the sink."""
        log_info(
            logger,
            "[%s] build_uuid=%s worker_name=%s state=%s",
            PipelineEventType.MESSAGE_DELIVERED,
            build_uuid,
            worker_name,
            state,
        )

    def log_delivery_failed(
        self,
        *,
        build_uuid: str | None,
        state: BuildState,
        error: BaseException,
    ) -> None:
        """Log a notification the sink rejected; the message is still acked."""
        log_error(
            logger,
            "[%s] build_uuid=%s state=%s error_type=%s error_message=%s",
            PipelineEventType.DELIVERY_FAILED,
            build_uuid,
            state,
            type(error).__name__,
            str(error),
        )

    def log_errored(self, *, error: BaseException) -> None:
        """Log an unexpected failure caught at the per-message boundary.

        Parameters
        ----------
        error
            The exception raised while processing the message. It is
            attached to the record so the traceback survives.

        """
        message = format_log_message(
            "[%s] error_type=%s error_message=%s",
            PipelineEventType.MESSAGE_ERRORED,
            type(error).__name__,
            str(error),
        )
        log_exception(logger, message, error)

    def log_batch_unconfigured(self, *, message_count: int) -> None:
        """Log a batch acknowledged unprocessed because no webhook is set."""
        log_error(
            logger,
            "[%s] message_count=%d reason=%s",
            PipelineEventType.BATCH_UNCONFIGURED,
            message_count,
            "BUILDHERALD_SLACK_WEBHOOK_URL is not set",
        )

    def log_batch_completed(self, *, counts: typ.Mapping[str, int]) -> None:
        """Log per-outcome counts once a batch has been acknowledged."""
        summary = " ".join(f"{name}={count}" for name, count in sorted(counts.items()))
        log_info(
            logger,
            "[%s] %s",
            PipelineEventType.BATCH_COMPLETED,
            summary,
        )
