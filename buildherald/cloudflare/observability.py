"""Structured logging and error categorization for enrichment calls.

Enrichment failures never fail a message, so these log events are the only
trace an operator gets of a degraded notification.
"""

from __future__ import annotations

import enum

from buildherald.logging import get_logger, log_info, log_warning

from .errors import CloudflareAPIError, CloudflareConfigError, CloudflareResponseShapeError

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class EnrichmentEventType(enum.StrEnum):
    """Structured log event types for enrichment calls."""

    URLS_RESOLVED = "enrichment.urls.resolved"
    LOGS_FETCHED = "enrichment.logs.fetched"
    FAILED = "enrichment.failed"
    SKIPPED = "enrichment.skipped"


class ErrorCategory(enum.StrEnum):
    """Categories used to tell transient failures from persistent ones."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an enrichment exception for log routing."""
    if isinstance(exc, CloudflareAPIError):
        # Timeouts, network failures and 5xx have no status or a server status.
        if exc.status_code is None or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR
    if isinstance(exc, CloudflareResponseShapeError):
        return ErrorCategory.SCHEMA_DRIFT
    if isinstance(exc, CloudflareConfigError):
        return ErrorCategory.CONFIGURATION
    return ErrorCategory.UNKNOWN


class EnrichmentEventLogger:
    """Emit enrichment events via femtologging."""

    def log_urls_resolved(
        self,
        *,
        build_uuid: str,
        preview_url: str | None,
        live_url: str | None,
    ) -> None:
        """Log which deployment URL, if any, was found for a build."""
        log_info(
            logger,
            "[%s] build_uuid=%s has_preview_url=%s has_live_url=%s",
            EnrichmentEventType.URLS_RESOLVED,
            build_uuid,
            preview_url is not None,
            live_url is not None,
        )

    def log_logs_fetched(self, *, build_uuid: str, line_count: int) -> None:
        """Log the size of a fetched log transcript."""
        log_info(
            logger,
            "[%s] build_uuid=%s line_count=%d",
            EnrichmentEventType.LOGS_FETCHED,
            build_uuid,
            line_count,
        )

    def log_skipped(self, *, build_uuid: str | None, reason: str) -> None:
        """Log that enrichment was not attempted."""
        log_info(
            logger,
            "[%s] build_uuid=%s reason=%s",
            EnrichmentEventType.SKIPPED,
            build_uuid,
            reason,
        )

    def log_failed(
        self,
        *,
        build_uuid: str,
        operation: str,
        error: BaseException,
    ) -> None:
        """Log an enrichment call that degraded to no data."""
        log_warning(
            logger,
            "[%s] build_uuid=%s operation=%s error_type=%s error_category=%s "
            "error_message=%s",
            EnrichmentEventType.FAILED,
            build_uuid,
            operation,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )
