"""Cloudflare Builds API client and notification enrichment."""

from __future__ import annotations

from .client import (
    DEFAULT_API_BASE,
    BuildDetails,
    BuildLogPage,
    BuildsAPI,
    CloudflareBuildsClient,
    CloudflareBuildsConfig,
    WorkersSubdomain,
)
from .enrichment import EMPTY_ENRICHMENT, BuildEnricher, EnrichmentResult, live_url_for
from .errors import (
    CloudflareAPIError,
    CloudflareConfigError,
    CloudflareError,
    CloudflareResponseShapeError,
)
from .observability import EnrichmentEventLogger, ErrorCategory, categorize_error

__all__ = [
    "DEFAULT_API_BASE",
    "EMPTY_ENRICHMENT",
    "BuildDetails",
    "BuildEnricher",
    "BuildLogPage",
    "BuildsAPI",
    "CloudflareAPIError",
    "CloudflareBuildsClient",
    "CloudflareBuildsConfig",
    "CloudflareConfigError",
    "CloudflareError",
    "CloudflareResponseShapeError",
    "EnrichmentEventLogger",
    "EnrichmentResult",
    "ErrorCategory",
    "WorkersSubdomain",
    "categorize_error",
    "live_url_for",
]
