"""Configuration for the build notification pipeline.

Usage
-----
Create a configuration with defaults:

>>> config = NotifierConfig()
>>> config.max_log_pages
50

Or load from environment variables:

>>> import os
>>> os.environ["BUILDHERALD_SLACK_WEBHOOK_URL"] = "https://hooks.slack.com/services/T/B/X"
>>> config = NotifierConfig.from_env()
>>> config.webhook_configured
True

"""

from __future__ import annotations

import dataclasses as dc
import os

from buildherald.cloudflare.client import DEFAULT_API_BASE, CloudflareBuildsConfig
from buildherald.diagnostics import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from buildherald.events.state import DEFAULT_PRODUCTION_BRANCHES, BranchPolicy
from buildherald.slack.sink import SlackWebhookConfig

from .errors import NotifierConfigError

_ENV_PREFIX = "BUILDHERALD_"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _env(name: str) -> str:
    return os.environ.get(f"{_ENV_PREFIX}{name}", "").strip()


@dc.dataclass(frozen=True, slots=True)
class NotifierConfig:
    """Runtime settings for one notifier process.

    Attributes
    ----------
    slack_webhook_url
        Incoming webhook endpoint. ``None`` makes every batch acknowledge
        its messages without processing them.
    cloudflare_api_token
        Bearer token for the Cloudflare API. ``None`` disables enrichment.
    cloudflare_api_base
        Base URL of the Cloudflare v4 API.
    request_timeout_s
        Deadline for every outbound HTTP call.
    max_log_pages
        Upper bound on log pages fetched for one failed build.
    error_max_length
        Extracted error snippets are clamped to this many characters.
    production_branches
        Lower-cased branch names treated as production.
    absent_branch_is_production
        Whether an event without a branch counts as production.
    notify_in_progress
        Deliver notifications for started and queued events too.
    log_level
        femtologging level name.

    """

    slack_webhook_url: str | None = None
    cloudflare_api_token: str | None = None
    cloudflare_api_base: str = DEFAULT_API_BASE
    request_timeout_s: float = 10.0
    max_log_pages: int = 50
    error_max_length: int = 1000
    production_branches: frozenset[str] = DEFAULT_PRODUCTION_BRANCHES
    absent_branch_is_production: bool = True
    notify_in_progress: bool = False
    log_level: str = "INFO"

    @property
    def webhook_configured(self) -> bool:
        """Return True when a webhook URL is available."""
        return bool(self.slack_webhook_url)

    def branch_policy(self) -> BranchPolicy:
        """Return the branch classification rule for this configuration."""
        return BranchPolicy(
            production_branches=self.production_branches,
            absent_branch_is_production=self.absent_branch_is_production,
        )

    def extraction_config(self) -> ExtractionConfig:
        """Return extraction rules with the configured snippet length."""
        if self.error_max_length == DEFAULT_EXTRACTION_CONFIG.max_length:
            return DEFAULT_EXTRACTION_CONFIG
        return ExtractionConfig(max_length=self.error_max_length)

    def cloudflare_config(self) -> CloudflareBuildsConfig | None:
        """Return API client settings, or ``None`` when no token is set."""
        if not self.cloudflare_api_token:
            return None
        return CloudflareBuildsConfig(
            token=self.cloudflare_api_token,
            api_base=self.cloudflare_api_base,
            timeout_s=self.request_timeout_s,
            max_log_pages=self.max_log_pages,
        )

    def webhook_config(self) -> SlackWebhookConfig | None:
        """Return webhook sink settings, or ``None`` when no URL is set."""
        if not self.slack_webhook_url:
            return None
        return SlackWebhookConfig(
            webhook_url=self.slack_webhook_url,
            timeout_s=self.request_timeout_s,
        )

    @staticmethod
    def _parse_positive_int(name: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = _env(name)
        if not raw:
            return default
        env_var = f"{_ENV_PREFIX}{name}"
        try:
            value = int(raw)
        except ValueError as exc:
            raise NotifierConfigError.invalid_integer(env_var, raw) from exc
        if value < 1:
            raise NotifierConfigError.invalid_integer(env_var, raw)
        return value

    @staticmethod
    def _parse_positive_float(name: str, default: float) -> float:
        """Read a positive number env var, falling back to a default."""
        raw = _env(name)
        if not raw:
            return default
        env_var = f"{_ENV_PREFIX}{name}"
        try:
            value = float(raw)
        except ValueError as exc:
            raise NotifierConfigError.invalid_number(env_var, raw) from exc
        # NaN fails this comparison too.
        if not value > 0:
            raise NotifierConfigError.invalid_number(env_var, raw)
        return value

    @staticmethod
    def _parse_bool(name: str, *, default: bool) -> bool:
        raw = _env(name)
        if not raw:
            return default
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise NotifierConfigError.invalid_boolean(f"{_ENV_PREFIX}{name}", raw)

    @staticmethod
    def _parse_branches(name: str) -> frozenset[str]:
        raw = _env(name)
        if not raw:
            return DEFAULT_PRODUCTION_BRANCHES
        branches = frozenset(
            part.strip().lower() for part in raw.split(",") if part.strip()
        )
        if not branches:
            raise NotifierConfigError.empty_branch_list(f"{_ENV_PREFIX}{name}")
        return branches

    @classmethod
    def from_env(cls) -> NotifierConfig:
        """Create configuration from ``BUILDHERALD_*`` environment variables.

        Returns
        -------
        NotifierConfig
            Configuration instance with values from environment or defaults.

        Raises
        ------
        NotifierConfigError
            If a numeric, boolean or branch-list variable is malformed.

        """
        return cls(
            slack_webhook_url=_env("SLACK_WEBHOOK_URL") or None,
            cloudflare_api_token=_env("CLOUDFLARE_API_TOKEN") or None,
            cloudflare_api_base=_env("CLOUDFLARE_API_BASE").rstrip("/")
            or DEFAULT_API_BASE,
            request_timeout_s=cls._parse_positive_float("REQUEST_TIMEOUT_S", 10.0),
            max_log_pages=cls._parse_positive_int("MAX_LOG_PAGES", 50),
            error_max_length=cls._parse_positive_int("ERROR_MAX_LENGTH", 1000),
            production_branches=cls._parse_branches("PRODUCTION_BRANCHES"),
            absent_branch_is_production=cls._parse_bool(
                "ABSENT_BRANCH_IS_PRODUCTION", default=True
            ),
            notify_in_progress=cls._parse_bool("NOTIFY_IN_PROGRESS", default=False),
            log_level=_env("LOG_LEVEL") or "INFO",
        )
