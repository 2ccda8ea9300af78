"""Slack Block Kit rendering and webhook delivery."""

from __future__ import annotations

from .blocks import (
    MAX_BUTTONS,
    STATE_PRESENTATION,
    NotificationDocument,
    StatePresentation,
    build_duration,
    build_notification,
    format_duration,
)
from .errors import WebhookConfigError, WebhookDeliveryError
from .sink import NotificationSink, SlackWebhookConfig, SlackWebhookSink

__all__ = [
    "MAX_BUTTONS",
    "STATE_PRESENTATION",
    "NotificationDocument",
    "NotificationSink",
    "SlackWebhookConfig",
    "SlackWebhookSink",
    "StatePresentation",
    "WebhookConfigError",
    "WebhookDeliveryError",
    "build_duration",
    "build_notification",
    "format_duration",
]
