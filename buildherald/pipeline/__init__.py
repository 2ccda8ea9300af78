"""Batch orchestration, configuration and queue integration."""

from __future__ import annotations

from .config import NotifierConfig
from .errors import NotifierConfigError
from .observability import PipelineEventLogger, PipelineEventType
from .service import (
    BatchSummary,
    BuildNotificationService,
    MessageOutcome,
    QueueMessage,
    build_notification_service,
)

__all__ = [
    "BatchSummary",
    "BuildNotificationService",
    "MessageOutcome",
    "NotifierConfig",
    "NotifierConfigError",
    "PipelineEventLogger",
    "PipelineEventType",
    "QueueMessage",
    "build_notification_service",
]
