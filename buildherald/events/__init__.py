"""Inbound build event models and state normalization."""

from __future__ import annotations

from .errors import InvalidBuildEventError
from .models import (
    BuildEvent,
    BuildPayload,
    BuildTriggerMetadata,
    EventMetadata,
    EventSource,
    decode_build_event,
)
from .state import (
    DEFAULT_BRANCH_POLICY,
    BranchPolicy,
    BuildState,
    is_in_progress_event,
    normalize_build_state,
)

__all__ = [
    "DEFAULT_BRANCH_POLICY",
    "BranchPolicy",
    "BuildEvent",
    "BuildPayload",
    "BuildState",
    "BuildTriggerMetadata",
    "EventMetadata",
    "EventSource",
    "InvalidBuildEventError",
    "decode_build_event",
    "is_in_progress_event",
    "normalize_build_state",
]
