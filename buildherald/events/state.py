"""Build-state normalization and branch classification.

Event vocabularies differ across provider schema versions: newer events
encode the outcome in ``type`` (``cf.workersBuilds.worker.build.succeeded``)
while older ones only carry ``buildOutcome`` or ``status``. This module
folds all of them into :class:`BuildState`.

Both rule sets are plain data (:data:`TYPE_KEYWORDS`,
:data:`OUTCOME_VOCABULARIES`, :class:`BranchPolicy`) so they can be tested
and extended without touching control flow.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from .models import BuildEvent


class BuildState(enum.StrEnum):
    """Closed set of build states a notification can describe."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class StateVocabulary:
    """Words that map onto a single :class:`BuildState`."""

    state: BuildState
    words: frozenset[str]

    def matches(self, value: str) -> bool:
        """Return True when ``value`` is one of this vocabulary's words."""
        return value in self.words


# Substrings searched for in the lower-cased event type, first match wins.
TYPE_KEYWORDS: tuple[tuple[str, BuildState], ...] = (
    ("succeeded", BuildState.SUCCEEDED),
    ("failed", BuildState.FAILED),
    ("canceled", BuildState.CANCELED),
    ("cancelled", BuildState.CANCELED),
)

# Checked in order against buildOutcome first, then status.
OUTCOME_VOCABULARIES: tuple[StateVocabulary, ...] = (
    StateVocabulary(
        BuildState.CANCELED,
        frozenset({"canceled", "cancelled", "canceled_build", "cancelled_build"}),
    ),
    StateVocabulary(
        BuildState.FAILED,
        frozenset({"failed", "failure", "error", "fail"}),
    ),
    StateVocabulary(
        BuildState.SUCCEEDED,
        frozenset({"success", "succeeded", "ok"}),
    ),
)

IN_PROGRESS_KEYWORDS: tuple[str, ...] = ("started", "queued")

DEFAULT_PRODUCTION_BRANCHES: frozenset[str] = frozenset(
    {"main", "master", "production", "prod"}
)


def _normalise(value: str | None) -> str:
    return value.strip().lower() if value else ""


def _state_from_type(event_type: str) -> BuildState | None:
    lowered = _normalise(event_type)
    for keyword, state in TYPE_KEYWORDS:
        if keyword in lowered:
            return state
    return None


def _state_from_vocabulary(value: str | None) -> BuildState | None:
    lowered = _normalise(value)
    if not lowered:
        return None
    for vocabulary in OUTCOME_VOCABULARIES:
        if vocabulary.matches(lowered):
            return vocabulary.state
    return None


def normalize_build_state(event: BuildEvent) -> BuildState:
    """Return the :class:`BuildState` for ``event``.

    The event type wins when it names an outcome. Otherwise ``buildOutcome``
    and then ``status`` are looked up in :data:`OUTCOME_VOCABULARIES`.
    Anything else is :attr:`BuildState.UNKNOWN`; this function never raises.
    """
    from_type = _state_from_type(event.type)
    if from_type is not None:
        return from_type

    for value in (event.payload.build_outcome, event.payload.status):
        from_value = _state_from_vocabulary(value)
        if from_value is not None:
            return from_value

    return BuildState.UNKNOWN


def is_in_progress_event(event: BuildEvent) -> bool:
    """Return True for started/queued lifecycle events."""
    lowered = _normalise(event.type)
    return any(keyword in lowered for keyword in IN_PROGRESS_KEYWORDS)


@dataclasses.dataclass(frozen=True, slots=True)
class BranchPolicy:
    """Decides whether a branch deploys to production.

    Attributes
    ----------
    production_branches
        Lower-cased branch names treated as production.
    absent_branch_is_production
        Classification used when the event carries no branch at all. The
        production path is the historical behaviour, so it is the default.

    """

    production_branches: frozenset[str] = DEFAULT_PRODUCTION_BRANCHES
    absent_branch_is_production: bool = True

    def is_production(self, branch: str | None) -> bool:
        """Return True when ``branch`` should be treated as production."""
        lowered = _normalise(branch)
        if not lowered:
            return self.absent_branch_is_production
        return lowered in self.production_branches


DEFAULT_BRANCH_POLICY = BranchPolicy()


__all__ = [
    "DEFAULT_BRANCH_POLICY",
    "DEFAULT_PRODUCTION_BRANCHES",
    "IN_PROGRESS_KEYWORDS",
    "OUTCOME_VOCABULARIES",
    "TYPE_KEYWORDS",
    "BranchPolicy",
    "BuildState",
    "StateVocabulary",
    "is_in_progress_event",
    "normalize_build_state",
]
