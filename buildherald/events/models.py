"""Typed models for Workers Builds event subscription messages.

The provider's event schema has drifted between versions, so every field is
optional apart from the three top-level objects the pipeline cannot work
without: ``type``, ``payload`` and ``metadata``. Unknown fields are ignored.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

import msgspec

from .errors import InvalidBuildEventError

_REQUIRED_FIELDS: tuple[str, ...] = ("type", "payload", "metadata")


class EventSource(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Origin of the event; ``worker_name`` names the Worker being built."""

    type: str | None = None
    worker_name: str | None = None


class BuildTriggerMetadata(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Source-control details of the push that triggered a build.

    Attributes
    ----------
    build_trigger_source
        What started the build (for example ``push_event``).
    branch
        Branch the build ran for.
    commit_hash
        Full commit SHA.
    commit_message
        Commit message; may span several lines.
    author
        Commit author, usually an email address.
    repo_name
        Repository name at the git provider.
    provider_account_name
        Owner of the repository at the git provider.
    provider_type
        Git provider identifier, such as ``github`` or ``gitlab``.

    """

    build_trigger_source: str | None = None
    branch: str | None = None
    commit_hash: str | None = None
    commit_message: str | None = None
    author: str | None = None
    build_command: str | None = None
    deploy_command: str | None = None
    root_directory: str | None = None
    repo_name: str | None = None
    provider_account_name: str | None = None
    provider_type: str | None = None


class BuildPayload(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Build details carried by the event.

    Timestamps stay as the raw ISO-8601 strings; they are parsed only when a
    duration is rendered so a malformed value cannot invalidate the event.
    """

    build_uuid: str | None = None
    status: str | None = None
    build_outcome: str | None = None
    created_at: str | None = None
    initializing_at: str | None = None
    running_at: str | None = None
    stopped_at: str | None = None
    build_trigger_metadata: BuildTriggerMetadata | None = None


class EventMetadata(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Envelope metadata added by the event subscription."""

    account_id: str | None = None
    event_subscription_id: str | None = None
    event_schema_version: int | str | None = None
    event_timestamp: str | None = None


class BuildEvent(msgspec.Struct, kw_only=True, frozen=True):
    """One build lifecycle transition."""

    type: str
    payload: BuildPayload
    metadata: EventMetadata
    source: EventSource | None = None

    @property
    def trigger(self) -> BuildTriggerMetadata | None:
        """Return the trigger metadata, if the provider supplied it."""
        return self.payload.build_trigger_metadata

    @property
    def worker_name(self) -> str | None:
        """Return the non-empty ``source.workerName``, else ``None``."""
        if self.source is None:
            return None
        return self.source.worker_name or None

    @property
    def branch(self) -> str | None:
        """Return the non-empty trigger branch, else ``None``."""
        trigger = self.trigger
        if trigger is None:
            return None
        return trigger.branch or None

    @property
    def account_id(self) -> str | None:
        """Return the non-empty account identifier, else ``None``."""
        return self.metadata.account_id or None

    @property
    def build_uuid(self) -> str | None:
        """Return the non-empty build identifier, else ``None``."""
        return self.payload.build_uuid or None


def _coerce_body(body: object) -> cabc.Mapping[str, typ.Any]:
    if isinstance(body, bytes | bytearray | memoryview | str):
        try:
            body = msgspec.json.decode(body)
        except msgspec.DecodeError as exc:
            raise InvalidBuildEventError.invalid_json(str(exc)) from exc
    if not isinstance(body, cabc.Mapping):
        raise InvalidBuildEventError.not_an_object(body)
    return typ.cast("cabc.Mapping[str, typ.Any]", body)


def decode_build_event(body: object) -> BuildEvent:
    """Decode a queue message body into a :class:`BuildEvent`.

    Parameters
    ----------
    body
        A mapping (already-decoded JSON) or the raw JSON text or bytes.

    Returns
    -------
    BuildEvent
        The validated event.

    Raises
    ------
    InvalidBuildEventError
        If the body is not an object, lacks ``type``, ``payload`` or
        ``metadata``, or does not match the event shape.

    """
    mapping = _coerce_body(body)
    for field in _REQUIRED_FIELDS:
        if mapping.get(field) is None:
            raise InvalidBuildEventError.missing(field)

    try:
        return msgspec.convert(dict(mapping), type=BuildEvent)
    except msgspec.ValidationError as exc:
        raise InvalidBuildEventError.schema(str(exc)) from exc


__all__ = [
    "BuildEvent",
    "BuildPayload",
    "BuildTriggerMetadata",
    "EventMetadata",
    "EventSource",
    "decode_build_event",
]
