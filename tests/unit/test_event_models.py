"""Unit tests for build event decoding."""

from __future__ import annotations

import json

import pytest

from buildherald.events import BuildEvent, InvalidBuildEventError, decode_build_event
from tests.helpers.event_builders import (
    ACCOUNT_ID,
    BUILD_UUID,
    WORKER_NAME,
    event_body,
    succeeded_body,
)


class TestDecodeBuildEvent:
    """Tests for decode_build_event."""

    def test_decodes_camel_case_mapping(self) -> None:
        """Camel-case wire fields populate the snake-case model."""
        event = decode_build_event(succeeded_body())

        assert isinstance(event, BuildEvent)
        assert event.worker_name == WORKER_NAME
        assert event.account_id == ACCOUNT_ID
        assert event.build_uuid == BUILD_UUID
        assert event.branch == "main"
        assert event.trigger is not None
        assert event.trigger.provider_type == "github"
        assert event.payload.running_at == "2025-05-01T02:49:10.000Z"

    def test_decodes_json_bytes_and_text(self) -> None:
        """Raw JSON bodies decode to the same event as a mapping."""
        body = succeeded_body()
        raw = json.dumps(body)

        assert decode_build_event(raw) == decode_build_event(body)
        assert decode_build_event(raw.encode()) == decode_build_event(body)

    def test_ignores_unknown_fields(self) -> None:
        """Extra fields from newer schema versions are ignored."""
        body = event_body(payload={"someFutureField": {"nested": True}})
        body["extraTopLevel"] = 1

        event = decode_build_event(body)

        assert event.build_uuid == BUILD_UUID

    def test_tolerates_missing_optional_sections(self) -> None:
        """Source and trigger metadata may be absent."""
        body = event_body(payload={"buildTriggerMetadata": None})
        del body["source"]

        event = decode_build_event(body)

        assert event.source is None
        assert event.worker_name is None
        assert event.trigger is None
        assert event.branch is None

    def test_empty_strings_read_as_absent(self) -> None:
        """Empty identifiers are reported as None by the accessors."""
        event = decode_build_event(
            event_body(source={"workerName": ""}, metadata={"accountId": ""})
        )

        assert event.worker_name is None
        assert event.account_id is None

    @pytest.mark.parametrize("field", ["type", "payload", "metadata"])
    def test_missing_required_field_is_rejected(self, field: str) -> None:
        """Bodies without a required top-level field are invalid."""
        body = succeeded_body()
        del body[field]

        with pytest.raises(InvalidBuildEventError, match=field):
            decode_build_event(body)

    @pytest.mark.parametrize("body", [[1, 2], "[]", 42, None])
    def test_non_object_body_is_rejected(self, body: object) -> None:
        """Only JSON objects are accepted."""
        with pytest.raises(InvalidBuildEventError, match="must be an object"):
            decode_build_event(body)

    def test_malformed_json_is_rejected(self) -> None:
        """Undecodable text raises InvalidBuildEventError."""
        with pytest.raises(InvalidBuildEventError, match="not valid JSON"):
            decode_build_event(b"{not json")

    def test_wrong_field_type_is_rejected(self) -> None:
        """Schema mismatches surface as InvalidBuildEventError."""
        body = event_body(payload={"buildUuid": 12345})

        with pytest.raises(InvalidBuildEventError, match="schema validation"):
            decode_build_event(body)
