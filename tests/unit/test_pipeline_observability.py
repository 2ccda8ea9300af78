"""Unit tests for pipeline lifecycle log events."""

from __future__ import annotations

import pytest

from buildherald.events import BuildState
from buildherald.pipeline import PipelineEventLogger, PipelineEventType
from buildherald.slack import WebhookDeliveryError
from tests.helpers.femtologging_capture import capture_femto_logs

_LOGGER = "buildherald.pipeline.observability"


class TestPipelineEventLogger:
    """Tests for PipelineEventLogger."""

    @pytest.fixture
    def event_logger(self) -> PipelineEventLogger:
        """Return a fresh event logger."""
        return PipelineEventLogger()

    def test_log_delivered(self, event_logger: PipelineEventLogger) -> None:
        """Deliveries are logged at INFO with build and state."""
        with capture_femto_logs(_LOGGER) as capture:
            event_logger.log_delivered(
                build_uuid="build-xyz", worker_name="my-worker", state=BuildState.FAILED
            )
            capture.wait_for_count(1)

        record = capture.records[0]
        assert record.level == "INFO"
        assert record.message == (
            "[notification.delivered] build_uuid=build-xyz worker_name=my-worker "
            "state=failed"
        )

    def test_log_delivery_failed(self, event_logger: PipelineEventLogger) -> None:
        """Delivery failures are logged at ERROR with the error type."""
        with capture_femto_logs(_LOGGER) as capture:
            event_logger.log_delivery_failed(
                build_uuid="build-xyz",
                state=BuildState.SUCCEEDED,
                error=WebhookDeliveryError.timeout(),
            )
            capture.wait_for_count(1)

        record = capture.records[0]
        assert record.level == "ERROR"
        assert PipelineEventType.DELIVERY_FAILED in record.message
        assert "error_type=WebhookDeliveryError" in record.message

    def test_log_skipped(self, event_logger: PipelineEventLogger) -> None:
        """Skipped events record the event type."""
        with capture_femto_logs(_LOGGER) as capture:
            event_logger.log_skipped(
                build_uuid=None, event_type="cf.workersBuilds.worker.build.started"
            )
            capture.wait_for_count(1)

        assert "event_type=cf.workersBuilds.worker.build.started" in (
            capture.records[0].message
        )

    def test_log_batch_completed_sorts_counts(
        self, event_logger: PipelineEventLogger
    ) -> None:
        """Batch summaries list outcome counts in a stable order."""
        with capture_femto_logs(_LOGGER) as capture:
            event_logger.log_batch_completed(counts={"skipped": 1, "delivered": 3})
            capture.wait_for_count(1)

        assert capture.records[0].message == (
            "[notification.batch.completed] delivered=3 skipped=1"
        )

    def test_log_errored_attaches_exception(
        self, event_logger: PipelineEventLogger
    ) -> None:
        """Unexpected failures are logged at ERROR with the exception type."""
        with capture_femto_logs(_LOGGER) as capture:
            event_logger.log_errored(error=KeyError("payload"))
            capture.wait_for_count(1)

        record = capture.records[0]
        assert record.level == "ERROR"
        assert record.message.startswith(
            "[notification.errored] error_type=KeyError error_message='payload'"
        ), "Expected the errored event id and exception details."
