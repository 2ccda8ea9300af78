"""Unit tests for the femtologging helpers."""

from __future__ import annotations

import pytest

from buildherald.logging import (
    configure_logging,
    format_log_message,
    log_error,
    log_exception,
    log_info,
    log_warning,
    normalize_log_level,
)


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message


class TestNormalizeLogLevel:
    """Tests for normalize_log_level."""

    @pytest.mark.parametrize(
        ("raw", "expected_level", "expected_invalid"),
        [
            ("debug", "DEBUG", False),
            ("  Warning ", "WARNING", False),
            ("TRACE", "TRACE", False),
            (None, "INFO", True),
            ("", "INFO", True),
            ("   ", "INFO", True),
            ("verbose", "INFO", True),
        ],
    )
    def test_normalize(
        self, raw: str | None, expected_level: str, *, expected_invalid: bool
    ) -> None:
        """Known levels are upper-cased; anything else falls back to INFO."""
        level, invalid = normalize_log_level(raw)

        assert level == expected_level, f"Expected {raw!r} to map to {expected_level}."
        assert invalid is expected_invalid, (
            f"Expected invalid flag {expected_invalid} for {raw!r}."
        )


@pytest.mark.parametrize(
    ("raw", "expected_level", "expected_invalid"),
    [("error", "ERROR", False), ("", "INFO", True), ("loud", "INFO", True)],
)
def test_configure_logging_passes_normalized_level(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
    expected_level: str,
    *,
    expected_invalid: bool,
) -> None:
    """configure_logging hands femtologging the normalized level."""
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr("buildherald.logging.basicConfig", fake_basic_config)

    level, invalid = configure_logging(raw)

    assert (level, invalid) == (expected_level, expected_invalid)
    assert captured == {"level": expected_level, "force": False}, (
        "Expected basicConfig to receive the normalized level without force."
    )


def test_format_log_message_without_args_keeps_template() -> None:
    """A template without args is returned untouched, percent signs included."""
    assert format_log_message("100% done") == "100% done"


def test_log_info_formats_message() -> None:
    """log_info interpolates args and emits INFO."""
    logger = _FakeLogger()

    log_info(logger, "batch of %d from %s", 3, "queue")

    assert logger.calls == [("INFO", "batch of 3 from queue", None, False)]


def test_log_warning_forwards_exc_info() -> None:
    """log_warning passes exc_info through to the logger."""
    logger = _FakeLogger()
    exc = TimeoutError("slow")

    log_warning(logger, "retrying %s", "logs", exc_info=exc)

    assert logger.calls == [("WARNING", "retrying logs", exc, False)]


def test_log_error_defaults_stack_info_false() -> None:
    """log_error emits ERROR without stack info."""
    logger = _FakeLogger()

    log_error(logger, "failed: %s", "webhook")

    assert logger.calls == [("ERROR", "failed: webhook", None, False)]


def test_log_exception_attaches_exception() -> None:
    """log_exception emits ERROR with the exception as exc_info."""
    logger = _FakeLogger()
    exc = RuntimeError("boom")

    log_exception(logger, "[notification.errored] boom", exc)

    assert logger.calls == [("ERROR", "[notification.errored] boom", exc, False)]
