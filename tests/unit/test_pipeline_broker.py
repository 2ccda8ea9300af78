"""Unit tests for Dramatiq broker setup."""

from __future__ import annotations

import dramatiq
import pytest
from dramatiq.brokers.stub import StubBroker

from buildherald.pipeline import _broker


def _missing_broker() -> None:
    raise LookupError


@pytest.fixture
def unconfigured(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Reset the module sentinel so the next call configures again."""
    monkeypatch.setattr(_broker, "_broker_configured", False)
    monkeypatch.delenv(_broker.ALLOW_STUB_ENV_VAR, raising=False)
    return monkeypatch


def test_existing_broker_is_kept(unconfigured: pytest.MonkeyPatch) -> None:
    """A broker that is already installed is not replaced."""
    existing = dramatiq.get_broker()

    _broker.ensure_broker_configured()

    assert dramatiq.get_broker() is existing
    assert _broker._broker_configured is True


def test_stub_installed_under_pytest(unconfigured: pytest.MonkeyPatch) -> None:
    """Under pytest a StubBroker is installed when lookup fails."""
    installed: list[object] = []
    unconfigured.setattr(_broker.dramatiq, "get_broker", _missing_broker)
    unconfigured.setattr(_broker.dramatiq, "set_broker", installed.append)

    _broker.ensure_broker_configured()

    assert len(installed) == 1
    assert isinstance(installed[0], StubBroker)


def test_missing_broker_raises_outside_tests(unconfigured: pytest.MonkeyPatch) -> None:
    """Without a broker or the opt-in flag the worker refuses to start."""
    unconfigured.setattr(_broker, "_running_under_pytest", lambda: False)
    unconfigured.setattr(_broker.dramatiq, "get_broker", _missing_broker)

    with pytest.raises(RuntimeError, match=_broker.ALLOW_STUB_ENV_VAR):
        _broker.ensure_broker_configured()

    assert _broker._broker_configured is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("YES", True), (" true ", True), ("", False), ("no", False)],
)
def test_allow_stub_env_var(
    unconfigured: pytest.MonkeyPatch, value: str, *, expected: bool
) -> None:
    """BUILDHERALD_ALLOW_STUB_BROKER opts into the stub outside pytest."""
    unconfigured.setattr(_broker, "_running_under_pytest", lambda: False)
    unconfigured.setenv(_broker.ALLOW_STUB_ENV_VAR, value)

    assert _broker._stub_allowed() is expected
