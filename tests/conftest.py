"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import os

import dramatiq
import pytest
from dramatiq.brokers.stub import StubBroker

from buildherald.pipeline.config import NotifierConfig
from tests.helpers.doubles import FakeBuildsAPI, RecordingSink

# Actor modules bind to the global broker at import time.
dramatiq.set_broker(StubBroker())


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Provide a sink that captures delivered documents."""
    return RecordingSink()


@pytest.fixture
def fake_api() -> FakeBuildsAPI:
    """Provide an in-memory Cloudflare API."""
    return FakeBuildsAPI()


@pytest.fixture
def notifier_config() -> NotifierConfig:
    """Provide a configuration with a webhook and API token set."""
    return NotifierConfig(
        slack_webhook_url="https://hooks.slack.test/services/T/B/X",
        cloudflare_api_token="cf-token",
        cloudflare_api_base="https://api.cloudflare.test/client/v4",
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every ``BUILDHERALD_*`` variable from the environment."""
    for key in list(os.environ):
        if key.startswith("BUILDHERALD_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
