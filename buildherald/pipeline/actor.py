"""Dramatiq actor that feeds queued build events to the notifier.

Usage
-----
Queue a batch of event bodies:

>>> notify_build_events_job.send([event_body, other_event_body])

"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import threading
import typing as typ

import dramatiq

from buildherald.logging import configure_logging, get_logger, log_warning
from buildherald.pipeline._broker import ensure_broker_configured
from buildherald.pipeline.config import NotifierConfig
from buildherald.pipeline.service import build_notification_service

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from buildherald.pipeline.service import BatchSummary

logger = get_logger(__name__)

# Configuration is read once per worker process.
_CONFIG_CACHE: dict[str, NotifierConfig] = {}
_CACHE_LOCK = threading.Lock()
_CONFIG_KEY = "notifier"


@dc.dataclass(slots=True)
class _BatchMessage:
    """Queue message adapter for one body inside an actor payload.

    Dramatiq acknowledges the enclosing message once the actor returns, so
    ``ack`` only records that the body was handled.
    """

    body: object
    acked: bool = False

    def ack(self) -> None:
        self.acked = True


def _get_or_load_config() -> NotifierConfig:
    """Return the cached configuration, loading it on first use.

    Thread-safe: uses a lock to prevent races between Dramatiq workers.
    """
    with _CACHE_LOCK:
        config = _CONFIG_CACHE.get(_CONFIG_KEY)
        if config is None:
            config = NotifierConfig.from_env()
            _, invalid = configure_logging(config.log_level)
            if invalid:
                log_warning(
                    logger,
                    "Invalid BUILDHERALD_LOG_LEVEL %r; defaulting to INFO",
                    config.log_level,
                )
            _CONFIG_CACHE[_CONFIG_KEY] = config
        return config


def _reset_config_cache() -> None:
    """Forget the cached configuration so the next run reloads it."""
    with _CACHE_LOCK:
        _CONFIG_CACHE.clear()


async def _process_bodies_async(
    config: NotifierConfig, bodies: cabc.Sequence[object]
) -> BatchSummary:
    # httpx clients are bound to the running loop, so each run owns its own.
    service = build_notification_service(config)
    try:
        return await service.process_batch(_BatchMessage(body) for body in bodies)
    finally:
        await service.aclose()


def run_notification_batch(bodies: cabc.Sequence[object]) -> dict[str, int]:
    """Process ``bodies`` synchronously and return per-outcome counts.

    Raises
    ------
    NotifierConfigError
        If the ``BUILDHERALD_*`` environment is malformed.

    """
    ensure_broker_configured()
    config = _get_or_load_config()
    summary = asyncio.run(_process_bodies_async(config, bodies))
    return summary.counts()


@dramatiq.actor(max_retries=0)
def notify_build_events_job(bodies: list[typ.Any]) -> dict[str, int]:
    """Dramatiq actor for notifying about a batch of build events.

    Parameters
    ----------
    bodies
        Build event bodies in queue order, each a JSON object or JSON text.

    Returns
    -------
    dict[str, int]
        Number of messages per outcome (``delivered``, ``dropped``, ...).

    """
    return run_notification_batch(bodies)
