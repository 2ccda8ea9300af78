"""Install a Dramatiq broker on first use of the notifier actor.

Importing the package leaves Dramatiq's global broker alone; the actor calls
:func:`ensure_broker_configured` before it does any work.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

ALLOW_STUB_ENV_VAR = "BUILDHERALD_ALLOW_STUB_BROKER"

_BROKER_LOCK = threading.Lock()
_broker_configured = False


def _running_under_pytest() -> bool:
    return "pytest" in sys.modules


def _stub_allowed() -> bool:
    """Return True when a StubBroker may stand in for a real broker."""
    flag = os.environ.get(ALLOW_STUB_ENV_VAR, "").strip().lower()
    return flag in {"1", "true", "yes"} or _running_under_pytest()


def ensure_broker_configured() -> None:
    """Make sure ``dramatiq.get_broker()`` resolves; safe across threads.

    Raises
    ------
    RuntimeError
        If no broker can be resolved and a stub is not allowed.

    """
    global _broker_configured

    with _BROKER_LOCK:
        if _broker_configured:
            return
        try:
            dramatiq.get_broker()
        except (ImportError, LookupError) as exc:
            # ImportError: Dramatiq's default RabbitMQ broker needs pika.
            if not _stub_allowed():
                message = (
                    "No Dramatiq broker configured. Configure one before starting"
                    f" the worker, or set {ALLOW_STUB_ENV_VAR}=1 for local runs."
                )
                raise RuntimeError(message) from exc
            dramatiq.set_broker(StubBroker())
        _broker_configured = True
