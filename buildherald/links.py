"""Dashboard and commit URL templating.

Every resolver fails closed: when an identifier the template needs is
missing the result is ``None`` rather than a URL with a hole in it. Nothing
here performs network I/O.

Examples
--------
>>> dashboard_url_for("abc123", "my-worker", "build-xyz")
'https://dash.cloudflare.com/abc123/workers/services/view/my-worker/production/builds/build-xyz'

"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from buildherald.events.models import BuildEvent

DEFAULT_WORKER_NAME = "worker"

_DASHBOARD_TEMPLATE = (
    "https://dash.cloudflare.com/{account_id}/workers/services/view/"
    "{worker_name}/production/builds/{build_uuid}"
)

# Keyed by lower-cased ``providerType``. Unlisted providers get no commit link.
COMMIT_URL_TEMPLATES: dict[str, str] = {
    "github": "https://github.com/{account}/{repo}/commit/{commit_hash}",
    "gitlab": "https://gitlab.com/{account}/{repo}/-/commit/{commit_hash}",
}


def known_worker_name(event: BuildEvent) -> str | None:
    """Return ``source.workerName``, else the trigger's ``repoName``, else ``None``.

    Empty strings count as absent.
    """
    if event.worker_name:
        return event.worker_name
    trigger = event.trigger
    if trigger is not None and trigger.repo_name:
        return trigger.repo_name
    return None


def resolve_worker_name(event: BuildEvent) -> str:
    """Return the Worker name used in links and titles, defaulting to ``"worker"``."""
    return known_worker_name(event) or DEFAULT_WORKER_NAME


def dashboard_url_for(
    account_id: str | None,
    worker_name: str,
    build_uuid: str | None,
) -> str | None:
    """Return the dashboard build URL, or ``None`` without both identifiers."""
    if not account_id or not build_uuid:
        return None
    return _DASHBOARD_TEMPLATE.format(
        account_id=account_id,
        worker_name=worker_name,
        build_uuid=build_uuid,
    )


def dashboard_url(event: BuildEvent) -> str | None:
    """Return the dashboard URL for the build described by ``event``."""
    return dashboard_url_for(
        event.account_id,
        resolve_worker_name(event),
        event.build_uuid,
    )


def commit_url(event: BuildEvent) -> str | None:
    """Return a link to the triggering commit at the git provider.

    Requires ``repoName``, ``commitHash`` and ``providerAccountName``, and a
    provider listed in :data:`COMMIT_URL_TEMPLATES`.
    """
    trigger = event.trigger
    if trigger is None:
        return None
    if not (trigger.repo_name and trigger.commit_hash and trigger.provider_account_name):
        return None

    provider = (trigger.provider_type or "").strip().lower()
    template = COMMIT_URL_TEMPLATES.get(provider)
    if template is None:
        return None
    return template.format(
        account=trigger.provider_account_name,
        repo=trigger.repo_name,
        commit_hash=trigger.commit_hash,
    )


__all__ = [
    "COMMIT_URL_TEMPLATES",
    "DEFAULT_WORKER_NAME",
    "commit_url",
    "dashboard_url",
    "dashboard_url_for",
    "known_worker_name",
    "resolve_worker_name",
]
