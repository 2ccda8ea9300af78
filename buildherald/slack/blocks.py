"""Render build events as Slack Block Kit notifications.

Every state uses the same layout so that readers learn it once:

1. a header with a state emoji, a short headline and the Worker name;
2. a field section (branch, commit, author, duration);
3. for failures, the extracted error in a code block plus an optional hint;
4. a context line (commit message, trigger source, short build id);
5. an actions block whose buttons depend on the state.

Usage
-----
>>> document = build_notification(event, BuildState.SUCCEEDED, enrichment)
>>> document.text
'✅ Deployed: my-worker'

"""

from __future__ import annotations

import dataclasses
import datetime as dt
import typing as typ

import msgspec

from buildherald.diagnostics import DEFAULT_EXTRACTION_CONFIG, extract_build_error
from buildherald.events.state import DEFAULT_BRANCH_POLICY, BranchPolicy, BuildState
from buildherald.links import commit_url, dashboard_url, resolve_worker_name

if typ.TYPE_CHECKING:
    from buildherald.cloudflare.enrichment import EnrichmentResult
    from buildherald.diagnostics import ExtractionConfig
    from buildherald.events.models import BuildEvent, BuildPayload

type Block = dict[str, typ.Any]

MAX_BUTTONS = 5
HEADER_TEXT_LIMIT = 150
SECTION_TEXT_LIMIT = 3000
COMMIT_MESSAGE_LIMIT = 100
SHORT_HASH_LENGTH = 7
SHORT_BUILD_ID_LENGTH = 8
UNKNOWN_PLACEHOLDER = "unknown"

_SECONDS_PER_MINUTE = 60
_SECONDS_PER_HOUR = 3600
_ELLIPSIS = "…"
_ERROR_TEXT_PREFIX = "*Error:*\n```\n"
_ERROR_TEXT_SUFFIX = "\n```"
_ENTITY_MAX_LENGTH = len("&amp;")


class NotificationDocument(msgspec.Struct, kw_only=True, frozen=True):
    """Slack webhook body: a fallback summary line plus Block Kit blocks."""

    text: str
    blocks: list[dict[str, typ.Any]] = msgspec.field(default_factory=list)

    def to_json(self) -> bytes:
        """Encode the document as the webhook's JSON request body."""
        return msgspec.json.encode(self)

    def buttons(self) -> list[Block]:
        """Return the buttons of the actions block, if any."""
        for block in self.blocks:
            if block.get("type") == "actions":
                return list(block.get("elements", []))
        return []


@dataclasses.dataclass(frozen=True, slots=True)
class StatePresentation:
    """Emoji and headline shown for a build state."""

    emoji: str
    headline: str


STATE_PRESENTATION: dict[BuildState, StatePresentation] = {
    BuildState.SUCCEEDED: StatePresentation("✅", "Deployed"),
    BuildState.FAILED: StatePresentation("❌", "Build failed"),
    BuildState.CANCELED: StatePresentation("⚠️", "Build canceled"),
    BuildState.UNKNOWN: StatePresentation("📢", "Build update"),
}
PREVIEW_PRESENTATION = StatePresentation("✅", "Preview ready")


def escape_mrkdwn(text: str) -> str:
    """Escape the three characters Slack's mrkdwn reserves."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def truncate(text: str, limit: int) -> str:
    """Return ``text`` cut to at most ``limit`` characters with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 1] + _ELLIPSIS


def _parse_timestamp(value: str | None) -> dt.datetime | None:
    if not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed


def build_duration(payload: BuildPayload) -> dt.timedelta | None:
    """Return how long the build ran, or ``None`` when it cannot be known.

    Uses ``stoppedAt - runningAt`` when both are present, otherwise
    ``stoppedAt - createdAt``. Unparseable timestamps count as missing and
    negative spans are rejected.
    """
    stopped = _parse_timestamp(payload.stopped_at)
    if stopped is None:
        return None
    started = _parse_timestamp(payload.running_at) or _parse_timestamp(payload.created_at)
    if started is None:
        return None
    delta = stopped - started
    if delta < dt.timedelta(0):
        return None
    return delta


def format_duration(delta: dt.timedelta | None) -> str:
    """Format a duration as ``1h 2m 3s``, ``1m 18s`` or ``45s``."""
    if delta is None:
        return UNKNOWN_PLACEHOLDER
    total = int(delta.total_seconds())
    hours, remainder = divmod(total, _SECONDS_PER_HOUR)
    minutes, seconds = divmod(remainder, _SECONDS_PER_MINUTE)
    if hours:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def author_display_name(author: str | None) -> str | None:
    """Return the local part of an email-style author, else the author."""
    if not author or not author.strip():
        return None
    return author.split("@", 1)[0].strip() or None


def _button(label: str, url: str, style: str | None = None) -> Block:
    button: Block = {
        "type": "button",
        "text": {"type": "plain_text", "text": label, "emoji": True},
        "url": url,
    }
    if style is not None:
        button["style"] = style
    return button


def _mrkdwn(text: str) -> Block:
    return {"type": "mrkdwn", "text": text}


@dataclasses.dataclass(frozen=True, slots=True)
class _Links:
    dashboard: str | None
    commit: str | None


def cap_buttons(buttons: list[Block]) -> list[Block]:
    """Keep the earliest ``MAX_BUTTONS`` buttons, dropping the rest."""
    return buttons[:MAX_BUTTONS]


def _action_buttons(
    event: BuildEvent,
    state: BuildState,
    enrichment: EnrichmentResult,
    links: _Links,
    branch_policy: BranchPolicy,
) -> list[Block]:
    """Return the buttons for ``state``, earliest added first, capped."""
    buttons: list[Block] = []
    if state is BuildState.SUCCEEDED:
        production = branch_policy.is_production(event.branch)
        if not production and enrichment.preview_url:
            buttons.append(_button("View Preview", enrichment.preview_url, "primary"))
        elif production and enrichment.live_url:
            buttons.append(_button("View Worker", enrichment.live_url, "primary"))
    if state is BuildState.FAILED and links.dashboard:
        buttons.append(_button("View Full Logs", links.dashboard, "danger"))
    if links.commit:
        buttons.append(_button("View Commit", links.commit))
    if links.dashboard and all(b["url"] != links.dashboard for b in buttons):
        buttons.append(_button("View Build", links.dashboard))
    return cap_buttons(buttons)


def _field_section(event: BuildEvent, links: _Links) -> Block:
    fields: list[Block] = []
    trigger = event.trigger
    if event.branch:
        fields.append(_mrkdwn(f"*Branch:*\n`{escape_mrkdwn(event.branch)}`"))
    if trigger is not None and trigger.commit_hash:
        short_hash = escape_mrkdwn(trigger.commit_hash[:SHORT_HASH_LENGTH])
        commit = f"<{links.commit}|{short_hash}>" if links.commit else f"`{short_hash}`"
        fields.append(_mrkdwn(f"*Commit:*\n{commit}"))
    author = author_display_name(trigger.author if trigger is not None else None)
    if author:
        fields.append(_mrkdwn(f"*Author:*\n{escape_mrkdwn(author)}"))
    duration = format_duration(build_duration(event.payload))
    fields.append(_mrkdwn(f"*Duration:*\n{duration}"))
    return {"type": "section", "fields": fields}


def _context_block(event: BuildEvent) -> Block | None:
    elements: list[Block] = []
    trigger = event.trigger
    if trigger is not None and trigger.commit_message:
        first_line = trigger.commit_message.strip().splitlines()
        if first_line:
            message = truncate(first_line[0], COMMIT_MESSAGE_LIMIT)
            elements.append(_mrkdwn(f"💬 {escape_mrkdwn(message)}"))
    if trigger is not None and trigger.build_trigger_source:
        elements.append(_mrkdwn(f"via {escape_mrkdwn(trigger.build_trigger_source)}"))
    if event.build_uuid:
        short_id = escape_mrkdwn(event.build_uuid[:SHORT_BUILD_ID_LENGTH])
        elements.append(_mrkdwn(f"Build `{short_id}`"))
    if not elements:
        return None
    return {"type": "context", "elements": elements}


def _bound_escaped(text: str, limit: int, marker: str) -> str:
    """Cut escaped ``text`` to ``limit`` characters without splitting an entity."""
    if len(text) <= limit:
        return text
    cut = text[: limit - len(marker)]
    amp = cut.rfind("&", max(0, len(cut) - _ENTITY_MAX_LENGTH + 1))
    if amp != -1 and ";" not in cut[amp:]:
        cut = cut[:amp]
    return cut + marker


def _error_blocks(
    enrichment: EnrichmentResult, extraction_config: ExtractionConfig
) -> list[Block]:
    extracted = extract_build_error(enrichment.logs, extraction_config)
    # Escaping can grow the clamped snippet up to fivefold.
    budget = SECTION_TEXT_LIMIT - len(_ERROR_TEXT_PREFIX) - len(_ERROR_TEXT_SUFFIX)
    snippet = _bound_escaped(
        escape_mrkdwn(extracted.snippet), budget, extraction_config.truncation_marker
    )
    blocks: list[Block] = [
        {
            "type": "section",
            "text": _mrkdwn(f"{_ERROR_TEXT_PREFIX}{snippet}{_ERROR_TEXT_SUFFIX}"),
        }
    ]
    if extracted.hint:
        blocks.append(
            {"type": "context", "elements": [_mrkdwn(f"💡 {escape_mrkdwn(extracted.hint)}")]}
        )
    return blocks


def _presentation_for(state: BuildState, buttons: list[Block]) -> StatePresentation:
    shows_preview = any(b["text"]["text"] == "View Preview" for b in buttons)
    if state is BuildState.SUCCEEDED and shows_preview:
        return PREVIEW_PRESENTATION
    return STATE_PRESENTATION[state]


def build_notification(
    event: BuildEvent,
    state: BuildState,
    enrichment: EnrichmentResult,
    *,
    branch_policy: BranchPolicy = DEFAULT_BRANCH_POLICY,
    extraction_config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> NotificationDocument:
    """Compose the Slack notification for one classified, enriched event.

    Parameters
    ----------
    event
        The decoded build event.
    state
        Normalized build state for ``event``.
    enrichment
        URLs and logs gathered for the event; may be empty.
    branch_policy
        Decides whether the build's branch counts as production.
    extraction_config
        Rules used to pull the error snippet out of ``enrichment.logs``.

    Returns
    -------
    NotificationDocument
        A deterministic document for identical inputs.

    """
    links = _Links(dashboard=dashboard_url(event), commit=commit_url(event))
    buttons = _action_buttons(event, state, enrichment, links, branch_policy)
    presentation = _presentation_for(state, buttons)
    worker_name = resolve_worker_name(event)
    title = f"{presentation.emoji} {presentation.headline}: {worker_name}"

    blocks: list[Block] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": truncate(title, HEADER_TEXT_LIMIT),
                "emoji": True,
            },
        },
        _field_section(event, links),
    ]
    if state is BuildState.FAILED:
        blocks.extend(_error_blocks(enrichment, extraction_config))
    context = _context_block(event)
    if context is not None:
        blocks.append(context)
    if buttons:
        blocks.append({"type": "actions", "elements": buttons})

    return NotificationDocument(text=title, blocks=blocks)
