"""Pick the most relevant error snippet out of a failed build's log.

Build output is verbose and the root cause usually sits near the end, often
followed only by stack frames or a generic "build failed" banner. The
extractor therefore walks the transcript backwards, ignores frames and
banners, and stops at the first line matching a strong failure indicator.

The rules live in :class:`ExtractionConfig` so they can be inspected,
tested and extended without touching the scanning code.
"""

from __future__ import annotations

import dataclasses
import functools
import re
import typing as typ

import msgspec

NO_LOGS_MESSAGE = 'No logs available. Click "View Full Logs" for details.'
GENERIC_FAILURE_MESSAGE = 'Build failed. Click "View Full Logs" for details.'

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


class IndicatorRule(msgspec.Struct, kw_only=True, frozen=True):
    """A named pattern that marks a likely root-cause line."""

    name: str
    pattern: str


class HintRule(msgspec.Struct, kw_only=True, frozen=True):
    """Substrings that map an error snippet to a remediation hint."""

    name: str
    keywords: tuple[str, ...]
    hint: str


class ExtractionConfig(msgspec.Struct, kw_only=True, frozen=True):
    """Rules and limits for :func:`extract_build_error`.

    Attributes
    ----------
    indicator_rules
        Strong failure indicators, matched case-insensitively. Order only
        decides which rule name is reported when a line matches several.
    banner_patterns
        Generic wrap-up lines that say *that* the build failed but not why.
        They are never picked as the error while a better line exists.
    stack_frame_pattern
        Lines matching this pattern are stack frames and never selected.
    hint_rules
        Remediation hints, checked in order against the lower-cased snippet.
    max_length
        Snippets longer than this are clamped.
    context_line_max_length
        The line after a match is appended only when shorter than this.
    truncation_marker
        Appended to clamped snippets.

    """

    indicator_rules: tuple[IndicatorRule, ...] = (
        IndicatorRule(
            name="missing_config",
            pattern=(
                r"(?:could not|couldn't|unable to) (?:find|read|locate)\b.*"
                r"(?:wrangler\.(?:toml|jsonc?)|config(?:uration)? file)"
            ),
        ),
        IndicatorRule(
            name="entry_point_not_found",
            pattern=(
                r"entry[- ]?point\b.*\b(?:not found|does not exist)"
                r"|missing entry[- ]?point"
            ),
        ),
        IndicatorRule(
            name="module_not_found",
            pattern=r"module not found|cannot find module|could not resolve\s+[\"']",
        ),
        IndicatorRule(name="typescript_error", pattern=r"\berror TS\d+"),
        IndicatorRule(
            name="javascript_error",
            pattern=r"\b(?:Syntax|Reference|Type|Range)Error\b",
        ),
        IndicatorRule(
            name="error_prefix",
            pattern=r"\berror:|✘\s*\[error\]|\bnpm err!",
        ),
        IndicatorRule(name="failed_prefix", pattern=r"\bfailed:"),
    )
    banner_patterns: tuple[str, ...] = (
        r"^\s*failed:\s+(?:an internal )?error occurred while running"
        r" (?:the )?(?:build|deploy|install)",
        r"^\s*(?:build|compilation) failed\b",
    )
    stack_frame_pattern: str = r"^\s*at\s"
    hint_rules: tuple[HintRule, ...] = (
        HintRule(
            name="missing_config",
            keywords=(
                "wrangler.toml",
                "wrangler.json",
                "could not find a wrangler",
                "config file",
                "configuration file",
            ),
            hint=(
                "Check that a Wrangler configuration file exists in the project"
                " root, or set the root directory in the build settings."
            ),
        ),
        HintRule(
            name="missing_build_output",
            keywords=(
                "entry-point file",
                "entry point",
                "output directory",
                "no such file or directory",
                "enoent",
            ),
            hint=(
                "The build output was not found. Make sure the build command"
                " writes to the directory your Wrangler configuration points at."
            ),
        ),
        HintRule(
            name="dependency_issue",
            keywords=(
                "module not found",
                "cannot find module",
                "could not resolve",
                "eresolve",
                "peer dep",
                "lockfile",
            ),
            hint=(
                "A dependency could not be resolved. Check that package.json"
                " and the lockfile are committed and in sync."
            ),
        ),
        HintRule(
            name="command_failed",
            keywords=("command failed", "exit code", "exited with code"),
            hint=(
                "The build command exited with an error. Run it locally to"
                " reproduce the failure."
            ),
        ),
    )
    max_length: int = 1000
    context_line_max_length: int = 200
    truncation_marker: str = "\n..."


DEFAULT_EXTRACTION_CONFIG = ExtractionConfig()


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractedError:
    """Result of scanning a log transcript.

    Attributes
    ----------
    snippet
        Non-empty error text to show in the notification.
    hint
        Remediation hint for the snippet, if one applies.
    matched_rule
        Name of the indicator rule that selected the line, or ``None`` when
        a fallback produced the snippet.

    """

    snippet: str
    hint: str | None = None
    matched_rule: str | None = None


@functools.lru_cache(maxsize=32)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def _clean(line: str) -> str:
    return _ANSI_ESCAPE.sub("", line).rstrip()


def _clamp(text: str, config: ExtractionConfig) -> str:
    if len(text) <= config.max_length:
        return text
    return text[: config.max_length] + config.truncation_marker


class _LineClassifier:
    """Compiled view of an :class:`ExtractionConfig`."""

    def __init__(self, config: ExtractionConfig) -> None:
        self._frame = _compile(config.stack_frame_pattern)
        self._banners = tuple(_compile(p) for p in config.banner_patterns)
        self._rules = tuple(
            (rule.name, _compile(rule.pattern)) for rule in config.indicator_rules
        )

    def is_frame(self, line: str) -> bool:
        return self._frame.match(line) is not None

    def is_banner(self, line: str) -> bool:
        return any(banner.search(line) for banner in self._banners)

    def indicator(self, line: str) -> str | None:
        for name, pattern in self._rules:
            if pattern.search(line):
                return name
        return None


def _with_context(
    lines: typ.Sequence[str],
    index: int,
    classifier: _LineClassifier,
    config: ExtractionConfig,
) -> str:
    selected = lines[index].strip()
    if index + 1 >= len(lines):
        return selected
    following = lines[index + 1]
    if (
        following.strip()
        and not classifier.is_frame(following)
        and not classifier.is_banner(following)
        and len(following) < config.context_line_max_length
    ):
        return f"{selected}\n{following.strip()}"
    return selected


def _find_indicator(
    lines: typ.Sequence[str], classifier: _LineClassifier
) -> tuple[int, str] | None:
    for index in range(len(lines) - 1, -1, -1):
        line = lines[index]
        if not line.strip() or classifier.is_frame(line) or classifier.is_banner(line):
            continue
        rule = classifier.indicator(line)
        if rule is not None:
            return (index, rule)
    return None


def _last_meaningful_line(
    lines: typ.Sequence[str], classifier: _LineClassifier
) -> str | None:
    for line in reversed(lines):
        if line.strip() and not classifier.is_frame(line):
            return line.strip()
    return None


def classify_error_hint(
    snippet: str,
    config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> str | None:
    """Return a remediation hint for ``snippet``, or ``None`` if none applies."""
    lowered = snippet.lower()
    for rule in config.hint_rules:
        if any(keyword in lowered for keyword in rule.keywords):
            return rule.hint
    return None


def extract_build_error(
    logs: typ.Sequence[str],
    config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> ExtractedError:
    """Return the most relevant error snippet from a build log.

    Parameters
    ----------
    logs
        Log lines in the order the build produced them.
    config
        Indicator, banner and hint rules plus length limits.

    Returns
    -------
    ExtractedError
        Always carries non-empty text: the matched line (plus one short
        line of context), else the last meaningful line, else a fixed
        message. The text is clamped to ``config.max_length``.

    """
    if not logs:
        return ExtractedError(snippet=NO_LOGS_MESSAGE)

    cleaned = [_clean(line) for line in logs]
    classifier = _LineClassifier(config)

    found = _find_indicator(cleaned, classifier)
    if found is not None:
        index, rule = found
        snippet = _clamp(_with_context(cleaned, index, classifier, config), config)
        return ExtractedError(
            snippet=snippet,
            hint=classify_error_hint(snippet, config),
            matched_rule=rule,
        )

    fallback = _last_meaningful_line(cleaned, classifier)
    if fallback is None:
        return ExtractedError(snippet=GENERIC_FAILURE_MESSAGE)
    snippet = _clamp(fallback, config)
    return ExtractedError(snippet=snippet, hint=classify_error_hint(snippet, config))
