"""Unit tests for build log error extraction."""

from __future__ import annotations

import pytest

from buildherald.diagnostics import (
    DEFAULT_EXTRACTION_CONFIG,
    GENERIC_FAILURE_MESSAGE,
    NO_LOGS_MESSAGE,
    ExtractionConfig,
    HintRule,
    IndicatorRule,
    classify_error_hint,
    extract_build_error,
)


class TestExtractBuildError:
    """Tests for extract_build_error."""

    def test_empty_logs_give_no_logs_message(self) -> None:
        """An empty transcript yields the fixed no-logs text and no hint."""
        extracted = extract_build_error([])

        assert extracted.snippet == NO_LOGS_MESSAGE
        assert extracted.hint is None
        assert extracted.matched_rule is None

    def test_error_line_followed_by_stack_frames(self) -> None:
        """Stack frames after the error are neither picked nor appended."""
        logs = [
            "Installing dependencies",
            "ERROR: Build failed with 1 error",
            "    at build (/app/node_modules/esbuild/lib/main.js:1:1)",
            "    at async main (/app/build.js:10:3)",
        ]

        extracted = extract_build_error(logs)

        assert extracted.snippet == "ERROR: Build failed with 1 error"
        assert extracted.matched_rule == "error_prefix"

    def test_latest_indicator_wins(self) -> None:
        """The scan runs backwards, so the last strong indicator is chosen."""
        logs = [
            "error: first problem",
            "some output",
            "src/index.ts(3,7): error TS2322: Type 'string' is not assignable",
        ]

        extracted = extract_build_error(logs)

        assert "TS2322" in extracted.snippet
        assert extracted.matched_rule == "typescript_error"

    def test_generic_banner_is_skipped(self) -> None:
        """Wrap-up banners never hide the real error above them."""
        logs = [
            "✘ [ERROR] Could not resolve \"left-pad\"",
            "",
            "Failed: error occurred while running build command",
        ]

        extracted = extract_build_error(logs)

        assert extracted.snippet.startswith('✘ [ERROR] Could not resolve "left-pad"')
        assert extracted.matched_rule == "module_not_found"

    def test_short_following_line_is_appended(self) -> None:
        """One short, non-frame line after the match is kept as context."""
        logs = [
            "Error: Cannot find module 'express'",
            "Require stack: /app/index.js",
            "done",
        ]

        extracted = extract_build_error(logs)

        assert extracted.snippet == (
            "Error: Cannot find module 'express'\nRequire stack: /app/index.js"
        )

    def test_long_following_line_is_not_appended(self) -> None:
        """Context lines at or above the limit are dropped."""
        long_line = "x" * 300
        extracted = extract_build_error(["error: boom", long_line])

        assert extracted.snippet == "error: boom"

    def test_ansi_codes_are_stripped(self) -> None:
        """Terminal colour codes do not leak into the snippet."""
        extracted = extract_build_error(["\x1b[31mERROR:\x1b[0m broken config"])

        assert extracted.snippet == "ERROR: broken config"

    def test_fallback_to_last_meaningful_line(self) -> None:
        """Without indicators, the last non-frame line is used."""
        logs = ["step one", "step two finished oddly", "    at foo (bar.js:1:1)", ""]

        extracted = extract_build_error(logs)

        assert extracted.snippet == "step two finished oddly"
        assert extracted.matched_rule is None

    def test_only_frames_and_blanks_give_generic_message(self) -> None:
        """A transcript with nothing usable gives the generic text."""
        extracted = extract_build_error(["", "   at x (y.js:1:1)", "   "])

        assert extracted.snippet == GENERIC_FAILURE_MESSAGE

    def test_long_error_is_clamped(self) -> None:
        """Snippets above max_length are cut and marked."""
        line = "ERROR: " + "a" * 1500

        extracted = extract_build_error([line])

        assert extracted.snippet == line[:1000] + "\n..."

    def test_clamp_length_is_configurable(self) -> None:
        """max_length comes from the extraction config."""
        config = ExtractionConfig(max_length=10, truncation_marker="~")

        extracted = extract_build_error(["ERROR: something long"], config)

        assert extracted.snippet == "ERROR: som~"

    def test_custom_indicator_rules(self) -> None:
        """Rule tables can be replaced without touching the scanner."""
        config = ExtractionConfig(
            indicator_rules=(IndicatorRule(name="panic", pattern=r"\bpanic\b"),)
        )
        logs = ["panic: runtime error", "error: ignored by this config"]

        extracted = extract_build_error(logs, config)

        assert extracted.matched_rule == "panic"
        assert extracted.snippet.startswith("panic: runtime error")


class TestClassifyErrorHint:
    """Tests for classify_error_hint."""

    @pytest.mark.parametrize(
        ("snippet", "rule_name"),
        [
            ("Could not find a wrangler.toml file", "missing_config"),
            ("ENOENT: no such file or directory, open 'dist/index.js'", "missing_build_output"),
            ("Module not found: Can't resolve 'react'", "dependency_issue"),
            ("Command failed with exit code 1", "command_failed"),
        ],
    )
    def test_hint_table(self, snippet: str, rule_name: str) -> None:
        """Each hint rule is matched by its keywords."""
        expected = next(
            rule.hint
            for rule in DEFAULT_EXTRACTION_CONFIG.hint_rules
            if rule.name == rule_name
        )
        assert classify_error_hint(snippet) == expected

    def test_no_hint_for_unmatched_snippet(self) -> None:
        """Unrecognised snippets have no hint."""
        assert classify_error_hint("something strange happened") is None

    def test_custom_hint_rules(self) -> None:
        """Hint tables can be extended."""
        config = ExtractionConfig(
            hint_rules=(HintRule(name="oom", keywords=("heap",), hint="Raise memory."),)
        )
        assert classify_error_hint("JavaScript heap out of memory", config) == (
            "Raise memory."
        )
