"""Heuristic error extraction from build logs."""

from __future__ import annotations

from .extraction import (
    DEFAULT_EXTRACTION_CONFIG,
    GENERIC_FAILURE_MESSAGE,
    NO_LOGS_MESSAGE,
    ExtractedError,
    ExtractionConfig,
    HintRule,
    IndicatorRule,
    classify_error_hint,
    extract_build_error,
)

__all__ = [
    "DEFAULT_EXTRACTION_CONFIG",
    "GENERIC_FAILURE_MESSAGE",
    "NO_LOGS_MESSAGE",
    "ExtractedError",
    "ExtractionConfig",
    "HintRule",
    "IndicatorRule",
    "classify_error_hint",
    "extract_build_error",
]
