"""Single-image pipeline: validate, extract, score, describe."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from detection.features import extract_features
from detection.indicators import indicators
from detection.pixel_buffer import PixelBuffer
from detection.scoring import default_adjustments, score
from detection.types import AnalysisResult
from utils.validators import ensure_valid_buffer


def analyze(
    buffer: PixelBuffer,
    thresholds: Mapping[str, Mapping[str, float]],
    *,
    dampening: Optional[bool] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> AnalysisResult:
    """
    Analyse one pixel buffer against a threshold table.

    Args:
        buffer: RGBA pixel buffer
        thresholds: threshold table snapshot
        dampening: apply the event-photo adjustment (config default when omitted)
        metadata: optional display metadata (e.g. EXIF), passed through untouched

    Returns:
        AnalysisResult
    """
    ensure_valid_buffer(buffer)

    features = extract_features(buffer)
    report = score(features, thresholds, adjustments=default_adjustments(dampening))
    messages = indicators(features, thresholds)

    return AnalysisResult(
        score=report.score,
        features=features,
        indicators=messages,
        details=dict(report.details),
        metadata=dict(metadata or {}),
    )
