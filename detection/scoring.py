"""
Score Synthesizer
Turns a FeatureSet into a capped 0..100 suspicion score.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

from config import DETECTION_SETTINGS
from detection.thresholds import RULES, ThresholdRule
from detection.types import FeatureSet, ScoreReport
from utils.logger import setup_logger

logger = setup_logger(__name__)

MAX_SCORE = 100.0


@dataclass(frozen=True)
class EventPhotoDampening:
    """Bias correction for busy real-world photos (crowds, events, foliage).

    Such photos are textured, noisy and colourful enough to cross several
    ABOVE rules at once. When all of the conditions hold, the score is scaled
    down to ``max(floor, score * factor)``; it is never raised. The constants
    are empirical and the rule can be switched off in
    ``DETECTION_SETTINGS["event_photo_dampening"]``.
    """

    min_complexity: float = 0.35
    min_natural_noise: float = 0.15
    min_saturation_variance: float = 0.15
    max_symmetry: float = 0.6
    factor: float = 0.45
    floor: float = 8.0

    name = "eventPhoto"

    def applies(self, features: FeatureSet) -> bool:
        complexity = features.value("textures", "complexity") or 0.0
        natural = features.value("noise", "naturalNoise") or 0.0
        saturation = features.value("colors", "saturationVariance") or 0.0
        horizontal = features.value("symmetry", "horizontalSymmetry")
        vertical = features.value("symmetry", "verticalSymmetry")
        low_symmetry = (horizontal is not None and horizontal < self.max_symmetry) or (
            vertical is not None and vertical < self.max_symmetry
        )
        return (
            complexity > self.min_complexity
            and natural > self.min_natural_noise
            and saturation > self.min_saturation_variance
            and low_symmetry
        )

    def adjust(self, score: float) -> float:
        return min(score, max(self.floor, score * self.factor))


def default_adjustments(enabled: Optional[bool] = None) -> tuple:
    if enabled is None:
        enabled = DETECTION_SETTINGS.get("event_photo_dampening", True)
    return (EventPhotoDampening(),) if enabled else ()


def score(
    features: FeatureSet,
    thresholds: Mapping[str, Mapping[str, float]],
    rules: Sequence[ThresholdRule] = RULES,
    adjustments: Optional[Iterable[EventPhotoDampening]] = None,
) -> ScoreReport:
    """
    Accumulate per-rule sub-scores for every crossed threshold.

    Args:
        features: extracted feature set
        thresholds: current threshold table
        rules: rule table to evaluate
        adjustments: score adjustments (config default when omitted)

    Returns:
        ScoreReport: clamped score plus uncapped per-rule contributions
    """
    if adjustments is None:
        adjustments = default_adjustments()

    details: Dict[str, float] = {}
    grouped: Dict[str, float] = {}
    total = 0.0

    for rule in rules:
        if rule.weight <= 0:
            continue
        value = features.value(rule.category, rule.metric)
        if value is None:
            continue
        threshold = rule.threshold(thresholds)
        if not rule.direction.crossed(value, threshold):
            continue

        raw = rule.contribution(value, threshold)
        capped = max(0.0, min(raw, rule.weight))
        if rule.group is None:
            details[rule.name] = raw
            total += capped
        elif capped >= grouped.get(rule.group, -1.0):
            grouped[rule.group] = capped
            details[rule.group] = raw

    total += sum(grouped.values())
    total = max(0.0, min(MAX_SCORE, total))

    dampened = False
    for adjustment in adjustments:
        if adjustment.applies(features):
            adjusted = adjustment.adjust(total)
            logger.debug(f"{adjustment.name} adjustment: {total:.2f} -> {adjusted:.2f}")
            total = adjusted
            dampened = True

    return ScoreReport(score=max(0.0, min(MAX_SCORE, total)), details=details, dampened=dampened)
