"""
Threshold Calibrator
Re-derives thresholds from labelled analysis results.

The procedure is deliberately simple: one pass of class means and population
standard deviations, no cross-validation. A small labelled batch can overfit
the table.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config import DETECTION_SETTINGS
from detection.analysis import analyze
from detection.errors import CapacityExceeded, InvalidTrainingType
from detection.thresholds import RULES, ThresholdRule, ThresholdTable, calibrated_rules, is_finite_number, is_unbounded
from detection.types import AnalysisResult, FeatureSet
from utils.logger import setup_logger

logger = setup_logger(__name__)

LABELS = ("ai", "real")
AI_WEIGHT = 0.6
SPREAD_WEIGHT = 0.5


def check_label(label) -> str:
    if label not in LABELS:
        raise InvalidTrainingType(label)
    return label


class TrainingCorpus:
    """Labelled analysis results held for the current session."""

    def __init__(self, max_samples: Optional[int] = None):
        if max_samples is None:
            max_samples = DETECTION_SETTINGS["max_samples"]
        self.max_samples = max_samples
        self._samples: Dict[str, List[AnalysisResult]] = {label: [] for label in LABELS}

    @property
    def ai_samples(self) -> Tuple[AnalysisResult, ...]:
        return tuple(self._samples["ai"])

    @property
    def real_samples(self) -> Tuple[AnalysisResult, ...]:
        return tuple(self._samples["real"])

    def samples(self, label: str) -> Tuple[AnalysisResult, ...]:
        return tuple(self._samples[check_label(label)])

    def check_capacity(self, label: str, requested: int) -> None:
        current = len(self._samples[check_label(label)])
        if current + requested > self.max_samples:
            raise CapacityExceeded(label, current, requested, self.max_samples)

    def add(self, label: str, results: Sequence[AnalysisResult]) -> None:
        """Append *results* to one class; nothing is appended on failure."""
        results = list(results)
        self.check_capacity(label, len(results))
        self._samples[label].extend(results)

    def clear(self) -> None:
        for samples in self._samples.values():
            samples.clear()

    def counts(self) -> Dict[str, int]:
        return {label: len(samples) for label, samples in self._samples.items()}

    def __len__(self) -> int:
        return sum(len(samples) for samples in self._samples.values())


def _features(sample) -> FeatureSet:
    return sample.features if isinstance(sample, AnalysisResult) else sample


def _values(samples: Iterable, rule: ThresholdRule) -> np.ndarray:
    values = [_features(s).value(rule.category, rule.metric) for s in samples]
    return np.array([v for v in values if is_finite_number(v)], dtype=np.float64)


def calibrate(
    ai_samples: Sequence,
    real_samples: Sequence,
    thresholds: ThresholdTable,
    rules: Sequence[ThresholdRule] = RULES,
) -> ThresholdTable:
    """
    Compute a new threshold table from two labelled sample sets.

    Samples may be :class:`AnalysisResult` or :class:`FeatureSet` objects.
    Thresholds whose metric is missing from either class are kept as they are.

    Returns:
        ThresholdTable: a new table; *thresholds* is not modified
    """
    updates = {}
    for rule in calibrated_rules(rules):
        ai_values = _values(ai_samples, rule)
        real_values = _values(real_samples, rule)
        if ai_values.size == 0 or real_values.size == 0:
            continue

        ai_mean, real_mean = float(ai_values.mean()), float(real_values.mean())
        if is_unbounded(rule.category, rule.threshold_key):
            value = (ai_mean + real_mean) / 2
        else:
            ai_std, real_std = float(ai_values.std()), float(real_values.std())
            value = (
                ai_mean * AI_WEIGHT
                + real_mean * (1 - AI_WEIGHT)
                + (ai_std + real_std) * SPREAD_WEIGHT
            )
            value = min(1.0, max(0.0, value))
        updates[(rule.category, rule.threshold_key)] = value

    if updates:
        logger.debug(f"Calibrated {len(updates)} thresholds")
    return thresholds.replace(updates)


def train(
    buffers: Sequence,
    label: str,
    corpus: TrainingCorpus,
    thresholds: ThresholdTable,
) -> ThresholdTable:
    """
    Analyse *buffers*, store them under *label* and recalibrate.

    Every buffer is analysed before anything is stored, so a validation error
    leaves the corpus untouched.

    Returns:
        ThresholdTable: the recalibrated table
    """
    check_label(label)
    buffers = list(buffers)
    corpus.check_capacity(label, len(buffers))

    results = [analyze(buffer, thresholds) for buffer in buffers]
    return train_results(results, label, corpus, thresholds)


def train_results(
    results: Sequence[AnalysisResult],
    label: str,
    corpus: TrainingCorpus,
    thresholds: ThresholdTable,
) -> ThresholdTable:
    """Store already analysed *results* under *label* and recalibrate."""
    check_label(label)
    corpus.add(label, results)
    logger.info(f"Training: +{len(results)} {label} samples, corpus {corpus.counts()}")
    return calibrate(corpus.ai_samples, corpus.real_samples, thresholds)
