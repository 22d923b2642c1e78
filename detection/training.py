"""
Training Manager
Collects labelled images for a training session and reports on them.
"""
from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from config import DETECTION_SETTINGS
from detection.calibration import LABELS, check_label
from detection.detector import AIDetector
from detection.errors import InsufficientSamples, TrainingInactive
from detection.thresholds import calibrated_rules
from detection.types import AnalysisResult
from utils.logger import log_operation, setup_logger

logger = setup_logger(__name__)


class TrainingManager:
    """Stages labelled images, then hands them to an :class:`AIDetector`."""

    def __init__(self, detector: AIDetector, min_samples: Optional[int] = None):
        if min_samples is None:
            min_samples = DETECTION_SETTINGS["min_training_samples"]
        self.detector = detector
        self.min_samples = min_samples
        self.training_mode = False
        self._staged: Dict[str, List[AnalysisResult]] = {label: [] for label in LABELS}

    def start_training(self) -> None:
        self.training_mode = True
        self._clear_staged()
        logger.info("Training mode started")

    def add_image(self, buffer, label: str) -> AnalysisResult:
        """
        Analyse *buffer* and stage it under *label*.

        Returns:
            AnalysisResult: the staged analysis
        """
        if not self.training_mode:
            raise TrainingInactive("Training mode is not active")
        check_label(label)

        result = self.detector.analyze(buffer)
        self._staged[label].append(result)
        logger.info(f"Image added ({label}). Total: {len(self._staged[label])}")
        return result

    def stop_training(self):
        """
        Train the detector on the staged images and leave training mode.

        Raises:
            TrainingInactive: no session is running
            InsufficientSamples: fewer than ``min_samples`` images in a class
        """
        if not self.training_mode:
            raise TrainingInactive("No training in progress")

        counts = self.counts()
        if any(count < self.min_samples for count in counts.values()):
            raise InsufficientSamples(counts, self.min_samples)

        # capacity is checked for both classes before either is stored
        for label in LABELS:
            self.detector.corpus.check_capacity(label, counts[label])
        for label in LABELS:
            self.detector.train_results(self._staged[label], label)

        self.training_mode = False
        log_operation(logger, "Training Session", details=f"ai={counts['ai']}, real={counts['real']}")
        return self.detector.thresholds

    def counts(self) -> Dict[str, int]:
        return {label: len(results) for label, results in self._staged.items()}

    def reset(self) -> None:
        """Leave training mode, drop staged images and reset the detector."""
        self.training_mode = False
        self._clear_staged()
        self.detector.reset()
        logger.info("Full reset")

    def _clear_staged(self) -> None:
        for results in self._staged.values():
            results.clear()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def statistics(self) -> dict:
        return {
            f"{label}Images": {
                "count": len(results),
                "characteristics": self.analyze_image_set(results),
            }
            for label, results in self._staged.items()
        }

    def analyze_image_set(self, results: List[AnalysisResult]) -> Optional[dict]:
        """Average monitored metrics and score distribution of one class."""
        if not results:
            return None

        averages: Dict[str, Dict[str, float]] = {}
        for rule in calibrated_rules():
            values = [r.features.value(rule.category, rule.metric) for r in results]
            values = [v for v in values if v is not None]
            if values:
                averages.setdefault(rule.category, {})[rule.metric] = float(np.mean(values))

        scores = np.array([r.score for r in results], dtype=np.float64)
        return {
            "averageCharacteristics": averages,
            "scoreDistribution": {
                "min": float(scores.min()),
                "max": float(scores.max()),
                "mean": float(scores.mean()),
                "stdDev": float(scores.std()),
            },
        }

    def report(self) -> dict:
        stats = self.statistics()
        return {
            "trainingOverview": {
                "aiImagesCount": stats["aiImages"]["count"],
                "realImagesCount": stats["realImages"]["count"],
            },
            "aiImageCharacteristics": stats["aiImages"]["characteristics"],
            "realImageCharacteristics": stats["realImages"]["characteristics"],
            "currentThresholds": self.detector.thresholds.to_dict(),
        }

    def compare_image_types(self, min_difference: float = 0.1) -> dict:
        """Metrics whose class averages differ by more than *min_difference*."""
        ai_stats = self.analyze_image_set(self._staged["ai"])
        real_stats = self.analyze_image_set(self._staged["real"])
        if ai_stats is None or real_stats is None:
            return {"significantDifferences": {}}

        ai_chars = ai_stats["averageCharacteristics"]
        real_chars = real_stats["averageCharacteristics"]
        differences: Dict[str, Dict[str, float]] = {}
        for category, metrics in ai_chars.items():
            for metric, ai_value in metrics.items():
                real_value = real_chars.get(category, {}).get(metric)
                if real_value is None:
                    continue
                diff = abs(ai_value - real_value)
                if diff > min_difference:
                    differences.setdefault(category, {})[metric] = diff
        return {"significantDifferences": differences}
