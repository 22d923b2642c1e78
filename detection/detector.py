"""
AI Image Detector
One detector session: a live threshold table plus its training corpus.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional, Sequence

from config import DETECTION_SETTINGS
from detection import calibration, persistence
from detection.analysis import analyze
from detection.calibration import TrainingCorpus
from detection.thresholds import ThresholdTable, default_thresholds
from detection.types import AnalysisResult, TrainingStats
from utils.logger import log_operation, setup_logger

logger = setup_logger(__name__)


class AIDetector:
    """Detector session.

    The threshold table is immutable; training, model import and reset build a
    new table and swap the reference under a lock. Analyses read whichever
    table was current when they started.
    """

    def __init__(self, max_samples: Optional[int] = None, dampening: Optional[bool] = None):
        """Initialize a session with default thresholds"""
        if max_samples is None:
            max_samples = DETECTION_SETTINGS["max_samples"]
        self.dampening = dampening
        self.corpus = TrainingCorpus(max_samples)
        self._thresholds = default_thresholds()
        self._write_lock = threading.Lock()
        logger.debug("AIDetector initialized")

    @property
    def thresholds(self) -> ThresholdTable:
        return self._thresholds

    @property
    def max_samples(self) -> int:
        return self.corpus.max_samples

    @log_operation("Analyze Image")
    def analyze(self, buffer, metadata: Optional[Mapping[str, Any]] = None) -> AnalysisResult:
        """
        Validate, extract, score and describe one image.

        Args:
            buffer: RGBA pixel buffer
            metadata: optional display metadata attached to the result

        Returns:
            AnalysisResult
        """
        result = analyze(buffer, self._thresholds, dampening=self.dampening, metadata=metadata)
        logger.info(f"Score: {result.score:.1f}/100, {len(result.indicators)} indicators")
        return result

    @log_operation("Train Model")
    def train(self, buffers: Sequence, label: str) -> ThresholdTable:
        """
        Add labelled images to the corpus and recalibrate the thresholds.

        Raises:
            InvalidTrainingType: *label* is not "ai" or "real"
            CapacityExceeded: the class would exceed ``max_samples``
            ValidationError: one of the buffers is malformed
        """
        with self._write_lock:
            self._thresholds = calibration.train(buffers, label, self.corpus, self._thresholds)
            return self._thresholds

    def train_results(self, results: Sequence[AnalysisResult], label: str) -> ThresholdTable:
        """Same as :meth:`train` for results that were analysed already."""
        with self._write_lock:
            self._thresholds = calibration.train_results(
                results, label, self.corpus, self._thresholds
            )
            return self._thresholds

    def calibrate(self) -> ThresholdTable:
        """Recalibrate from the current corpus."""
        with self._write_lock:
            self._thresholds = calibration.calibrate(
                self.corpus.ai_samples, self.corpus.real_samples, self._thresholds
            )
            return self._thresholds

    def export_model(self) -> str:
        return persistence.export_model(self._thresholds, self.corpus.counts())

    @log_operation("Import Model")
    def import_model(self, text) -> TrainingStats:
        """Replace the thresholds with an exported model; unchanged on error."""
        table, stats = persistence.import_model(text)
        with self._write_lock:
            self._thresholds = table
        return stats

    def reset(self) -> None:
        """Restore default thresholds and empty the corpus."""
        with self._write_lock:
            self._thresholds = default_thresholds()
            self.corpus.clear()
        logger.info("Detector reset to default thresholds")

    def training_counts(self) -> Dict[str, int]:
        return self.corpus.counts()
