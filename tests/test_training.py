"""Tests for the training session manager."""
from __future__ import annotations

import pytest

from conftest import make_noise, make_solid
from detection.detector import AIDetector
from detection.errors import CapacityExceeded, InsufficientSamples, InvalidTrainingType, TrainingInactive
from detection.thresholds import default_thresholds
from detection.training import TrainingManager


def _manager(min_samples=2, max_samples=None) -> TrainingManager:
    return TrainingManager(AIDetector(max_samples=max_samples), min_samples=min_samples)


def _stage(manager: TrainingManager) -> None:
    for seed in range(2):
        manager.add_image(make_solid(color=(10 * seed, 20, 30, 255)), "ai")
        manager.add_image(make_noise(seed=seed), "real")


def test_add_image_requires_session() -> None:
    with pytest.raises(TrainingInactive):
        _manager().add_image(make_solid(), "ai")


def test_stop_requires_session() -> None:
    with pytest.raises(TrainingInactive):
        _manager().stop_training()


def test_add_image_rejects_unknown_label() -> None:
    manager = _manager()
    manager.start_training()
    with pytest.raises(InvalidTrainingType):
        manager.add_image(make_solid(), "fake")
    assert manager.counts() == {"ai": 0, "real": 0}


def test_insufficient_samples() -> None:
    manager = _manager(min_samples=3)
    manager.start_training()
    _stage(manager)

    with pytest.raises(InsufficientSamples) as excinfo:
        manager.stop_training()
    assert excinfo.value.minimum == 3
    assert manager.training_mode
    assert manager.detector.thresholds == default_thresholds()


def test_full_session() -> None:
    manager = _manager()
    manager.start_training()
    _stage(manager)

    thresholds = manager.stop_training()

    assert not manager.training_mode
    assert thresholds is manager.detector.thresholds
    assert thresholds != default_thresholds()
    assert manager.detector.training_counts() == {"ai": 2, "real": 2}


def test_capacity_checked_before_storing() -> None:
    manager = _manager(max_samples=1)
    manager.start_training()
    _stage(manager)

    with pytest.raises(CapacityExceeded):
        manager.stop_training()
    assert manager.detector.training_counts() == {"ai": 0, "real": 0}


def test_statistics_and_report() -> None:
    manager = _manager()
    manager.start_training()
    _stage(manager)

    stats = manager.statistics()
    assert stats["aiImages"]["count"] == 2
    ai_chars = stats["aiImages"]["characteristics"]
    assert ai_chars["averageCharacteristics"]["colors"]["uniqueColors"] == 1
    distribution = ai_chars["scoreDistribution"]
    assert distribution["min"] <= distribution["mean"] <= distribution["max"]

    report = manager.report()
    assert report["trainingOverview"] == {"aiImagesCount": 2, "realImagesCount": 2}
    assert report["currentThresholds"] == default_thresholds().to_dict()


def test_empty_statistics() -> None:
    stats = _manager().statistics()
    assert stats["realImages"] == {"count": 0, "characteristics": None}


def test_compare_image_types() -> None:
    manager = _manager()
    assert manager.compare_image_types() == {"significantDifferences": {}}

    manager.start_training()
    _stage(manager)
    differences = manager.compare_image_types()["significantDifferences"]

    assert differences["colors"]["uniqueColors"] > 1000
    assert "sharpEdges" in differences["patterns"]


def test_reset() -> None:
    manager = _manager()
    manager.start_training()
    _stage(manager)
    manager.stop_training()

    manager.reset()
    assert not manager.training_mode
    assert manager.counts() == {"ai": 0, "real": 0}
    assert manager.detector.thresholds == default_thresholds()
