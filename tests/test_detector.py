"""Tests for the detector session."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import make_noise, make_solid
from detection.detector import AIDetector
from detection.errors import InvalidTrainingType
from detection.thresholds import default_thresholds
from utils.validators import ValidationError


def test_analyze_is_deterministic(noise_buffer) -> None:
    detector = AIDetector()
    first = detector.analyze(noise_buffer)
    second = detector.analyze(noise_buffer)
    assert first.to_dict() == second.to_dict()


def test_analyze_solid_image(solid_buffer) -> None:
    result = AIDetector().analyze(solid_buffer)

    assert result.score == pytest.approx(49.0)
    assert 0 <= result.score <= 100
    assert result.features["colors"]["uniqueColors"] == 1
    assert "Almost perfect symmetry (rare in natural photos)" in result.indicators


def test_analyze_attaches_metadata(solid_buffer) -> None:
    result = AIDetector().analyze(solid_buffer, metadata={"Make": "ACME"})
    assert result.metadata == {"Make": "ACME"}
    assert result.to_dict()["metadata"] == {"Make": "ACME"}


def test_result_mappings_are_read_only(solid_buffer) -> None:
    metadata = {"Make": "ACME"}
    result = AIDetector().analyze(solid_buffer, metadata=metadata)

    with pytest.raises(TypeError):
        result.details["colorBanding"] = 0.0
    with pytest.raises(TypeError):
        result.metadata["Make"] = "Other"

    # the caller's dict is copied, not aliased
    metadata["Make"] = "Other"
    assert result.metadata["Make"] == "ACME"


def test_analyze_rejects_small_image() -> None:
    with pytest.raises(ValidationError) as excinfo:
        AIDetector().analyze(make_solid(width=40, height=40))
    assert "too small" in str(excinfo.value)


def test_train_and_reset() -> None:
    detector = AIDetector()
    detector.train([make_solid()], "ai")
    detector.train([make_noise()], "real")

    assert detector.training_counts() == {"ai": 1, "real": 1}
    assert detector.thresholds != default_thresholds()

    detector.reset()
    assert detector.thresholds == default_thresholds()
    assert detector.training_counts() == {"ai": 0, "real": 0}


def test_bad_label_keeps_session_state() -> None:
    detector = AIDetector()
    before = detector.thresholds
    with pytest.raises(InvalidTrainingType):
        detector.train([make_solid()], "synthetic")
    assert detector.thresholds is before
    assert detector.training_counts() == {"ai": 0, "real": 0}


def test_sessions_are_independent() -> None:
    trained, fresh = AIDetector(), AIDetector()
    trained.train([make_solid()], "ai")
    trained.train([make_noise()], "real")

    assert fresh.thresholds == default_thresholds()
    assert fresh.training_counts() == {"ai": 0, "real": 0}


def test_calibrate_from_corpus() -> None:
    detector = AIDetector()
    detector.train([make_solid()], "ai")
    detector.train([make_noise()], "real")
    trained = detector.thresholds

    assert detector.calibrate() == trained


def test_max_samples_setting() -> None:
    assert AIDetector(max_samples=3).max_samples == 3


def test_concurrent_analyses_agree(noise_buffer) -> None:
    detector = AIDetector()
    expected = detector.analyze(noise_buffer).to_dict()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(detector.analyze, [noise_buffer] * 8))
    assert all(result.to_dict() == expected for result in results)


def test_dampening_can_be_disabled(solid_buffer) -> None:
    enabled = AIDetector().analyze(solid_buffer)
    disabled = AIDetector(dampening=False).analyze(solid_buffer)
    assert disabled.score >= enabled.score
