"""Tests for the feature extractor."""
from __future__ import annotations

import math
import tracemalloc

import numpy as np
import pytest

from conftest import make_noise, make_solid
from detection.features import _neighbor_deltas, extract_features
from detection.pixel_buffer import PixelBuffer
from utils.validators import ValidationError

UNBOUNDED = {"uniqueColors", "saturationVariance", "luminanceVariance"}


def test_solid_buffer_features(solid_buffer) -> None:
    features = extract_features(solid_buffer)

    assert features["colors"]["uniqueColors"] == 1
    assert features["patterns"]["repeatingPatterns"] == 1.0
    assert features["patterns"]["sharpEdges"] == 0.0
    assert features["symmetry"]["horizontalSymmetry"] == 1.0
    assert features["symmetry"]["verticalSymmetry"] == 1.0

    assert features["textures"] == {"uniformity": 1.0, "unnaturalGradients": 0.0, "complexity": 0.0}
    assert features["colors"]["colorBanding"] == 0.0
    assert features["colors"]["saturationVariance"] == 0.0
    assert features["noise"]["artificialNoise"] == 1.0
    assert features["noise"]["naturalNoise"] == 0.0
    assert features["artifacts"]["compressionArtifacts"] == 1.0
    assert features["artifacts"]["perfectEdges"] == 0.0
    assert features["jpegBlocks"]["blockiness"] == 0.0
    assert features["frequency"] == {"highFrequency": 0.0, "lowFrequency": 1.0, "balance": 0.0}


def test_checkerboard_edges_and_blocks(checkerboard_buffer) -> None:
    features = extract_features(checkerboard_buffer)

    # 99 differing pairs per 100-pixel row
    assert features["patterns"]["sharpEdges"] == pytest.approx(0.99)
    # two distinct colours per 8x8 block: every block counts as repeating
    assert features["patterns"]["repeatingPatterns"] == 1.0
    assert features["colors"]["uniqueColors"] == 2
    assert features["textures"]["complexity"] == 1.0
    assert features["noise"]["artificialNoise"] == 1.0
    assert features["symmetry"]["horizontalSymmetry"] == 0.0
    assert features["frequency"]["highFrequency"] == 1.0


def test_all_metrics_finite_and_bounded(noise_buffer) -> None:
    features = extract_features(noise_buffer)

    assert list(features) == [
        "patterns", "textures", "colors", "symmetry", "noise", "artifacts", "jpegBlocks", "frequency",
    ]
    for category, metrics in features.items():
        for metric, value in metrics.items():
            assert math.isfinite(value), f"{category}.{metric}"
            if metric not in UNBOUNDED:
                assert 0.0 <= value <= 1.0, f"{category}.{metric}={value}"


def test_auxiliary_categories_optional(noise_buffer) -> None:
    features = extract_features(noise_buffer, auxiliary=False)
    assert "jpegBlocks" not in features
    assert "frequency" not in features


def test_mirrored_halves_symmetry() -> None:
    image = np.zeros((60, 80, 3), dtype=np.uint8)
    image[:, 40:] = 255
    features = extract_features(PixelBuffer.from_array(image))

    assert features["symmetry"]["horizontalSymmetry"] == 0.0
    assert features["symmetry"]["verticalSymmetry"] == 1.0


def test_smooth_gradient_bands() -> None:
    row = np.arange(100, dtype=np.uint8)
    image = np.zeros((60, 100, 3), dtype=np.uint8)
    image[..., 0] = row
    features = extract_features(PixelBuffer.from_array(image))

    # every in-row step is 1; the 59 row wraps jump by 99
    assert features["colors"]["colorBanding"] == pytest.approx(99 / 100)


def test_saturation_statistics() -> None:
    image = np.zeros((50, 50, 3), dtype=np.uint8)
    image[:25] = (255, 0, 0)
    features = extract_features(PixelBuffer.from_array(image))

    # half fully saturated red, half black (saturation 0 when max is 0)
    assert features["colors"]["averageSaturation"] == pytest.approx(0.5)
    assert features["colors"]["saturationVariance"] == pytest.approx(0.25)


def test_extraction_does_not_mutate_and_is_deterministic(noise_buffer) -> None:
    before = bytes(noise_buffer.samples)
    first = extract_features(noise_buffer)
    second = extract_features(noise_buffer)

    assert noise_buffer.samples == before
    assert first == second
    assert first.to_dict() != extract_features(make_noise(seed=1)).to_dict()


def test_extraction_validates_buffer() -> None:
    with pytest.raises(ValidationError):
        extract_features(make_solid(40, 40))


def test_feature_set_is_read_only(solid_buffer) -> None:
    features = extract_features(solid_buffer)
    with pytest.raises(TypeError):
        features["colors"]["uniqueColors"] = 5


@pytest.mark.parametrize("color", [(120, 80, 200, 255), (255, 255, 255, 255), (7, 90, 33, 255)])
def test_constant_image_has_zero_variance(color) -> None:
    colors = extract_features(make_solid(color=color))["colors"]
    assert colors["saturationVariance"] == 0.0
    assert colors["luminanceVariance"] == 0.0


def test_neighbor_deltas_stay_int16(noise_buffer) -> None:
    deltas = _neighbor_deltas(noise_buffer.rgb())
    assert deltas.dtype == np.int16
    assert deltas.shape == (4, noise_buffer.height - 2, noise_buffer.width - 2)
    assert deltas.max() <= 765


def test_extraction_memory_is_bounded() -> None:
    buffer = make_noise(width=512, height=512, seed=3)
    pixels = buffer.width * buffer.height

    tracemalloc.start()
    try:
        extract_features(buffer)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    # int16 working arrays; int64 intermediates would need well over 64 bytes/pixel
    assert peak < 56 * pixels
