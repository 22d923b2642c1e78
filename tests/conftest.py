from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from detection.pixel_buffer import PixelBuffer


def make_solid(width=64, height=64, color=(120, 80, 200, 255)) -> PixelBuffer:
    return PixelBuffer(width=width, height=height, samples=bytes(color) * (width * height))


def make_checkerboard(size=100) -> PixelBuffer:
    yy, xx = np.indices((size, size))
    values = np.where((xx + yy) % 2 == 0, 0, 255).astype(np.uint8)
    return PixelBuffer.from_array(np.stack([values] * 3, axis=-1))


def make_noise(width=96, height=80, seed=0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_array(rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8))


@pytest.fixture
def solid_buffer() -> PixelBuffer:
    return make_solid()


@pytest.fixture
def checkerboard_buffer() -> PixelBuffer:
    return make_checkerboard()


@pytest.fixture
def noise_buffer() -> PixelBuffer:
    return make_noise()
