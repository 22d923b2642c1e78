"""RGBA pixel buffer handed to the detection engine."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class PixelBuffer:
    """Immutable RGBA view: ``len(samples) == width * height * 4``."""

    width: int
    height: int
    samples: bytes

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build a buffer from a decoded Pillow image."""

        if image.mode != "RGBA":
            image = image.convert("RGBA")
        width, height = image.size
        return cls(width=width, height=height, samples=image.tobytes())

    @classmethod
    def open(cls, path: Path | str) -> "PixelBuffer":
        """Decode an image file into a buffer."""

        with Image.open(Path(path)) as image:
            return cls.from_image(image)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an ``(h, w, 3)`` or ``(h, w, 4)`` uint8 array."""

        array = np.asarray(array, dtype=np.uint8)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (h, w, 3|4) array, got shape {array.shape}")
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        height, width = array.shape[:2]
        return cls(width=width, height=height, samples=np.ascontiguousarray(array).tobytes())

    def as_array(self) -> np.ndarray:
        """Return a read-only ``(height, width, 4)`` uint8 view of the samples."""

        array = np.frombuffer(self.samples, dtype=np.uint8)
        return array.reshape(self.height, self.width, 4)

    def rgb(self) -> np.ndarray:
        """Return the colour channels as signed integers, ready for deltas."""

        return self.as_array()[..., :3].astype(np.int16)
