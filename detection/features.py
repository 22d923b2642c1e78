"""
Feature Extractor
Independent statistical scans over an RGBA pixel buffer.

Every scan reads the buffer through a read-only numpy view and returns a small
``metric -> ratio`` mapping. Channel deltas are absolute differences of 0..255
values; "summed" deltas add R, G and B (alpha is ignored everywhere).
"""
from __future__ import annotations

from typing import Dict

import numpy as np

from config import DETECTION_SETTINGS
from detection.pixel_buffer import PixelBuffer
from detection.types import FeatureSet
from utils.logger import setup_logger
from utils.validators import ensure_valid_buffer

logger = setup_logger(__name__)

BLOCK = 8


def _ratio(count, total) -> float:
    return float(count) / float(total) if total else 0.0


def _variance(values: np.ndarray) -> float:
    # pairwise summation leaves ~1e-32 residue on a constant signal
    if not np.ptp(values):
        return 0.0
    return float(values.var())


def _neighbor_deltas(channels: np.ndarray) -> np.ndarray:
    """Return ``(4, h-2, w-2)`` deltas of interior pixels to N, S, W, E.

    ``channels`` is ``(h, w, c)`` int16; deltas are summed over the channel
    axis and stay int16 (at most ``3 * 255``).
    """
    center = channels[1:-1, 1:-1]
    neighbors = (
        channels[:-2, 1:-1],
        channels[2:, 1:-1],
        channels[1:-1, :-2],
        channels[1:-1, 2:],
    )
    deltas = np.empty((4,) + center.shape[:2], dtype=np.int16)
    for out, neighbor in zip(deltas, neighbors):
        np.abs(center - neighbor).sum(axis=-1, dtype=np.int16, out=out)
    return deltas


def _complete_blocks(plane: np.ndarray, size: int = BLOCK) -> np.ndarray:
    """Split ``(h, w, ...)`` into ``(rows, cols, size, size, ...)`` complete tiles."""
    rows, cols = plane.shape[0] // size, plane.shape[1] // size
    trimmed = plane[: rows * size, : cols * size]
    tiles = trimmed.reshape((rows, size, cols, size) + plane.shape[2:])
    return np.swapaxes(tiles, 1, 2)


def detect_patterns(rgb: np.ndarray) -> Dict[str, float]:
    """Sharp horizontal edges and 8x8 blocks dominated by repeated colours."""
    height, width = rgb.shape[:2]

    horizontal = np.abs(rgb[:, 1:] - rgb[:, :-1]).sum(axis=2, dtype=np.int16)
    sharp_edges = np.count_nonzero(horizontal > 100)

    tiles = _complete_blocks(rgb)
    codes = (tiles[..., 0].astype(np.int32) << 16) | (tiles[..., 1].astype(np.int32) << 8) | tiles[..., 2]
    codes = np.sort(codes.reshape(-1, BLOCK * BLOCK), axis=1)
    distinct = 1 + np.count_nonzero(np.diff(codes, axis=1), axis=1)
    repeating = np.count_nonzero(distinct < (BLOCK * BLOCK) // 2)

    return {
        "sharpEdges": _ratio(sharp_edges, width * height),
        "repeatingPatterns": _ratio(repeating, distinct.size),
    }


def analyze_textures(deltas: np.ndarray) -> Dict[str, float]:
    """Local variation of interior pixels from their 4-neighbour deltas."""
    interior = deltas[0].size
    local = deltas.sum(axis=0, dtype=np.int16)
    narrow = np.zeros(local.shape, dtype=np.uint8)
    for delta in deltas:
        narrow += (delta > 0) & (delta < 10)

    return {
        "uniformity": _ratio(np.count_nonzero(local < 50), interior),
        "unnaturalGradients": _ratio(np.count_nonzero(narrow >= 3), interior),
        "complexity": _ratio(np.count_nonzero(local > 200), interior),
    }


def analyze_colors(rgb: np.ndarray) -> Dict[str, float]:
    """Palette size, saturation statistics and raster-order banding."""
    pixels = rgb.reshape(-1, 3)
    total = pixels.shape[0]

    quantized = pixels // 8
    codes = (quantized[:, 0].astype(np.int32) << 10) | (quantized[:, 1] << 5) | quantized[:, 2]
    del quantized
    unique_colors = np.unique(codes).size
    del codes

    high = pixels.max(axis=1)
    chroma = high - pixels.min(axis=1)
    saturation = np.divide(chroma, high, out=np.zeros(total), where=high != 0)
    saturation_mean = float(saturation.mean())
    saturation_variance = _variance(saturation)
    del saturation

    luminance = pixels[:, 0] * 0.299
    luminance += pixels[:, 1] * 0.587
    luminance += pixels[:, 2] * 0.114

    steps = np.abs(pixels[1:] - pixels[:-1]).sum(axis=1, dtype=np.int16)
    banding = np.count_nonzero((steps > 0) & (steps < 5))

    return {
        "colorBanding": _ratio(banding, total),
        "uniqueColors": float(unique_colors),
        "saturationVariance": saturation_variance,
        "averageSaturation": saturation_mean,
        "luminanceVariance": _variance(luminance),
    }


def analyze_symmetry(rgb: np.ndarray, tolerance: int | None = None) -> Dict[str, float]:
    """Share of mirrored pixel pairs that match across each centre line."""
    if tolerance is None:
        tolerance = DETECTION_SETTINGS["symmetry_tolerance"]
    height, width = rgb.shape[:2]
    half_w, half_h = width // 2, height // 2

    left = rgb[:, :half_w]
    right = rgb[:, ::-1][:, :half_w]
    horizontal = np.abs(left - right).sum(axis=2, dtype=np.int16)

    top = rgb[:half_h]
    bottom = rgb[::-1][:half_h]
    vertical = np.abs(top - bottom).sum(axis=2, dtype=np.int16)

    return {
        "horizontalSymmetry": _ratio(np.count_nonzero(horizontal < tolerance), horizontal.size),
        "verticalSymmetry": _ratio(np.count_nonzero(vertical < tolerance), vertical.size),
    }


def analyze_noise(deltas: np.ndarray) -> Dict[str, float]:
    """Irregular small variation (natural) versus flat or extreme variation."""
    interior = deltas[0].size
    highest = deltas.max(axis=0)
    lowest = deltas.min(axis=0)

    natural = (highest < 30) & (lowest > 5)
    regular = np.ones(highest.shape, dtype=bool)
    for delta in deltas[1:]:
        regular &= np.abs(delta - deltas[0]) < 2
    artificial = ~natural & (regular | (highest > 100))

    return {
        "artificialNoise": _ratio(np.count_nonzero(artificial), interior),
        "naturalNoise": _ratio(np.count_nonzero(natural), interior),
    }


def detect_artifacts(red: np.ndarray) -> Dict[str, float]:
    """Flat 8x8 blocks and hard noise-free edges, both on the red channel."""
    height, width = red.shape

    tiles = _complete_blocks(red)
    variation = np.abs(np.diff(tiles, axis=3)).sum(axis=(2, 3))
    flat_blocks = np.count_nonzero(variation < 100)

    deltas = _neighbor_deltas(red[..., np.newaxis])
    hard = (deltas.max(axis=0) > 100) & (deltas.min(axis=0) == 0)

    return {
        "compressionArtifacts": _ratio(flat_blocks, variation.size),
        "perfectEdges": _ratio(np.count_nonzero(hard), width * height),
    }


def detect_jpeg_blocks(rgb: np.ndarray) -> Dict[str, float]:
    """Strength of discontinuities along the 8-pixel JPEG grid."""
    height, width = rgb.shape[:2]
    rows = np.arange(BLOCK, height, BLOCK)
    cols = np.arange(BLOCK, width, BLOCK)

    across_rows = np.abs(rgb[rows, : width - 1] - rgb[rows - 1, : width - 1]).sum(axis=2)
    across_cols = np.abs(rgb[: height - 1, cols] - rgb[: height - 1, cols - 1]).sum(axis=2)

    boundaries = np.count_nonzero(across_rows > 15) + np.count_nonzero(across_cols > 15)
    checked = across_rows.size + across_cols.size
    return {"blockiness": _ratio(boundaries, checked)}


def analyze_frequency(deltas: np.ndarray) -> Dict[str, float]:
    """Spatial detail balance; a neighbour-delta proxy, not a Fourier transform."""
    interior = deltas[0].size
    # mean of the four deltas above 30 / below 5
    total = deltas.sum(axis=0, dtype=np.int16)
    high = np.count_nonzero(total > 120)
    low = np.count_nonzero(total < 20)

    return {
        "highFrequency": _ratio(high, interior),
        "lowFrequency": _ratio(low, interior),
        "balance": float(high) / float(high + low + 1),
    }


def extract_features(buffer: PixelBuffer, auxiliary: bool | None = None) -> FeatureSet:
    """
    Run every scan over *buffer*.

    Args:
        buffer: validated RGBA pixel buffer (validation is repeated here)
        auxiliary: include the jpegBlocks and frequency categories
                   (config default when omitted)

    Returns:
        FeatureSet: category -> metric -> value
    """
    ensure_valid_buffer(buffer)
    if auxiliary is None:
        auxiliary = DETECTION_SETTINGS.get("auxiliary_features", True)

    rgb = buffer.rgb()
    deltas = _neighbor_deltas(rgb)

    categories = {
        "patterns": detect_patterns(rgb),
        "textures": analyze_textures(deltas),
        "colors": analyze_colors(rgb),
        "symmetry": analyze_symmetry(rgb),
        "noise": analyze_noise(deltas),
        "artifacts": detect_artifacts(rgb[..., 0]),
    }
    if auxiliary:
        categories["jpegBlocks"] = detect_jpeg_blocks(rgb)
        categories["frequency"] = analyze_frequency(deltas)

    logger.debug(
        "Features %dx%d: %s",
        buffer.width,
        buffer.height,
        {k: {m: round(v, 4) for m, v in metrics.items()} for k, metrics in categories.items()},
    )
    return FeatureSet(categories)
