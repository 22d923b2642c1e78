"""
Block-granularity maps for overlay tooling.

These re-run simplified feature logic per tile so a viewer can paint where the
suspicious regions are. They do not feed the score.
"""
from __future__ import annotations

from collections import defaultdict
from typing import List, Tuple

import numpy as np

from detection.pixel_buffer import PixelBuffer
from utils.validators import ensure_valid_buffer

JPEG_BLOCK = 8


def suspicion_heatmap(buffer: PixelBuffer, block_size: int = 16) -> np.ndarray:
    """
    Per-pixel suspicion map (0..100), constant over each tile.

    A tile scores +40 with fewer than 10 coarse colours, +30 with more than
    ``2 * block_size`` sharp horizontal edges and -20 with more than 50 coarse
    colours. Partial tiles at the right/bottom border are scored as well.
    """
    ensure_valid_buffer(buffer)
    rgb = buffer.rgb()
    height, width = rgb.shape[:2]
    coarse = rgb // 32
    codes = (coarse[..., 0] << 6) | (coarse[..., 1] << 3) | coarse[..., 2]
    edges = np.abs(rgb[:, 1:] - rgb[:, :-1]).sum(axis=2, dtype=np.int16) > 100

    heatmap = np.zeros((height, width), dtype=np.uint8)
    for y in range(0, height, block_size):
        for x in range(0, width, block_size):
            x_end, y_end = min(x + block_size, width), min(y + block_size, height)
            colors = np.unique(codes[y:y_end, x:x_end]).size
            # edges inside the tile only: the last column has no in-tile neighbour
            edge_count = np.count_nonzero(edges[y:y_end, x:min(x + block_size - 1, width - 1)])

            suspicion = 0
            if colors < 10:
                suspicion += 40
            if edge_count > block_size * 2:
                suspicion += 30
            if colors > 50:
                suspicion -= 20
            heatmap[y:y_end, x:x_end] = max(0, min(100, suspicion))
    return heatmap


def jpeg_block_grid(buffer: PixelBuffer, min_boundary: int = 5) -> List[Tuple[int, int]]:
    """Origins of 8x8 tiles whose top/left edge shows a visible block boundary."""
    ensure_valid_buffer(buffer)
    rgb = buffer.rgb()
    height, width = rgb.shape[:2]

    flagged = []
    for y in range(0, height, JPEG_BLOCK):
        for x in range(0, width, JPEG_BLOCK):
            x_end, y_end = min(x + JPEG_BLOCK, width), min(y + JPEG_BLOCK, height)
            boundary = 0
            if y > 0:
                diff = np.abs(rgb[y, x:x_end] - rgb[y - 1, x:x_end]).sum(axis=1)
                boundary += np.count_nonzero(diff > 15)
            if x > 0:
                diff = np.abs(rgb[y:y_end, x] - rgb[y:y_end, x - 1]).sum(axis=1)
                boundary += np.count_nonzero(diff > 15)
            if boundary > min_boundary:
                flagged.append((x, y))
    return flagged


def repeated_blocks(
    buffer: PixelBuffer,
    block_size: int = 16,
    min_occurrences: int = 3,
) -> List[Tuple[int, int]]:
    """Origins of tiles whose sampled coarse signature occurs repeatedly.

    The signature samples every 4th pixel of the tile in both directions and
    quantizes each channel to 8 levels.
    """
    ensure_valid_buffer(buffer)
    rgb = buffer.rgb()
    height, width = rgb.shape[:2]
    coarse = (rgb // 32).astype(np.uint8)

    locations = defaultdict(list)
    for y in range(0, height - block_size, block_size):
        for x in range(0, width - block_size, block_size):
            signature = coarse[y:y + block_size:4, x:x + block_size:4].tobytes()
            locations[signature].append((x, y))

    repeated = []
    for origins in locations.values():
        if len(origins) >= min_occurrences:
            repeated.extend(origins)
    return repeated
