"""
Threshold table and the static rule table that reads it.

``RULES`` is the one place that says, for every monitored metric, which
threshold bounds it, in which direction a value becomes suspicious, how many
score points it may contribute and how it is phrased as an indicator. The
score synthesizer, the indicator generator and the calibrator all iterate it.
"""
from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

DEFAULT_THRESHOLDS = {
    "patterns": {
        "repeatingPatterns": 0.45,
        "sharpEdges": 0.06,
    },
    "textures": {
        "uniformity": 0.60,
        "unnaturalGradients": 0.25,
        "complexity": 0.15,
    },
    "colors": {
        "colorBanding": 0.22,
        "uniqueColors": 3500,
        "saturationVariance": 0.04,
    },
    "symmetry": {
        "horizontalThreshold": 0.85,
        "verticalThreshold": 0.85,
    },
    "noise": {
        "artificialNoiseThreshold": 0.35,
        "naturalNoiseThreshold": 0.03,
    },
    "artifacts": {
        "compressionArtifacts": 0.35,
        "perfectEdges": 0.25,
    },
}

# Thresholds that are counts rather than [0, 1] ratios
UNBOUNDED_THRESHOLDS = frozenset({("colors", "uniqueColors")})


class ThresholdTable(Mapping[str, Mapping[str, float]]):
    """Immutable ``category -> metric -> threshold`` table.

    Updates go through :meth:`replace`, which returns a new table, so a table
    handed to a reader never changes underneath it.
    """

    __slots__ = ("_data",)

    def __init__(self, thresholds: Mapping[str, Mapping[str, float]]) -> None:
        self._data = MappingProxyType(
            {
                category: MappingProxyType({m: float(v) for m, v in metrics.items()})
                for category, metrics in thresholds.items()
            }
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Mapping[str, float]]) -> "ThresholdTable":
        """Build a table with the default layout from a nested mapping.

        Keys outside the default layout are dropped; a missing category or
        metric raises ``KeyError``.
        """
        return cls(
            {
                category: {metric: mapping[category][metric] for metric in metrics}
                for category, metrics in DEFAULT_THRESHOLDS.items()
            }
        )

    def __getitem__(self, category: str) -> Mapping[str, float]:
        return self._data[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ThresholdTable):
            return self.to_dict() == other.to_dict()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ThresholdTable({self.to_dict()!r})"

    def get_threshold(self, category: str, metric: str) -> float:
        return self._data[category][metric]

    def replace(self, updates: Mapping[tuple[str, str], float]) -> "ThresholdTable":
        """Return a copy with ``{(category, metric): value}`` applied."""
        data = self.to_dict()
        for (category, metric), value in updates.items():
            data.setdefault(category, {})[metric] = float(value)
        return ThresholdTable(data)

    def to_dict(self) -> dict[str, dict[str, float]]:
        return {category: dict(metrics) for category, metrics in self._data.items()}


def default_thresholds() -> ThresholdTable:
    """Fresh table holding the documented defaults."""
    return ThresholdTable(DEFAULT_THRESHOLDS)


def reset_thresholds() -> ThresholdTable:
    return default_thresholds()


class Direction(Enum):
    ABOVE = "above"      # value / threshold * weight
    BELOW = "below"      # (1 - value / threshold) * weight
    EXCESS = "excess"    # (value - threshold) / threshold * weight
    PEAK = "peak"        # value * weight

    def crossed(self, value: float, threshold: float) -> bool:
        if self is Direction.BELOW:
            return value < threshold
        return value > threshold


@dataclass(frozen=True)
class ThresholdRule:
    """One monitored metric.

    ``threshold_key`` names the entry of the threshold table bounding the
    metric; rules without one use ``fixed_threshold``. ``severe_factor`` scales
    the threshold into the tighter cut used for the severe indicator phrasing.
    Rules sharing a ``group`` share one score cap.
    """

    category: str
    metric: str
    direction: Direction
    weight: float
    threshold_key: Optional[str] = None
    fixed_threshold: Optional[float] = None
    severe_factor: Optional[float] = None
    group: Optional[str] = None
    message: Optional[str] = None
    severe_message: Optional[str] = None

    @property
    def name(self) -> str:
        return self.group or self.metric

    @property
    def calibrated(self) -> bool:
        return self.threshold_key is not None

    def threshold(self, thresholds: Mapping[str, Mapping[str, float]]) -> float:
        if self.threshold_key is None:
            return float(self.fixed_threshold)
        return float(thresholds[self.category][self.threshold_key])

    def severe_threshold(self, thresholds: Mapping[str, Mapping[str, float]]) -> Optional[float]:
        if self.severe_factor is None:
            return None
        return self.threshold(thresholds) * self.severe_factor

    def contribution(self, value: float, threshold: float) -> float:
        """Uncapped sub-score for a value that crossed *threshold*."""
        if self.direction is Direction.PEAK:
            return value * self.weight
        if threshold == 0:
            return self.weight
        if self.direction is Direction.ABOVE:
            return value / threshold * self.weight
        if self.direction is Direction.BELOW:
            return (1 - value / threshold) * self.weight
        return (value - threshold) / threshold * self.weight


RULES = (
    # patterns
    ThresholdRule("patterns", "sharpEdges", Direction.ABOVE, 15, threshold_key="sharpEdges",
                  severe_factor=3.0, message="Significant presence of sharp edges",
                  severe_message="Artificial sharp edges detected"),
    ThresholdRule("patterns", "repeatingPatterns", Direction.BELOW, 10, threshold_key="repeatingPatterns",
                  severe_factor=0.5, message="Unusual absence of repeating patterns",
                  severe_message="Near-total absence of repeating patterns"),
    # textures
    ThresholdRule("textures", "uniformity", Direction.BELOW, 20, threshold_key="uniformity",
                  severe_factor=0.5, message="Characteristic lack of uniformity",
                  severe_message="Severe lack of texture uniformity"),
    ThresholdRule("textures", "unnaturalGradients", Direction.ABOVE, 10, threshold_key="unnaturalGradients",
                  severe_factor=1.8, message="Artificial gradients detected",
                  severe_message="Extremely artificial gradients"),
    ThresholdRule("textures", "complexity", Direction.ABOVE, 15, threshold_key="complexity",
                  severe_factor=2.0, message="Abnormally high complexity",
                  severe_message="Extreme texture complexity"),
    # colors
    ThresholdRule("colors", "colorBanding", Direction.BELOW, 10, threshold_key="colorBanding",
                  severe_factor=0.5, message="Atypical color distribution",
                  severe_message="Highly atypical color distribution"),
    ThresholdRule("colors", "uniqueColors", Direction.EXCESS, 15, threshold_key="uniqueColors",
                  severe_factor=2.0, message="Unusual number of unique colors",
                  severe_message="Extremely large color palette"),
    ThresholdRule("colors", "saturationVariance", Direction.BELOW, 6, threshold_key="saturationVariance",
                  severe_factor=0.5, message="Too uniform saturation variation",
                  severe_message="Almost constant saturation"),
    ThresholdRule("colors", "averageSaturation", Direction.ABOVE, 0, fixed_threshold=0.7,
                  message="Abnormally high saturation"),
    # symmetry
    ThresholdRule("symmetry", "horizontalSymmetry", Direction.PEAK, 5, threshold_key="horizontalThreshold",
                  severe_factor=1.1, group="symmetry", message="Suspicious horizontal symmetry",
                  severe_message="Almost perfect horizontal symmetry"),
    ThresholdRule("symmetry", "verticalSymmetry", Direction.PEAK, 5, threshold_key="verticalThreshold",
                  severe_factor=1.1, group="symmetry", message="Suspicious vertical symmetry",
                  severe_message="Almost perfect vertical symmetry"),
    # noise
    ThresholdRule("noise", "artificialNoise", Direction.ABOVE, 10, threshold_key="artificialNoiseThreshold",
                  severe_factor=1.5, message="Artificial digital noise detected",
                  severe_message="Highly artificial digital noise"),
    ThresholdRule("noise", "naturalNoise", Direction.BELOW, 4, threshold_key="naturalNoiseThreshold",
                  severe_factor=0.5, message="Absence of natural noise",
                  severe_message="Total absence of natural noise"),
    # artifacts
    ThresholdRule("artifacts", "compressionArtifacts", Direction.ABOVE, 4, threshold_key="compressionArtifacts",
                  severe_factor=1.5, message="Suspicious compression artifacts",
                  severe_message="Pervasive compression artifacts"),
    ThresholdRule("artifacts", "perfectEdges", Direction.ABOVE, 3, threshold_key="perfectEdges",
                  severe_factor=1.5, message="Too perfect edges",
                  severe_message="Unnaturally perfect edges throughout"),
    # auxiliary
    ThresholdRule("jpegBlocks", "blockiness", Direction.BELOW, 5, fixed_threshold=0.05,
                  message="Missing JPEG block boundaries (too smooth)"),
    ThresholdRule("frequency", "balance", Direction.BELOW, 3, fixed_threshold=0.15,
                  message="Too uniform detail distribution"),
    ThresholdRule("frequency", "lowFrequency", Direction.ABOVE, 2, fixed_threshold=0.6,
                  message="Overly smooth image content"),
)


def calibrated_rules(rules=RULES):
    """Rules whose threshold lives in the threshold table."""
    return tuple(rule for rule in rules if rule.calibrated)


def is_unbounded(category: str, threshold_key: str) -> bool:
    return (category, threshold_key) in UNBOUNDED_THRESHOLDS


def is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
