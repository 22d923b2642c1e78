"""Value objects shared across the detection engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from collections.abc import Iterator, Mapping
from typing import Any

CATEGORY_ORDER = (
    "patterns",
    "textures",
    "colors",
    "symmetry",
    "noise",
    "artifacts",
    "jpegBlocks",
    "frequency",
)


def _freeze(mapping: Mapping[str, Mapping[str, float]]) -> Mapping[str, Mapping[str, float]]:
    return MappingProxyType(
        {category: MappingProxyType(dict(metrics)) for category, metrics in mapping.items()}
    )


class FeatureSet(Mapping[str, Mapping[str, float]]):
    """Read-only ``category -> metric -> value`` mapping for one image."""

    __slots__ = ("_data",)

    def __init__(self, categories: Mapping[str, Mapping[str, float]]) -> None:
        self._data = _freeze(categories)

    def __getitem__(self, category: str) -> Mapping[str, float]:
        return self._data[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FeatureSet({self.to_dict()!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FeatureSet):
            return self.to_dict() == other.to_dict()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def value(self, category: str, metric: str) -> float | None:
        """Return one metric, or ``None`` when the category or metric is absent."""

        metrics = self._data.get(category)
        if metrics is None:
            return None
        return metrics.get(metric)

    def to_dict(self) -> dict[str, dict[str, float]]:
        return {category: dict(metrics) for category, metrics in self._data.items()}


@dataclass(frozen=True)
class ScoreReport:
    """Capped suspicion score plus the uncapped per-rule contributions."""

    score: float
    details: Mapping[str, float]
    dampened: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of analysing one pixel buffer."""

    score: float
    features: FeatureSet
    indicators: tuple[str, ...]
    details: Mapping[str, float]
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only copies, so a result never changes after it is returned
        object.__setattr__(self, "indicators", tuple(self.indicators))
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "analysis": self.features.to_dict(),
            "indicators": list(self.indicators),
            "details": dict(self.details),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class TrainingStats:
    """Summary counts stored alongside an exported model."""

    ai_images_count: int
    real_images_count: int
    last_update: str
