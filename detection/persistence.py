"""
Model Persistence
JSON export/import of the threshold table plus training counts.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Optional, Tuple

from detection.errors import InvalidNumber, MalformedModel
from detection.thresholds import DEFAULT_THRESHOLDS, ThresholdTable, is_finite_number
from detection.types import TrainingStats
from utils.logger import setup_logger

logger = setup_logger(__name__)


def export_model(
    thresholds: ThresholdTable,
    sample_counts: Mapping[str, int],
    now: Optional[datetime] = None,
) -> str:
    """
    Serialize *thresholds* and sample counts.

    Args:
        thresholds: table to export
        sample_counts: ``{"ai": int, "real": int}``
        now: export timestamp (current UTC time when omitted)

    Returns:
        str: JSON text
    """
    if now is None:
        now = datetime.now(timezone.utc)
    payload = {
        "thresholds": thresholds.to_dict(),
        "trainingStats": {
            "aiImagesCount": int(sample_counts.get("ai", 0)),
            "realImagesCount": int(sample_counts.get("real", 0)),
            "lastUpdate": now.isoformat(),
        },
    }
    return json.dumps(payload, indent=2)


def _parse_thresholds(raw) -> ThresholdTable:
    if not isinstance(raw, Mapping):
        raise MalformedModel("Missing thresholds object")

    table = {}
    for category, metrics in DEFAULT_THRESHOLDS.items():
        section = raw.get(category)
        if not isinstance(section, Mapping):
            raise MalformedModel(f"Missing threshold category: {category}")
        table[category] = {}
        for metric in metrics:
            if metric not in section:
                raise MalformedModel(f"Missing threshold: {category}.{metric}")
            value = section[metric]
            if not is_finite_number(value):
                raise InvalidNumber(f"Invalid threshold: {category}.{metric} = {value!r}")
            table[category][metric] = value
    return ThresholdTable.from_mapping(table)


def _parse_stats(raw) -> TrainingStats:
    if not isinstance(raw, Mapping):
        raw = {}

    def _count(key):
        value = raw.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidNumber(f"Invalid training count: {key} = {value!r}")
        return value

    return TrainingStats(
        ai_images_count=_count("aiImagesCount"),
        real_images_count=_count("realImagesCount"),
        last_update=str(raw.get("lastUpdate", "")),
    )


def import_model(text) -> Tuple[ThresholdTable, TrainingStats]:
    """
    Parse and validate a model exported by :func:`export_model`.

    Only the default categories and metrics are read; extra keys are ignored.

    Raises:
        MalformedModel: undecodable text or missing category/metric
        InvalidNumber: non-numeric or non-finite value
    """
    if not isinstance(text, (str, bytes, bytearray)):
        raise MalformedModel("Invalid model data: expected JSON text")
    try:
        payload = json.loads(text)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedModel(f"Model loading error: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise MalformedModel("Invalid model data: expected a JSON object")

    table = _parse_thresholds(payload.get("thresholds"))
    stats = _parse_stats(payload.get("trainingStats"))
    logger.debug(
        f"Model parsed: ai={stats.ai_images_count}, real={stats.real_images_count}, "
        f"lastUpdate={stats.last_update or '-'}"
    )
    return table, stats
