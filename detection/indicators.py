"""
Indicator Generator
Human-readable warnings for every crossed threshold.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import List, Sequence, Tuple

from detection.thresholds import RULES, ThresholdRule
from detection.types import CATEGORY_ORDER, FeatureSet

PERFECT_SYMMETRY = "Almost perfect symmetry (rare in natural photos)"

NOT_CROSSED, SUSPICIOUS, HIGHLY_SUSPICIOUS = 0, 1, 2


def _ordered(rules: Sequence[ThresholdRule]) -> List[ThresholdRule]:
    rank = {category: i for i, category in enumerate(CATEGORY_ORDER)}
    # sorted() is stable, so declaration order holds within a category
    return sorted(rules, key=lambda rule: rank.get(rule.category, len(rank)))


def severity(rule: ThresholdRule, value: float, thresholds) -> int:
    if not rule.direction.crossed(value, rule.threshold(thresholds)):
        return NOT_CROSSED
    severe = rule.severe_threshold(thresholds)
    if severe is not None and rule.direction.crossed(value, severe):
        return HIGHLY_SUSPICIOUS
    return SUSPICIOUS


def indicators(
    features: FeatureSet,
    thresholds: Mapping[str, Mapping[str, float]],
    rules: Sequence[ThresholdRule] = RULES,
) -> Tuple[str, ...]:
    """Return at most one message per rule, in category then declaration order.

    When every rule of the symmetry group is highly suspicious, the group is
    reported as one "almost perfect symmetry" message.
    """
    entries: List[Tuple[ThresholdRule, int]] = []
    for rule in _ordered(rules):
        if rule.message is None:
            continue
        value = features.value(rule.category, rule.metric)
        if value is None:
            continue
        level = severity(rule, value, thresholds)
        if level != NOT_CROSSED:
            entries.append((rule, level))

    symmetry = [level for rule, level in entries if rule.group == "symmetry"]
    group_size = sum(1 for rule in rules if rule.group == "symmetry")
    merge_symmetry = group_size > 1 and symmetry.count(HIGHLY_SUSPICIOUS) == group_size

    messages: List[str] = []
    for rule, level in entries:
        if merge_symmetry and rule.group == "symmetry":
            if PERFECT_SYMMETRY not in messages:
                messages.append(PERFECT_SYMMETRY)
            continue
        if level == HIGHLY_SUSPICIOUS and rule.severe_message:
            messages.append(rule.severe_message)
        else:
            messages.append(rule.message)

    return tuple(messages)
